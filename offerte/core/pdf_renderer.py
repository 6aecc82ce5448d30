"""ReportLab rendering of assembled offerte documents.

Pagination, line breaking and the PDF byte stream are left to ReportLab's
platypus engine; this module only maps layout blocks onto flowables and draws
the page header/footer.
"""

from collections.abc import Callable
from functools import partial
from io import BytesIO
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    HRFlowable,
    KeepTogether,
    ListFlowable,
    ListItem,
    PageBreak as RLPageBreak,
    Paragraph as RLParagraph,
    SimpleDocTemplate,
    Spacer,
    Table,
)

from offerte.core.logging import get_logger
from offerte.core.offerte_document import (
    AssumptionsAppendix,
    BulletList,
    Callout,
    CoverPage,
    DataTable,
    Divider,
    Highlight,
    LabeledValues,
    OfferteDocument,
    PageBreak,
    PageDecoration,
    Paragraph,
    SectionHeading,
    SubHeading,
    TotalsTable,
    TwoColumnLists,
)
from offerte.core.pdf_styles import (
    COLORS,
    FONT,
    PAGE_MARGINS,
    PARAGRAPH_GAP,
    borderless_table_style,
    callout_table_style,
    make_styles,
    proposal_table_style,
    totals_table_style,
)

logger = get_logger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
LEFT_MARGIN, TOP_MARGIN, RIGHT_MARGIN, BOTTOM_MARGIN = PAGE_MARGINS
FRAME_WIDTH = PAGE_WIDTH - LEFT_MARGIN - RIGHT_MARGIN

HEADER_FONT_SIZE = 8
FOOTER_FONT_SIZE = 7


class OfferteRenderError(Exception):
    """Raised when an offerte document cannot be rendered to PDF."""


def _resolve_widths(widths: list[float | None], total: float = FRAME_WIDTH) -> list[float]:
    """Give columns without a fixed width an equal share of what is left."""
    fixed = sum(w for w in widths if w is not None)
    flexible = [w for w in widths if w is None]
    share = max(total - fixed, 0) / len(flexible) if flexible else 0
    return [share if w is None else w for w in widths]


class _DecoratedCanvas(canvas.Canvas):
    """Canvas that defers headers/footers until the page count is known."""

    def __init__(self, *args: Any, document: OfferteDocument, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._document = document
        self._saved_page_states: list[dict[str, Any]] = []

    def showPage(self) -> None:  # noqa: N802 - ReportLab API
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            page = self.getPageNumber()
            self._draw_line(self._document.header_for(page), PAGE_HEIGHT - 40, HEADER_FONT_SIZE)
            self._draw_line(self._document.footer_for(page, page_count), 30, FOOTER_FONT_SIZE)
            super().showPage()
        super().save()

    def _draw_line(self, decoration: PageDecoration | None, y: float, size: int) -> None:
        if decoration is None:
            return
        self.saveState()
        self.setFont(FONT, size)
        self.setFillColor(COLORS["light"])
        self.drawString(LEFT_MARGIN, y, decoration.left)
        self.drawRightString(PAGE_WIDTH - RIGHT_MARGIN, y, decoration.right)
        self.restoreState()


class OffertePdfRenderer:
    """Turns OfferteDocument blocks into ReportLab flowables and PDF bytes."""

    def __init__(self) -> None:
        self.styles = make_styles()
        self._renderers: dict[type, Callable[[Any], list[Any]]] = {
            CoverPage: self._cover,
            SectionHeading: self._section_heading,
            SubHeading: self._sub_heading,
            Paragraph: self._paragraph,
            Highlight: self._highlight,
            LabeledValues: self._labeled_values,
            BulletList: self._bullet_list,
            DataTable: self._data_table,
            Callout: self._callout,
            TwoColumnLists: self._two_columns,
            TotalsTable: self._totals,
            Divider: self._divider,
            PageBreak: self._page_break,
            AssumptionsAppendix: self._assumptions,
        }

    # ── helpers ──────────────────────────────────────────────────────────────

    def _p(self, text: str, style: str) -> RLParagraph:
        return RLParagraph(escape(text), self.styles[style])

    def _bullets(self, items: list[str]) -> ListFlowable:
        return ListFlowable(
            [ListItem(self._p(item, "bullet"), leftIndent=12) for item in items],
            bulletType="bullet",
            start="•",
            leftIndent=12,
            bulletFontSize=8,
            bulletColor=COLORS["dark"],
        )

    # ── block renderers ──────────────────────────────────────────────────────

    def _cover(self, block: CoverPage) -> list[Any]:
        details = Table(
            [[self._p(label, "label"), self._p(value, "cover_detail")] for label, value in block.details],
            colWidths=[120, FRAME_WIDTH - 120],
            hAlign="LEFT",
        )
        details.setStyle(borderless_table_style())
        return [
            Spacer(1, 60),
            HRFlowable(width="100%", thickness=4, color=COLORS["primary"], spaceAfter=30),
            self._p(block.bureau_naam, "cover_title"),
            self._p(block.bureau_tagline, "cover_subtitle"),
            HRFlowable(width=80, thickness=3, color=COLORS["accent"], hAlign="LEFT", spaceAfter=20),
            self._p("O F F E R T E", "cover_kicker"),
            self._p(block.projectnaam, "cover_project"),
            details,
        ]

    def _section_heading(self, block: SectionHeading) -> list[Any]:
        accent = COLORS["accent"].hexval()[2:]
        markup = f'<font color="#{accent}">{block.number}.</font>&nbsp;&nbsp;{escape(block.title)}'
        return [RLParagraph(markup, self.styles["section_title"])]

    def _sub_heading(self, block: SubHeading) -> list[Any]:
        return [self._p(block.text, "sub_heading")]

    def _paragraph(self, block: Paragraph) -> list[Any]:
        return [self._p(block.text, block.style)]

    def _highlight(self, block: Highlight) -> list[Any]:
        accent = COLORS["accent"].hexval()[2:]
        markup = f'{escape(block.label)}<font color="#{accent}"><b>{escape(block.value)}</b></font>'
        return [RLParagraph(markup, self.styles["body"])]

    def _labeled_values(self, block: LabeledValues) -> list[Any]:
        table = Table(
            [[self._p(label, "label"), self._p(value, "body")] for label, value in block.rows],
            colWidths=[140, FRAME_WIDTH - 140],
            hAlign="LEFT",
        )
        table.setStyle(borderless_table_style())
        return [table, Spacer(1, PARAGRAPH_GAP)]

    def _bullet_list(self, block: BulletList) -> list[Any]:
        return [self._bullets(block.items), Spacer(1, PARAGRAPH_GAP)]

    def _data_table(self, block: DataTable) -> list[Any]:
        header = [self._p(h, "table_header") for h in block.headers]
        body = []
        for row in block.rows:
            cells = []
            for index, value in enumerate(row):
                if index in block.right_aligned:
                    style = "table_cell_right"
                elif index == 0 and block.bold_first_column:
                    style = "table_cell_bold"
                else:
                    style = "table_cell"
                cells.append(self._p(value, style))
            body.append(cells)

        table = Table([header, *body], colWidths=_resolve_widths(block.widths), repeatRows=1, hAlign="LEFT")
        table.setStyle(proposal_table_style())
        return [table, Spacer(1, PARAGRAPH_GAP)]

    def _callout(self, block: Callout) -> list[Any]:
        stack = [self._p(block.label, "label"), self._p(block.value, "callout_value")]
        if block.note:
            stack.append(self._p(block.note, "note"))
        table = Table([[stack]], colWidths=[FRAME_WIDTH], hAlign="LEFT")
        table.setStyle(callout_table_style())
        return [Spacer(1, 4), table, Spacer(1, PARAGRAPH_GAP)]

    def _two_columns(self, block: TwoColumnLists) -> list[Any]:
        def column(title: str, items: list[str]) -> list[Any] | str:
            if not items:
                return ""
            return [self._p(title, "sub_heading"), self._bullets(items)]

        column_width = (FRAME_WIDTH - 20) / 2
        table = Table(
            [[column(block.left_title, block.left_items), "", column(block.right_title, block.right_items)]],
            colWidths=[column_width, 20, column_width],
            hAlign="LEFT",
        )
        table.setStyle(borderless_table_style())
        return [table, Spacer(1, PARAGRAPH_GAP)]

    def _totals(self, block: TotalsTable) -> list[Any]:
        rows = []
        grand_rows = []
        shaded_rows = []
        for index, row in enumerate(block.rows):
            if row.emphasis == "grand":
                grand_rows.append(index)
                rows.append([self._p(row.label, "grand_label"), self._p(row.amount, "grand_amount")])
            elif row.emphasis in ("subtotal", "total"):
                shaded_rows.append(index)
                rows.append([self._p(row.label, "total_label"), self._p(row.amount, "total_amount")])
            else:
                rows.append([self._p(row.label, "table_cell"), self._p(row.amount, "table_cell_right")])

        table = Table(rows, colWidths=[FRAME_WIDTH - 120, 120], hAlign="LEFT")
        table.setStyle(totals_table_style(grand_rows, shaded_rows))
        return [Spacer(1, 4), KeepTogether([table]), Spacer(1, PARAGRAPH_GAP)]

    def _divider(self, block: Divider) -> list[Any]:
        return [
            HRFlowable(
                width="100%", thickness=0.5, color=COLORS["border"], spaceBefore=8, spaceAfter=8
            )
        ]

    def _page_break(self, block: PageBreak) -> list[Any]:
        return [RLPageBreak()]

    def _assumptions(self, block: AssumptionsAppendix) -> list[Any]:
        items = []
        for item in block.items:
            if item.category:
                markup = f"<b>{escape(item.category)}:</b> {escape(item.description)}"
            else:
                markup = escape(item.description)
            items.append(ListItem(RLParagraph(markup, self.styles["bullet"]), leftIndent=12))
        return [
            self._p(block.title, "appendix_title"),
            self._p(block.intro, "note"),
            Spacer(1, 6),
            ListFlowable(items, bulletType="bullet", start="•", leftIndent=12, bulletFontSize=8),
        ]

    # ── entry points ─────────────────────────────────────────────────────────

    def flowables(self, document: OfferteDocument) -> list[Any]:
        """Map every block onto ReportLab flowables, in order."""
        story: list[Any] = []
        for block in document.blocks:
            render = self._renderers.get(type(block))
            if render is None:
                raise OfferteRenderError(f"No renderer for block type {type(block).__name__}")
            story.extend(render(block))
        return story

    def render(self, document: OfferteDocument) -> bytes:
        """
        Render a document to PDF bytes.

        Args:
            document: Output of assemble_document

        Returns:
            PDF file contents

        Raises:
            OfferteRenderError: If ReportLab fails to lay out or write the PDF
        """
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=LEFT_MARGIN,
            rightMargin=RIGHT_MARGIN,
            topMargin=TOP_MARGIN,
            bottomMargin=BOTTOM_MARGIN,
            title=document.title,
            author=document.bureau_naam,
        )
        try:
            doc.build(
                self.flowables(document),
                canvasmaker=partial(_DecoratedCanvas, document=document),
            )
        except OfferteRenderError:
            raise
        except Exception as e:
            logger.error(f"PDF rendering failed: {e}", exc_info=True)
            raise OfferteRenderError(str(e)) from e

        pdf_bytes = buffer.getvalue()
        logger.info(
            f"Rendered offerte PDF ({len(pdf_bytes)} bytes)",
            extra={"extra_data": {"blocks": len(document.blocks)}},
        )
        return pdf_bytes


def render_offerte_pdf(document: OfferteDocument) -> bytes:
    """Render an assembled offerte document to PDF bytes."""
    return OffertePdfRenderer().render(document)
