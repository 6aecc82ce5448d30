"""PDF styling for offertes: blue/grey palette, paragraph styles, table styles."""

from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_LEFT, TA_RIGHT
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import TableStyle

# ─── Palette ──────────────────────────────────────────────────────────────────
COLORS = {
    "primary": HexColor("#1a3a5c"),  # headings, titles
    "primary_light": HexColor("#2d5f8a"),  # subtitles
    "accent": HexColor("#e8913a"),  # highlights, amounts
    "dark": HexColor("#1a1a2e"),  # body text
    "medium": HexColor("#4a4a5a"),  # secondary text
    "light": HexColor("#6b7280"),  # labels, notes
    "border": HexColor("#d1d5db"),  # table rules
    "bg_light": HexColor("#f0f4f8"),  # table header background
    "bg_accent": HexColor("#fef7ed"),  # grand total background
    "white": HexColor("#ffffff"),
}

# Points; left, top, right, bottom
PAGE_MARGINS = (50, 80, 50, 60)
SECTION_GAP = 16
PARAGRAPH_GAP = 8
LIST_ITEM_GAP = 4

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"


def make_styles() -> dict[str, ParagraphStyle]:
    """Build the paragraph styles used by the offerte renderer."""
    base = getSampleStyleSheet()
    normal = base["Normal"]

    def style(name: str, **kwargs) -> ParagraphStyle:
        kwargs.setdefault("fontName", FONT)
        kwargs.setdefault("textColor", COLORS["dark"])
        return ParagraphStyle(f"Offerte{name}", parent=normal, **kwargs)

    return {
        "cover_title": style("CoverTitle", fontName=FONT_BOLD, fontSize=28, leading=34,
                             textColor=COLORS["primary"], spaceAfter=8),
        "cover_subtitle": style("CoverSubtitle", fontSize=14, leading=18,
                                textColor=COLORS["primary_light"], spaceAfter=40),
        "cover_kicker": style("CoverKicker", fontSize=12, leading=16,
                              textColor=COLORS["light"], spaceAfter=8),
        "cover_project": style("CoverProject", fontName=FONT_BOLD, fontSize=22, leading=28,
                               textColor=COLORS["primary"], spaceAfter=30),
        "cover_detail": style("CoverDetail", fontSize=11, leading=15, textColor=COLORS["medium"]),
        "section_title": style("SectionTitle", fontName=FONT_BOLD, fontSize=14, leading=18,
                               textColor=COLORS["primary"], spaceBefore=SECTION_GAP, spaceAfter=8),
        "sub_heading": style("SubHeading", fontName=FONT_BOLD, fontSize=10, leading=15,
                             spaceBefore=4, spaceAfter=4),
        "body": style("Body", fontSize=10, leading=15, spaceAfter=PARAGRAPH_GAP),
        "label": style("Label", fontSize=9, leading=12, textColor=COLORS["light"]),
        "note": style("Note", fontName=FONT_ITALIC, fontSize=8, leading=11,
                      textColor=COLORS["light"], spaceBefore=4),
        "callout_value": style("CalloutValue", fontName=FONT_BOLD, fontSize=18, leading=22,
                               textColor=COLORS["accent"], spaceBefore=2, spaceAfter=4),
        "table_header": style("TableHeader", fontName=FONT_BOLD, fontSize=9, leading=12,
                              textColor=COLORS["primary"]),
        "table_cell": style("TableCell", fontSize=9, leading=12),
        "table_cell_right": style("TableCellRight", fontSize=9, leading=12, alignment=TA_RIGHT),
        "table_cell_bold": style("TableCellBold", fontName=FONT_BOLD, fontSize=9, leading=12),
        "total_label": style("TotalLabel", fontName=FONT_BOLD, fontSize=10, leading=13,
                             textColor=COLORS["primary"]),
        "total_amount": style("TotalAmount", fontName=FONT_BOLD, fontSize=10, leading=13,
                              textColor=COLORS["accent"], alignment=TA_RIGHT),
        "grand_label": style("GrandLabel", fontName=FONT_BOLD, fontSize=12, leading=15,
                             textColor=COLORS["primary"]),
        "grand_amount": style("GrandAmount", fontName=FONT_BOLD, fontSize=12, leading=15,
                              textColor=COLORS["accent"], alignment=TA_RIGHT),
        "bullet": style("Bullet", fontSize=10, leading=14, spaceAfter=LIST_ITEM_GAP,
                        alignment=TA_LEFT),
        "appendix_title": style("AppendixTitle", fontName=FONT_BOLD, fontSize=10, leading=15,
                                textColor=COLORS["accent"], spaceBefore=8, spaceAfter=6),
    }


def proposal_table_style() -> TableStyle:
    """Header rule in primary, thin rules between body rows, no vertical lines."""
    return TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), COLORS["bg_light"]),
        ("LINEABOVE", (0, 0), (-1, 0), 1, COLORS["primary"]),
        ("LINEBELOW", (0, 0), (-1, 0), 1, COLORS["primary"]),
        ("LINEBELOW", (0, 1), (-1, -1), 0.5, COLORS["border"]),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 4),
        ("RIGHTPADDING", (0, 0), (-1, -1), 4),
        ("TOPPADDING", (0, 0), (-1, -1), 5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
    ])


def totals_table_style(grand_rows: list[int], shaded_rows: list[int]) -> TableStyle:
    """Heavy rules around the block, accent fill on the grand total."""
    commands = [
        ("LINEABOVE", (0, 0), (-1, 0), 1.5, COLORS["primary"]),
        ("LINEBELOW", (0, -1), (-1, -1), 1.5, COLORS["primary"]),
        ("LINEBELOW", (0, 0), (-1, -2), 0.5, COLORS["primary"]),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), 4),
        ("RIGHTPADDING", (0, 0), (-1, -1), 4),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]
    for row in shaded_rows:
        commands.append(("BACKGROUND", (0, row), (-1, row), COLORS["bg_light"]))
    for row in grand_rows:
        commands.append(("BACKGROUND", (0, row), (-1, row), COLORS["bg_accent"]))
    return TableStyle(commands)


def borderless_table_style() -> TableStyle:
    return TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 8),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ])


def callout_table_style() -> TableStyle:
    return TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), COLORS["bg_light"]),
        ("LEFTPADDING", (0, 0), (-1, -1), 12),
        ("RIGHTPADDING", (0, 0), (-1, -1), 12),
        ("TOPPADDING", (0, 0), (-1, -1), 10),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 10),
    ])
