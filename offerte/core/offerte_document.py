"""Offerte document assembly: maps an offerte onto ordered layout blocks.

The blocks are renderer-neutral; ``offerte.core.pdf_renderer`` turns them into
ReportLab flowables. Assembly is pure: it reads the offerte and allocates new
blocks, nothing else.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from offerte.core.formatting import (
    display,
    format_date,
    format_eur,
    format_percentage,
)
from offerte.core.schemas_offerte import (
    DEFAULT_BTW_PERCENTAGE,
    Doelgroep,
    Kosten,
    Meta,
    Methodologie,
    Offerte,
    Planning,
    Steekproef,
    Verantwoordelijkheden,
)

DEFAULT_BUREAU_NAAM = "[BUREAUNAAM]"
DEFAULT_BUREAU_TAGLINE = "Intelligent Respondent Recruitment"
DEFAULT_PROJECTNAAM = "Projectnaam"
CONFIDENTIAL_LABEL = "Vertrouwelijk"

# Longest prefix still read as an assumption category ("Budget: ...")
MAX_CATEGORY_LENGTH = 40


# =======================
# Layout blocks
# =======================


@dataclass(frozen=True)
class CoverPage:
    """Full-page cover built from meta."""

    bureau_naam: str
    bureau_tagline: str
    projectnaam: str
    details: list[tuple[str, str]]


@dataclass(frozen=True)
class SectionHeading:
    number: int
    title: str


@dataclass(frozen=True)
class SubHeading:
    text: str


@dataclass(frozen=True)
class Paragraph:
    text: str
    style: str = "body"  # body | note


@dataclass(frozen=True)
class Highlight:
    """Inline label followed by an emphasised value."""

    label: str
    value: str


@dataclass(frozen=True)
class LabeledValues:
    """Borderless two-column label/value rows."""

    rows: list[tuple[str, str]]


@dataclass(frozen=True)
class BulletList:
    items: list[str]


@dataclass(frozen=True)
class DataTable:
    """
    Bordered table with a header row.

    ``widths`` are points; None shares the remaining frame width.
    """

    headers: list[str]
    rows: list[list[str]]
    widths: list[float | None]
    right_aligned: tuple[int, ...] = ()
    bold_first_column: bool = False


@dataclass(frozen=True)
class Callout:
    """Highlighted box with a label, a large value and a note."""

    label: str
    value: str
    note: str


@dataclass(frozen=True)
class TwoColumnLists:
    left_title: str
    left_items: list[str]
    right_title: str
    right_items: list[str]


@dataclass(frozen=True)
class TotalsRow:
    label: str
    amount: str
    emphasis: str = "normal"  # normal | subtotal | total | grand


@dataclass(frozen=True)
class TotalsTable:
    rows: list[TotalsRow]


@dataclass(frozen=True)
class Divider:
    pass


@dataclass(frozen=True)
class PageBreak:
    pass


@dataclass(frozen=True)
class Assumption:
    category: str | None
    description: str


@dataclass(frozen=True)
class AssumptionsAppendix:
    title: str
    intro: str
    items: list[Assumption]


Block = (
    CoverPage
    | SectionHeading
    | SubHeading
    | Paragraph
    | Highlight
    | LabeledValues
    | BulletList
    | DataTable
    | Callout
    | TwoColumnLists
    | TotalsTable
    | Divider
    | PageBreak
    | AssumptionsAppendix
)


@dataclass(frozen=True)
class PageDecoration:
    """Left and right aligned text of a header or footer line."""

    left: str
    right: str


@dataclass
class OfferteDocument:
    """Assembled offerte: ordered blocks plus page decoration rules."""

    blocks: list[Block]
    bureau_naam: str = ""
    projectnaam: str = ""
    offerte_nummer: str = ""
    title: str = ""
    sections: list[str] = field(default_factory=list)

    def header_for(self, page: int) -> PageDecoration | None:
        """Header for a 1-based page number; the cover page has none."""
        if page == 1:
            return None
        return PageDecoration(left=self.bureau_naam, right=self.projectnaam)

    def footer_for(self, page: int, page_count: int) -> PageDecoration | None:
        """Footer for a 1-based page number; the cover page has none."""
        if page == 1:
            return None
        return PageDecoration(
            left=f"{self.offerte_nummer} | {CONFIDENTIAL_LABEL}",
            right=f"{page} / {page_count}",
        )


# =======================
# Helpers
# =======================


def split_aanname(text: str) -> Assumption:
    """
    Split an assumption written as "Categorie: omschrijving".

    Entries without a short leading category are kept whole.
    """
    category, sep, description = text.partition(":")
    category = category.strip()
    description = description.strip()
    if not sep or not category or not description or len(category) > MAX_CATEGORY_LENGTH:
        return Assumption(category=None, description=text.strip())
    return Assumption(category=category, description=description)


def _items(values: list[str] | None) -> list[str]:
    return [v for v in (values or []) if v is not None and str(v).strip()]


def _bullets(title: str | None, values: list[str] | None) -> list[Block]:
    items = _items(values)
    if not items:
        return []
    blocks: list[Block] = []
    if title:
        blocks.append(SubHeading(title))
    blocks.append(BulletList(items))
    return blocks


def _text(value: str | None, style: str = "body") -> list[Block]:
    if value is None or not str(value).strip():
        return []
    return [Paragraph(str(value), style)]


# =======================
# Cover page
# =======================


def build_cover(meta: Meta) -> list[Block]:
    """Cover page followed by its forced page break."""
    return [
        CoverPage(
            bureau_naam=meta.bureau_naam or DEFAULT_BUREAU_NAAM,
            bureau_tagline=meta.bureau_tagline or DEFAULT_BUREAU_TAGLINE,
            projectnaam=meta.projectnaam or DEFAULT_PROJECTNAAM,
            details=[
                ("Offertenummer", display(meta.offerte_nummer)),
                ("Datum", format_date(meta.offerte_datum)),
                ("Geldig tot", format_date(meta.geldig_tot)),
                ("Opdrachtgever", display(meta.opdrachtgever)),
                ("Contactpersoon", display(meta.contactpersoon)),
            ],
        ),
        PageBreak(),
    ]


# =======================
# Section bodies
# =======================


def _management_summary(offerte: Offerte) -> list[Block]:
    return _text(offerte.management_summary)


def _doelgroep(offerte: Offerte) -> list[Block]:
    dg = offerte.doelgroep or Doelgroep()
    return [
        *_text(dg.omschrijving),
        *_bullets("Screeningcriteria:", dg.screeningcriteria),
        Callout(
            label="Geschatte Incidence Rate",
            value=display(dg.geschatte_incidence_rate),
            note=dg.ir_toelichting or "",
        ),
    ]


def _steekproef(offerte: Offerte) -> list[Block]:
    sp = offerte.steekproef or Steekproef()
    blocks: list[Block] = [Highlight("Totaal aantal completes: ", display(sp.totaal_completes))]

    if sp.landen:
        blocks.append(
            DataTable(
                headers=["Land", "Completes", "Taal"],
                rows=[[display(land.land), display(land.completes), display(land.taal)] for land in sp.landen],
                widths=[None, 80, None],
                right_aligned=(1,),
            )
        )
    if sp.quotas:
        blocks.append(SubHeading("Quota-verdeling:"))
        blocks.append(
            DataTable(
                headers=["Variabele", "Verdeling"],
                rows=[[display(q.variabele), display(q.verdeling)] for q in sp.quotas],
                widths=[150, None],
            )
        )
    blocks.extend(_text(sp.opmerkingen, "note"))
    return blocks


def _methodologie(offerte: Offerte) -> list[Block]:
    m = offerte.methodologie or Methodologie()
    blocks: list[Block] = [
        LabeledValues(
            [
                ("Onderzoekstype", display(m.onderzoekstype)),
                ("Lengte interview (LOI)", f"{display(m.loi_minuten)} minuten"),
            ]
        )
    ]
    if m.wervingsaanpak:
        blocks.append(SubHeading("Wervingsaanpak:"))
        blocks.extend(_text(m.wervingsaanpak))
    blocks.extend(_bullets("Kwaliteitsmaatregelen:", m.kwaliteitsmaatregelen))
    return blocks


def _planning(offerte: Offerte) -> list[Block]:
    p = offerte.planning or Planning()
    blocks: list[Block] = [
        Highlight("Totale doorlooptijd: ", f"{display(p.totale_doorlooptijd_werkdagen)} werkdagen")
    ]
    if p.fases:
        blocks.append(
            DataTable(
                headers=["Fase", "Duur", "Omschrijving"],
                rows=[[display(f.fase), display(f.duur), display(f.omschrijving)] for f in p.fases],
                widths=[140, 80, None],
                bold_first_column=True,
            )
        )
    blocks.append(
        LabeledValues(
            [
                ("Verwachte start", format_date(p.verwachte_startdatum)),
                ("Verwachte oplevering", format_date(p.verwachte_opleverdatum)),
            ]
        )
    )
    return blocks


def _kosten(offerte: Offerte) -> list[Block]:
    k = offerte.kosten or Kosten()
    blocks: list[Block] = []

    if k.eenmalige_kosten:
        blocks.append(SubHeading("Eenmalige kosten"))
        blocks.append(
            DataTable(
                headers=["Omschrijving", "Toelichting", "Bedrag"],
                rows=[
                    [display(ek.omschrijving), ek.toelichting or "", format_eur(ek.bedrag)]
                    for ek in k.eenmalige_kosten
                ],
                widths=[150, None, 90],
                right_aligned=(2,),
                bold_first_column=True,
            )
        )
    if k.variabele_kosten:
        blocks.append(SubHeading("Variabele kosten (per land)"))
        blocks.append(
            DataTable(
                headers=["Land", "CPI", "Incentive", "Completes", "Subtotaal"],
                rows=[
                    [
                        display(vk.land),
                        format_eur(vk.cpi),
                        format_eur(vk.incentive_per_respondent),
                        display(vk.aantal_completes),
                        format_eur(vk.subtotaal),
                    ]
                    for vk in k.variabele_kosten
                ],
                widths=[None, 70, 70, 65, 85],
                right_aligned=(1, 2, 3, 4),
                bold_first_column=True,
            )
        )

    # Aggregates are rendered as supplied, never derived from the lines above
    btw_label = f"BTW ({format_percentage(k.btw_percentage, DEFAULT_BTW_PERCENTAGE)}%)"
    blocks.append(
        TotalsTable(
            [
                TotalsRow("Subtotaal eenmalig", format_eur(k.subtotaal_eenmalig), "subtotal"),
                TotalsRow("Subtotaal variabel", format_eur(k.subtotaal_variabel), "subtotal"),
                TotalsRow("Totaal exclusief BTW", format_eur(k.totaal_excl_btw), "total"),
                TotalsRow(btw_label, format_eur(k.btw_bedrag)),
                TotalsRow("Totaal inclusief BTW", format_eur(k.totaal_incl_btw), "grand"),
            ]
        )
    )
    blocks.extend(_text(k.btw_opmerking, "note"))
    return blocks


def _deliverables(offerte: Offerte) -> list[Block]:
    return _bullets(None, offerte.deliverables)


def _verantwoordelijkheden(offerte: Offerte) -> list[Block]:
    v = offerte.verantwoordelijkheden or Verantwoordelijkheden()
    return [
        TwoColumnLists(
            left_title="Ons bureau",
            left_items=_items(v.bureau),
            right_title="Opdrachtgever",
            right_items=_items(v.opdrachtgever),
        )
    ]


def _kwaliteitsgaranties(offerte: Offerte) -> list[Block]:
    return _bullets(None, offerte.kwaliteitsgaranties)


def _voorwaarden_disclaimers(offerte: Offerte) -> list[Block]:
    return [
        *_bullets("Voorwaarden:", offerte.voorwaarden),
        *_bullets("Disclaimers:", offerte.disclaimers),
    ]


def build_assumptions(offerte: Offerte) -> AssumptionsAppendix | None:
    """Assumptions appendix, or None when the model made no assumptions."""
    items = _items(offerte.aannames)
    if not items:
        return None
    return AssumptionsAppendix(
        title="Aannames",
        intro="De volgende aannames zijn gemaakt bij het opstellen van deze offerte:",
        items=[split_aanname(item) for item in items],
    )


# Fixed section order: (number, title, body builder, page break after)
SECTION_ORDER: list[tuple[int, str, Callable[[Offerte], list[Block]], bool]] = [
    (1, "Management Summary", _management_summary, False),
    (2, "Doelgroep & Screening", _doelgroep, False),
    (3, "Steekproefopzet", _steekproef, False),
    (4, "Methodologie", _methodologie, False),
    (5, "Planning", _planning, True),
    (6, "Kostenoverzicht", _kosten, False),
    (7, "Deliverables", _deliverables, False),
    (8, "Verantwoordelijkheden", _verantwoordelijkheden, False),
    (9, "Kwaliteitsgaranties", _kwaliteitsgaranties, False),
    (10, "Voorwaarden & Disclaimers", _voorwaarden_disclaimers, False),
]


# =======================
# Assembly
# =======================


def assemble_document(offerte: Offerte) -> OfferteDocument:
    """
    Map an offerte onto the fixed multi-section document layout.

    Every numbered section is present even without data; only the
    assumptions appendix can be absent, and when present it is the last block.

    Args:
        offerte: Validated offerte

    Returns:
        OfferteDocument with blocks and header/footer rules
    """
    meta = offerte.meta or Meta()
    blocks: list[Block] = build_cover(meta)

    for index, (number, title, build_body, page_break_after) in enumerate(SECTION_ORDER):
        blocks.append(SectionHeading(number, title))
        blocks.extend(build_body(offerte))

        is_last = index == len(SECTION_ORDER) - 1
        if page_break_after:
            blocks.append(PageBreak())
        elif not is_last:
            blocks.append(Divider())

    appendix = build_assumptions(offerte)
    if appendix is not None:
        blocks.append(Divider())
        blocks.append(appendix)

    return OfferteDocument(
        blocks=blocks,
        bureau_naam=meta.bureau_naam or "",
        projectnaam=meta.projectnaam or "",
        offerte_nummer=meta.offerte_nummer or "",
        title=f"Offerte {meta.projectnaam}" if meta.projectnaam else "Offerte",
        sections=[title for _, title, _, _ in SECTION_ORDER],
    )
