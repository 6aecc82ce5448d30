"""Pydantic schemas for offertes (commercial proposals)."""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# =======================
# Shared types
# =======================

def _money_to_number(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Euro amounts; serialised as JSON numbers, not strings
Money = Annotated[
    Decimal,
    PlainSerializer(_money_to_number, return_type=int | float, when_used="json"),
]

DEFAULT_BTW_PERCENTAGE = 21


class OfferteModel(BaseModel):
    """Base for all offerte parts; keeps unknown keys from user edits.

    Text fields accept JSON numbers ("duur": 5), which the model emits for
    labels that happen to be numeric.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)


# =======================
# Offerte parts
# =======================


class Meta(OfferteModel):
    """Cover page and header/footer details."""

    bureau_naam: str | None = None
    bureau_tagline: str | None = None
    projectnaam: str | None = None
    offerte_nummer: str | None = Field(None, description="Unique per offerte; filename source")
    offerte_datum: str | None = Field(None, description="ISO date (YYYY-MM-DD)")
    geldig_tot: str | None = Field(None, description="ISO date (YYYY-MM-DD)")
    opdrachtgever: str | None = None
    contactpersoon: str | None = None


class Doelgroep(OfferteModel):
    """Target audience and screening."""

    omschrijving: str | None = None
    screeningcriteria: list[str] | None = None
    geschatte_incidence_rate: str | None = Field(
        None, description="Percentage-like label, not guaranteed numeric"
    )
    ir_toelichting: str | None = None


class Land(OfferteModel):
    """Completes per country."""

    land: str | None = None
    completes: int | None = None
    taal: str | None = None


class Quota(OfferteModel):
    """Quota on one variable."""

    variabele: str | None = None
    verdeling: str | None = None


class Steekproef(OfferteModel):
    """Sample design."""

    totaal_completes: int | None = None
    landen: list[Land] | None = None
    quotas: list[Quota] | None = None
    opmerkingen: str | None = None


class Methodologie(OfferteModel):
    """Research method."""

    onderzoekstype: str | None = None
    loi_minuten: int | float | None = Field(None, description="Length of interview in minutes")
    wervingsaanpak: str | None = None
    kwaliteitsmaatregelen: list[str] | None = None


class Fase(OfferteModel):
    """One planning phase; list order is chronological."""

    fase: str | None = None
    duur: str | None = None
    omschrijving: str | None = None


class Planning(OfferteModel):
    """Timeline."""

    totale_doorlooptijd_werkdagen: int | None = None
    fases: list[Fase] | None = None
    verwachte_startdatum: str | None = None
    verwachte_opleverdatum: str | None = None


class EenmaligeKost(OfferteModel):
    """One-time cost line."""

    omschrijving: str | None = None
    toelichting: str | None = None
    bedrag: Money | None = None


class VariabeleKost(OfferteModel):
    """Variable cost line for one country."""

    land: str | None = None
    cpi: Money | None = None
    incentive_per_respondent: Money | None = None
    aantal_completes: int | None = None
    subtotaal: Money | None = None


class Kosten(OfferteModel):
    """
    Cost overview.

    Aggregates are taken as supplied: they are never recomputed from the line
    items nor checked against them.
    """

    eenmalige_kosten: list[EenmaligeKost] | None = None
    variabele_kosten: list[VariabeleKost] | None = None
    subtotaal_eenmalig: Money | None = None
    subtotaal_variabel: Money | None = None
    totaal_excl_btw: Money | None = None
    btw_percentage: int | float | None = Field(None, description=f"Defaults to {DEFAULT_BTW_PERCENTAGE}")
    btw_bedrag: Money | None = None
    totaal_incl_btw: Money | None = None
    btw_opmerking: str | None = None


class Verantwoordelijkheden(OfferteModel):
    """Obligations split between agency and client."""

    bureau: list[str] | None = None
    opdrachtgever: list[str] | None = None


# =======================
# Root record
# =======================


class Offerte(OfferteModel):
    """
    Complete offerte as produced by the model and consumed by the renderer.

    Field order is the export order.
    """

    meta: Meta | None = None
    management_summary: str | None = None
    doelgroep: Doelgroep | None = None
    steekproef: Steekproef | None = None
    methodologie: Methodologie | None = None
    planning: Planning | None = None
    kosten: Kosten | None = None
    deliverables: list[str] | None = None
    verantwoordelijkheden: Verantwoordelijkheden | None = None
    kwaliteitsgaranties: list[str] | None = None
    voorwaarden: list[str] | None = None
    disclaimers: list[str] | None = None
    aannames: list[str] | None = Field(
        None, description="Assumptions made for missing briefing information"
    )


# =======================
# Request schemas
# =======================


class AnalyzeRequest(BaseModel):
    """Request to generate an offerte from a briefing."""

    briefing_text: str | None = Field(None, description="Free-text client briefing")


def offerte_to_dict(offerte: Offerte) -> dict[str, Any]:
    """Dump an offerte as JSON-compatible data, omitting fields never set."""
    return offerte.model_dump(mode="json", exclude_unset=True)


def offerte_to_json(offerte: Offerte) -> str:
    """Serialise an offerte as indented JSON in declared key order."""
    return offerte.model_dump_json(indent=2, exclude_unset=True)


class FieldEditRequest(BaseModel):
    """Single field edit made on the review screen."""

    offerte: dict[str, Any] = Field(..., description="Current offerte JSON")
    path: str = Field(..., description="Dotted field path, e.g. meta.projectnaam")
    value: Any = Field(None, description="New value")
