"""Review helpers: key fact summary and dotted-path field edits."""

from typing import Any

from pydantic import BaseModel, Field

from offerte.core.formatting import PLACEHOLDER, display, format_eur
from offerte.core.schemas_offerte import (
    Doelgroep,
    Kosten,
    Meta,
    Methodologie,
    Offerte,
    Planning,
    Steekproef,
)

UNKNOWN = "?"


class KeyFact(BaseModel):
    """One card of the review summary."""

    label: str
    value: str
    edit_path: str | None = Field(None, description="Dotted path when the fact is editable")
    accent: bool = False


def _or_unknown(value: Any) -> str:
    text = display(value)
    return UNKNOWN if text == PLACEHOLDER else text


def build_key_facts(offerte: Offerte) -> list[KeyFact]:
    """
    Summarise an offerte into the key facts shown before rendering.

    Args:
        offerte: Validated offerte

    Returns:
        Fact cards in display order
    """
    meta = offerte.meta or Meta()
    sp = offerte.steekproef or Steekproef()
    dg = offerte.doelgroep or Doelgroep()
    me = offerte.methodologie or Methodologie()
    pl = offerte.planning or Planning()
    ko = offerte.kosten or Kosten()

    return [
        KeyFact(label="Opdrachtgever", value=display(meta.opdrachtgever), edit_path="meta.opdrachtgever"),
        KeyFact(label="Projectnaam", value=display(meta.projectnaam), edit_path="meta.projectnaam"),
        KeyFact(
            label="Completes",
            value=display(sp.totaal_completes),
            edit_path="steekproef.totaal_completes",
        ),
        KeyFact(label="Landen", value=f"{len(sp.landen or [])} landen"),
        KeyFact(label="Incidence Rate", value=display(dg.geschatte_incidence_rate)),
        KeyFact(label="LOI", value=f"{_or_unknown(me.loi_minuten)} min"),
        KeyFact(label="Doorlooptijd", value=f"{_or_unknown(pl.totale_doorlooptijd_werkdagen)} werkdagen"),
        KeyFact(label="Totaal excl. BTW", value=format_eur(ko.totaal_excl_btw), accent=True),
    ]


def set_nested_value(data: dict[str, Any], path: str, value: Any) -> dict[str, Any]:
    """
    Set a value at a dotted path, creating missing intermediate objects.

    Example: set_nested_value(data, "meta.projectnaam", "Nieuw") updates
    data["meta"]["projectnaam"] in place.

    Args:
        data: Offerte as a plain dict
        path: Dot-separated key path
        value: New value

    Returns:
        The same dict, for chaining

    Raises:
        ValueError: If the path is empty or crosses a non-object value
    """
    keys = path.split(".")
    if not path or any(not key for key in keys):
        raise ValueError(f"Invalid field path: {path!r}")

    target = data
    for key in keys[:-1]:
        if target.get(key) is None:
            target[key] = {}
        target = target[key]
        if not isinstance(target, dict):
            raise ValueError(f"Field path {path!r} crosses a non-object value at {key!r}")

    target[keys[-1]] = value
    return data
