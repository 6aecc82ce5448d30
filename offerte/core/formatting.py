"""Display formatting shared by the PDF document and the review summary."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

PLACEHOLDER = "—"
FALLBACK_FILENAME = "offerte"

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]")
_DASH_RUNS = re.compile(r"-+")
_CENT = Decimal("0.01")


def display(value: Any) -> str:
    """Render a scalar for display; missing or blank values become a placeholder."""
    if value is None:
        return PLACEHOLDER
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value)
    return text if text.strip() else PLACEHOLDER


def format_number(value: int | float | Decimal) -> str:
    """Format a number the Dutch way: comma as decimal separator, no trailing zeros."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).replace(".", ",")


def format_eur(amount: Any) -> str:
    """
    Format an amount as euros in nl-NL style with two decimals.

    Examples: 1234.5 -> "€ 1.234,50", -12 -> "€ -12,00".

    Args:
        amount: Decimal, int, float or numeric string

    Returns:
        Formatted amount, or the placeholder when missing or not numeric
    """
    if amount is None or isinstance(amount, bool):
        return PLACEHOLDER
    try:
        value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return PLACEHOLDER

    # en-US grouping first, then swap separators
    grouped = f"{value:,.2f}"
    dutch = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"€ {dutch}"


def format_date(iso_date: str | None) -> str:
    """
    Reformat an ISO date (YYYY-MM-DD) as DD-MM-YYYY.

    Values that do not split into three parts are returned as-is.
    """
    if not iso_date or not str(iso_date).strip():
        return PLACEHOLDER
    parts = str(iso_date).split("-")
    if len(parts) == 3:
        return f"{parts[2]}-{parts[1]}-{parts[0]}"
    return str(iso_date)


def format_percentage(value: int | float | None, default: int) -> str:
    """Format a percentage value, falling back to a default when missing."""
    return format_number(default if value is None else value)


def offerte_filename_slug(offerte_nummer: str | None) -> str:
    """
    Derive a filename stem from an offerte number.

    Lower-cases, replaces everything outside [a-z0-9] with '-' and collapses
    runs of '-'. Shared by the PDF and JSON export paths.

    Args:
        offerte_nummer: The meta.offerte_nummer field, possibly missing

    Returns:
        Filename stem without extension
    """
    source = (offerte_nummer or FALLBACK_FILENAME).lower()
    return _DASH_RUNS.sub("-", _NON_SLUG_CHARS.sub("-", source))
