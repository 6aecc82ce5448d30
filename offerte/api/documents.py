"""Offerte document exports: PDF rendering and JSON download."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from offerte.core.formatting import offerte_filename_slug
from offerte.core.logging import get_logger, log_with_context
from offerte.core.offerte_document import assemble_document
from offerte.core.pdf_renderer import OfferteRenderError, render_offerte_pdf
from offerte.core.schemas_offerte import Offerte, offerte_to_json

logger = get_logger(__name__)

router = APIRouter()

MISSING_META_MESSAGE = 'JSON mist het "meta" object.'


def _attachment(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


def _require_meta(offerte: Offerte) -> None:
    if offerte.meta is None:
        raise HTTPException(status_code=400, detail=MISSING_META_MESSAGE)


def render_pdf_bytes(offerte: Offerte) -> bytes:
    """Assemble and render an offerte; CPU-bound, run off the event loop."""
    return render_offerte_pdf(assemble_document(offerte))


@router.post("/generate-pdf")
async def generate_pdf(offerte: Offerte) -> Response:
    """
    Render an offerte to PDF.

    Args:
        offerte: Offerte JSON, typically the reviewed output of /analyze

    Returns:
        application/pdf attachment named after the offerte number

    Raises:
        HTTPException 400: If the meta object is missing
        HTTPException 500: If rendering fails
    """
    _require_meta(offerte)
    filename = f"{offerte_filename_slug(offerte.meta.offerte_nummer)}.pdf"

    try:
        pdf_bytes = await run_in_threadpool(render_pdf_bytes, offerte)
    except OfferteRenderError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    log_with_context(
        logger,
        logging.INFO,
        f"Generated PDF {filename}",
        endpoint="generate-pdf",
        offerte_nummer=offerte.meta.offerte_nummer,
        bytes=len(pdf_bytes),
    )
    return Response(content=pdf_bytes, media_type="application/pdf", headers=_attachment(filename))


@router.post("/export-json")
async def export_json(offerte: Offerte) -> Response:
    """
    Download an offerte as indented JSON in the canonical key order.

    Args:
        offerte: Offerte JSON

    Returns:
        application/json attachment named after the offerte number
    """
    nummer = offerte.meta.offerte_nummer if offerte.meta else None
    filename = f"{offerte_filename_slug(nummer)}.json"
    return Response(
        content=offerte_to_json(offerte),
        media_type="application/json",
        headers=_attachment(filename),
    )
