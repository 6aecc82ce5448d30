"""Review screen support: key facts and field edits."""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from offerte.core.logging import get_logger, log_with_context
from offerte.core.offerte_review import KeyFact, build_key_facts, set_nested_value
from offerte.core.schemas_offerte import FieldEditRequest, Offerte

logger = get_logger(__name__)

router = APIRouter()


@router.post("/key-facts")
async def key_facts(offerte: Offerte) -> list[KeyFact]:
    """Summarise an offerte into the review screen's fact cards."""
    return build_key_facts(offerte)


@router.post("/edit-field")
async def edit_field(request: FieldEditRequest) -> dict:
    """
    Apply one dotted-path edit and return the updated offerte.

    The result must still validate as an offerte.

    Raises:
        HTTPException 400: If the path is invalid
        HTTPException 422: If the edit breaks the offerte schema
    """
    try:
        data = set_nested_value(request.offerte, request.path, request.value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        Offerte.model_validate(data)
    except ValidationError as e:
        log_with_context(
            logger,
            logging.INFO,
            f"Rejected edit of {request.path}",
            endpoint="edit-field",
            errors=e.error_count(),
        )
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False, include_input=False)) from e

    return data
