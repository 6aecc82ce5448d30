"""Offerte generation API with SSE streaming."""

import json
from collections.abc import AsyncGenerator

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from offerte.chains.generate_offerte import OfferteStreamConfig, generate_offerte_stream
from offerte.core.config import get_settings, get_system_prompt
from offerte.core.logging import get_logger
from offerte.core.schemas_offerte import AnalyzeRequest

logger = get_logger(__name__)

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _sse_event(data: dict) -> str:
    """Format a dict as an SSE data line."""
    return f"data: {json.dumps(data)}\n\n"


@router.post("/analyze")
async def analyze_briefing(request: AnalyzeRequest) -> StreamingResponse:
    """
    Generate an offerte from a client briefing.

    SSE Event Types:
    - type: 'progress' - Number of text chunks received so far
    - type: 'complete' - The generated offerte JSON
    - type: 'error' - Generation failed; carries a user-facing message

    Args:
        request: Briefing text

    Returns:
        StreamingResponse with Server-Sent Events

    Raises:
        HTTPException 500: If the system prompt or API key is not configured
        HTTPException 400: If the briefing is empty
    """
    settings = get_settings()

    system_prompt = get_system_prompt()
    if not system_prompt:
        logger.error(f"System prompt not found at {settings.SYSTEM_PROMPT_PATH}")
        raise HTTPException(
            status_code=500,
            detail="Server configuratie fout: system prompt niet gevonden.",
        )

    if not settings.ANTHROPIC_API_KEY:
        raise HTTPException(
            status_code=500,
            detail="Server configuratie fout: ANTHROPIC_API_KEY niet ingesteld.",
        )

    briefing_text = (request.briefing_text or "").strip()
    if not briefing_text:
        raise HTTPException(status_code=400, detail="Geen briefing tekst ontvangen.")

    config = OfferteStreamConfig(
        briefing_text=briefing_text,
        system_prompt=system_prompt,
        anthropic_api_key=settings.ANTHROPIC_API_KEY,
        model=settings.OFFERTE_MODEL,
        max_tokens=settings.OFFERTE_MAX_TOKENS,
        progress_every=settings.OFFERTE_PROGRESS_EVERY,
        timeout_seconds=settings.OFFERTE_STREAM_TIMEOUT_SECONDS,
    )

    async def generate() -> AsyncGenerator[str, None]:
        """Relay coordinator events as SSE lines."""
        async for event in generate_offerte_stream(config):
            yield _sse_event(event)

    return StreamingResponse(generate(), media_type="text/event-stream", headers=SSE_HEADERS)
