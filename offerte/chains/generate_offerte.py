"""Offerte generation: one streamed Anthropic call, recovered into an offerte.

The coordinator yields plain event dicts:

- {"type": "progress", "chunks": n} every N text deltas, plus one after the stream ends
- {"type": "complete", "data": {...}} with the parsed offerte
- {"type": "error", "error": "..."} with a user-facing message

Exactly one of complete/error ends every session.
"""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from pydantic import ValidationError

from offerte.core.llm import parse_llm_json_dict
from offerte.core.logging import get_logger, log_with_context
from offerte.core.schemas_offerte import Offerte

logger = get_logger(__name__)

T = TypeVar("T")

MALFORMED_OUTPUT_MESSAGE = "Claude gaf geen geldig JSON terug. Probeer opnieuw."
SCHEMA_MISMATCH_MESSAGE = "Claude gaf een offerte terug die niet aan het schema voldoet"
API_ERROR_PREFIX = "API fout: "

# Validation errors listed in the user-facing message
MAX_REPORTED_ERRORS = 3

USER_PROMPT_TEMPLATE = """Analyseer deze klantbriefing en genereer de offerte als JSON.

REGELS:
- Geef ALLEEN het JSON-object, geen markdown codeblokken of tekst eromheen.
- Maximaal 1-2 zinnen per beschrijving. Geen herhalingen.
- Arrays (screeningcriteria, kwaliteitsmaatregelen, etc.) max 4-5 items.
- Houd de totale output zo compact mogelijk.

---

{briefing}"""


class StopReason(str, Enum):
    """Why the upstream generation ended."""

    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"
    OTHER = "other"

    @classmethod
    def from_api(cls, value: str | None) -> "StopReason":
        if value == cls.END_TURN.value:
            return cls.END_TURN
        if value == cls.MAX_TOKENS.value:
            return cls.MAX_TOKENS
        return cls.OTHER


@dataclass
class StreamingState:
    """Accumulation state owned by one generation session."""

    accumulated_text: str = ""
    chunk_count: int = 0
    stop_reason: StopReason = StopReason.OTHER

    @property
    def was_truncated(self) -> bool:
        return self.stop_reason == StopReason.MAX_TOKENS


@dataclass
class OfferteStreamConfig:
    """Explicit inputs for an offerte generation session."""

    briefing_text: str
    system_prompt: str
    anthropic_api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 3000
    progress_every: int = 15
    timeout_seconds: float | None = None


def build_user_prompt(briefing_text: str) -> str:
    """Embed the briefing in the compact-output instruction template."""
    return USER_PROMPT_TEMPLATE.format(briefing=briefing_text)


def progress_event(chunks: int) -> dict[str, Any]:
    return {"type": "progress", "chunks": chunks}


def complete_event(data: dict[str, Any]) -> dict[str, Any]:
    return {"type": "complete", "data": data}


def error_event(message: str) -> dict[str, Any]:
    return {"type": "error", "error": message}


def describe_validation_error(error: ValidationError) -> str:
    """Compact, user-facing summary of a schema validation failure."""
    details = []
    for item in error.errors()[:MAX_REPORTED_ERRORS]:
        location = ".".join(str(part) for part in item["loc"]) or "offerte"
        details.append(f"{location}: {item['msg']}")
    remaining = error.error_count() - len(details)
    if remaining > 0:
        details.append(f"en {remaining} andere")
    return f"{SCHEMA_MISMATCH_MESSAGE}: {'; '.join(details)}"


async def _within(awaitable: Awaitable[T], deadline: float | None) -> T:
    """Await with the session deadline, if any."""
    if deadline is None:
        return await awaitable
    remaining = deadline - asyncio.get_running_loop().time()
    if remaining <= 0:
        # Close the coroutine so it is not reported as never awaited
        close = getattr(awaitable, "close", None)
        if close is not None:
            close()
        raise TimeoutError
    return await asyncio.wait_for(awaitable, remaining)


async def _next_event(iterator: AsyncIterator[Any], deadline: float | None) -> Any:
    return await _within(iterator.__anext__(), deadline)


def finalize_offerte(state: StreamingState) -> dict[str, Any]:
    """
    Turn the accumulated model output into a validated offerte dict.

    Args:
        state: Final streaming state

    Returns:
        The parsed JSON object, exactly as the model produced it

    Raises:
        json.JSONDecodeError: If the output is not (repairable) JSON
        pydantic.ValidationError: If the JSON does not match the offerte schema
    """
    data = parse_llm_json_dict(state.accumulated_text, was_truncated=state.was_truncated)
    Offerte.model_validate(data)
    return data


async def generate_offerte_stream(
    config: OfferteStreamConfig,
    client: Any = None,
) -> AsyncGenerator[dict[str, Any], None]:
    """Generate an offerte from a briefing, yielding progress and one terminal event.

    The upstream call is made once; there are no retries. Closing the
    generator leaves the Anthropic stream context and abandons the request.

    Args:
        config: Session inputs
        client: Optional AsyncAnthropic-compatible client (created from the
            configured API key when omitted)
    """
    state = StreamingState()
    loop = asyncio.get_running_loop()
    deadline = loop.time() + config.timeout_seconds if config.timeout_seconds else None

    try:
        if client is None:
            # Import here to avoid loading the SDK until a session starts
            from anthropic import AsyncAnthropic

            client = AsyncAnthropic(api_key=config.anthropic_api_key)

        logger.info(
            f"Starting offerte generation ({len(config.briefing_text)} chars briefing)",
            extra={"extra_data": {"model": config.model, "max_tokens": config.max_tokens}},
        )

        async with client.messages.stream(
            model=config.model,
            max_tokens=config.max_tokens,
            system=config.system_prompt,
            messages=[{"role": "user", "content": build_user_prompt(config.briefing_text)}],
        ) as stream:
            iterator = stream.__aiter__()
            while True:
                try:
                    event = await _next_event(iterator, deadline)
                except StopAsyncIteration:
                    break

                if getattr(event, "type", None) != "content_block_delta":
                    continue
                text = getattr(getattr(event, "delta", None), "text", None)
                if not isinstance(text, str):
                    continue

                state.accumulated_text += text
                state.chunk_count += 1
                if state.chunk_count % config.progress_every == 0:
                    yield progress_event(state.chunk_count)

            final_message = await _within(stream.get_final_message(), deadline)
            state.stop_reason = StopReason.from_api(getattr(final_message, "stop_reason", None))

        yield progress_event(state.chunk_count)

        if state.was_truncated:
            logger.warning(
                f"Model output hit the {config.max_tokens} token limit; repairing truncated JSON"
            )

        data = finalize_offerte(state)

    except json.JSONDecodeError as e:
        logger.warning(
            f"Model output is not valid JSON: {e}",
            extra={"extra_data": {"chunks": state.chunk_count, "stop_reason": state.stop_reason.value}},
        )
        yield error_event(MALFORMED_OUTPUT_MESSAGE)
        return
    except ValidationError as e:
        logger.warning(f"Model output does not match the offerte schema: {e.error_count()} errors")
        yield error_event(describe_validation_error(e))
        return
    except TimeoutError:
        logger.error(f"Offerte generation timed out after {config.timeout_seconds}s")
        yield error_event(
            f"{API_ERROR_PREFIX}Claude reageerde niet binnen {config.timeout_seconds:g} seconden."
        )
        return
    except Exception as e:
        logger.error(f"Offerte generation failed: {e}", exc_info=True)
        yield error_event(f"{API_ERROR_PREFIX}{e}")
        return

    meta = data.get("meta") if isinstance(data.get("meta"), dict) else {}
    log_with_context(
        logger,
        logging.INFO,
        "Offerte generated",
        offerte_nummer=meta.get("offerte_nummer"),
        chunks=state.chunk_count,
        stop_reason=state.stop_reason.value,
    )
    yield complete_event(data)
