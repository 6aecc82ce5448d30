"""Tests for the offerte generation coordinator (mocked Anthropic stream)."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

from offerte.chains.generate_offerte import (
    API_ERROR_PREFIX,
    MALFORMED_OUTPUT_MESSAGE,
    SCHEMA_MISMATCH_MESSAGE,
    OfferteStreamConfig,
    StopReason,
    build_user_prompt,
    describe_validation_error,
    generate_offerte_stream,
)
from offerte.core.schemas_offerte import Offerte
from tests.fakes.fake_anthropic import (
    chunked,
    make_client,
    make_stream,
    other_event,
    text_delta,
)

SYSTEM_PROMPT = "Je bent een offerte-assistent."
BRIEFING = "We zoeken 600 forensen in Nederland en België."


def _config(**overrides) -> OfferteStreamConfig:
    values = {
        "briefing_text": BRIEFING,
        "system_prompt": SYSTEM_PROMPT,
        "anthropic_api_key": "test-key",
    }
    values.update(overrides)
    return OfferteStreamConfig(**values)


async def _collect(config: OfferteStreamConfig, client) -> list[dict]:
    return [event async for event in generate_offerte_stream(config, client=client)]


def _types(events: list[dict]) -> list[str]:
    return [e["type"] for e in events]


# ──────────────────────────────────────────────────────────────────────
# Successful sessions
# ──────────────────────────────────────────────────────────────────────


class TestCompleteSession:
    @pytest.mark.asyncio
    async def test_round_trip_returns_model_json_exactly(self, example_offerte_data):
        raw = json.dumps(example_offerte_data, ensure_ascii=False)
        client = make_client(make_stream(chunked(raw, 20)))

        events = await _collect(_config(), client)

        assert _types(events).count("complete") == 1
        assert "error" not in _types(events)
        assert events[-1] == {"type": "complete", "data": example_offerte_data}

    @pytest.mark.asyncio
    async def test_progress_cadence_for_47_deltas(self, example_offerte_data):
        raw = json.dumps(example_offerte_data)
        client = make_client(make_stream(chunked(raw, 47)))

        events = await _collect(_config(), client)

        assert events[:-1] == [
            {"type": "progress", "chunks": 15},
            {"type": "progress", "chunks": 30},
            {"type": "progress", "chunks": 45},
            {"type": "progress", "chunks": 47},
        ]
        assert events[-1]["type"] == "complete"

    @pytest.mark.asyncio
    async def test_custom_progress_cadence(self):
        client = make_client(make_stream(chunked('{"deliverables": ["a", "b"]}', 10)))

        events = await _collect(_config(progress_every=4), client)

        assert [e["chunks"] for e in events if e["type"] == "progress"] == [4, 8, 10]

    @pytest.mark.asyncio
    async def test_non_text_events_are_ignored(self):
        stream = make_stream(
            [],
            events=[other_event("message_start"), text_delta('{"deliverables": []}'), other_event("message_stop")],
        )

        events = await _collect(_config(), make_client(stream))

        assert events == [
            {"type": "progress", "chunks": 1},
            {"type": "complete", "data": {"deliverables": []}},
        ]

    @pytest.mark.asyncio
    async def test_fenced_output_with_prose(self):
        raw = 'Hier is de offerte:\n```json\n{"management_summary": "Kort."}\n```\nSucces!'
        events = await _collect(_config(), make_client(make_stream([raw])))

        assert events[-1] == {"type": "complete", "data": {"management_summary": "Kort."}}

    @pytest.mark.asyncio
    async def test_request_uses_prompt_and_limits(self):
        client = make_client(make_stream(["{}"]))

        await _collect(_config(model="test-model", max_tokens=1234), client)

        kwargs = client.messages.stream.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["max_tokens"] == 1234
        assert kwargs["system"] == SYSTEM_PROMPT
        assert kwargs["messages"] == [{"role": "user", "content": build_user_prompt(BRIEFING)}]

    @pytest.mark.asyncio
    async def test_client_created_from_api_key(self):
        mock_client = make_client(make_stream(["{}"]))

        with patch("anthropic.AsyncAnthropic", return_value=mock_client) as factory:
            events = await _collect(_config(anthropic_api_key="sk-test"), None)

        factory.assert_called_once_with(api_key="sk-test")
        assert events[-1] == {"type": "complete", "data": {}}


# ──────────────────────────────────────────────────────────────────────
# Truncated output
# ──────────────────────────────────────────────────────────────────────


class TestTruncatedOutput:
    @pytest.mark.asyncio
    async def test_truncated_array_is_repaired(self):
        stream = make_stream(['{"deliverables": ', '["a", "b"'], stop_reason="max_tokens")

        events = await _collect(_config(), make_client(stream))

        assert _types(events) == ["progress", "complete"]
        assert events[-1]["data"] == {"deliverables": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_truncated_inside_string(self):
        stream = make_stream(['{"meta": {"projectnaam": "Mobili'], stop_reason="max_tokens")

        events = await _collect(_config(), make_client(stream))

        assert events[-1] == {"type": "complete", "data": {"meta": {"projectnaam": "Mobili"}}}

    @pytest.mark.asyncio
    async def test_truncated_after_closed_inner_object(self):
        raw = '{"steekproef": {"landen": [{"land": "Nederland", "completes": 400}, {"land": "Bel'
        stream = make_stream([raw], stop_reason="max_tokens")

        events = await _collect(_config(), make_client(stream))

        assert events[-1]["data"] == {
            "steekproef": {"landen": [{"land": "Nederland", "completes": 400}, {"land": "Bel"}]}
        }

    @pytest.mark.asyncio
    async def test_complete_object_with_cut_off_prose(self):
        raw = '{"deliverables": ["a", "b"]}\n\nToelichting: de offerte is gebaseerd op'
        stream = make_stream([raw], stop_reason="max_tokens")

        events = await _collect(_config(), make_client(stream))

        assert events[-1] == {"type": "complete", "data": {"deliverables": ["a", "b"]}}

    @pytest.mark.asyncio
    async def test_truncation_is_not_repaired_on_normal_end(self):
        stream = make_stream(['{"deliverables": ["a", "b"'], stop_reason="end_turn")

        events = await _collect(_config(), make_client(stream))

        assert events[-1] == {"type": "error", "error": MALFORMED_OUTPUT_MESSAGE}


# ──────────────────────────────────────────────────────────────────────
# Failures
# ──────────────────────────────────────────────────────────────────────


class TestFailedSession:
    @pytest.mark.asyncio
    async def test_not_json_at_all(self):
        events = await _collect(_config(), make_client(make_stream(["not json ", "at all"])))

        assert events == [
            {"type": "progress", "chunks": 2},
            {"type": "error", "error": MALFORMED_OUTPUT_MESSAGE},
        ]

    @pytest.mark.asyncio
    async def test_schema_violation_is_distinguished(self):
        raw = '{"steekproef": {"totaal_completes": "heel veel"}}'

        events = await _collect(_config(), make_client(make_stream([raw])))

        assert _types(events) == ["progress", "error"]
        message = events[-1]["error"]
        assert message.startswith(SCHEMA_MISMATCH_MESSAGE)
        assert "steekproef.totaal_completes" in message

    @pytest.mark.asyncio
    async def test_top_level_array_fails_validation(self):
        events = await _collect(_config(), make_client(make_stream(["[1, 2, 3]"])))

        assert events[-1]["error"].startswith(SCHEMA_MISMATCH_MESSAGE)

    @pytest.mark.asyncio
    async def test_transport_error_on_open(self):
        client = MagicMock()
        client.messages.stream.side_effect = RuntimeError("Connection reset by peer")

        events = await _collect(_config(), client)

        assert events == [{"type": "error", "error": f"{API_ERROR_PREFIX}Connection reset by peer"}]

    @pytest.mark.asyncio
    async def test_transport_error_mid_stream(self):
        stream = make_stream(["{", '"a"'], error=ConnectionError("stream interrupted"))

        events = await _collect(_config(), make_client(stream))

        assert _types(events) == ["error"]
        assert events[0]["error"] == f"{API_ERROR_PREFIX}stream interrupted"

    @pytest.mark.asyncio
    async def test_timeout_guard(self):
        class SlowIterator:
            def __aiter__(self):
                return self

            async def __anext__(self):
                await asyncio.sleep(5)
                return text_delta("{}")

        stream = make_stream([])
        stream.__aiter__ = lambda self: SlowIterator()

        events = await _collect(_config(timeout_seconds=0.05), make_client(stream))

        assert len(events) == 1
        assert events[0]["type"] == "error"
        assert events[0]["error"].startswith(API_ERROR_PREFIX)
        assert "niet binnen" in events[0]["error"]


class TestCancellation:
    @pytest.mark.asyncio
    async def test_closing_generator_exits_upstream_stream(self, example_offerte_data):
        stream = make_stream(chunked(json.dumps(example_offerte_data), 47))
        agen = generate_offerte_stream(_config(), client=make_client(stream))

        first = await agen.__anext__()
        await agen.aclose()

        assert first == {"type": "progress", "chunks": 15}
        stream.__aexit__.assert_awaited_once()
        stream.get_final_message.assert_not_awaited()


# ──────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────


class TestHelpers:
    def test_stop_reason_mapping(self):
        assert StopReason.from_api("end_turn") is StopReason.END_TURN
        assert StopReason.from_api("max_tokens") is StopReason.MAX_TOKENS
        assert StopReason.from_api("stop_sequence") is StopReason.OTHER
        assert StopReason.from_api(None) is StopReason.OTHER

    def test_user_prompt_embeds_briefing_after_separator(self):
        prompt = build_user_prompt(BRIEFING)
        assert prompt.startswith("Analyseer deze klantbriefing")
        assert prompt.endswith(f"---\n\n{BRIEFING}")
        assert "Geef ALLEEN het JSON-object" in prompt

    def test_describe_validation_error_limits_details(self):
        data = {
            "steekproef": {"totaal_completes": "x"},
            "planning": {"totale_doorlooptijd_werkdagen": "y"},
            "methodologie": {"loi_minuten": "z"},
            "deliverables": "niet een lijst",
        }
        with pytest.raises(ValidationError) as exc_info:
            Offerte.model_validate(data)

        message = describe_validation_error(exc_info.value)
        assert message.startswith(f"{SCHEMA_MISMATCH_MESSAGE}: ")
        assert message.count(";") == 3
        assert "andere" in message
