"""LLM output recovery: fence stripping, truncation repair and JSON parsing."""

import json
import re
from typing import Any, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")

# Left behind when the output limit cuts between a key and its value or
# between two list items
_DANGLING_TAIL = ",: \t\r\n"

_CLOSERS = {"{": "}", "[": "]"}


def extract_json_candidate(raw_output: str, keep_tail: bool = False) -> str:
    """Narrow raw model output down to a single JSON object candidate.

    Handles: ```json ... ``` fences, prose before or after the object,
    leading/trailing whitespace. Never raises; when no braces are found the
    stripped text is returned and the JSON parse reports the problem.

    With ``keep_tail`` (a response cut off by the output limit) the candidate
    runs from the first ``{`` to the end of the text: there is no trailing
    prose to drop, and the last ``}`` may close an inner object.
    """
    text = raw_output
    fence_match = _FENCE_RE.search(text)
    if fence_match:
        text = fence_match.group(1)

    start = text.find("{")
    if start != -1 and keep_tail:
        return text[start:].strip()

    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    if start != -1:
        # Opening brace without a closing one: drop leading prose or fence
        return text[start:].strip()
    return text.strip()


def repair_truncated_json(candidate: str, was_truncated: bool) -> str:
    """
    Close whatever a length-limited response left open.

    Scans once, tracking string state (with backslash escapes) and the open
    ``{``/``[`` containers outside strings. Then closes a dangling string,
    drops a trailing run of commas, colons and whitespace, and closes the
    open containers innermost first.

    Truncation right after a backslash, inside a number or literal, inside a
    ``\\uXXXX`` escape, or after an object key is not repaired; the result
    then fails ``json.loads``.

    Args:
        candidate: Output of extract_json_candidate
        was_truncated: True when the upstream call stopped on max_tokens

    Returns:
        The candidate, unchanged unless was_truncated is set
    """
    if not was_truncated:
        return candidate

    in_string = False
    escape_pending = False
    open_containers: list[str] = []

    for char in candidate:
        if in_string:
            if escape_pending:
                escape_pending = False
            elif char == "\\":
                escape_pending = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            open_containers.append(char)
        elif char in ("}", "]") and open_containers:
            open_containers.pop()

    repaired = candidate
    if in_string:
        repaired += '"'

    repaired = repaired.rstrip(_DANGLING_TAIL)
    repaired += "".join(_CLOSERS[opener] for opener in reversed(open_containers))
    return repaired


def parse_llm_json_dict(raw_output: str, was_truncated: bool = False) -> Any:
    """
    Parse model output as JSON after extraction and (conditional) repair.

    A truncated response is first repaired from the first ``{`` to the end of
    the text. If that fails (a complete object followed by cut-off prose),
    the candidate sliced to the last ``}`` is repaired instead.

    Args:
        raw_output: Raw accumulated text from the model
        was_truncated: Whether the model stopped on its output limit

    Returns:
        Parsed JSON value (a dict for well-behaved output)

    Raises:
        json.JSONDecodeError: If JSON parsing fails after cleanup
    """
    candidate = extract_json_candidate(raw_output)
    if was_truncated:
        tail_candidate = extract_json_candidate(raw_output, keep_tail=True)
        try:
            return json.loads(repair_truncated_json(tail_candidate, True))
        except json.JSONDecodeError:
            if tail_candidate == candidate:
                raise
    return json.loads(repair_truncated_json(candidate, was_truncated))


def parse_llm_json(raw_output: str, model: type[T], was_truncated: bool = False) -> T:
    """
    Parse model output as JSON and validate against a Pydantic model.

    Args:
        raw_output: Raw string from LLM response
        model: Pydantic model class to validate against
        was_truncated: Whether the model stopped on its output limit

    Returns:
        Validated Pydantic model instance

    Raises:
        json.JSONDecodeError: If JSON parsing fails after cleanup
        pydantic.ValidationError: If parsed JSON doesn't match schema
    """
    return model.model_validate(parse_llm_json_dict(raw_output, was_truncated))
