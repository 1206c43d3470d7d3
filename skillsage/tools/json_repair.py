"""Best-effort cleanup of JSON text returned by the model."""
import json
import re
from typing import Any, Callable, Optional

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def strip_whitespace(text: str) -> str:
    return text.strip()


def extract_code_fence(text: str) -> str:
    """Keep only the body of the first ```json (or bare ```) fence, if any."""
    match = _FENCE_RE.search(text)
    if match and match.group(1):
        return match.group(1)
    return text


def strip_trailing_commas(text: str) -> str:
    """Drop commas directly before a closing brace or bracket.

    Works on raw text, so a ", }" inside a string value is also rewritten.
    """
    return _TRAILING_COMMA_RE.sub(r"\1", text)


# Applied in order by sanitize_model_json
SANITIZERS: list[Callable[[str], str]] = [
    strip_whitespace,
    extract_code_fence,
    strip_trailing_commas,
]


def sanitize_model_json(text: str) -> str:
    for step in SANITIZERS:
        text = step(text)
    return text


def parse_model_json(text: str) -> Any:
    """Sanitize and parse. Raises json.JSONDecodeError if still invalid."""
    return json.loads(sanitize_model_json(text))


def unwrap_plan_payload(data: Any) -> Any:
    """Return the object holding a `modules` list.

    The model sometimes wraps the plan one level deep, e.g.
    ``{"learningPlan": {"skill": ..., "modules": [...]}}``.
    """
    if not isinstance(data, dict) or isinstance(data.get("modules"), list):
        return data
    nested: Optional[dict] = next(
        (
            value
            for value in data.values()
            if isinstance(value, dict) and isinstance(value.get("modules"), list)
        ),
        None,
    )
    return nested if nested is not None else data
