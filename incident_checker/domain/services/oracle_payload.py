"""Parsing and schema validation of JSON replies from inference oracles.

Oracle replies are never trusted as typed data. Each reply goes through two
passes: the text is parsed into an untyped structure, then validated against a
strict pydantic schema. The outcome is a tagged ``Valid`` / ``Invalid`` value so
callers decide how to fail before touching any typed field.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Generic, List, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_FENCE_START = re.compile(r"^\s*```[a-zA-Z]*\s*")
_FENCE_END = re.compile(r"\s*```\s*$")


@dataclass(frozen=True)
class Valid(Generic[T]):
    """Payload that matched the schema."""
    value: T


@dataclass(frozen=True)
class Invalid:
    """Payload that did not match the schema."""
    reasons: List[str] = field(default_factory=list)


PayloadResult = Union[Valid[T], Invalid]


def strip_code_fences(text: str) -> str:
    """Remove a markdown code fence wrapping the reply, if any."""
    cleaned = _FENCE_START.sub("", text, count=1)
    cleaned = _FENCE_END.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_json_object(text: str) -> Union[dict, Invalid]:
    """Parse reply text into a dictionary, or explain why it is not one."""
    cleaned = strip_code_fences(text)
    if not cleaned.startswith("{") or not cleaned.endswith("}"):
        return Invalid([f"reply is not a JSON object: {cleaned[:100]!r}"])
    try:
        payload: Any = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return Invalid([f"reply is not valid JSON: {e}"])
    if not isinstance(payload, dict):
        return Invalid(["reply is not a JSON object"])
    return payload


def _describe(error: ValidationError) -> List[str]:
    reasons = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        reasons.append(f"{location}: {item['msg']}")
    return reasons


def validate_payload(text: str, schema: Type[T]) -> PayloadResult:
    """Parse ``text`` and validate it strictly against ``schema``."""
    parsed = parse_json_object(text)
    if isinstance(parsed, Invalid):
        return parsed
    try:
        return Valid(schema.model_validate(parsed, strict=True))
    except ValidationError as e:
        reasons = _describe(e)
        logger.debug(f"Oracle payload rejected by {schema.__name__}: {reasons}")
        return Invalid(reasons)
