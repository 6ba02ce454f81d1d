"""Fast JSON extraction from model output with multiple backends."""

from typing import Any
import json
import re

import msgspec
import orjson
from json_repair import repair_json

MAX_JSON_DEPTH = 32

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


class JSONParseError(Exception):
    """JSON parsing failed."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


def strip_code_fences(output: str) -> str:
    """Remove a leading ```lang fence and a trailing ``` fence."""
    trimmed = output.strip()
    trimmed = _FENCE_OPEN.sub("", trimmed, count=1)
    trimmed = _FENCE_CLOSE.sub("", trimmed, count=1)
    return trimmed.strip()


def extract_object_text(text: str) -> str | None:
    """
    Return the first balanced {...} span in text.

    Braces inside string literals are ignored.
    """
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    return None


def _decode(json_str: str) -> Any:
    decoder = msgspec.json.Decoder()
    return decoder.decode(json_str.encode("utf-8"))


def extract_json(text: str, repair: bool = True) -> dict[str, Any]:
    """
    Extract and parse a JSON object from model output.

    Order of attempts: whole text (fences stripped), first balanced object,
    then json_repair on that object.

    Args:
        text: Text containing JSON
        repair: Attempt to repair invalid JSON with json_repair

    Returns:
        Parsed JSON dictionary

    Raises:
        JSONParseError: If no object can be recovered
    """
    cleaned = strip_code_fences(text)

    try:
        result = _decode(cleaned)
    except msgspec.DecodeError:
        result = None

    if result is None:
        candidate = extract_object_text(cleaned)
        if candidate is None:
            raise JSONParseError("No JSON object found in text")

        try:
            result = _decode(candidate)
        except msgspec.DecodeError as e:
            if not repair:
                raise JSONParseError(f"Invalid JSON: {e}", e)
            try:
                result = json.loads(repair_json(candidate))
            except (ValueError, TypeError) as repair_error:
                raise JSONParseError(f"JSON repair failed: {repair_error}", repair_error)

    if not isinstance(result, dict):
        raise JSONParseError(f"Expected object, got {type(result).__name__}")

    validate_json_depth(result)
    return result


def safe_json_dumps(obj: Any, **kwargs: Any) -> str:
    """
    Encode object to JSON string using fastest available library.

    Args:
        obj: Object to encode
        **kwargs: Additional arguments (indent, sort_keys)

    Returns:
        JSON string
    """
    indent = kwargs.get("indent", 0)
    sort_keys = kwargs.get("sort_keys", False)

    if indent == 0:
        try:
            option = orjson.OPT_SORT_KEYS if sort_keys else 0
            return orjson.dumps(obj, option=option).decode("utf-8")
        except (TypeError, ValueError):
            # Integers outside 64-bit range and similar edge cases
            pass

    return json.dumps(obj, indent=indent if indent > 0 else None, ensure_ascii=False, sort_keys=sort_keys)


def validate_json_depth(obj: Any, max_depth: int = MAX_JSON_DEPTH, current_depth: int = 0) -> None:
    """
    Validate JSON nesting depth to prevent runaway recursion downstream.

    Raises:
        JSONParseError: If depth exceeds limit
    """
    if current_depth > max_depth:
        raise JSONParseError(f"JSON nesting depth {current_depth} exceeds maximum {max_depth}")

    if isinstance(obj, dict):
        for value in obj.values():
            validate_json_depth(value, max_depth, current_depth + 1)
    elif isinstance(obj, list):
        for item in obj:
            validate_json_depth(item, max_depth, current_depth + 1)
