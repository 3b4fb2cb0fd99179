"""
Request guards

Turns request validation errors into the short messages returned in the
400 error envelope.
"""
from typing import Any, Dict, Sequence

from chat_relay.core.logging import get_logger

logger = get_logger(__name__)

NOT_AN_ARRAY = "Messages must be an array"
EMPTY_ARRAY = "Messages must be a non-empty array"
INVALID_JSON = "Request body must be valid JSON"


def describe_request_errors(errors: Sequence[Dict[str, Any]]) -> str:
    """Describe the first validation error of a chat request.

    Args:
        errors: Error dicts as produced by pydantic / FastAPI

    Returns:
        Human readable message naming the problem
    """
    for error in errors:
        error_type = error.get("type", "")
        loc = [part for part in error.get("loc", ()) if part != "body"]

        if error_type == "json_invalid":
            return INVALID_JSON

        # Body missing, not an object, or no "messages" key
        if not loc or loc[0] != "messages":
            return NOT_AN_ARRAY

        if len(loc) == 1:
            if error_type == "too_short":
                return EMPTY_ARRAY
            return NOT_AN_ARRAY

        index = loc[1]
        field = ".".join(str(part) for part in loc[2:])
        detail = error.get("msg", "invalid value")
        if field:
            return f"Invalid message at index {index}: {field}: {detail}"
        return f"Invalid message at index {index}: {detail}"

    logger.warning("Validation failed without error details")
    return "Invalid request"
