# backend/validators/evaluate_validator.py
"""
Shape validation for /evaluate/ request bodies (JSON Schema).

The EvaluateRequest schema is loaded once at import time. Only the shape of
the body is checked here; whether the region and plan are supported is
decided by the input validator against the loaded configuration.
"""


from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List

from jsonschema import Draft202012Validator

from errors.handlers import BadRequest


SCHEMA_PATH = (
    Path(__file__).resolve().parent.parent / "schemas" / "EvaluateRequest.schema.json"
)

with SCHEMA_PATH.open("r", encoding="utf-8") as f:
    EVALUATE_REQUEST_SCHEMA = json.load(f)

_VALIDATOR = Draft202012Validator(EVALUATE_REQUEST_SCHEMA)


def schema_errors(payload: Any) -> List[str]:
    """List every schema violation of ``payload``, ordered by location.

    Args:
        payload: Parsed JSON body.

    Returns:
        Messages prefixed with the offending field, empty if the body fits.
    """
    messages = []
    for error in sorted(_VALIDATOR.iter_errors(payload), key=lambda e: list(e.path)):
        location = ".".join(str(p) for p in error.path)
        messages.append(f"{location}: {error.message}" if location else error.message)
    return messages


def validate_eval_payload(payload: Any) -> None:
    """
    Validate the evaluation request body against the EvaluateRequest schema.

    Args:
        payload: Parsed JSON body (``None`` when the body is not JSON).

    Raises:
        BadRequest: If payload is not a JSON object or doesn't match the schema.
    """
    if not isinstance(payload, dict):
        raise BadRequest("Payload must be a JSON object.")

    errors = schema_errors(payload)
    if errors:
        raise BadRequest(f"Invalid EvaluateRequest: {'; '.join(errors)}")
