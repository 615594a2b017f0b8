"""Produce a payload from JSON given in the operation options."""

import json

from switchyard.core.errors import InvalidPayloadError


def handler(options: dict, context: dict):
    value = options.get("json")
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise InvalidPayloadError(f"Invalid JSON: {e.msg}") from e


default = {"id": "transform", "handler": handler}
