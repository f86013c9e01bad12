import base64
import json
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from .exceptions import InvalidPayload, MissingField
from .logger import logger
from .schemas.payload import Payload


def decode_message(event: Mapping[str, Any]) -> dict[str, Any]:
    """
    Decodes the base64 JSON body of a Pub/Sub message envelope.
    """
    raw = event.get("data") if isinstance(event, Mapping) else None
    if not raw:
        raise InvalidPayload("Invalid Pub/Sub message: no data attribute")

    try:
        body = json.loads(base64.b64decode(raw).decode("utf-8"))
    except (ValueError, TypeError) as e:
        raise InvalidPayload(f"Invalid Pub/Sub message: {e}") from e

    if not isinstance(body, dict):
        raise InvalidPayload(
            f"Invalid Pub/Sub message: expected a JSON object, got {type(body).__name__}"
        )
    return body


def parse_payload(body: Mapping[str, Any]) -> Payload:
    """
    Checks required attributes in a fixed order and builds the Payload.
    Accepts either labelKey/labelValue or a combined label ("key=value").
    """
    label = body.get("label")

    if not label and not body.get("labelKey"):
        raise MissingField("labelKey")
    if not label and not body.get("labelValue"):
        raise MissingField("labelValue")
    if not body.get("zone"):
        raise MissingField("zone")

    if label:
        if not isinstance(label, str) or "=" not in label:
            raise InvalidPayload(f"Attribute 'label' must be key=value, got {label!r}")
        label_key, label_value = label.split("=", 1)
    else:
        label_key, label_value = body["labelKey"], body["labelValue"]

    try:
        return Payload(zone=body["zone"], label_key=label_key, label_value=label_value)
    except ValidationError as e:
        raise InvalidPayload(f"Invalid payload: {e}") from e


def validate_payload(event: Mapping[str, Any]) -> Payload:
    """Validates that a Pub/Sub message carries the expected fields."""
    try:
        return parse_payload(decode_message(event))
    except InvalidPayload as e:
        logger.error(f"Rejected trigger message: {e}")
        raise
