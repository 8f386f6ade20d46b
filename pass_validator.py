# Purpose: Read and normalize pass-definition requests from the browser.
# Input is untrusted JSON; nothing is assumed about field types.

import json
import math

from pass_outcomes import InvalidJson, PayloadTooLarge, ValidationError

MAX_BODY_BYTES = 1_000_000
CHUNK_SIZE = 64 * 1024

REQUIRED_FIELDS = ("barcodeValue", "barcodeFormat", "title")
OPTIONAL_FIELDS = ("label", "value", "colorPreset")


def read_body(stream, limit=MAX_BODY_BYTES, declared_length=None, chunk_size=CHUNK_SIZE):
    """
    Reads a request body chunk by chunk, stopping as soon as it grows past `limit`.
    A declared Content-Length over the limit is rejected before reading anything.
    """
    if declared_length is not None and declared_length > limit:
        raise PayloadTooLarge(limit)

    chunks = []
    size = 0
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            raise PayloadTooLarge(limit)
        chunks.append(chunk)
    return b"".join(chunks)


def _reject_constant(name):
    # NaN, Infinity and -Infinity are not JSON.
    raise InvalidJson()


def parse_body(raw):
    """Parses raw bytes as JSON. An empty body counts as an empty object."""
    if not raw:
        return {}
    try:
        return json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError):
        raise InvalidJson()


def _coerce_text(value):
    """
    Trimmed text for a JSON value. None and False give "" (absent), True gives
    "true", integral floats drop the ".0", objects and arrays are JSON-encoded,
    and everything else (including 0) goes through str().
    """
    if value is None or value is False:
        return ""
    if value is True:
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value).strip()


def _coerce_number(value):
    """Returns a float for numeric-looking input, or None."""
    if value is None or isinstance(value, (bool, dict, list)):
        return None
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return float("inf")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return float(text)
        except ValueError:
            return None
    return None


def validate_payload(payload):
    """
    Turns an arbitrary JSON value into a normalized pass request.

    Every missing required field is reported in one ValidationError. Optional
    fields are kept only when non-blank, and expirationDays only when it is a
    finite number above zero; anything else is dropped silently.
    """
    if not isinstance(payload, dict):
        payload = {}

    missing = [field for field in REQUIRED_FIELDS if not _coerce_text(payload.get(field))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing=missing)

    body = {field: _coerce_text(payload[field]) for field in REQUIRED_FIELDS}

    for field in OPTIONAL_FIELDS:
        text = _coerce_text(payload.get(field))
        if text:
            body[field] = text

    days = _coerce_number(payload.get("expirationDays"))
    if days is not None and math.isfinite(days) and days > 0:
        body["expirationDays"] = int(days) if days.is_integer() else days

    return body


def normalize_request(stream, limit=MAX_BODY_BYTES, declared_length=None):
    """Body bytes -> JSON -> normalized pass request."""
    raw = read_body(stream, limit=limit, declared_length=declared_length)
    return validate_payload(parse_body(raw))
