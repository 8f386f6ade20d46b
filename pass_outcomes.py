# Purpose: Request outcomes for the Mallet pass gateway.
# Every failure is a MalletError that knows its HTTP status and JSON body;
# the one success shape is PassArtifact.

import json

PKPASS_CONTENT_TYPE = "application/vnd.apple.pkpass"
PKPASS_FILENAME = "mallet-pass.pkpass"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"


class PassArtifact:
    """Binary pass returned by the upstream issuance API."""

    def __init__(self, content, content_type=PKPASS_CONTENT_TYPE, filename=PKPASS_FILENAME):
        self.content = content
        self.content_type = content_type
        self.filename = filename

    def __repr__(self):
        return f"PassArtifact({len(self.content)} bytes, {self.content_type!r})"

    def to_response(self):
        headers = {
            "Content-Type": self.content_type,
            "Content-Disposition": f"attachment; filename={self.filename}",
            "Content-Length": str(len(self.content)),
        }
        return 200, self.content, headers


class MalletError(Exception):
    """Base class for request-scoped failures."""

    status = 500
    kind = "Error"

    def __init__(self, message, hint=None, status=None):
        super().__init__(message)
        self.message = message
        self.hint = hint
        if status is not None:
            self.status = status

    def body(self):
        payload = {"error": self.message}
        if self.hint:
            payload["hint"] = self.hint
        return payload

    def to_response(self):
        content = json.dumps(self.body()).encode("utf-8")
        headers = {
            "Content-Type": JSON_CONTENT_TYPE,
            "Content-Length": str(len(content)),
        }
        return self.status, content, headers


class ValidationError(MalletError):
    status = 400
    kind = "ValidationError"

    def __init__(self, message, missing=None):
        super().__init__(message)
        self.missing = list(missing or [])


class PayloadTooLarge(MalletError):
    status = 400
    kind = "PayloadTooLarge"

    def __init__(self, limit):
        super().__init__("Request payload is too large.")
        self.limit = limit


class InvalidJson(MalletError):
    status = 400
    kind = "InvalidJson"

    def __init__(self):
        super().__init__("Invalid JSON body.")


class ConfigurationError(MalletError):
    status = 500
    kind = "ConfigurationError"


class UpstreamUnreachable(MalletError):
    status = 502
    kind = "UpstreamUnreachable"

    def __init__(self, message="Cannot reach the upstream pass API.",
                 hint="Check MALLET_UPSTREAM_URL and your network settings."):
        super().__init__(message, hint=hint)


class UpstreamRejected(MalletError):
    """Upstream answered non-2xx. The body is passed through as-is when it was JSON."""

    kind = "UpstreamRejected"

    def __init__(self, status, payload):
        message = payload.get("error") if isinstance(payload, dict) else None
        super().__init__(message if isinstance(message, str) else f"Upstream request failed with status {status}.",
                         status=status)
        self.payload = payload

    def body(self):
        return self.payload


class Forbidden(MalletError):
    status = 403
    kind = "Forbidden"

    def __init__(self):
        super().__init__("Forbidden.")


class NotFound(MalletError):
    status = 404
    kind = "NotFound"

    def __init__(self):
        super().__init__("Not found.")


class MethodNotAllowed(MalletError):
    status = 405
    kind = "MethodNotAllowed"

    def __init__(self):
        super().__init__("Method not allowed.")


def missing_credential_error():
    return ConfigurationError("MALLET_API_KEY is not configured on the server.",
                              hint="Set MALLET_API_KEY before generating passes.")


def render_outcome(outcome):
    """Maps a PassArtifact or MalletError to (status, body bytes, headers)."""
    if isinstance(outcome, (PassArtifact, MalletError)):
        return outcome.to_response()
    raise TypeError(f"Unknown outcome type: {type(outcome).__name__}")
