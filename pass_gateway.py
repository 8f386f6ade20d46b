# Purpose: Forward normalized pass requests to the upstream issuance API.
# The server-held credential is attached here and nowhere else.

import requests

from mallet_config import log
from pass_contract import check_against_contract
from pass_outcomes import (
    PassArtifact,
    UpstreamRejected,
    UpstreamUnreachable,
    missing_credential_error,
)

CONNECT_TIMEOUT = 10.0


def require_credential(config):
    """Raises ConfigurationError when no credential is configured. Does no I/O."""
    if not config.has_credential:
        raise missing_credential_error()


def _upstream_error_payload(resp):
    """
    Builds the client-facing body for a non-2xx upstream response.
    JSON bodies pass through as parsed; anything else is wrapped as {"error": text}.
    """
    content_type = resp.headers.get("Content-Type", "")
    if "application/json" in content_type:
        try:
            payload = resp.json()
        except ValueError:
            log("!", "Upstream sent an unparseable JSON error body; wrapping it as text.")
        else:
            check_against_contract(payload, "ErrorBody")
            return payload

    text = resp.text
    return {"error": text or f"Upstream request failed with status {resp.status_code}."}


def forward(pass_request, config, session=None):
    """
    POSTs a normalized pass request upstream.

    Returns a PassArtifact on 2xx. Raises ConfigurationError without a credential,
    UpstreamUnreachable on transport failures and timeouts, and UpstreamRejected
    for any other status.
    """
    require_credential(config)
    check_against_contract(pass_request, "PassRequest")

    post = session.post if session is not None else requests.post
    headers = {
        "Authorization": f"Bearer {config.api_key}",
        "Content-Type": "application/json",
    }
    timeout = (min(CONNECT_TIMEOUT, config.upstream_timeout), config.upstream_timeout)

    log("*", f"Forwarding pass request upstream (format={pass_request.get('barcodeFormat')!r}, "
             f"title={pass_request.get('title')!r})")
    try:
        resp = post(config.upstream_url, json=pass_request, headers=headers, timeout=timeout)
    except requests.exceptions.Timeout:
        log("!", f"Upstream timed out after {config.upstream_timeout}s")
        raise UpstreamUnreachable()
    except requests.exceptions.RequestException as e:
        log("!", f"Cannot reach upstream: {type(e).__name__}")
        raise UpstreamUnreachable()

    log("*", f"Upstream Response: {resp.status_code}")

    if not 200 <= resp.status_code < 300:
        raise UpstreamRejected(resp.status_code, _upstream_error_payload(resp))

    return PassArtifact(resp.content)
