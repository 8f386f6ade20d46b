# Purpose: Mallet pass gateway. Serves the browser bundle and proxies
# pass requests to the upstream issuance API with a server-held credential.

import sys

from flask import Flask, Response, current_app, request
from werkzeug.exceptions import HTTPException

from mallet_config import load_config, log
from pass_gateway import forward, require_credential
from pass_outcomes import ConfigurationError, MalletError, MethodNotAllowed, NotFound, render_outcome
from pass_validator import normalize_request
from static_resolver import load_static

CONFIG_KEY = "MALLET_CONFIG"


def _to_flask(status, body, headers):
    return Response(body, status=status, headers=headers)


def _error_response(error):
    log("!", f"{request.method} {request.path} -> {error.status} {error.kind}: {error.message}")
    return _to_flask(*render_outcome(error))


def generate_pass():
    """
    Receives a pass definition from the browser, validates it, and returns
    the upstream pass artifact (or a JSON error).
    """
    config = current_app.config[CONFIG_KEY]
    require_credential(config)

    pass_request = normalize_request(
        request.stream,
        limit=config.max_body_bytes,
        declared_length=request.content_length,
    )
    log("*", f"Received pass request: format={pass_request['barcodeFormat']!r}")

    artifact = forward(pass_request, config)
    log("OK", f"Returning {artifact!r}")
    return _to_flask(*render_outcome(artifact))


def serve_static(path=""):
    config = current_app.config[CONFIG_KEY]
    static_file = load_static("/" + path, config.static_root)
    return _to_flask(*static_file.to_response())


def handle_mallet_error(error):
    return _error_response(error)


def handle_http_exception(error):
    """Werkzeug routing errors (unmatched method, etc.) get the same JSON shape."""
    if error.code == 405:
        return _error_response(MethodNotAllowed())
    if error.code == 404:
        return _error_response(NotFound())
    return _error_response(MalletError(error.description or error.name, status=error.code))


def handle_unexpected(error):
    log("!", f"Unhandled {type(error).__name__} on {request.method} {request.path}: {error}")
    return _to_flask(*render_outcome(MalletError("Internal server error.")))


def create_app(config):
    """Builds the Flask app around an already-loaded MalletConfig."""
    app = Flask(__name__, static_folder=None)
    app.config[CONFIG_KEY] = config

    # No automatic OPTIONS: any method not listed below is a 405.
    app.add_url_rule("/api/pkpass", "generate_pass", generate_pass,
                     methods=["POST"], provide_automatic_options=False)
    app.add_url_rule("/", "serve_root", serve_static,
                     methods=["GET", "HEAD"], provide_automatic_options=False)
    app.add_url_rule("/<path:path>", "serve_static", serve_static,
                     methods=["GET", "HEAD"], provide_automatic_options=False)

    app.register_error_handler(MalletError, handle_mallet_error)
    app.register_error_handler(HTTPException, handle_http_exception)
    app.register_error_handler(Exception, handle_unexpected)
    return app


def main(argv=None):
    try:
        config = load_config(argv)
    except ConfigurationError as e:
        log("!", f"{e.message} {e.hint or ''}".strip())
        return 1

    if not config.has_credential:
        log("!", "MALLET_API_KEY is not set; pass generation will answer 500 until it is.")

    app = create_app(config)
    log("*", f"Serving {config.static_root}")
    log("*", f"Mallet running at http://{config.host}:{config.port}")
    app.run(host=config.host, port=config.port, threaded=True)
    return 0


if __name__ == '__main__':
    sys.exit(main())
