# Purpose: Process configuration for the Mallet pass gateway.
# Read once at startup and passed to the app; never mutated afterwards.

import os
import argparse
from collections import namedtuple

from dotenv import load_dotenv

from pass_outcomes import ConfigurationError

# --- DEFAULTS ---
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_UPSTREAM_URL = "https://api.walletwallet.dev/api/pkpass"
DEFAULT_MAX_BODY_BYTES = 1_000_000
DEFAULT_UPSTREAM_TIMEOUT = 30.0

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_STATIC_ROOT = os.path.join(BASE_DIR, "public")
LOG_PREFIX = "MALLET"


def log(marker, message):
    """Prints a status line, e.g. log("*", "...") -> 'MALLET: [*] ...'."""
    print(f"{LOG_PREFIX}: [{marker}] {message}", flush=True)

_Fields = namedtuple("_Fields", [
    "host",
    "port",
    "upstream_url",
    "api_key",
    "static_root",
    "max_body_bytes",
    "upstream_timeout",
])


class MalletConfig(_Fields):
    """Immutable server settings. The api_key is masked in repr()."""

    __slots__ = ()

    def __repr__(self):
        masked = "***" if self.api_key else "''"
        return (
            f"MalletConfig(host={self.host!r}, port={self.port!r}, "
            f"upstream_url={self.upstream_url!r}, api_key={masked}, "
            f"static_root={self.static_root!r}, max_body_bytes={self.max_body_bytes!r}, "
            f"upstream_timeout={self.upstream_timeout!r})"
        )

    __str__ = __repr__

    @property
    def has_credential(self):
        return bool(self.api_key)


def make_config(host=DEFAULT_HOST, port=DEFAULT_PORT, upstream_url=DEFAULT_UPSTREAM_URL,
                api_key="", static_root=DEFAULT_STATIC_ROOT,
                max_body_bytes=DEFAULT_MAX_BODY_BYTES, upstream_timeout=DEFAULT_UPSTREAM_TIMEOUT):
    """Builds a config with the static root made absolute and normalized."""
    return MalletConfig(
        host=host,
        port=port,
        upstream_url=upstream_url,
        api_key=api_key or "",
        static_root=os.path.normpath(os.path.abspath(static_root)),
        max_body_bytes=max_body_bytes,
        upstream_timeout=upstream_timeout,
    )


def _parse_number(name, raw, cast, minimum):
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {raw!r}.",
                                 hint=f"Fix {name} in the environment or .env file.")
    if value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {raw!r}.",
                                 hint=f"Fix {name} in the environment or .env file.")
    return value


def load_dotenv_file(env_path=None):
    """Loads .env beside the server. Existing environment variables win."""
    env_path = env_path or os.path.join(BASE_DIR, ".env")
    if os.path.exists(env_path):
        load_dotenv(env_path, override=False)
        return True
    return False


def config_from_env(environ=None):
    """Builds a MalletConfig from an environment mapping (os.environ by default)."""
    env = os.environ if environ is None else environ

    return make_config(
        host=env.get("HOST") or DEFAULT_HOST,
        port=_parse_number("PORT", env.get("PORT") or DEFAULT_PORT, int, 0),
        upstream_url=env.get("MALLET_UPSTREAM_URL") or DEFAULT_UPSTREAM_URL,
        api_key=env.get("MALLET_API_KEY", ""),
        static_root=env.get("MALLET_STATIC_ROOT") or DEFAULT_STATIC_ROOT,
        max_body_bytes=_parse_number("MALLET_MAX_BODY_BYTES",
                                     env.get("MALLET_MAX_BODY_BYTES") or DEFAULT_MAX_BODY_BYTES,
                                     int, 1),
        upstream_timeout=_parse_number("MALLET_UPSTREAM_TIMEOUT",
                                       env.get("MALLET_UPSTREAM_TIMEOUT") or DEFAULT_UPSTREAM_TIMEOUT,
                                       float, 0.1),
    )


def build_arg_parser():
    parser = argparse.ArgumentParser(description="Mallet pass gateway")
    parser.add_argument("--host", help="Bind address (overrides HOST).")
    parser.add_argument("--port", type=int, help="Bind port (overrides PORT).")
    parser.add_argument("--upstream-url", help="Pass issuance endpoint (overrides MALLET_UPSTREAM_URL).")
    parser.add_argument("--static-root", help="Directory served to the browser (overrides MALLET_STATIC_ROOT).")
    parser.add_argument("--env-file", help="Path to a .env file to load before reading the environment.")
    return parser


def load_config(argv=None, environ=None):
    """
    Resolves the final configuration: defaults < .env < environment < flags.
    The credential has no flag; it is read from the environment only.
    """
    args = build_arg_parser().parse_args(argv)
    if environ is None:
        load_dotenv_file(args.env_file)

    config = config_from_env(environ)
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.upstream_url:
        overrides["upstream_url"] = args.upstream_url
    if args.static_root:
        overrides["static_root"] = os.path.normpath(os.path.abspath(args.static_root))
    return config._replace(**overrides) if overrides else config
