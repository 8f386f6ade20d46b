# Purpose: Resolve browser requests to files under the static root.
# The containment check is purely lexical and runs before the filesystem is touched.

import os

from pass_outcomes import Forbidden, NotFound

ROOT_DOCUMENT = "index.html"

MIME_BY_EXT = {
    ".css": "text/css; charset=utf-8",
    ".html": "text/html; charset=utf-8",
    ".ico": "image/x-icon",
    ".js": "text/javascript; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".png": "image/png",
    ".svg": "image/svg+xml",
}
DEFAULT_MIME = "application/octet-stream"


class StaticFile:
    def __init__(self, path, content, content_type):
        self.path = path
        self.content = content
        self.content_type = content_type

    def to_response(self):
        headers = {
            "Content-Type": self.content_type,
            "Content-Length": str(len(self.content)),
        }
        return 200, self.content, headers


def content_type_for(path):
    _, ext = os.path.splitext(path)
    return MIME_BY_EXT.get(ext.lower(), DEFAULT_MIME)


def is_within_root(candidate, static_root):
    return candidate == static_root or candidate.startswith(static_root + os.sep)


def resolve_path(request_path, static_root):
    """
    Maps a URL path to an absolute filesystem path under static_root.
    Raises Forbidden if the normalized path escapes the root. No I/O is done here.
    """
    pathname = request_path or "/"
    if pathname in ("", "/"):
        pathname = "/" + ROOT_DOCUMENT

    # Backslashes and NULs never name a file we serve.
    if "\x00" in pathname or "\\" in pathname:
        raise Forbidden()

    candidate = os.path.normpath(os.path.join(static_root, pathname.lstrip("/")))
    if not is_within_root(candidate, static_root):
        raise Forbidden()
    return candidate


def load_static(request_path, static_root):
    """Returns a StaticFile for request_path or raises Forbidden/NotFound."""
    file_path = resolve_path(request_path, static_root)

    if not os.path.isfile(file_path):
        raise NotFound()

    try:
        with open(file_path, "rb") as f:
            content = f.read()
    except OSError:
        raise NotFound()

    return StaticFile(file_path, content, content_type_for(file_path))
