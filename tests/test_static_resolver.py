"""Tests for static file resolution under the static root."""

import os

import pytest

import static_resolver
from pass_outcomes import Forbidden, NotFound
from static_resolver import DEFAULT_MIME, content_type_for, load_static, resolve_path


def test_root_maps_to_index(static_root):
    assert resolve_path("/", str(static_root)) == os.path.join(str(static_root), "index.html")


def test_empty_path_maps_to_index(static_root):
    assert resolve_path("", str(static_root)) == os.path.join(str(static_root), "index.html")


def test_nested_file_resolves_inside_root(static_root):
    assert resolve_path("/assets/logo.svg", str(static_root)) == os.path.join(
        str(static_root), "assets", "logo.svg"
    )


def test_dot_segments_that_stay_inside_are_allowed(static_root):
    assert resolve_path("/assets/../app.js", str(static_root)) == os.path.join(str(static_root), "app.js")


@pytest.mark.parametrize(
    "path",
    [
        "/../secret.txt",
        "/..",
        "/assets/../../secret.txt",
        "/./../public-evil/x",
        "/a/b/../../../secret.txt",
        "/..\\secret.txt",
        "/index.html\x00.png",
    ],
)
def test_escaping_paths_are_forbidden(static_root, path):
    with pytest.raises(Forbidden) as exc_info:
        resolve_path(path, str(static_root))

    assert exc_info.value.status == 403
    assert exc_info.value.body() == {"error": "Forbidden."}


def test_sibling_directory_with_shared_prefix_is_forbidden(static_root):
    sibling = static_root.parent / "public-other"
    sibling.mkdir()
    (sibling / "x.txt").write_text("nope")

    with pytest.raises(Forbidden):
        resolve_path("/../public-other/x.txt", str(static_root))


def test_traversal_never_touches_the_filesystem(static_root, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("filesystem was queried")

    monkeypatch.setattr(static_resolver.os.path, "isfile", fail)
    monkeypatch.setattr(static_resolver.os.path, "exists", fail)
    monkeypatch.setattr("builtins.open", fail)

    with pytest.raises(Forbidden):
        load_static("/../secret.txt", str(static_root))


def test_existing_file_is_loaded_with_its_type(static_root):
    static_file = load_static("/app.js", str(static_root))

    assert static_file.content == b"console.log('mallet');"
    assert static_file.content_type == "text/javascript; charset=utf-8"
    status, body, headers = static_file.to_response()
    assert status == 200
    assert headers["Content-Length"] == str(len(body))


def test_missing_file_is_not_found(static_root):
    with pytest.raises(NotFound) as exc_info:
        load_static("/nonexistent.html", str(static_root))

    assert exc_info.value.status == 404
    assert exc_info.value.body() == {"error": "Not found."}


def test_directory_is_not_found(static_root):
    with pytest.raises(NotFound):
        load_static("/assets", str(static_root))


def test_root_itself_is_not_found_when_path_collapses_to_it(static_root):
    with pytest.raises(NotFound):
        load_static("/assets/..", str(static_root))


@pytest.mark.parametrize(
    "name, expected",
    [
        ("index.html", "text/html; charset=utf-8"),
        ("styles.CSS", "text/css; charset=utf-8"),
        ("favicon.ico", "image/x-icon"),
        ("manifest.json", "application/json; charset=utf-8"),
        ("logo.png", "image/png"),
        ("logo.svg", "image/svg+xml"),
        ("data.bin", DEFAULT_MIME),
        ("README", DEFAULT_MIME),
    ],
)
def test_content_type_by_extension(name, expected):
    assert content_type_for(name) == expected
