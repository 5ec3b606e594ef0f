"""Tests for reading and writing the ledger."""
import os
import stat

import pytest

from dpnd.core.errors import EncodingError, InstallError, InstallPhase, ParseError, ParseErrorKind
from dpnd.deps.ledger import decode_ledger, encode_ledger, read_ledger, write_ledger
from dpnd.deps.manifest import Dependency


def _deps():
    return {
        "my_scripts": Dependency(tool_name="git", source="git://host/my_scripts.git", version="abcd1234"),
        "your.scripts-2": Dependency(tool_name="git", source="/srv/your", version="v2"),
    }


def test_encode_one_line_per_dependency():
    text = encode_ledger(_deps())

    assert sorted(text.splitlines()) == [
        "my_scripts git git://host/my_scripts.git abcd1234",
        "your.scripts-2 git /srv/your v2",
    ]
    assert text.endswith("\n")


def test_encode_empty_map_is_empty_text():
    assert encode_ledger({}) == ""


def test_decode_inverts_encode(registry):
    deps = _deps()

    assert decode_ledger(encode_ledger(deps), registry) == deps


def test_decode_does_not_validate_names(registry):
    """Test: the ledger is trusted for name syntax, but not for line shape."""
    deps = decode_ledger("we?ird git src v1\n", registry)

    assert "we?ird" in deps


def test_read_missing_ledger_is_empty(tmp_path, registry):
    existed, deps = read_ledger(tmp_path / "current_dpnd.txt", registry)

    assert existed is False
    assert deps == {}


def test_write_then_read(tmp_path, registry):
    path = tmp_path / "current_dpnd.txt"

    write_ledger(path, _deps())
    existed, deps = read_ledger(path, registry)

    assert existed is True
    assert deps == _deps()
    # No temporary files are left behind.
    assert [p.name for p in tmp_path.iterdir()] == ["current_dpnd.txt"]


def test_write_replaces_previous_contents(tmp_path):
    path = tmp_path / "current_dpnd.txt"
    write_ledger(path, _deps())

    write_ledger(path, {})

    assert path.read_text() == ""


def test_read_invalid_utf8_is_fatal(tmp_path, registry):
    """Test: a ledger that isn't UTF-8 is never treated as empty."""
    path = tmp_path / "current_dpnd.txt"
    path.write_bytes(b"abc git src v1\n\xff\xfe\n")

    with pytest.raises(EncodingError) as exc_info:
        read_ledger(path, registry)

    assert exc_info.value.is_ledger is True
    assert exc_info.value.valid_up_to == 15


def test_read_corrupt_ledger(tmp_path, registry):
    path = tmp_path / "current_dpnd.txt"
    path.write_text("my_scripts git src\n")

    with pytest.raises(ParseError) as exc_info:
        read_ledger(path, registry)

    err = exc_info.value
    assert err.kind == ParseErrorKind.INVALID_DEP_SPEC
    assert err.is_ledger is True
    assert err.path == path


def test_read_ledger_under_a_file(tmp_path, registry):
    """Test: an output directory that is a regular file can't hold a ledger."""
    (tmp_path / "deps").write_text("")

    with pytest.raises(InstallError) as exc_info:
        read_ledger(tmp_path / "deps" / "current_dpnd.txt", registry)

    assert exc_info.value.phase == InstallPhase.READ_LEDGER


@pytest.mark.parametrize("name", ["..", "."])
def test_decode_rejects_relative_component_names(registry, name):
    """Test: the ledger is not trusted to name the output directory's parent."""
    with pytest.raises(ParseError) as exc_info:
        decode_ledger(f"{name} git git://host/x.git v1\n", registry)

    assert exc_info.value.kind == ParseErrorKind.RESERVED_DEP_NAME


def test_decode_rejects_names_with_separators(registry):
    with pytest.raises(ParseError) as exc_info:
        decode_ledger("ok git a v1\nsub/../../x git b v1\n", registry)

    err = exc_info.value
    assert err.kind == ParseErrorKind.INVALID_DEP_NAME_CHAR
    assert err.line_number == 2
    assert err.bad_char_index == 3


def test_read_ledger_naming_parent_directory(tmp_path, registry):
    path = tmp_path / "current_dpnd.txt"
    path.write_text(".. git git://host/x.git v1\n")

    with pytest.raises(ParseError) as exc_info:
        read_ledger(path, registry)

    assert exc_info.value.is_ledger is True
    assert exc_info.value.path == path


def test_written_ledger_follows_umask(tmp_path):
    """Test: the ledger gets the mode a plain `open` would give it, not 0600."""
    path = tmp_path / "current_dpnd.txt"
    umask = os.umask(0o022)
    try:
        write_ledger(path, _deps())
    finally:
        os.umask(umask)

    assert stat.S_IMODE(path.stat().st_mode) == 0o644


def test_read_removes_stale_temporary_ledgers(tmp_path, registry):
    """Test: leftovers of an interrupted write are cleaned up on the next read.

    Given: a ledger plus a temporary ledger file and an unrelated dot file
    When: the ledger is read
    Then:
      - the temporary ledger is gone
      - the ledger and the unrelated file are untouched
    """
    path = tmp_path / "current_dpnd.txt"
    write_ledger(path, _deps())
    (tmp_path / ".current_dpnd.txt.abc123").write_text("half")
    (tmp_path / ".keep").write_text("")

    existed, deps = read_ledger(path, registry)

    assert existed is True
    assert deps == _deps()
    assert sorted(p.name for p in tmp_path.iterdir()) == [".keep", "current_dpnd.txt"]
