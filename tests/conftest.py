"""
Shared fixtures and helpers for the Mod Jar Inspector test suite.
"""

import io
import json
import struct
import zipfile
from pathlib import Path

import pytest


def make_jar(members: dict, path: Path | None = None) -> bytes:
    """Build a jar from ``{entry_name: content}``.

    ``dict``/``list`` content is written as JSON, ``str`` as UTF-8 text and
    ``bytes`` as-is. The jar is also written to ``path`` when given.
    """
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in members.items():
            if isinstance(content, (dict, list)):
                content = json.dumps(content)
            zf.writestr(name, content)
    data = buf.getvalue()
    if path is not None:
        path.write_bytes(data)
    return data


def mod_json(mod_id: str, version: str = "1.0", **fields) -> dict:
    return {"id": mod_id, "version": version, **fields}


@pytest.fixture
def mods_dir(tmp_path):
    """A fresh, empty mods directory."""
    mods = tmp_path / "mods"
    mods.mkdir()
    return mods


def set_compression_method(data: bytes, entry_name: str, method: int) -> bytes:
    """Rewrite the compression method of ``entry_name`` in a built jar.

    Both the central directory record and the local file header are patched,
    so ``zipfile`` sees the method whichever header it consults.
    """
    buf = bytearray(data)
    target = entry_name.encode("utf-8")
    # Jars built by make_jar have no archive comment: the end record is the last 22 bytes.
    pos = struct.unpack_from("<I", buf, len(buf) - 22 + 16)[0]
    while buf[pos:pos + 4] == b"PK\x01\x02":
        name_len = struct.unpack_from("<H", buf, pos + 28)[0]
        if bytes(buf[pos + 46:pos + 46 + name_len]) == target:
            struct.pack_into("<H", buf, pos + 10, method)
            local_offset = struct.unpack_from("<I", buf, pos + 42)[0]
            struct.pack_into("<H", buf, local_offset + 8, method)
            return bytes(buf)
        extra_len, comment_len = struct.unpack_from("<HH", buf, pos + 30)
        pos += 46 + name_len + extra_len + comment_len
    raise KeyError(entry_name)
