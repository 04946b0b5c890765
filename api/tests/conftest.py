import io
import os
import struct
import sys
import tempfile
import zipfile

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_TEST_DIR = tempfile.mkdtemp(prefix="storeadmin-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DIR}/test.sqlite")
os.environ.setdefault("PLUGIN_UPLOAD_DIR", os.path.join(_TEST_DIR, "uploads"))
os.environ.setdefault("PLUGIN_EXTRACT_DIR", os.path.join(_TEST_DIR, "extracted"))

import pytest
from fastapi.testclient import TestClient

from main import app


@pytest.fixture(scope="session", autouse=True)
def schema():
    from app.db.session import SessionLocal, init_schema
    from app.db.seed import seed_admin
    init_schema()
    db = SessionLocal()
    try:
        seed_admin(db)
    finally:
        db.close()


def login(tc: TestClient) -> TestClient:
    r = tc.post("/api/auth/login", json={"username": "admin", "password": "admin"})
    assert r.status_code == 200, r.text
    tc.headers["X-CSRF-Token"] = r.json()["csrf_token"]
    return tc


@pytest.fixture
def client():
    return login(TestClient(app))


@pytest.fixture
def other_client():
    """A second, independent login session."""
    return login(TestClient(app))


@pytest.fixture
def make_zip():
    """Build ZIP bytes from (name, content) pairs, keeping the given entry order."""
    def _make(entries):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            for name, content in entries:
                zf.writestr(name, content)
        return buf.getvalue()
    return _make


_MAIN_PHP = "<?php\n/*\n * Plugin Name: Locked\n */\n" + "// padding\n" * 200


@pytest.fixture
def encrypted_zip(make_zip):
    """A ZIP whose member claims to be encrypted (general purpose flag bit 0)."""
    data = bytearray(make_zip([("locked/locked.php", _MAIN_PHP)]))
    data[6] |= 0x01  # local file header flags
    central = data.index(b"PK\x01\x02")
    data[central + 8] |= 0x01  # central directory flags
    return bytes(data)


@pytest.fixture
def corrupt_deflate_zip(make_zip):
    """A ZIP whose deflate stream is garbage while its headers stay valid."""
    data = bytearray(make_zip([("broken/broken.php", _MAIN_PHP)]))
    name_len, extra_len = struct.unpack_from("<HH", data, 26)
    compressed_size = struct.unpack_from("<I", data, 18)[0]
    start = 30 + name_len + extra_len
    data[start:start + compressed_size] = b"\xff" * compressed_size
    return bytes(data)
