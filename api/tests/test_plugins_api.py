"""Plugin upload API: CSRF, per-session registry, schema application against the store."""
import uuid
from datetime import datetime

import pytest
from sqlalchemy import inspect

from app.core.config import settings
from app.db.session import SessionLocal, engine
from app.models.models import ImportedPlugin


@pytest.fixture(autouse=True)
def isolated_plugin_dirs(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "plugin_upload_dir", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "plugin_extract_dir", str(tmp_path / "extracted"))
    return tmp_path


def _plugin_entries(slug, name="Shop Widget", table=None):
    table = table or f"widgets_{uuid.uuid4().hex[:8]}"
    return table, [
        (f"{slug}/", ""),
        (
            f"{slug}/{slug}.php",
            "<?php\n/*\n * Plugin Name: " + name + "\n * Version: 0.3\n */\n"
            "add_menu_page('Shop', 'Shop Menu', 'manage_options', 'shop');\n"
            "add_submenu_page('shop', 'Stats', 'Shop Stats');\n",
        ),
        (
            f"{slug}/includes/class-installer.php",
            "<?php\nclass Widget_Installer {\n"
            "  function sql() { return \"CREATE TABLE {$wpdb->prefix}" + table + " (id INT);\"; }\n"
            "  function clash() { return \"CREATE TABLE orders (id INT);\"; }\n"
            "}\n",
        ),
    ]


def _upload(tc, data, filename="plugin.zip", csrf=None):
    token = tc.headers.get("X-CSRF-Token") if csrf is None else csrf
    return tc.post(
        "/api/admin/plugins/upload",
        files={"plugin_zip": (filename, data, "application/zip")},
        data={"csrf_token": token},
    )


def test_upload_imports_and_applies_schema(client, make_zip, isolated_plugin_dirs):
    table, entries = _plugin_entries("shop-widget")
    r = _upload(client, make_zip(entries), filename="shop-widget.zip")
    assert r.status_code == 201, r.text
    body = r.json()
    plugin = body["plugin"]
    assert plugin["slug"] == "shop-widget"
    assert plugin["info"]["name"] == "Shop Widget"
    assert plugin["info"]["version"] == "0.3"
    assert plugin["info"]["author"] is None
    assert plugin["menus"] == [
        {"type": "main", "page_title": "Shop", "menu_title": "Shop Menu", "parent": None},
        {"type": "submenu", "page_title": "Stats", "menu_title": "Shop Stats", "parent": "shop"},
    ]
    assert plugin["schemas"] == [
        "CREATE TABLE {$wpdb->prefix}" + table + " (id INT);",
        "CREATE TABLE orders (id INT);",
    ]
    assert body["schema_statements"] == 2
    # The plugin's orders table collides with the store's own; the other still gets created.
    assert len(body["schema_errors"]) == 1
    assert table in inspect(engine).get_table_names()
    # The uploaded archive is removed once processed.
    assert list((isolated_plugin_dirs / "uploads").iterdir()) == []


def test_list_and_get(client, make_zip):
    _, entries = _plugin_entries("listed")
    assert _upload(client, make_zip(entries)).status_code == 201
    r = client.get("/api/admin/plugins")
    assert r.status_code == 200
    assert [p["slug"] for p in r.json()] == ["listed"]
    r = client.get("/api/admin/plugins/listed")
    assert r.status_code == 200
    assert r.json()["info"]["name"] == "Shop Widget"
    assert client.get("/api/admin/plugins/missing").status_code == 404


def test_reimport_same_slug_replaces(client, make_zip):
    _, first = _plugin_entries("again", name="First Name")
    _, second = _plugin_entries("again", name="Second Name")
    assert _upload(client, make_zip(first)).status_code == 201
    assert _upload(client, make_zip(second)).status_code == 201
    plugins = client.get("/api/admin/plugins").json()
    assert len(plugins) == 1
    assert plugins[0]["info"]["name"] == "Second Name"


def test_sessions_are_isolated(client, other_client, make_zip):
    _, entries = _plugin_entries("mine")
    assert _upload(client, make_zip(entries)).status_code == 201
    assert [p["slug"] for p in client.get("/api/admin/plugins").json()] == ["mine"]
    assert other_client.get("/api/admin/plugins").json() == []


def test_logout_drops_registry(client, make_zip):
    slug = f"gone-{uuid.uuid4().hex[:6]}"
    _, entries = _plugin_entries(slug)
    assert _upload(client, make_zip(entries)).status_code == 201
    db = SessionLocal()
    try:
        assert db.query(ImportedPlugin).filter(ImportedPlugin.slug == slug).count() == 1
        client.post("/api/auth/logout")
        db.expire_all()
        assert db.query(ImportedPlugin).filter(ImportedPlugin.slug == slug).count() == 0
    finally:
        db.close()


def test_upload_requires_csrf(client, make_zip):
    _, entries = _plugin_entries("forged")
    r = _upload(client, make_zip(entries), csrf="0" * 64)
    assert r.status_code == 403
    assert r.json()["detail"] == "Invalid CSRF token"
    assert client.get("/api/admin/plugins").json() == []


def test_upload_requires_login(make_zip):
    from fastapi.testclient import TestClient
    from main import app

    _, entries = _plugin_entries("anon")
    r = _upload(TestClient(app), make_zip(entries), csrf="x")
    assert r.status_code == 401


def test_upload_rejects_non_zip(client):
    r = _upload(client, b"just text", filename="plugin.txt")
    assert r.status_code == 400
    assert r.json()["detail"] == "Only ZIP files are allowed"


def test_upload_rejects_corrupt_zip(client):
    r = _upload(client, b"not really a zip", filename="plugin.zip")
    assert r.status_code == 400
    assert r.json()["detail"] == "Failed to open ZIP file"


def test_upload_without_main_file(client, make_zip, isolated_plugin_dirs):
    r = _upload(client, make_zip([
        ("nameless/", ""),
        ("nameless/index.php", "<?php // silence is golden\n"),
    ]))
    assert r.status_code == 400
    assert r.json()["detail"] == "Could not find main plugin file"
    assert client.get("/api/admin/plugins").json() == []
    assert list((isolated_plugin_dirs / "uploads").iterdir()) == []


def test_upload_rejects_unextractable_archives(client, encrypted_zip, corrupt_deflate_zip):
    for data in (encrypted_zip, corrupt_deflate_zip):
        r = _upload(client, data)
        assert r.status_code == 400
        assert r.json()["detail"] == "Failed to extract ZIP file"
    assert client.get("/api/admin/plugins").json() == []


def test_identical_reimport_refreshes_imported_at(client, make_zip):
    _, entries = _plugin_entries("same-again", table="same_again_widgets")
    data = make_zip(entries)
    assert _upload(client, data).status_code == 201
    first = client.get("/api/admin/plugins/same-again").json()["imported_at"]
    assert _upload(client, data).status_code == 201
    second = client.get("/api/admin/plugins/same-again").json()["imported_at"]
    assert datetime.fromisoformat(second) > datetime.fromisoformat(first)


def test_logout_without_csrf_keeps_registry(client, make_zip):
    slug = f"kept-{uuid.uuid4().hex[:6]}"
    _, entries = _plugin_entries(slug)
    assert _upload(client, make_zip(entries)).status_code == 201
    token = client.headers["X-CSRF-Token"]
    del client.headers["X-CSRF-Token"]
    assert client.post("/api/auth/logout").status_code == 403
    assert client.post("/api/auth/logout", headers={"X-CSRF-Token": "f" * 64}).status_code == 403
    db = SessionLocal()
    try:
        assert db.query(ImportedPlugin).filter(ImportedPlugin.slug == slug).count() == 1
    finally:
        db.close()
    assert [p["slug"] for p in client.get("/api/admin/plugins").json()] == [slug]
    assert client.post("/api/auth/logout", headers={"X-CSRF-Token": token}).status_code == 200
