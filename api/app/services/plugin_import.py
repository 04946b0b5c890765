"""
Plugin import: unpack an uploaded plugin ZIP, scrape it, and apply its table definitions.

Pipeline (single request, no background work):
1. store_upload        - save the upload as <unix-time>_<name>.zip
2. extract_archive     - unzip into the extract dir; slug = first entry name
3. parse_descriptor    - header labels from the main file
4. parse_menus         - add_menu_page / add_submenu_page calls
5. extract_schema      - CREATE TABLE statements from installer files
6. apply_schema_statements - caller side, best effort, one transaction per statement
"""
from __future__ import annotations

import logging
import time
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from app.services.plugin_exceptions import (
    ArchiveOpenError,
    ArchiveWriteError,
    InvalidUploadError,
    StatementExecutionError,
)
from app.services.plugin_parser import (
    MenuDeclaration,
    PluginDescriptor,
    extract_schema_statements,
    parse_descriptor,
    parse_menu_declarations,
)

logger = logging.getLogger(__name__)

# Table-prefix tokens stripped from plugin SQL before it runs against our store.
PREFIX_PLACEHOLDERS = ("{$wpdb->prefix}", "wp_")


@dataclass
class ExtractedBundle:
    path: Path
    slug: str


@dataclass
class PluginImportResult:
    """Everything scraped from one archive."""

    path: Path
    slug: str
    descriptor: PluginDescriptor
    menus: list[MenuDeclaration] = field(default_factory=list)
    schemas: list[str] = field(default_factory=list)


@dataclass
class StatementOutcome:
    statement: str  # as executed, after prefix stripping
    error: StatementExecutionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def store_upload(content: bytes, filename: str, upload_dir: str | Path) -> Path:
    """Write uploaded bytes to upload_dir under a timestamped name."""
    name = Path(filename or "").name
    if not name:
        raise InvalidUploadError("No file uploaded")
    if not name.lower().endswith(".zip"):
        raise InvalidUploadError("Only ZIP files are allowed")
    if not content:
        raise InvalidUploadError("Uploaded file is empty")
    base = Path(upload_dir)
    base.mkdir(parents=True, exist_ok=True)
    dest = base / f"{int(time.time())}_{name}"
    dest.write_bytes(content)
    return dest


def extract_archive(zip_path: str | Path, extract_dir: str | Path) -> ExtractedBundle:
    """
    Extract the whole archive into extract_dir.

    The slug is the first entry's name with surrounding slashes trimmed, whatever
    the archive happens to list first; the bundle path is where zipfile wrote that
    entry, so it stays inside extract_dir even for names like ``../x``.
    """
    base = Path(extract_dir)
    try:
        zf = zipfile.ZipFile(zip_path, "r")
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveOpenError("Failed to open ZIP file") from e
    with zf:
        names = zf.namelist()
        if not names:
            raise ArchiveOpenError("Failed to open ZIP file: archive is empty")
        slug = names[0].strip("/")
        try:
            base.mkdir(parents=True, exist_ok=True)
            zf.extractall(base)
        except (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError, OSError) as e:
            # encrypted members raise RuntimeError, unknown compression NotImplementedError
            raise ArchiveWriteError("Failed to extract ZIP file") from e
    return ExtractedBundle(path=base.joinpath(*_member_parts(names[0])), slug=slug)


def _member_parts(name: str) -> list[str]:
    """Path components of an entry as zipfile.extract writes them."""
    return [p for p in name.split("/") if p not in ("", ".", "..")]


def run_plugin_import(zip_path: str | Path, extract_dir: str | Path) -> PluginImportResult:
    """Extract and scrape one plugin archive. Aborts on archive errors or a missing main file."""
    bundle = extract_archive(zip_path, extract_dir)
    descriptor = parse_descriptor(bundle.path)
    menus = parse_menu_declarations(descriptor.main_file)
    schemas = extract_schema_statements(bundle.path)
    logger.info(
        "plugin import: slug=%r name=%r menus=%d schema_statements=%d",
        bundle.slug, descriptor.name, len(menus), len(schemas),
    )
    return PluginImportResult(
        path=bundle.path,
        slug=bundle.slug,
        descriptor=descriptor,
        menus=menus,
        schemas=schemas,
    )


def adapt_statement(statement: str) -> str:
    for token in PREFIX_PLACEHOLDERS:
        statement = statement.replace(token, "")
    return statement


def apply_schema_statements(bind: Engine, statements: list[str]) -> list[StatementOutcome]:
    """
    Run each adapted statement in its own transaction.

    Failures are logged and recorded on the outcome; later statements still run and
    earlier ones are not rolled back.
    """
    outcomes: list[StatementOutcome] = []
    for raw in statements:
        statement = adapt_statement(raw)
        try:
            with bind.begin() as conn:
                conn.exec_driver_sql(statement)
            outcomes.append(StatementOutcome(statement=statement))
        except SQLAlchemyError as e:
            logger.warning("Schema error: %s", getattr(e, "orig", None) or e)
            outcomes.append(
                StatementOutcome(statement=statement, error=StatementExecutionError(statement, e))
            )
    return outcomes
