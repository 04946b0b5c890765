"""
Plugin source scraper for uploaded plugin bundles.

Everything here is regex matching over PHP text, not parsing:
- Main file: first top-level *.php (name order) containing "Plugin Name:"
- Descriptor: "Label: value" lines for Plugin Name, Version, Description, Author
- Menus: add_menu_page / add_submenu_page calls with leading quoted arguments
- Schema: CREATE TABLE ... ; inside files that look like installers
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from app.services.plugin_exceptions import MainFileNotFoundError

SOURCE_SUFFIX = ".php"

MENU_TYPE_MAIN = "main"
MENU_TYPE_SUBMENU = "submenu"

_MAIN_FILE_MARKER = re.compile(r"Plugin Name:", re.IGNORECASE)

# descriptor field -> header label
DESCRIPTOR_LABELS = {
    "name": "Plugin Name",
    "version": "Version",
    "description": "Description",
    "author": "Author",
}
_LABEL_PATTERNS = {
    key: re.compile(re.escape(label) + r":\s*(.+)", re.IGNORECASE)
    for key, label in DESCRIPTOR_LABELS.items()
}

_QUOTED = r"""['"]([^'"]+)['"]"""
_MENU_PAGE = re.compile(r"add_menu_page\s*\(\s*" + _QUOTED + r"\s*,\s*" + _QUOTED)
_SUBMENU_PAGE = re.compile(
    r"add_submenu_page\s*\(\s*" + _QUOTED + r"\s*,\s*" + _QUOTED + r"\s*,\s*" + _QUOTED
)

_INSTALLER_HINTS = (
    re.compile(r"class.*install", re.IGNORECASE),
    re.compile(r"register_activation_hook", re.IGNORECASE),
)
_CREATE_TABLE = re.compile(r"CREATE TABLE[^;]+;", re.IGNORECASE | re.DOTALL)


@dataclass
class PluginDescriptor:
    """Header metadata read from the plugin's main file."""

    main_file: Path
    name: str | None = None
    version: str | None = None
    description: str | None = None
    author: str | None = None

    def as_dict(self) -> dict[str, str]:
        """Only the labels that were present."""
        return {
            key: getattr(self, key)
            for key in DESCRIPTOR_LABELS
            if getattr(self, key) is not None
        }


@dataclass
class MenuDeclaration:
    """Admin menu entry a plugin registers."""

    type: str  # main or submenu
    page_title: str
    menu_title: str
    parent: str | None = None  # submenu only

    def as_dict(self) -> dict[str, str]:
        d = {
            "page_title": self.page_title,
            "menu_title": self.menu_title,
            "type": self.type,
        }
        if self.type == MENU_TYPE_SUBMENU:
            d = {"parent": self.parent, **d}
        return d


@dataclass
class ScanResult:
    """Installer files found under a bundle and the statements they carry."""

    installer_files: list[Path] = field(default_factory=list)
    statements: list[str] = field(default_factory=list)


def read_source(path: Path) -> str:
    """Read a source file as text. OSError propagates."""
    return path.read_text(encoding="utf-8", errors="replace")


def find_main_file(plugin_path: Path) -> Path | None:
    """First top-level source file carrying the Plugin Name marker, or None."""
    plugin_path = Path(plugin_path)
    if not plugin_path.is_dir():
        return None
    for candidate in sorted(plugin_path.glob("*" + SOURCE_SUFFIX)):
        if not candidate.is_file():
            continue
        if _MAIN_FILE_MARKER.search(read_source(candidate)):
            return candidate
    return None


def parse_descriptor_text(text: str, main_file: Path) -> PluginDescriptor:
    descriptor = PluginDescriptor(main_file=main_file)
    for key, pattern in _LABEL_PATTERNS.items():
        m = pattern.search(text)
        if m:
            setattr(descriptor, key, m.group(1).strip())
    return descriptor


def parse_descriptor(plugin_path: Path) -> PluginDescriptor:
    """Locate the main file under plugin_path and read its header labels."""
    main_file = find_main_file(plugin_path)
    if main_file is None:
        raise MainFileNotFoundError(str(plugin_path))
    return parse_descriptor_text(read_source(main_file), main_file)


def parse_menu_text(text: str) -> list[MenuDeclaration]:
    """All main menu pages in text order, then all submenu pages in text order."""
    menus = [
        MenuDeclaration(type=MENU_TYPE_MAIN, page_title=m.group(1), menu_title=m.group(2))
        for m in _MENU_PAGE.finditer(text)
    ]
    menus.extend(
        MenuDeclaration(
            type=MENU_TYPE_SUBMENU,
            parent=m.group(1),
            page_title=m.group(2),
            menu_title=m.group(3),
        )
        for m in _SUBMENU_PAGE.finditer(text)
    )
    return menus


def parse_menu_declarations(main_file: Path) -> list[MenuDeclaration]:
    return parse_menu_text(read_source(Path(main_file)))


def is_installer_source(text: str) -> bool:
    return any(p.search(text) for p in _INSTALLER_HINTS)


def find_create_table_statements(text: str) -> list[str]:
    return _CREATE_TABLE.findall(text)


def scan_schema(plugin_path: Path) -> ScanResult:
    """Walk every source file under plugin_path; collect statements from installer files."""
    result = ScanResult()
    texts: list[str] = []
    for path in sorted(Path(plugin_path).rglob("*" + SOURCE_SUFFIX)):
        if not path.is_file():
            continue
        text = read_source(path)
        if is_installer_source(text):
            result.installer_files.append(path)
            texts.append(text)
    for text in texts:
        result.statements.extend(find_create_table_statements(text))
    return result


def extract_schema_statements(plugin_path: Path) -> list[str]:
    return scan_schema(plugin_path).statements
