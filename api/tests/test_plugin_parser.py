"""Plugin source scraping: main file, header labels, menu calls, installer CREATE TABLE statements."""
import pytest

from app.services.plugin_exceptions import MainFileNotFoundError, NotFoundError
from app.services.plugin_parser import (
    MENU_TYPE_MAIN,
    MENU_TYPE_SUBMENU,
    extract_schema_statements,
    find_main_file,
    parse_descriptor,
    parse_menu_declarations,
    parse_menu_text,
)

FULL_HEADER = """<?php
/*
 * Plugin Name: Shop Widget
 * Version: 1.4.2
 * Description:   Adds a widget to the shop front.
 * Author: Jane Doe
 */
"""


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_descriptor_all_labels(tmp_path):
    main = _write(tmp_path / "shop.php", FULL_HEADER)
    d = parse_descriptor(tmp_path)
    assert d.main_file == main
    assert d.as_dict() == {
        "name": "Shop Widget",
        "version": "1.4.2",
        "description": "Adds a widget to the shop front.",
        "author": "Jane Doe",
    }


def test_descriptor_omits_absent_labels(tmp_path):
    _write(tmp_path / "main.php", "<?php\n// Plugin Name: Minimal\n")
    d = parse_descriptor(tmp_path)
    assert d.as_dict() == {"name": "Minimal"}
    assert d.version is None
    assert d.author is None


def test_descriptor_labels_case_insensitive(tmp_path):
    _write(tmp_path / "main.php", "<?php\n/* plugin name: Loud\n VERSION:  2.0  \n*/\n")
    d = parse_descriptor(tmp_path)
    assert d.name == "Loud"
    assert d.version == "2.0"


def test_main_file_first_match_by_name(tmp_path):
    _write(tmp_path / "b.php", "<?php // Plugin Name: Second\n")
    _write(tmp_path / "a.php", "<?php // Plugin Name: First\n")
    _write(tmp_path / "0-helpers.php", "<?php function helper() {}\n")
    assert find_main_file(tmp_path) == tmp_path / "a.php"
    assert parse_descriptor(tmp_path).name == "First"


def test_main_file_only_top_level_source_files(tmp_path):
    _write(tmp_path / "includes" / "main.php", "<?php // Plugin Name: Nested\n")
    _write(tmp_path / "readme.txt", "Plugin Name: Not Code\n")
    assert find_main_file(tmp_path) is None
    with pytest.raises(MainFileNotFoundError):
        parse_descriptor(tmp_path)


def test_missing_directory_is_not_found(tmp_path):
    with pytest.raises(NotFoundError):
        parse_descriptor(tmp_path / "does-not-exist")


def test_menus_main_before_submenu(tmp_path):
    main = _write(
        tmp_path / "main.php",
        """<?php
add_submenu_page('shop', 'Reports', 'Shop Reports', 'manage_options', 'shop-reports');
add_menu_page('Shop', 'Shop Menu', 'manage_options', 'shop');
add_submenu_page( "shop" , "Settings" , "Shop Settings" );
add_menu_page("Stock", "Stock Menu");
""",
    )
    menus = parse_menu_declarations(main)
    assert [m.as_dict() for m in menus] == [
        {"page_title": "Shop", "menu_title": "Shop Menu", "type": MENU_TYPE_MAIN},
        {"page_title": "Stock", "menu_title": "Stock Menu", "type": MENU_TYPE_MAIN},
        {"parent": "shop", "page_title": "Reports", "menu_title": "Shop Reports", "type": MENU_TYPE_SUBMENU},
        {"parent": "shop", "page_title": "Settings", "menu_title": "Shop Settings", "type": MENU_TYPE_SUBMENU},
    ]


def test_menus_need_quoted_leading_arguments():
    text = """
add_menu_page($title, 'Menu');
add_menu_page(__('Shop'), 'Menu');
add_submenu_page('parent', 'Only Two');
"""
    assert parse_menu_text(text) == []


def test_menus_none(tmp_path):
    main = _write(tmp_path / "main.php", "<?php // Plugin Name: Quiet\n")
    assert parse_menu_declarations(main) == []


def test_schema_from_installer_files_only(tmp_path):
    _write(
        tmp_path / "includes" / "class-installer.php",
        """<?php
class Shop_Installer {
    function run() {
        $sql = "CREATE TABLE {$wpdb->prefix}shop_items (
            id INT,
            name TEXT
        );";
        $sql2 = "create table shop_log (id INT);";
    }
}
""",
    )
    _write(tmp_path / "lib" / "unused.php", "<?php $x = 'CREATE TABLE ignored (id INT);';\n")
    statements = extract_schema_statements(tmp_path)
    assert statements == [
        "CREATE TABLE {$wpdb->prefix}shop_items (\n            id INT,\n            name TEXT\n        );",
        "create table shop_log (id INT);",
    ]


def test_schema_activation_hook_marks_installer(tmp_path):
    _write(
        tmp_path / "main.php",
        """<?php
// Plugin Name: Hooked
REGISTER_ACTIVATION_HOOK(__FILE__, 'hooked_install');
function hooked_install() { dbDelta("CREATE TABLE hooked (id INT);"); }
""",
    )
    assert extract_schema_statements(tmp_path) == ["CREATE TABLE hooked (id INT);"]


def test_schema_file_then_match_order_no_dedup(tmp_path):
    body = "<?php register_activation_hook(__FILE__, 'x');\n"
    _write(tmp_path / "a.php", body + "CREATE TABLE one (id INT); CREATE TABLE one (id INT);")
    _write(tmp_path / "sub" / "b.php", body + "CREATE TABLE two (id INT);")
    assert extract_schema_statements(tmp_path) == [
        "CREATE TABLE one (id INT);",
        "CREATE TABLE one (id INT);",
        "CREATE TABLE two (id INT);",
    ]


def test_schema_ignores_non_source_files(tmp_path):
    _write(tmp_path / "install.sql", "class install\nCREATE TABLE nope (id INT);")
    assert extract_schema_statements(tmp_path) == []
