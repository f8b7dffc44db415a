"""
Integration tests for include resolution over a modular schema.

These tests resolve the checked-in fixture tree (types, domains, sequences,
tables, functions, procedures and views included from main.sql) and compare
the result with the pre-generated schema.sql.
"""

import shutil
from pathlib import Path

import pytest

from pgschema.include.errors import IncludeFileNotFoundError
from pgschema.include.resolver import IncludeResolver, resolve_file

pytestmark = [pytest.mark.include]


class TestModularSchemaFixture:
    """Test the full main.sql fixture."""

    def test_main_matches_expected_schema(self, fixture_root: Path) -> None:
        """Test the resolved main.sql equals schema.sql exactly."""
        expected = (fixture_root / "schema.sql").read_bytes().decode("utf-8")

        document = IncludeResolver(fixture_root).resolve(fixture_root / "main.sql")

        assert document.text == expected

    def test_resolution_is_idempotent(self, fixture_root: Path) -> None:
        """Test resolving the same tree twice is byte-identical."""
        first = resolve_file(fixture_root / "main.sql")
        second = resolve_file(fixture_root / "main.sql")

        assert first == second

    def test_every_include_is_read_in_order(self, fixture_root: Path) -> None:
        """Test each included file is read once, in directive order."""
        document = IncludeResolver(fixture_root).resolve(fixture_root / "main.sql")

        assert document.relative_sources() == [
            "main.sql",
            "types/custom_types.sql",
            "domains/custom_domains.sql",
            "sequences/sequences.sql",
            "tables/users.sql",
            "tables/orders.sql",
            "functions/user_functions.sql",
            "procedures/stored_procedures.sql",
            "views/user_views.sql",
        ]

    def test_inline_statement_comes_last(self, fixture_root: Path) -> None:
        """Test the inline sequence in main.sql stays after the included views."""
        document = IncludeResolver(fixture_root).resolve(fixture_root / "main.sql")

        last = document.fragments[-1]
        assert last.text == "CREATE SEQUENCE inline_test_seq START WITH 5000;"
        assert last.source_path.name == "main.sql"
        assert document.text.index("CREATE VIEW order_details") < document.text.index("inline_test_seq")

    def test_no_directives_remain(self, fixture_root: Path) -> None:
        """Test every \\i line was replaced."""
        text = resolve_file(fixture_root / "main.sql")

        assert not any(line.lstrip().startswith("\\i ") for line in text.split("\n"))

    def test_missing_included_file(self, fixture_root: Path, tmp_path: Path) -> None:
        """Test removing one included file breaks the run at its directive."""
        root = tmp_path / "schema"
        shutil.copytree(fixture_root, root)
        (root / "tables" / "orders.sql").unlink()

        with pytest.raises(IncludeFileNotFoundError) as exc_info:
            IncludeResolver(root).resolve(root / "main.sql")

        frame = exc_info.value.breadcrumb[0]
        assert frame.path.name == "main.sql"
        assert frame.directive_text == "\\i tables/orders.sql"
        assert (root / "main.sql").read_text().split("\n")[frame.line - 1] == "\\i tables/orders.sql"
