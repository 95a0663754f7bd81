"""
Unit tests for header row detection and column matching.
"""
import pytest

from core.errors import InputShapeError
from ingest.header_detector import detect_header_row, match_columns


class TestMatchColumns:
    """Tests for match_columns."""

    def test_portuguese_headers(self):
        """Standard Portuguese headers map every field."""
        mapping = match_columns(["Código", "Descrição", "Qtd", "Preço Unit"])

        assert mapping.code == 0
        assert mapping.description == 1
        assert mapping.quantity == 2
        assert mapping.unit_value == 3

    def test_unrecognized_headers_unmapped(self):
        mapping = match_columns(["Alpha", "Beta", "Gamma"])

        assert mapping.code is None
        assert mapping.description is None
        assert mapping.quantity is None
        assert mapping.unit_value is None

    def test_case_insensitive_and_reordered(self):
        mapping = match_columns(["STOCK", "PREÇO", "DESIGNAÇÃO", "REF"])

        assert mapping.code == 3
        assert mapping.description == 2
        assert mapping.quantity == 0
        assert mapping.unit_value == 1

    def test_first_matching_column_wins(self):
        mapping = match_columns(["Ref", "SKU", "Nome"])

        assert mapping.code == 0
        assert mapping.description == 2

    def test_header_claimed_once(self):
        """A header matched by an earlier field is not reused."""
        mapping = match_columns(["Código produto"])

        assert mapping.code == 0
        assert mapping.description is None

    def test_partial_mapping(self):
        mapping = match_columns(["Artigo", "Observações"])

        assert mapping.code == 0
        assert mapping.description is None
        assert mapping.quantity is None
        assert mapping.unit_value is None

    def test_as_dict(self):
        mapping = match_columns(["Código", "Qtd"])

        assert mapping.as_dict() == {
            "code": 0,
            "description": None,
            "quantity": 1,
            "unit_value": None,
        }


class TestDetectHeaderRow:
    """Tests for detect_header_row."""

    def test_title_row_skipped(self, sample_grid):
        detection = detect_header_row(sample_grid)

        assert detection.header_index == 1
        assert detection.headers == ["Código", "Descrição", "Qtd", "Preço Unit"]
        assert len(detection.rows) == 2
        assert detection.rows[0][0] == "A-001"

    def test_tie_keeps_earliest_row(self):
        grid = [
            ["a", "b", ""],
            ["c", "d", ""],
        ]
        detection = detect_header_row(grid)

        assert detection.header_index == 0
        assert detection.rows == [["c", "d", ""]]

    def test_only_scan_window_considered(self):
        """A wider row past the scan window is not picked."""
        grid = [["title"]] + [["x", ""] for _ in range(24)] + [["a", "b", "c", "d"]]
        detection = detect_header_row(grid, scan_rows=20)

        assert detection.header_index == 0

    def test_blank_header_cells_named(self):
        grid = [["Código", "", "Qtd", "Preço"], ["A", "B", "1", ""]]
        detection = detect_header_row(grid)

        assert detection.header_index == 0
        assert detection.headers == ["Código", "Column 2", "Qtd", "Preço"]

    def test_empty_grid_raises(self):
        with pytest.raises(InputShapeError):
            detect_header_row([])

    def test_all_blank_rows_raise(self):
        with pytest.raises(InputShapeError):
            detect_header_row([["", None], ["  "]])
