"""
Unit tests for the CSV/XML stock export.
"""
from datetime import date

import pytest

from core.errors import ExportBlockedError
from core.stock_export import (
    CSV_BOM,
    build_export,
    escape_xml,
    format_csv_number,
    generate_inventory_csv,
    generate_inventory_xml,
    sanitize_csv_field,
)


class TestCsvHelpers:

    def test_sanitize_delimiter_and_quote(self):
        assert sanitize_csv_field('A;B"C') == "A B C"

    def test_sanitize_line_breaks(self):
        assert sanitize_csv_field("Line1\nLine2") == "Line1 Line2"
        assert sanitize_csv_field("a\r\nb\tc") == "a  b c"

    def test_sanitize_trims(self):
        assert sanitize_csv_field("  x;") == "x"
        assert sanitize_csv_field(None) == ""

    def test_number_format(self):
        assert format_csv_number(10) == "10,00"
        assert format_csv_number(19.99) == "19,99"
        assert format_csv_number(-1.5) == "-1,50"


class TestGenerateCsv:

    def test_header_and_bom(self, make_product):
        content = generate_inventory_csv([make_product()], valued=False)
        lines = content.split("\n")

        assert content.startswith(CSV_BOM)
        assert lines[0] == (
            CSV_BOM + "ProductCategory;ProductCode;ProductDescription;"
            "ProductNumberCode;ClosingStockQuantity;UnitOfMeasure"
        )

    def test_valued_row(self, make_product):
        content = generate_inventory_csv(
            [make_product(code="A-1", description="Parafuso", quantity=10, unit_value=19.99)],
            valued=True,
        )
        lines = content.split("\n")

        assert lines[0].endswith(";Value")
        assert lines[1] == "M;A-1;Parafuso;A-1;10,00;UN;19,99"

    def test_non_valued_row(self, make_product):
        content = generate_inventory_csv([make_product(code="A-1", description="Parafuso", quantity=2)], valued=False)

        assert content.split("\n")[1] == "M;A-1;Parafuso;A-1;2,00;UN"

    def test_fields_sanitized(self, make_product):
        product = make_product(code='A;B"C', description="Line1\nLine2")
        lines = generate_inventory_csv([product], valued=False).split("\n")

        assert len(lines) == 2
        fields = lines[1].split(";")
        assert fields[1] == "A B C"
        assert fields[2] == "Line1 Line2"
        assert fields[3] == "A B C"
        assert '"' not in lines[1]

    def test_csv_ignores_validation_errors(self, make_product):
        content = generate_inventory_csv([make_product(category="X")], valued=False)

        assert content.split("\n")[1].startswith("X;")


class TestGenerateXml:

    def test_escape(self):
        assert escape_xml('<Test & "quote">') == "&lt;Test &amp; &quot;quote&quot;&gt;"
        assert escape_xml("it's") == "it&apos;s"
        assert escape_xml(None) == ""

    def test_document_structure(self, make_product):
        product = make_product(code="A-1", description='<Test & "quote">', quantity=3, unit_value=4.5)
        xml = generate_inventory_xml([product], "123456789", 2024, valued=True, created=date(2024, 12, 31))

        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<StockFile')
        assert "<TaxRegistrationNumber>123456789</TaxRegistrationNumber>" in xml
        assert "<FiscalYear>2024</FiscalYear>" in xml
        assert "<DateCreated>2024-12-31</DateCreated>" in xml
        assert "<ProductDescription>&lt;Test &amp; &quot;quote&quot;&gt;</ProductDescription>" in xml
        assert "<ProductNumberCode>A-1</ProductNumberCode>" in xml
        assert "<ClosingStockQuantity>3.00</ClosingStockQuantity>" in xml
        assert "<Value>4.50</Value>" in xml
        assert xml.endswith("</StockFile>")

    def test_non_valued_writes_zero(self, make_product):
        xml = generate_inventory_xml([make_product(unit_value=9.99)], "1", 2024, valued=False)

        assert "<Value>0.00</Value>" in xml
        assert "9.99" not in xml

    def test_product_order_preserved(self, make_product):
        xml = generate_inventory_xml(
            [make_product(code="FIRST"), make_product(code="SECOND")], "1", 2024, valued=True
        )

        assert xml.index("FIRST") < xml.index("SECOND")
        assert xml.count("<ProductStock>") == 2


class TestBuildExport:

    def test_empty_store_blocked(self, store):
        with pytest.raises(ExportBlockedError):
            build_export(store, "csv", True, "1", 2024)
        with pytest.raises(ExportBlockedError):
            build_export(store, "xml", True, "1", 2024)

    def test_xml_blocked_by_errors(self, store, make_product):
        store.append([make_product(), make_product(code="")])

        with pytest.raises(ExportBlockedError):
            build_export(store, "xml", True, "1", 2024)

    def test_csv_allowed_with_errors(self, store, make_product):
        store.append([make_product(code="")])

        export = build_export(store, "csv", True, "1", 2024)

        assert export.mime_type == "text/csv"

    def test_xml_allowed_after_fix(self, store, make_product):
        product = make_product(code="")
        store.append([product])
        store.update(product.id, {"code": "FIXED"})

        export = build_export(store, "xml", False, "500000000", 2024, created=date(2024, 1, 2))

        assert export.filename == "Stock_500000000_2024.xml"
        assert export.mime_type == "application/xml"
        assert "<ProductCode>FIXED</ProductCode>" in export.content

    def test_filename_and_bytes(self, store, make_product):
        store.append([make_product()])

        export = build_export(store, ".CSV", False, "123", 2023)

        assert export.filename == "Stock_123_2023.csv"
        assert export.to_bytes().startswith(b"\xef\xbb\xbf")

    def test_unknown_format(self, store, make_product):
        store.append([make_product()])

        with pytest.raises(ValueError):
            build_export(store, "json", True, "1", 2024)
