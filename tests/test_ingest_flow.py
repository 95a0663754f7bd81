"""
Integration tests for the import pipeline (spreadsheet and document paths).
"""
import json
import logging

import pytest

from core.errors import DocumentExtractionError, InputShapeError
from core.store import InventoryStore
from ingest.pipeline import commit_spreadsheet, import_document, prepare_spreadsheet
from ingest.types import ColumnMapping
from tests.mocks import create_mock_openai_client


class TestSpreadsheetFlow:

    def test_preview_does_not_touch_store(self, store, sample_csv_content):
        preview = prepare_spreadsheet(sample_csv_content, "stock.csv")

        assert preview.header_index == 1
        assert preview.headers == ["Código", "Descrição", "Qtd", "Preço Unit"]
        assert preview.suggested_mapping.as_dict() == {
            "code": 0, "description": 1, "quantity": 2, "unit_value": 3,
        }
        assert preview.to_dict()["total_rows"] == 2
        assert len(store) == 0

    def test_preview_reports_detection(self, sample_csv_content):
        detection = prepare_spreadsheet(sample_csv_content, "stock.csv").to_dict()["detection"]

        assert detection["separator"] == ";"
        assert detection["rows"] == 4

    def test_commit_logs_error_reasons(self, store, sample_csv_content, caplog):
        preview = prepare_spreadsheet(sample_csv_content, "stock.csv")

        with caplog.at_level(logging.INFO, logger="core.logger"):
            commit_spreadsheet(store, preview, ColumnMapping(description=1))

        event = json.loads(caplog.records[-1].getMessage())
        assert event["rows_imported"] == 2
        assert event["rows_with_errors"] == 2
        assert event["error_reasons"] == {"product code is required": 2}

    def test_commit_with_suggested_mapping(self, store, sample_csv_content):
        preview = prepare_spreadsheet(sample_csv_content, "stock.csv")

        result = commit_spreadsheet(store, preview, preview.suggested_mapping)

        assert [p.code for p in store] == ["A-001", "A-002"]
        assert store.get(result.products[0].id).unit_value == pytest.approx(19.99)
        assert result.stats.sum_value == pytest.approx(252.40)
        assert all(p.source == "spreadsheet" for p in store)

    def test_commit_with_adjusted_mapping(self, store, sample_csv_content):
        preview = prepare_spreadsheet(sample_csv_content, "stock.csv")

        commit_spreadsheet(store, preview, ColumnMapping(code=0, quantity=2))

        product = store.products[0]
        assert product.description == "DESCRIPTION MISSING"
        assert product.errors == ["product description is required"]
        assert product.unit_value == 0

    def test_mapping_out_of_range(self, store, sample_csv_content):
        preview = prepare_spreadsheet(sample_csv_content, "stock.csv")

        with pytest.raises(InputShapeError):
            commit_spreadsheet(store, preview, ColumnMapping(code=9))

        assert len(store) == 0

    def test_document_rejected_as_spreadsheet(self):
        with pytest.raises(InputShapeError):
            prepare_spreadsheet(b"%PDF", "scan.pdf")

    def test_header_only_file(self, store):
        preview = prepare_spreadsheet("Código;Descrição\n".encode("utf-8"), "empty.csv")

        result = commit_spreadsheet(store, preview, preview.suggested_mapping)

        assert result.products == []
        assert len(store) == 0


class TestDocumentFlow:

    @pytest.mark.asyncio
    async def test_document_import(self, store, ai_config):
        client = create_mock_openai_client("success")

        result = await import_document(store, b"%PDF", "stock.pdf", ai_config, client=client)

        assert len(result.products) == 2
        assert store.products[1].category == "P"
        assert all(p.source == "document" for p in store)
        assert result.stats.count == 2

    @pytest.mark.asyncio
    async def test_negative_quantity_flagged(self, store, ai_config):
        client = create_mock_openai_client("success", data=[
            {"code": "N1", "description": "Returned goods", "quantity": -3, "unitValue": 1},
        ])

        await import_document(store, b"%PDF", "stock.pdf", ai_config, client=client)

        assert store.products[0].errors == ["negative quantity"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", ["error", "malformed", "empty"])
    async def test_failure_leaves_store_unchanged(self, store, make_product, ai_config, mode):
        existing = make_product(code="KEEP")
        store.append([existing])
        client = create_mock_openai_client(mode)

        with pytest.raises(DocumentExtractionError):
            await import_document(store, b"%PDF", "stock.pdf", ai_config, client=client)

        assert store.products == [existing]

    @pytest.mark.asyncio
    async def test_bad_item_rejects_whole_batch(self, ai_config):
        store = InventoryStore()
        client = create_mock_openai_client("success", data=[{"code": "A"}, 42])

        with pytest.raises(DocumentExtractionError):
            await import_document(store, b"%PDF", "stock.pdf", ai_config, client=client)

        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_spreadsheet_rejected_as_document(self, store, ai_config):
        with pytest.raises(InputShapeError):
            await import_document(store, b"a;b", "stock.csv", ai_config)
