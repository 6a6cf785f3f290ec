"""
Unit Tests - Exports
"""
from datetime import date
from decimal import Decimal
from io import BytesIO

import pytest
from openpyxl import load_workbook

from crm.export import (
    CustomerPurchases,
    DataExporter,
    EmptyExportError,
    ExportFormat,
    collect_customers,
    customers_frame,
    products_frame,
    report_frame,
    to_csv_bytes,
)
from crm.reporting import CustomerRecord, ProductRecord


@pytest.fixture
def exporter() -> DataExporter:
    return DataExporter(today=date(2025, 3, 14))


@pytest.fixture
def customer_purchases(sample_customers, sample_products):
    jane, john = sample_customers[1], sample_customers[0]
    return [
        CustomerPurchases(customer=john, products=sample_products[:2]),
        CustomerPurchases(customer=jane, products=[]),
    ]


class TestFrames:
    """Tests for the tabular views"""

    def test_products_frame(self, sample_products):
        df = products_frame(sample_products, "14/03/2025")

        assert df.columns == ["No.", "Product ID", "Product Name", "Price", "Export Date"]
        assert df["No."].to_list() == [1, 2, 3]
        assert df["Price"].to_list() == ["10.00", "20.00", "150.50"]

    def test_customers_frame(self, customer_purchases):
        df = customers_frame(customer_purchases, "14/03/2025")

        assert df["Purchased Products"].to_list() == [2, 0]
        assert df["Product List"].to_list() == ["Wireless Mouse; Cookbook", "None"]
        assert df["Total Spent"].to_list() == ["30.00", "0.00"]

    def test_report_frame(self, sample_products, customer_purchases):
        df = report_frame(sample_products, customer_purchases, "14/03/2025")

        assert df["Type"].to_list() == ["SUMMARY", "SUMMARY", "PRODUCT", "PRODUCT", "PRODUCT", "CUSTOMER", "CUSTOMER"]
        assert df["Quantity"].to_list()[:2] == [3, 2]

    def test_missing_price_exported_blank(self):
        df = products_frame([ProductRecord(id="p1", name="Sample", price=None)])

        assert df["Price"].to_list() == [""]


class TestCsv:
    def test_bom_prefix(self, sample_products):
        content = to_csv_bytes(products_frame(sample_products))

        assert content.startswith(b"\xef\xbb\xbf")
        assert b"Wireless Mouse" in content

    def test_without_bom(self, sample_products):
        content = to_csv_bytes(products_frame(sample_products), bom=False)

        assert content.startswith(b"No.,Product ID")


class TestDataExporter:
    """Tests for export files"""

    def test_products_csv(self, exporter, sample_products):
        export = exporter.export_products(sample_products, ExportFormat.CSV)

        assert export.filename == "products_2025-03-14.csv"
        assert export.media_type.startswith("text/csv")
        assert "14/03/2025" in export.content.decode("utf-8-sig")

    def test_customers_xlsx(self, exporter, customer_purchases):
        export = exporter.export_customers(customer_purchases, ExportFormat.XLSX)

        workbook = load_workbook(BytesIO(export.content))
        sheet = workbook["Customers"]

        assert export.filename == "customers_2025-03-14.xlsx"
        assert sheet["B1"].value == "Customer ID"
        assert sheet.max_row == 3
        assert sheet.column_dimensions["A"].width >= 15

    def test_report_xlsx_sheets(self, exporter, sample_products, customer_purchases):
        export = exporter.export_report(sample_products, customer_purchases, ExportFormat.XLSX)

        workbook = load_workbook(BytesIO(export.content))

        assert workbook.sheetnames == ["Products", "Customers", "Summary"]
        assert workbook["Summary"]["B4"].value == "30.00"

    def test_report_csv(self, exporter, sample_products, customer_purchases):
        export = exporter.export_report(sample_products, customer_purchases, ExportFormat.CSV)

        assert export.filename == "report_2025-03-14.csv"
        assert "SUMMARY" in export.content.decode("utf-8-sig")

    def test_empty_exports_rejected(self, exporter):
        with pytest.raises(EmptyExportError):
            exporter.export_products([], ExportFormat.CSV)
        with pytest.raises(EmptyExportError):
            exporter.export_customers([], ExportFormat.XLSX)
        with pytest.raises(EmptyExportError):
            exporter.export_report([], [], ExportFormat.CSV)


def test_collect_customers_reads_links():
    class Link:
        def __init__(self, product):
            self.product = product

    class Row:
        id = "c1"
        name = "Jane"
        email = "jane@example.com"
        purchases = [Link({"id": "p1", "name": "Mouse", "price": "10"})]

    entries = collect_customers([Row()])

    assert entries[0].customer == CustomerRecord(id="c1", name="Jane", email="jane@example.com")
    assert entries[0].total_spent == Decimal("10")
