"""
Catalog Export

Builds tabular views of the catalogs with Polars and serialises them as
CSV (UTF-8, optional BOM so spreadsheet tools detect the encoding) or as
Excel workbooks written with openpyxl.

Exports:
- products: one row per product
- customers: one row per customer with purchase totals
- report: summary rows followed by every product and customer
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from io import BytesIO
from typing import Any, Dict, Iterable, List, Optional, Sequence

import polars as pl
import structlog
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from crm.reporting.records import CustomerRecord, ProductRecord, parse_customer, parse_product

logger = structlog.get_logger(__name__)

MIN_COLUMN_WIDTH = 15
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"


class EmptyExportError(Exception):
    """Nothing to export"""


@dataclass
class CustomerPurchases:
    """A customer together with the products linked to it"""
    customer: CustomerRecord
    products: List[ProductRecord] = field(default_factory=list)

    @property
    def total_spent(self) -> Decimal:
        return sum((p.price for p in self.products if p.price is not None), Decimal(0))


@dataclass
class ExportFile:
    filename: str
    content: bytes
    media_type: str


def collect_products(rows: Iterable[Any]) -> List[ProductRecord]:
    """Parse catalog rows (ORM objects or mappings) into product records."""
    return [record for record in map(parse_product, rows) if record is not None]


def collect_customers(rows: Iterable[Any]) -> List[CustomerPurchases]:
    """Parse customers along with the products on their ``purchases`` links."""
    entries = []
    for row in rows:
        customer = parse_customer(row)
        if customer is None:
            continue
        links = getattr(row, "purchases", None) or []
        products = collect_products(link.product for link in links)
        entries.append(CustomerPurchases(customer=customer, products=products))
    return entries


def _money(value: Optional[Decimal]) -> str:
    return f"{value:.2f}" if value is not None else ""


# =============================================================================
# FRAMES
# =============================================================================

def products_frame(
    products: Sequence[ProductRecord],
    export_date: Optional[str] = None,
) -> pl.DataFrame:
    rows = []
    for index, product in enumerate(products, start=1):
        row = {
            "No.": index,
            "Product ID": product.id,
            "Product Name": product.name,
            "Price": _money(product.price),
        }
        if export_date is not None:
            row["Export Date"] = export_date
        rows.append(row)
    return pl.DataFrame(rows)


def customers_frame(
    customers: Sequence[CustomerPurchases],
    export_date: Optional[str] = None,
    include_product_list: bool = True,
) -> pl.DataFrame:
    rows = []
    for index, entry in enumerate(customers, start=1):
        row = {
            "No.": index,
            "Customer ID": entry.customer.id,
            "Customer Name": entry.customer.name,
            "Email": entry.customer.email,
            "Purchased Products": len(entry.products),
        }
        if include_product_list:
            row["Product List"] = "; ".join(p.name for p in entry.products) or "None"
        row["Total Spent"] = _money(entry.total_spent)
        if export_date is not None:
            row["Export Date"] = export_date
        rows.append(row)
    return pl.DataFrame(rows)


def report_frame(
    products: Sequence[ProductRecord],
    customers: Sequence[CustomerPurchases],
    export_date: str,
) -> pl.DataFrame:
    """Flat report: two SUMMARY rows, then PRODUCT and CUSTOMER rows."""
    rows = [
        {"Type": "SUMMARY", "Description": "Total Products", "Quantity": len(products), "Value": "", "Date": export_date},
        {"Type": "SUMMARY", "Description": "Total Customers", "Quantity": len(customers), "Value": "", "Date": export_date},
    ]
    for product in products:
        rows.append({
            "Type": "PRODUCT",
            "Description": product.name,
            "Quantity": 1,
            "Value": _money(product.price),
            "Date": export_date,
        })
    for entry in customers:
        rows.append({
            "Type": "CUSTOMER",
            "Description": f"{entry.customer.name} ({entry.customer.email})",
            "Quantity": len(entry.products),
            "Value": _money(entry.total_spent),
            "Date": export_date,
        })
    return pl.DataFrame(rows)


def summary_frame(
    products: Sequence[ProductRecord],
    customers: Sequence[CustomerPurchases],
) -> pl.DataFrame:
    revenue = sum((entry.total_spent for entry in customers), Decimal(0))
    return pl.DataFrame({
        "Metric": ["Total Products", "Total Customers", "Total Revenue"],
        "Value": [str(len(products)), str(len(customers)), _money(revenue)],
    })


# =============================================================================
# SERIALISATION
# =============================================================================

def to_csv_bytes(df: pl.DataFrame, bom: bool = True) -> bytes:
    text = df.write_csv()
    return (("\ufeff" if bom else "") + text).encode("utf-8")


def to_xlsx_bytes(sheets: Dict[str, pl.DataFrame]) -> bytes:
    """Write one worksheet per frame, bold header, columns at least 15 wide."""
    workbook = Workbook()
    workbook.remove(workbook.active)

    for title, df in sheets.items():
        sheet = workbook.create_sheet(title=title[:31])
        sheet.append(df.columns)
        for cell in sheet[1]:
            cell.font = Font(bold=True)
        for row in df.iter_rows():
            sheet.append(list(row))
        for index, column in enumerate(df.columns, start=1):
            sheet.column_dimensions[get_column_letter(index)].width = max(len(column), MIN_COLUMN_WIDTH)

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def default_filename(kind: str, fmt: ExportFormat, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{kind}_{today.isoformat()}.{fmt.value}"


class DataExporter:
    """
    Produces downloadable exports of the catalogs.

    Example:
        exporter = DataExporter()
        export = exporter.export_products(products, ExportFormat.CSV)
        export.filename, export.content
    """

    def __init__(
        self,
        date_format: str = "%d/%m/%Y",
        csv_bom: bool = True,
        today: Optional[date] = None,
    ):
        self.date_format = date_format
        self.csv_bom = csv_bom
        self.today = today

    @property
    def _today(self) -> date:
        return self.today or date.today()

    @property
    def _export_date(self) -> str:
        return self._today.strftime(self.date_format)

    def _file(self, kind: str, fmt: ExportFormat, sheets: Dict[str, pl.DataFrame]) -> ExportFile:
        if fmt is ExportFormat.CSV:
            # CSV holds a single table: the first sheet
            content = to_csv_bytes(next(iter(sheets.values())), bom=self.csv_bom)
            media_type = CSV_MEDIA_TYPE
        else:
            content = to_xlsx_bytes(sheets)
            media_type = XLSX_MEDIA_TYPE

        filename = default_filename(kind, fmt, self._today)
        logger.info("Export generated", kind=kind, format=fmt.value, bytes=len(content))
        return ExportFile(filename=filename, content=content, media_type=media_type)

    def export_products(self, products: Sequence[ProductRecord], fmt: ExportFormat) -> ExportFile:
        if not products:
            raise EmptyExportError("No products available to export")
        frame = products_frame(products, self._export_date)
        return self._file("products", fmt, {"Products": frame})

    def export_customers(self, customers: Sequence[CustomerPurchases], fmt: ExportFormat) -> ExportFile:
        if not customers:
            raise EmptyExportError("No customers available to export")
        frame = customers_frame(customers, self._export_date)
        return self._file("customers", fmt, {"Customers": frame})

    def export_report(
        self,
        products: Sequence[ProductRecord],
        customers: Sequence[CustomerPurchases],
        fmt: ExportFormat,
    ) -> ExportFile:
        if not products and not customers:
            raise EmptyExportError("No data available to export")

        if fmt is ExportFormat.CSV:
            sheets = {"Report": report_frame(products, customers, self._export_date)}
        else:
            sheets = {}
            if products:
                sheets["Products"] = products_frame(products)
            if customers:
                sheets["Customers"] = customers_frame(customers, include_product_list=False)
            sheets["Summary"] = summary_frame(products, customers)
        return self._file("report", fmt, sheets)
