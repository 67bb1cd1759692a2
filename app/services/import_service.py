from sqlalchemy.orm import Session
from typing import Iterable, Iterator, Optional
import csv
import io
import logging

from app.config import get_settings
from app.exceptions import (
    ImportAbortedError,
    InventoryError,
    TransientIOError,
    ValidationError,
)
from app.models.product import Product
from app.schemas.transfer import ImportReport, ImportRowError
from app.services.product_service import is_blank, to_non_negative_int
from app.services.store import InventoryStore, SQLInventoryStore

logger = logging.getLogger(__name__)

settings = get_settings()

REQUIRED_COLUMNS = ("name", "category", "brand", "price", "stock")
IMPORT_COLUMNS = REQUIRED_COLUMNS + ("image",)


def parse_csv(content: bytes) -> Iterator[dict]:
    """
    Parse an uploaded CSV file into rows keyed by column name.

    The header is checked up front; rows are then yielded lazily in file
    order. Columns other than the import columns are dropped.

    Raises:
        ValidationError: If the file isn't UTF-8 or the header lacks a
            required column
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("File must be UTF-8 encoded CSV")

    reader = csv.DictReader(io.StringIO(text))
    header = [name.strip() for name in (reader.fieldnames or [])]
    missing = [column for column in REQUIRED_COLUMNS if column not in header]
    if missing:
        raise ValidationError(f"CSV header is missing required columns: {', '.join(missing)}")
    reader.fieldnames = header

    def rows():
        try:
            for row in reader:
                yield {key: row.get(key) for key in IMPORT_COLUMNS if key in row}
        except csv.Error as e:
            raise ValidationError(f"Malformed CSV at line {reader.line_num}: {e}")

    return rows()


def clean_image(value: Optional[str]) -> str:
    """Strip whitespace and surrounding quotes; fall back to the placeholder."""
    image = (value or "").strip().strip("\"'").strip()
    return image or settings.PLACEHOLDER_IMAGE_URL


class ImportReconciler:
    """
    Merges imported rows into the inventory without touching existing products.

    Rows are handled one at a time, in order. Duplicate detection asks the
    store for every row, so a product added earlier in the same batch is
    seen by later rows with the same name. Names are matched exactly after
    trimming.
    """

    def __init__(self, db: Optional[Session] = None, store: Optional[InventoryStore] = None):
        self.store = store or SQLInventoryStore(db)

    def reconcile(self, rows: Iterable[dict]) -> ImportReport:
        """
        Import a sequence of rows.

        Args:
            rows: Mappings of column name to raw string value

        Returns:
            Report with added/skipped counts, duplicate names and rejected rows

        Raises:
            ImportAbortedError: If the store became unreachable; carries the
                partial report
        """
        report = ImportReport()

        for row_num, row in enumerate(rows, start=1):
            try:
                self._reconcile_row(row, report)
            except TransientIOError as e:
                report.aborted = True
                report.message = "Import aborted: database unavailable."
                logger.error(f"Import aborted at row {row_num}: {e}")
                raise ImportAbortedError(str(e), report) from e
            except InventoryError as e:
                logger.warning(f"Import row {row_num} failed: {e}")
                report.invalid.append(ImportRowError(row=row, reason=str(e)))

        logger.info(
            f"Import finished: {report.added} added, {report.skipped} skipped, "
            f"{len(report.invalid)} invalid"
        )
        return report

    def _reconcile_row(self, row: dict, report: ImportReport) -> None:
        if any(is_blank(row.get(column)) for column in REQUIRED_COLUMNS):
            report.invalid.append(ImportRowError(row=row, reason="missing required fields"))
            return

        try:
            price = to_non_negative_int(row["price"])
        except ValueError:
            report.invalid.append(ImportRowError(row=row, reason="invalid price"))
            return
        try:
            stock = to_non_negative_int(row["stock"])
        except ValueError:
            report.invalid.append(ImportRowError(row=row, reason="invalid stock"))
            return

        name = row["name"].strip()

        if self.store.get_by_name(name):
            report.skipped += 1
            report.duplicates.append(name)
            return

        self.store.insert(Product(
            name=name,
            category=row["category"].strip(),
            brand=row["brand"].strip(),
            price=price,
            stock=stock,
            image=clean_image(row.get("image")),
        ))
        report.added += 1
