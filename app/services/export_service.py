from typing import List
import csv
import io

from app.exceptions import EmptyDatasetError
from app.models.product import Product

EXPORT_COLUMNS = ["id", "name", "category", "brand", "price", "stock", "image"]


class ExportSerializer:
    """Flattens products into fixed-column rows for CSV export."""

    def to_rows(self, products: List[Product]) -> List[dict]:
        if not products:
            raise EmptyDatasetError("No data found.")
        return [
            {column: getattr(product, column) for column in EXPORT_COLUMNS}
            for product in products
        ]

    def to_csv(self, products: List[Product]) -> str:
        """
        Serialize products to CSV text with a header row.

        Raises:
            EmptyDatasetError: If there are no products
        """
        rows = self.to_rows(products)

        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        writer.writerows(rows)
        return output.getvalue()
