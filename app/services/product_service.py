from sqlalchemy.orm import Session
from typing import Optional, List, Union
import logging

from app.config import get_settings
from app.exceptions import NotFoundError, NoChangeError, ValidationError
from app.models.inventory_history import InventoryHistory
from app.models.product import Product
from app.schemas.product import MAX_QUANTITY, ProductCreate, ProductUpdate
from app.services.audit_service import AuditRecorder
from app.services.store import InventoryStore, SQLInventoryStore
from app.utils.cache import cache_service

logger = logging.getLogger(__name__)

settings = get_settings()


def to_non_negative_int(value: Union[int, str]) -> int:
    """
    Coerce a form or CSV value to a non-negative integer.

    Raises:
        ValueError: If the value is not a whole number, is negative or
            doesn't fit in an INTEGER column
    """
    if isinstance(value, bool):
        raise ValueError(f"{value!r} is not an integer")
    if isinstance(value, str):
        value = int(value.strip())
    if not isinstance(value, int):
        raise ValueError(f"{value!r} is not an integer")
    if value < 0:
        raise ValueError(f"{value} is negative")
    if value > MAX_QUANTITY:
        raise ValueError(f"{value} is too large")
    return value


def is_blank(value) -> bool:
    """True for None or a string holding only whitespace."""
    return value is None or not str(value).strip()


class ProductService:
    """
    Service class for Product CRUD operations.

    This service handles:
    - Creating new products
    - Reading products (with caching)
    - Updating products, recording stock changes in the audit trail
    - Deleting products
    - Cache invalidation
    """

    CACHE_PREFIX = "product"

    def __init__(
        self,
        db: Optional[Session] = None,
        store: Optional[InventoryStore] = None,
        recorder: Optional[AuditRecorder] = None
    ):
        if store is None:
            store = SQLInventoryStore(db)
        self.store = store
        self.recorder = recorder or AuditRecorder(store)

    def create(self, product_data: ProductCreate, image_url: Optional[str] = None) -> Product:
        """
        Create a new product.

        Args:
            product_data: Product creation data
            image_url: URI of an uploaded image, placeholder used when absent

        Returns:
            Created product instance

        Raises:
            ValidationError: If name, category or price is missing or malformed
            ConflictError: If a product with the same name exists
        """
        if any(is_blank(v) for v in (product_data.name, product_data.category, product_data.price)):
            raise ValidationError("Name, Category, and Price are required")

        stock = 0 if is_blank(product_data.stock) else product_data.stock
        product = Product(
            name=product_data.name.strip(),
            category=product_data.category.strip(),
            brand=(product_data.brand or "").strip(),
            price=self._coerce("price", product_data.price),
            stock=self._coerce("stock", stock),
            image=image_url or settings.PLACEHOLDER_IMAGE_URL,
        )
        self.store.insert(product)
        logger.info(f"Created product #{product.id} '{product.name}'")
        return product

    def get(self, product_id: int) -> Product:
        """
        Get a product by ID.

        Raises:
            NotFoundError: If the product doesn't exist
        """
        product = self.store.get(product_id)
        if not product:
            raise NotFoundError(f"Product with ID {product_id} not found")
        return product

    def get_cached(self, product_id: int) -> dict:
        """
        Get product details from cache or database.

        Returns a dictionary (suitable for API response).

        Raises:
            NotFoundError: If the product doesn't exist
        """
        cached = cache_service.get(self.CACHE_PREFIX, str(product_id))
        if cached:
            return cached

        product = self.get(product_id)
        product_dict = self._to_dict(product)
        cache_service.set(self.CACHE_PREFIX, str(product_id), product_dict)
        return product_dict

    def list(self) -> List[Product]:
        """Get all products."""
        return self.store.list_all()

    def update(self, product_id: int, product_data: ProductUpdate, actor: Optional[str] = None) -> Product:
        """
        Replace a product's name, category, brand, price and stock.

        When stock changes, a history record is appended on a best-effort
        basis: if recording fails the update still succeeds.

        Args:
            product_id: ID of product to update
            product_data: Full set of editable fields
            actor: Who made the change, for the audit trail

        Returns:
            Updated product

        Raises:
            NotFoundError: If the product doesn't exist
            ValidationError: If a field is missing or malformed
            NoChangeError: If the store reports no row was updated
            ConflictError: If the new name is taken by another product
        """
        existing = self.store.get(product_id)
        if not existing:
            raise NotFoundError(f"Product with ID {product_id} not found")

        old_stock = existing.stock

        if is_blank(product_data.name) or is_blank(product_data.category):
            raise ValidationError("Name and Category are required")

        fields = {
            "name": product_data.name.strip(),
            "category": product_data.category.strip(),
            "brand": (product_data.brand or "").strip(),
            "price": self._coerce("price", product_data.price),
            "stock": self._coerce("stock", product_data.stock),
        }

        rows = self.store.update(product_id, fields)
        if rows == 0:
            raise NoChangeError("Product not updated or no change made")

        self._invalidate_cache(product_id)

        new_stock = fields["stock"]
        if old_stock != new_stock:
            try:
                self.recorder.record(product_id, old_stock, new_stock, actor)
            except Exception:
                # The update stands even when the audit trail can't be written
                logger.exception(f"Failed to record inventory history for product #{product_id}")

        return self.get(product_id)

    def delete(self, product_id: int) -> int:
        """
        Delete a product. Its history records are kept.

        Returns:
            ID of the deleted product

        Raises:
            NotFoundError: If no product was removed
        """
        rows = self.store.delete(product_id)
        if rows == 0:
            raise NotFoundError(f"Product with ID {product_id} not found")

        self._invalidate_cache(product_id)
        logger.info(f"Deleted product #{product_id}")
        return product_id

    def get_history(self, product_id: int) -> List[InventoryHistory]:
        """Get stock history for a product, newest first. Empty if none."""
        return self.recorder.list_for_product(product_id)

    @staticmethod
    def _coerce(field: str, value) -> int:
        try:
            return to_non_negative_int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field.capitalize()} must be a non-negative integer")

    @staticmethod
    def _to_dict(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "category": product.category,
            "brand": product.brand,
            "price": product.price,
            "stock": product.stock,
            "image": product.image,
            "created_at": product.created_at.isoformat() if product.created_at else None,
            "updated_at": product.updated_at.isoformat() if product.updated_at else None,
        }

    def _invalidate_cache(self, product_id: int) -> None:
        """Invalidate cache for a product."""
        cache_service.delete(self.CACHE_PREFIX, str(product_id))
