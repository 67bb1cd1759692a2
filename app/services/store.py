from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Optional, List
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from app.exceptions import ConflictError, StoreError, TransientIOError, ValidationError
from app.models.inventory_history import InventoryHistory
from app.models.product import Product

logger = logging.getLogger(__name__)


class InventoryStore(ABC):
    """
    Persistence port consumed by the inventory services.

    Every write is atomic on its own; no operation spans several
    statements.
    """

    @abstractmethod
    def get(self, product_id: int) -> Optional[Product]:
        ...

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[Product]:
        ...

    @abstractmethod
    def insert(self, product: Product) -> int:
        ...

    @abstractmethod
    def update(self, product_id: int, fields: dict) -> int:
        ...

    @abstractmethod
    def delete(self, product_id: int) -> int:
        ...

    @abstractmethod
    def list_all(self) -> List[Product]:
        ...

    @abstractmethod
    def append_history(self, record: InventoryHistory) -> int:
        ...

    @abstractmethod
    def list_history(self, product_id: int) -> List[InventoryHistory]:
        ...


class SQLInventoryStore(InventoryStore):
    """
    SQLAlchemy implementation of the persistence port.

    Each write commits immediately. Database errors are translated into
    the service error taxonomy and the session is rolled back so it stays
    usable for the next call:

    - IntegrityError -> ConflictError for the unique name, ValidationError
      for other constraints
    - OperationalError / InterfaceError -> TransientIOError
    - anything else from SQLAlchemy -> StoreError
    - OverflowError from the driver -> StoreError
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _translate_errors(self, action: str):
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity error while trying to {action}: {e.orig}")
            if "unique" in str(e.orig).lower():
                raise ConflictError("A product with this name already exists") from e
            raise ValidationError(f"Value rejected by the database: {e.orig}") from e
        except (OperationalError, InterfaceError) as e:
            self.db.rollback()
            logger.error(f"Database unavailable while trying to {action}: {e}")
            raise TransientIOError(f"Database unavailable: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error while trying to {action}: {e}")
            raise StoreError(f"Database error: {e}") from e
        except OverflowError as e:
            self.db.rollback()
            logger.error(f"Value out of range while trying to {action}: {e}")
            raise StoreError(f"Value out of range: {e}") from e

    def get(self, product_id: int) -> Optional[Product]:
        with self._translate_errors("read product"):
            return self.db.query(Product).filter(Product.id == product_id).first()

    def get_by_name(self, name: str) -> Optional[Product]:
        with self._translate_errors("look up product by name"):
            return self.db.query(Product).filter(Product.name == name).first()

    def insert(self, product: Product) -> int:
        with self._translate_errors("insert product"):
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
            return product.id

    def update(self, product_id: int, fields: dict) -> int:
        with self._translate_errors("update product"):
            rows = (
                self.db.query(Product)
                .filter(Product.id == product_id)
                .update(fields, synchronize_session="fetch")
            )
            self.db.commit()
            return rows

    def delete(self, product_id: int) -> int:
        with self._translate_errors("delete product"):
            rows = (
                self.db.query(Product)
                .filter(Product.id == product_id)
                .delete(synchronize_session="fetch")
            )
            self.db.commit()
            return rows

    def list_all(self) -> List[Product]:
        with self._translate_errors("list products"):
            return self.db.query(Product).order_by(Product.id).all()

    def append_history(self, record: InventoryHistory) -> int:
        with self._translate_errors("append inventory history"):
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
            return record.id

    def list_history(self, product_id: int) -> List[InventoryHistory]:
        with self._translate_errors("list inventory history"):
            return (
                self.db.query(InventoryHistory)
                .filter(InventoryHistory.product_id == product_id)
                .order_by(InventoryHistory.change_date.desc(), InventoryHistory.id.desc())
                .all()
            )
