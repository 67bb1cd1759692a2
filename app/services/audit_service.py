from datetime import datetime, timezone
from typing import List, Optional
import logging

from app.config import get_settings
from app.models.inventory_history import InventoryHistory
from app.services.store import InventoryStore

logger = logging.getLogger(__name__)

settings = get_settings()


class AuditRecorder:
    """
    Appends immutable stock-change records.

    Records are never read back for modification. Callers treat a failed
    record() as non-fatal.
    """

    def __init__(self, store: InventoryStore):
        self.store = store

    def record(
        self,
        product_id: int,
        old_quantity: int,
        new_quantity: int,
        actor: Optional[str] = None
    ) -> InventoryHistory:
        """
        Append one history record stamped with the current UTC time.

        Args:
            product_id: Product whose stock changed
            old_quantity: Stock before the change
            new_quantity: Stock after the change
            actor: Who made the change (defaults to the configured actor)

        Returns:
            The stored history record
        """
        entry = InventoryHistory(
            product_id=product_id,
            old_quantity=old_quantity,
            new_quantity=new_quantity,
            change_date=datetime.now(timezone.utc),
            user_info=actor or settings.DEFAULT_ACTOR,
        )
        self.store.append_history(entry)
        logger.info(
            f"Recorded stock change for product #{product_id}: "
            f"{old_quantity} -> {new_quantity}"
        )
        return entry

    def list_for_product(self, product_id: int) -> List[InventoryHistory]:
        """Get history for a product, newest first."""
        return self.store.list_history(product_id)
