from sqlalchemy import Column, Integer, String, DateTime

from app.database import Base


class InventoryHistory(Base):
    """
    Append-only record of a single stock quantity change.

    product_id is intentionally not a foreign key: rows outlive the
    product they describe.
    """
    __tablename__ = "inventory_history"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, nullable=False, index=True)
    old_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    change_date = Column(DateTime(timezone=True), nullable=False, index=True)
    user_info = Column(String(255), nullable=False)

    def __repr__(self):
        return (
            f"<InventoryHistory(id={self.id}, product_id={self.product_id}, "
            f"{self.old_quantity}->{self.new_quantity})>"
        )
