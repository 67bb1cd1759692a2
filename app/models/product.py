from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint
from sqlalchemy.sql import func

from app.database import Base


class Product(Base):
    """
    Product model representing one inventory item.

    Attributes:
        id: Unique identifier for the product
        name: Product name (unique across all products)
        category: Product category
        brand: Brand name, may be empty
        price: Whole-unit price (must be non-negative)
        stock: Quantity on hand (must be non-negative)
        image: Image URI, placeholder when none was supplied
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    category = Column(String(255), nullable=False)
    brand = Column(String(255), nullable=False, default="")
    price = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    image = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Database-level constraints to ensure data integrity
    __table_args__ = (
        CheckConstraint('price >= 0', name='check_price_non_negative'),
        CheckConstraint('stock >= 0', name='check_stock_non_negative'),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"
