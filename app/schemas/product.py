from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional, Union

# Largest value a signed 64-bit INTEGER column holds
MAX_QUANTITY = 2 ** 63 - 1


class ProductCreate(BaseModel):
    """
    Schema for creating a new product.

    Fields arrive from a multipart form, so values are loosely typed and
    validated by the service layer.
    """
    name: Optional[str] = Field(None, description="Product name (required)")
    category: Optional[str] = Field(None, description="Product category (required)")
    brand: Optional[str] = Field(None, description="Brand name")
    price: Optional[Union[int, str]] = Field(None, description="Price (required)")
    stock: Optional[Union[int, str]] = Field(None, description="Initial stock (defaults to 0)")


class ProductUpdate(BaseModel):
    """Schema for replacing a product's editable fields. Image is not editable here."""
    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    category: str = Field(..., min_length=1, max_length=255, description="Product category")
    brand: str = Field("", max_length=255, description="Brand name")
    price: int = Field(..., ge=0, le=MAX_QUANTITY, description="Product price (must be non-negative)")
    stock: int = Field(..., ge=0, le=MAX_QUANTITY, description="Available stock (must be non-negative)")


class ProductResponse(BaseModel):
    """Schema for product response including all fields."""
    id: int
    name: str
    category: str
    brand: str
    price: int
    stock: int
    image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProductListResponse(BaseModel):
    """Schema for product list response."""
    items: list[ProductResponse]
    total: int


class ProductDeleteResponse(BaseModel):
    message: str
    id: int


class InventoryHistoryResponse(BaseModel):
    """Schema for a single stock change record."""
    id: int
    product_id: int
    old_quantity: int
    new_quantity: int
    change_date: datetime
    user_info: str

    model_config = ConfigDict(from_attributes=True)


class InventoryHistoryListResponse(BaseModel):
    history: list[InventoryHistoryResponse]
