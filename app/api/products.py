from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.exceptions import (
    ConflictError,
    ImageUploadError,
    NoChangeError,
    NotFoundError,
    StoreError,
    TransientIOError,
    ValidationError,
)
from app.services.image_service import ImageUploader, get_image_uploader
from app.services.product_service import ProductService
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    ProductDeleteResponse,
    InventoryHistoryListResponse,
    InventoryHistoryResponse,
)

router = APIRouter(prefix="/products", tags=["Products"])


@router.post(
    "/",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="Create a new product from a multipart form, optionally with an image file."
)
def create_product(
    name: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    brand: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    image_url: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    uploader: ImageUploader = Depends(get_image_uploader)
):
    """
    Create a new product.

    - **name**: Product name, must be unique (required)
    - **category**: Product category (required)
    - **price**: Whole-unit price, non-negative (required)
    - **brand**: Brand name (optional)
    - **stock**: Initial stock, non-negative (optional, defaults to 0)
    - **image**: Image file, uploaded to the image service (optional)
    - **image_url**: Existing image URL, used when no file is sent (optional)

    A placeholder image is used when neither image nor image_url is given.
    """
    service = ProductService(db)
    product_data = ProductCreate(
        name=name, category=category, brand=brand, price=price, stock=stock
    )

    try:
        if image is not None and image.filename:
            image_url = uploader.upload(image.file.read(), image.filename)
        return service.create(product_data, image_url=image_url or None)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ImageUploadError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except TransientIOError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get(
    "/",
    response_model=ProductListResponse,
    summary="List all products",
    description="Get every product in the inventory."
)
def list_products(db: Session = Depends(get_db)):
    """Get all products."""
    service = ProductService(db)

    try:
        products = service.list()
    except TransientIOError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        total=len(products)
    )


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product by ID",
    description="Get detailed information about a specific product. Results are cached in Redis."
)
def get_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """
    Get a product by ID.

    Cache TTL is 5 minutes by default; updates and deletes clear the entry.
    """
    service = ProductService(db)

    try:
        return service.get_cached(product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except TransientIOError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update a product",
    description="Replace name, category, brand, price and stock. Stock changes are recorded in the history."
)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: Session = Depends(get_db)
):
    """
    Update a product.

    All editable fields are replaced. The image is left untouched.
    """
    service = ProductService(db)

    try:
        return service.update(product_id, product_data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (ValidationError, NoChangeError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except TransientIOError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.delete(
    "/{product_id}",
    response_model=ProductDeleteResponse,
    summary="Delete a product",
    description="Delete a product by ID. Its stock history is kept."
)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """Delete a product."""
    service = ProductService(db)

    try:
        deleted_id = service.delete(product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except TransientIOError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return ProductDeleteResponse(message="Deleted successfully", id=deleted_id)


@router.get(
    "/{product_id}/history",
    response_model=InventoryHistoryListResponse,
    summary="Get stock history",
    description="Get all stock changes for a product, newest first."
)
def get_product_history(
    product_id: int,
    db: Session = Depends(get_db)
):
    """Get stock history. Returns an empty list for unknown products."""
    service = ProductService(db)

    try:
        records = service.get_history(product_id)
    except TransientIOError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return InventoryHistoryListResponse(
        history=[InventoryHistoryResponse.model_validate(r) for r in records]
    )
