from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.exceptions import (
    EmptyDatasetError,
    ImportAbortedError,
    StoreError,
    TransientIOError,
    ValidationError,
)
from app.schemas.transfer import ImportReport
from app.services.export_service import ExportSerializer
from app.services.import_service import ImportReconciler, parse_csv
from app.services.product_service import ProductService

router = APIRouter(tags=["Import / Export"])


@router.get(
    "/export",
    summary="Export products as CSV",
    description="Download every product as a CSV file with columns id, name, category, brand, price, stock, image.",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}, 404: {"description": "No products to export"}}
)
def export_products(db: Session = Depends(get_db)):
    """Export all products to CSV."""
    try:
        products = ProductService(db).list()
        content = ExportSerializer().to_csv(products)
    except EmptyDatasetError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except TransientIOError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=product-export.csv"}
    )


@router.post(
    "/import",
    response_model=ImportReport,
    summary="Import products from CSV",
    description="""
    Add products from a CSV file with columns name, category, brand, price, stock
    and an optional image column.

    Existing products are never modified: a row whose name already exists is
    skipped and reported as a duplicate. Rows with missing or invalid values are
    reported and do not stop the import.
    """
)
def import_products(
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db)
):
    """
    Import products from an uploaded CSV file.

    Returns a report of added, skipped, duplicate and invalid rows. If the
    database becomes unavailable mid-import, responds 503 with the partial
    report.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    reconciler = ImportReconciler(db)

    try:
        rows = parse_csv(file.file.read())
        return reconciler.reconcile(rows)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ImportAbortedError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(e), "report": e.report.model_dump()}
        )
    except TransientIOError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
