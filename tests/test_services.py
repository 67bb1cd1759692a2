"""Tests for the inventory services used directly, without the HTTP layer."""
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.exceptions import (
    ConflictError,
    EmptyDatasetError,
    ImportAbortedError,
    NoChangeError,
    NotFoundError,
    StoreError,
    TransientIOError,
    ValidationError,
)
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.export_service import ExportSerializer
from app.services.import_service import ImportReconciler, parse_csv
from app.services.product_service import ProductService
from app.services.store import SQLInventoryStore


def _row(name, category="Misc", brand="Acme", price="1", stock="1", image=""):
    return {
        "name": name,
        "category": category,
        "brand": brand,
        "price": price,
        "stock": stock,
        "image": image,
    }


def test_create_returns_unique_ids(db_session):
    """Test every created product gets its own ID."""
    service = ProductService(db_session)

    ids = {
        service.create(ProductCreate(name=f"Item {i}", category="Misc", price=1)).id
        for i in range(5)
    }

    assert len(ids) == 5


def test_create_requires_price(db_session):
    """Test price is required on create."""
    service = ProductService(db_session)

    with pytest.raises(ValidationError):
        service.create(ProductCreate(name="Item", category="Misc"))


def test_update_zero_rows_raises_no_change(db_session):
    """Test an update that touches no row raises NoChangeError."""
    service = ProductService(db_session)
    product = service.create(ProductCreate(name="Item", category="Misc", price=1, stock=1))

    with patch.object(SQLInventoryStore, "update", return_value=0):
        with pytest.raises(NoChangeError):
            service.update(
                product.id,
                ProductUpdate(name="Item", category="Misc", price=1, stock=2)
            )

    assert service.get_history(product.id) == []


def test_update_records_actor(db_session):
    """Test a named actor is stored on the history record."""
    service = ProductService(db_session)
    product = service.create(ProductCreate(name="Item", category="Misc", price=1, stock=1))

    service.update(
        product.id,
        ProductUpdate(name="Item", category="Misc", price=1, stock=5),
        actor="warehouse-bot"
    )

    history = service.get_history(product.id)
    assert len(history) == 1
    assert history[0].user_info == "warehouse-bot"


def test_delete_is_irreversible(db_session):
    """Test a deleted product can't be deleted or fetched again."""
    service = ProductService(db_session)
    product = service.create(ProductCreate(name="Item", category="Misc", price=1))

    assert service.delete(product.id) == product.id

    with pytest.raises(NotFoundError):
        service.get(product.id)
    with pytest.raises(NotFoundError):
        service.delete(product.id)


def test_store_translates_operational_error(db_session):
    """Test a lost connection surfaces as TransientIOError."""
    store = SQLInventoryStore(db_session)

    with patch.object(
        db_session, "query",
        side_effect=OperationalError("SELECT", {}, Exception("connection lost"))
    ):
        with pytest.raises(TransientIOError):
            store.get_by_name("anything")


def test_reconcile_sees_rows_added_earlier(db_session):
    """Test duplicate detection covers rows added earlier in the same batch."""
    reconciler = ImportReconciler(db_session)

    report = reconciler.reconcile([_row("A"), _row("B"), _row("A", brand="Other")])

    assert report.added == 2
    assert report.skipped == 1
    assert report.duplicates == ["A"]


def test_reconcile_absorbs_row_conflict(db_session):
    """Test a conflict on one row is reported and the batch continues."""
    reconciler = ImportReconciler(db_session)
    original_insert = SQLInventoryStore.insert
    calls = []

    def flaky_insert(self, product):
        calls.append(product.name)
        if product.name == "B":
            raise ConflictError("A product with this name already exists")
        return original_insert(self, product)

    with patch.object(SQLInventoryStore, "insert", flaky_insert):
        report = reconciler.reconcile([_row("A"), _row("B"), _row("C")])

    assert calls == ["A", "B", "C"]
    assert report.added == 2
    assert len(report.invalid) == 1
    assert report.invalid[0].row["name"] == "B"
    assert report.aborted is False


def test_reconcile_aborts_on_transient_error(db_session):
    """Test a lost database stops the batch and keeps the partial report."""
    reconciler = ImportReconciler(db_session)
    original_get_by_name = SQLInventoryStore.get_by_name

    def failing_lookup(self, name):
        if name == "C":
            raise TransientIOError("Database unavailable")
        return original_get_by_name(self, name)

    with patch.object(SQLInventoryStore, "get_by_name", failing_lookup):
        with pytest.raises(ImportAbortedError) as exc_info:
            reconciler.reconcile([_row("A"), _row("B"), _row("C"), _row("D")])

    report = exc_info.value.report
    assert report.aborted is True
    assert report.added == 2
    assert db_session.query(Product).count() == 2


def test_reconcile_invalid_rows_leave_store_untouched(db_session):
    """Test rows missing required fields never reach the store."""
    reconciler = ImportReconciler(db_session)

    with patch.object(SQLInventoryStore, "get_by_name") as lookup:
        report = reconciler.reconcile([_row(""), _row("X", stock=" "), _row("Y", brand=None)])

    lookup.assert_not_called()
    assert len(report.invalid) == 3
    assert report.added == 0


def test_parse_csv_handles_bom_and_header_spacing():
    """Test a byte-order mark and padded header names are tolerated."""
    content = "\ufeffname, category ,brand,price,stock\nGlue,Office,Pritt,2,30\n".encode("utf-8")

    rows = list(parse_csv(content))

    assert rows == [{"name": "Glue", "category": "Office", "brand": "Pritt", "price": "2", "stock": "30"}]


def test_parse_csv_rejects_binary():
    """Test non-UTF-8 content is rejected."""
    with pytest.raises(ValidationError):
        parse_csv(b"\xff\xfe\x00\x00garbage")


def test_export_empty_raises():
    """Test exporting nothing raises EmptyDatasetError."""
    with pytest.raises(EmptyDatasetError):
        ExportSerializer().to_csv([])


def test_export_rows_keep_column_order():
    """Test rows are flattened in the fixed export column order."""
    product = Product(
        id=7, name="Glue", category="Office", brand="Pritt", price=2, stock=30, image="img"
    )

    rows = ExportSerializer().to_rows([product])

    assert list(rows[0].keys()) == ["id", "name", "category", "brand", "price", "stock", "image"]
    assert rows[0]["name"] == "Glue"


def test_reconcile_rejects_oversized_numbers(db_session):
    """Test values too large for an INTEGER column are invalid rows, not batch failures."""
    reconciler = ImportReconciler(db_session)

    report = reconciler.reconcile([
        _row("Big", price="99999999999999999999"),
        _row("Huge", stock="99999999999999999999"),
        _row("Small"),
    ])

    assert [e.reason for e in report.invalid] == ["invalid price", "invalid stock"]
    assert report.added == 1
    assert db_session.query(Product).one().name == "Small"


def test_create_rejects_oversized_price(db_session):
    """Test create refuses a price that doesn't fit the database."""
    service = ProductService(db_session)

    with pytest.raises(ValidationError):
        service.create(ProductCreate(name="Big", category="Misc", price="99999999999999999999"))


def test_store_overflow_becomes_store_error(db_session):
    """Test a driver overflow is translated and the session stays usable."""
    store = SQLInventoryStore(db_session)

    with pytest.raises(StoreError):
        store.insert(Product(name="Big", category="Misc", brand="", price=10 ** 20, stock=0))

    assert store.get_by_name("Big") is None


def test_store_check_violation_is_validation_error(db_session):
    """Test a check constraint failure isn't reported as a name conflict."""
    store = SQLInventoryStore(db_session)

    with pytest.raises(ValidationError):
        store.insert(Product(name="Negative", category="Misc", brand="", price=-1, stock=0))

    assert store.list_all() == []


def test_store_unique_violation_is_conflict(db_session):
    """Test inserting a taken name raises ConflictError."""
    store = SQLInventoryStore(db_session)
    store.insert(Product(name="Glue", category="Office", brand="", price=1, stock=1))

    with pytest.raises(ConflictError):
        store.insert(Product(name="Glue", category="Office", brand="", price=2, stock=2))
