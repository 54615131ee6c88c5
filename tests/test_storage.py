import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from opnameapp import create_app
from opnameapp.exceptions import StorageError
from opnameapp.extensions import db
from opnameapp.models import Location, Product, StockCount
from opnameapp.services.storage import CatalogRecord, SQLAlchemyCountStore


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "LOG_TO_FILE": False,
        }
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def store(app):
    return SQLAlchemyCountStore()


@pytest.fixture
def portable_store(store, monkeypatch):
    """Store forced onto the path used by dialects without ON CONFLICT."""
    monkeypatch.setattr(store, "_dialect_insert", lambda: None)
    return store


def test_upsert_products_inserts_and_updates(store):
    assert store.upsert_products([CatalogRecord("A", "Beras", "KG", 13000)]) == 1
    assert store.upsert_products(
        [CatalogRecord("A", "Beras Premium", "KG", 15000), CatalogRecord("B", "Garam", "PCS", 3000)]
    ) == 2

    product = store.find_product_by_barcode("A")
    assert product.product_name == "Beras Premium"
    assert product.selling_price == 15000
    assert Product.query.count() == 2


def test_upsert_products_without_conflict_clause(portable_store):
    portable_store.upsert_products([CatalogRecord("A", "Beras", "KG", 13000)])
    portable_store.upsert_products(
        [CatalogRecord("A", "Beras Premium", "KG", 15000), CatalogRecord("A", "Beras Super", "KG", 16000)]
    )

    product = portable_store.find_product_by_barcode("A")
    assert product.product_name == "Beras Super"
    assert product.selling_price == 16000
    assert Product.query.count() == 1


def test_upsert_products_ignores_empty_input(store):
    assert store.upsert_products([]) == 0


@pytest.mark.parametrize("store_fixture", ["store", "portable_store"])
def test_increment_stock_count_creates_then_adds(request, store_fixture):
    store = request.getfixturevalue(store_fixture)
    store.upsert_products([CatalogRecord("A", "Beras", "KG", 13000)])
    location = store.insert_location("Gudang", None, "Budi")
    product = store.find_product_by_barcode("A")

    first = store.increment_stock_count(location.id, product)
    second = store.increment_stock_count(location.id, product)
    third = store.increment_stock_count(location.id, product)

    assert first.id == second.id == third.id
    assert third.count == 3
    assert StockCount.query.count() == 1


def test_location_totals(store):
    store.upsert_products(
        [CatalogRecord("A", "Beras", "KG", 13000), CatalogRecord("B", "Garam", "PCS", 3000)]
    )
    gudang = store.insert_location("Gudang", None, None)
    toko = store.insert_location("Toko", None, None)
    for barcode in ("A", "A", "B"):
        store.increment_stock_count(gudang.id, store.find_product_by_barcode(barcode))

    totals = {entry.location.name: entry for entry in store.location_totals()}

    assert (totals["Gudang"].total_products, totals["Gudang"].total_items) == (2, 3)
    assert (totals["Toko"].total_products, totals["Toko"].total_items) == (0, 0)
    assert toko.id in {entry.location.id for entry in store.location_totals()}


def test_commit_failure_becomes_storage_error(store, monkeypatch):
    from sqlalchemy.exc import OperationalError

    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session, "commit", failing_commit)

    with pytest.raises(StorageError) as excinfo:
        store.insert_location("Gudang", None, None)

    assert excinfo.value.status_code == 500
    assert "disk I/O error" not in excinfo.value.to_dict()["error"]
    monkeypatch.undo()
    assert Location.query.count() == 0


def _seed_scanned_row(store):
    store.upsert_products([CatalogRecord("A", "Beras", "KG", 13000)])
    location = store.insert_location("Gudang", None, None)
    product = store.find_product_by_barcode("A")
    existing = store.create_stock_count(location.id, product)
    return location, product, existing


def test_increment_retries_when_row_is_created_concurrently(portable_store, monkeypatch):
    location, product, existing = _seed_scanned_row(portable_store)
    find_stock_count = portable_store.find_stock_count
    lookups = []

    def stale_first_lookup(location_id, barcode):
        # The first read misses the row another scan has already inserted.
        lookups.append(barcode)
        if len(lookups) == 1:
            return None
        return find_stock_count(location_id, barcode)

    monkeypatch.setattr(portable_store, "find_stock_count", stale_first_lookup)

    stock_count = portable_store.increment_stock_count(location.id, product)

    assert len(lookups) == 2
    assert stock_count.id == existing.id
    assert stock_count.count == 2
    assert StockCount.query.count() == 1


def test_increment_gives_up_after_repeated_conflicts(portable_store, monkeypatch):
    location, product, existing = _seed_scanned_row(portable_store)
    monkeypatch.setattr(portable_store, "find_stock_count", lambda location_id, barcode: None)

    with pytest.raises(StorageError):
        portable_store.increment_stock_count(location.id, product)

    assert StockCount.query.count() == 1
    assert db.session.get(StockCount, existing.id).count == 1
