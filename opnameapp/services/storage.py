"""Storage capability used by the stock count services.

The services only talk to a :class:`CountStore`. :class:`SQLAlchemyCountStore`
backs it with the Flask-SQLAlchemy session and relies on the
``(location_id, barcode)`` unique constraint for the find-or-create-then-
increment step of a scan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol

from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from opnameapp.exceptions import StorageError
from opnameapp.extensions import db
from opnameapp.models import Location, Product, StockCount, utcnow

logger = logging.getLogger(__name__)

UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}
MAX_INCREMENT_ATTEMPTS = 3
# Keeps multi-row VALUES under SQLite's bound-parameter limit.
UPSERT_CHUNK_SIZE = 500


@dataclass(frozen=True)
class CatalogRecord:
    barcode: str
    product_name: str
    uom: str
    selling_price: int


@dataclass(frozen=True)
class LocationTotals:
    location: Location
    total_products: int
    total_items: int


class CountStore(Protocol):
    def insert_location(
        self, name: str, description: str | None, pic_name: str | None
    ) -> Location: ...

    def get_location(self, location_id: int) -> Location | None: ...

    def list_locations(self) -> list[Location]: ...

    def location_totals(self) -> list[LocationTotals]: ...

    def upsert_products(self, records: Iterable[CatalogRecord]) -> int: ...

    def find_product_by_barcode(self, barcode: str) -> Product | None: ...

    def list_products(self, search: str | None, page: int, per_page: int): ...

    def delete_product(self, product_id: int) -> bool: ...

    def find_stock_count(self, location_id: int, barcode: str) -> StockCount | None: ...

    def create_stock_count(self, location_id: int, product: Product) -> StockCount: ...

    def increment_stock_count(self, location_id: int, product: Product) -> StockCount: ...

    def update_stock_count_count(self, stock_count_id: int, count: int) -> StockCount | None: ...

    def list_stock_counts_by_location(self, location_id: int) -> list[StockCount]: ...


class SQLAlchemyCountStore:
    def __init__(self, session=None):
        self.session = session or db.session

    # -- helpers ---------------------------------------------------------

    def _dialect_insert(self):
        dialect = self.session.get_bind().dialect.name
        return UPSERT_DIALECTS.get(dialect)

    def _fail(self, operation: str, exc: SQLAlchemyError) -> StorageError:
        self.session.rollback()
        logger.exception("Storage failure during %s", operation)
        return StorageError(f"Storage failure during {operation}.")

    # -- locations -------------------------------------------------------

    def insert_location(self, name, description, pic_name):
        location = Location(name=name, description=description, pic_name=pic_name)
        try:
            self.session.add(location)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("insert_location", exc) from exc
        return location

    def get_location(self, location_id):
        return self.session.get(Location, location_id)

    def list_locations(self):
        return list(
            self.session.scalars(select(Location).order_by(Location.created_at, Location.id))
        )

    def location_totals(self):
        totals = {
            location_id: (int(products or 0), int(items or 0))
            for location_id, products, items in self.session.execute(
                select(
                    StockCount.location_id,
                    func.count(StockCount.id),
                    func.coalesce(func.sum(StockCount.count), 0),
                ).group_by(StockCount.location_id)
            )
        }
        result = []
        for location in self.list_locations():
            products, items = totals.get(location.id, (0, 0))
            result.append(
                LocationTotals(location=location, total_products=products, total_items=items)
            )
        return result

    # -- catalog ---------------------------------------------------------

    def upsert_products(self, records):
        # One statement may not touch the same row twice; the last record wins.
        by_barcode = {
            record.barcode: {
                "barcode": record.barcode,
                "product_name": record.product_name,
                "uom": record.uom,
                "selling_price": record.selling_price,
            }
            for record in records
        }
        rows = list(by_barcode.values())
        if not rows:
            return 0

        now = utcnow()
        insert = self._dialect_insert()
        try:
            if insert is not None:
                table = Product.__table__
                for start in range(0, len(rows), UPSERT_CHUNK_SIZE):
                    chunk = rows[start : start + UPSERT_CHUNK_SIZE]
                    stmt = insert(table).values(
                        [dict(row, created_at=now, updated_at=now) for row in chunk]
                    )
                    stmt = stmt.on_conflict_do_update(
                        index_elements=[table.c.barcode],
                        set_={
                            "product_name": stmt.excluded.product_name,
                            "uom": stmt.excluded.uom,
                            "selling_price": stmt.excluded.selling_price,
                            "updated_at": stmt.excluded.updated_at,
                        },
                    )
                    self.session.execute(stmt)
            else:
                existing = {
                    product.barcode: product
                    for product in self.session.scalars(
                        select(Product).where(Product.barcode.in_([row["barcode"] for row in rows]))
                    )
                }
                for row in rows:
                    product = existing.get(row["barcode"])
                    if product is None:
                        self.session.add(Product(**row))
                        continue
                    product.product_name = row["product_name"]
                    product.uom = row["uom"]
                    product.selling_price = row["selling_price"]
                    product.updated_at = now
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("upsert_products", exc) from exc
        # Bulk statements bypass the identity map.
        self.session.expire_all()
        return len(rows)

    def find_product_by_barcode(self, barcode):
        return self.session.scalar(select(Product).where(Product.barcode == barcode))

    def list_products(self, search: str | None, page: int, per_page: int):
        query = select(Product).order_by(Product.created_at.desc(), Product.id.desc())
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Product.barcode).like(pattern),
                    func.lower(Product.product_name).like(pattern),
                )
            )
        return db.paginate(query, page=page, per_page=per_page, error_out=False)

    def delete_product(self, product_id):
        product = self.session.get(Product, product_id)
        if product is None:
            return False
        try:
            self.session.delete(product)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete_product", exc) from exc
        return True

    # -- stock counts ----------------------------------------------------

    def find_stock_count(self, location_id, barcode):
        return self.session.scalar(
            select(StockCount).where(
                StockCount.location_id == location_id,
                StockCount.barcode == barcode,
            )
        )

    def create_stock_count(self, location_id, product):
        stock_count = StockCount(
            location_id=location_id,
            barcode=product.barcode,
            product_name=product.product_name,
            uom=product.uom,
            selling_price=product.selling_price,
            count=1,
            counted_at=utcnow(),
        )
        self.session.add(stock_count)
        self.session.commit()
        return stock_count

    def increment_stock_count(self, location_id, product):
        """Create the (location, barcode) row with count 1 or add 1 to it."""
        insert = self._dialect_insert()
        if insert is None:
            return self._increment_with_retry(location_id, product)

        now = utcnow()
        table = StockCount.__table__
        stmt = insert(table).values(
            location_id=location_id,
            barcode=product.barcode,
            product_name=product.product_name,
            uom=product.uom,
            selling_price=product.selling_price,
            count=1,
            counted_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.location_id, table.c.barcode],
            set_={"count": table.c.count + 1, "counted_at": now},
        ).returning(table.c.id)
        try:
            stock_count_id = self.session.execute(stmt).scalar_one()
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("increment_stock_count", exc) from exc
        return self.session.get(StockCount, stock_count_id, populate_existing=True)

    def _increment_with_retry(self, location_id, product):
        for attempt in range(MAX_INCREMENT_ATTEMPTS):
            try:
                existing = self.find_stock_count(location_id, product.barcode)
                if existing is None:
                    return self.create_stock_count(location_id, product)
                self.session.execute(
                    update(StockCount)
                    .where(StockCount.id == existing.id)
                    .values(count=StockCount.count + 1, counted_at=utcnow())
                )
                self.session.commit()
                return self.session.get(StockCount, existing.id, populate_existing=True)
            except IntegrityError as exc:
                # A concurrent scan created the row first; retry as an increment.
                self.session.rollback()
                if attempt == MAX_INCREMENT_ATTEMPTS - 1:
                    raise self._fail("increment_stock_count", exc) from exc
            except SQLAlchemyError as exc:
                raise self._fail("increment_stock_count", exc) from exc
        raise StorageError("Storage failure during increment_stock_count.")

    def update_stock_count_count(self, stock_count_id, count):
        stock_count = self.session.get(StockCount, stock_count_id)
        if stock_count is None:
            return None
        try:
            stock_count.count = count
            stock_count.counted_at = utcnow()
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("update_stock_count_count", exc) from exc
        return stock_count

    def list_stock_counts_by_location(self, location_id):
        return list(
            self.session.scalars(
                select(StockCount)
                .where(StockCount.location_id == location_id)
                .order_by(StockCount.counted_at.desc(), StockCount.id.desc())
            )
        )


def get_store() -> SQLAlchemyCountStore:
    return SQLAlchemyCountStore()
