from datetime import datetime, timezone

from opnameapp.extensions import db


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class Product(db.Model):
    """Master catalog entry, keyed by barcode."""

    __tablename__ = "master_product"
    __table_args__ = (
        db.CheckConstraint("selling_price >= 0", name="ck_master_product_price_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    barcode = db.Column(db.String(128), unique=True, nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    uom = db.Column(db.String(32), nullable=False)
    selling_price = db.Column(db.BigInteger, nullable=False, default=0)  # whole Rupiah
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "barcode": self.barcode,
            "product_name": self.product_name,
            "uom": self.uom,
            "selling_price": self.selling_price,
            "created_at": isoformat_utc(self.created_at),
            "updated_at": isoformat_utc(self.updated_at),
        }


class Location(db.Model):
    __tablename__ = "count_location"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    pic_name = db.Column(db.String(120), nullable=True)  # person in charge
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    stock_counts = db.relationship(
        "StockCount",
        back_populates="location",
        cascade="all, delete-orphan",
        order_by="StockCount.counted_at.desc()",
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "pic_name": self.pic_name,
            "created_at": isoformat_utc(self.created_at),
        }


class StockCount(db.Model):
    """Running count of one barcode at one location.

    Product attributes are copied from the catalog when the row is first
    created so exports do not change when the catalog is re-imported.
    """

    __tablename__ = "stock_count"
    __table_args__ = (
        db.UniqueConstraint("location_id", "barcode", name="uq_stock_count_location_barcode"),
        db.CheckConstraint("count >= 0", name="ck_stock_count_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    location_id = db.Column(
        db.Integer,
        db.ForeignKey("count_location.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    barcode = db.Column(db.String(128), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    uom = db.Column(db.String(32), nullable=False)
    selling_price = db.Column(db.BigInteger, nullable=False, default=0)
    count = db.Column(db.Integer, nullable=False, default=0)
    counted_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    location = db.relationship("Location", back_populates="stock_counts")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "location_id": self.location_id,
            "barcode": self.barcode,
            "product_name": self.product_name,
            "uom": self.uom,
            "selling_price": self.selling_price,
            "count": self.count,
            "counted_at": isoformat_utc(self.counted_at),
        }

    def __repr__(self):
        return (
            f"<StockCount location={self.location_id} barcode={self.barcode} "
            f"count={self.count}>"
        )
