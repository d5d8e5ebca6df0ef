from __future__ import annotations

from ..extensions import db
from ..services.pricing_service import format_money
from partsdesk.time_utils import utcnow

DEFAULT_HSN_CODE = "8708"
DEFAULT_GST_RATE = 28


class Product(db.Model):
    """
    Product master data.

    CODE: Product.code is the shop's part number and is globally unique.
    It is printed on invoices next to the HSN tax-classification code.

    PRICES: sellingPrice is GST-inclusive. purchasePrice is only used for
    stock valuation on the dashboard.

    STOCK: never negative. Billing decrements it with a guarded UPDATE
    (stock >= quantity); the check constraint is the last line of defence.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_products_code"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(64), nullable=False)
    hsn_code = db.Column(db.String(16), nullable=True, default=DEFAULT_HSN_CODE)

    stock = db.Column(db.Integer, nullable=False, default=0)

    purchase_price = db.Column(db.Numeric(10, 2), nullable=False)
    selling_price = db.Column(db.Numeric(10, 2), nullable=False)
    gst_rate = db.Column(db.Integer, nullable=False, default=DEFAULT_GST_RATE)

    # Percent of sellingPrice the counter staff may knock off
    max_discount = db.Column(db.Numeric(5, 2), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.code!r} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "code": self.code,
            "hsnCode": self.hsn_code,
            "stock": self.stock,
            "purchasePrice": format_money(self.purchase_price),
            "sellingPrice": format_money(self.selling_price),
            "gstRate": self.gst_rate,
            "maxDiscount": format_money(self.max_discount),
        }
