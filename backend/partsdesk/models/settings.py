from __future__ import annotations

from ..extensions import db
from partsdesk.time_utils import to_utc_z, utcnow

SETTINGS_ROW_ID = 1

DEFAULT_SHOP_SETTINGS = {
    "shop_name": "AutoParts Pro",
    "address": "123 Main Road, Sector 15",
    "city": "Narnaund, Haryana - 125039",
    "phone": "+91 98765 43210",
    "email": "info@autopartspro.com",
    "gst_number": "06XXXXX1234X1Z5",
    "footer_line1": "Goods once sold cannot be returned.",
    "footer_line2": "7 days warranty on all parts.",
    "footer_line3": None,
    "logo_url": None,
    "signature_url": None,
}


class ShopSettings(db.Model):
    """
    Shop identity printed on invoices.

    Singleton: the row with id=1 is the only one ever read or written.
    """
    __tablename__ = "settings"

    id = db.Column(db.Integer, primary_key=True)

    shop_name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    gst_number = db.Column(db.String(32), nullable=True)

    # Up to three free-text lines at the bottom of the invoice
    footer_line1 = db.Column(db.String(255), nullable=True)
    footer_line2 = db.Column(db.String(255), nullable=True)
    footer_line3 = db.Column(db.String(255), nullable=True)

    # References (URL or data URI) to images; not stored as blobs
    logo_url = db.Column(db.Text, nullable=True)
    signature_url = db.Column(db.Text, nullable=True)

    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @classmethod
    def with_defaults(cls) -> "ShopSettings":
        return cls(id=SETTINGS_ROW_ID, updated_at=utcnow(), **DEFAULT_SHOP_SETTINGS)

    @property
    def footer_lines(self) -> list[str]:
        lines = [self.footer_line1, self.footer_line2, self.footer_line3]
        return [line for line in lines if line]

    def to_dict(self) -> dict:
        return {
            "shopName": self.shop_name,
            "address": self.address,
            "city": self.city,
            "phone": self.phone,
            "email": self.email,
            "gstNumber": self.gst_number,
            "footerLine1": self.footer_line1,
            "footerLine2": self.footer_line2,
            "footerLine3": self.footer_line3,
            "logoUrl": self.logo_url,
            "signatureUrl": self.signature_url,
            "updatedAt": to_utc_z(self.updated_at),
        }
