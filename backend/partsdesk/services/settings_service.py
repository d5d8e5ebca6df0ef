from __future__ import annotations

from ..models import ShopSettings
from ..storage import ShopStore, get_store
from ..validation import ModelValidationPolicy, ValidationError, validate_payload

SETTINGS_POLICY = ModelValidationPolicy(
    fields={
        "shopName": "shop_name",
        "address": "address",
        "city": "city",
        "phone": "phone",
        "email": "email",
        "gstNumber": "gst_number",
        "footerLine1": "footer_line1",
        "footerLine2": "footer_line2",
        "footerLine3": "footer_line3",
        "logoUrl": "logo_url",
        "signatureUrl": "signature_url",
    },
)

# 15-character GSTIN; the format check is left to the tax portal
GSTIN_LENGTH = 15


def get_settings(store: ShopStore | None = None) -> ShopSettings:
    store = store or get_store()
    return store.get_settings()


def update_settings(payload, store: ShopStore | None = None) -> ShopSettings:
    """
    Partial update of the shop identity.

    Raises:
        ValidationError: unknown field, blank shop name, bad GSTIN length
    """
    store = store or get_store()
    patch = validate_payload(model=ShopSettings, payload=payload, policy=SETTINGS_POLICY, partial=True)

    gst_number = patch.get("gst_number")
    if gst_number is not None:
        gst_number = gst_number.upper()
        if len(gst_number) != GSTIN_LENGTH:
            raise ValidationError(f"gstNumber must be {GSTIN_LENGTH} characters", "gstNumber")
        patch["gst_number"] = gst_number

    email = patch.get("email")
    if email is not None and "@" not in email:
        raise ValidationError("email must be a valid address", "email")

    return store.update_settings(patch)
