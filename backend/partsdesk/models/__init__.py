from .inventory import Product
from .invoices import Invoice, InvoiceSequence
from .auth import User
from .settings import ShopSettings

__all__ = [
    'Product',
    'Invoice', 'InvoiceSequence',
    'User',
    'ShopSettings',
]
