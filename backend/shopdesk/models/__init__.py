from .tenancy import Shop
from .auth import User
from .customers import Customer
from .catalog import Category, Brand, Product
from .invoices import Invoice, InvoiceItem, InvoiceItemHistory, InvoicePayment, InvoiceReminder
from .security import SecurityEvent

__all__ = [
    'Shop',
    'User',
    'Customer',
    'Category', 'Brand', 'Product',
    'Invoice', 'InvoiceItem', 'InvoiceItemHistory', 'InvoicePayment', 'InvoiceReminder',
    'SecurityEvent',
]
