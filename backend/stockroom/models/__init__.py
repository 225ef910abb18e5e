from .auth import User
from .catalog import (
    Product, ProductCategory, Tshirt, Bag, Book, CATEGORY_MODELS,
    Location, Stock,
)
from .sales import Sale, SaleItem, SaleStatus

__all__ = [
    'User',
    'Product', 'ProductCategory', 'Tshirt', 'Bag', 'Book', 'CATEGORY_MODELS',
    'Location', 'Stock',
    'Sale', 'SaleItem', 'SaleStatus',
]
