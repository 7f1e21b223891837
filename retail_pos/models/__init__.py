"""Models package - exports all SQLAlchemy models."""
# Reference data
from retail_pos.models.category import Category
from retail_pos.models.brand import Brand
from retail_pos.models.typology import Typology
from retail_pos.models.contact import Contact, ContactType

# Catalog and pricing
from retail_pos.models.product import Product, Availability
from retail_pos.models.price_list import PriceList
from retail_pos.models.price_list_item import PriceListItem
from retail_pos.models.discount_code import DiscountCode, DiscountType, DiscountScope
from retail_pos.models.applied_discount import AppliedDiscount, AppliedDiscountList

# Stock movements
from retail_pos.models.sale import Sale, SaleStatus, CancellationReason
from retail_pos.models.sale_item import SaleItem
from retail_pos.models.stock_load import StockLoad
from retail_pos.models.stock_load_item import StockLoadItem
from retail_pos.models.sale_return import Return, ReturnReason
from retail_pos.models.return_item import ReturnItem

__all__ = [
    'Category', 'Brand', 'Typology', 'Contact', 'ContactType',
    'Product', 'Availability', 'PriceList', 'PriceListItem',
    'DiscountCode', 'DiscountType', 'DiscountScope', 'AppliedDiscount', 'AppliedDiscountList',
    'Sale', 'SaleStatus', 'CancellationReason', 'SaleItem',
    'StockLoad', 'StockLoadItem', 'Return', 'ReturnReason', 'ReturnItem',
]
