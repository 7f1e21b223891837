"""Product model."""
import enum
from sqlalchemy import Column, BigInteger, String, Text, Integer, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId


class Availability(enum.Enum):
    """Sales channel where the product is offered."""
    STORE_ONLY = "store_only"
    ONLINE_ONLY = "online_only"
    BOTH = "both"


class Product(Base):
    """Product model."""

    __tablename__ = 'product'

    id = Column(BigId, primary_key=True, autoincrement=True)
    barcode = Column(String(64), nullable=True, unique=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    size = Column(String(50), nullable=True)
    flavor = Column(String(100), nullable=True)
    category_id = Column(BigInteger, ForeignKey('category.id', ondelete='SET NULL'), nullable=True)
    brand_id = Column(BigInteger, ForeignKey('brand.id', ondelete='SET NULL'), nullable=True)
    typology_id = Column(BigInteger, ForeignKey('typology.id', ondelete='SET NULL'), nullable=True)
    supplier_id = Column(BigInteger, ForeignKey('contact.id', ondelete='SET NULL'), nullable=True)
    purchase_price = Column(Numeric(10, 2), nullable=False, default=0, server_default='0.00')  # Prezzo di acquisto
    sale_price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0, server_default='0')
    min_stock = Column(Integer, nullable=False, default=0, server_default='0')  # Soglia sottoscorta
    availability = Column(Enum(Availability, name='product_availability'), nullable=False, default=Availability.STORE_ONLY)
    online_link = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    category = relationship('Category', foreign_keys=[category_id])
    brand = relationship('Brand', foreign_keys=[brand_id])
    typology = relationship('Typology', foreign_keys=[typology_id])
    supplier = relationship('Contact', foreign_keys=[supplier_id])

    @property
    def is_low_stock(self):
        """Stock at or below the configured minimum (boundary counts as low)."""
        return (self.stock or 0) <= (self.min_stock or 0)

    def to_dict(self):
        return {
            'id': self.id,
            'barcode': self.barcode,
            'name': self.name,
            'purchase_price': self.purchase_price,
            'sale_price': self.sale_price,
            'stock': self.stock,
            'min_stock': self.min_stock,
            'is_low_stock': self.is_low_stock,
            'availability': self.availability.value if self.availability else None,
            'category': self.category.name if self.category else None,
            'brand': self.brand.name if self.brand else None,
        }

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', barcode='{self.barcode}')>"
