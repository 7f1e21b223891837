"""Sale Item model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId
from retail_pos.models.applied_discount import AppliedDiscountList


class SaleItem(Base):
    """
    Sale Item (riga di vendita).

    Name and barcode are copied at sale time so later product edits or
    deletions leave the history intact. original_price is the catalog price,
    unit_price the price-list resolved one, subtotal the line total after
    line discounts.
    """

    __tablename__ = 'sale_item'

    id = Column(BigId, primary_key=True, autoincrement=True)
    sale_id = Column(BigInteger, ForeignKey('sale.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='SET NULL'), nullable=True)
    product_name = Column(String(200), nullable=False)
    product_barcode = Column(String(64), nullable=True)
    quantity = Column(Integer, nullable=False)
    original_price = Column(Numeric(10, 2), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    discounts = Column(AppliedDiscountList, nullable=False, default=list)
    subtotal = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    sale = relationship('Sale', back_populates='items')
    product = relationship('Product')

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'product_barcode': self.product_barcode,
            'quantity': self.quantity,
            'original_price': self.original_price,
            'unit_price': self.unit_price,
            'discounts': [d.to_dict() for d in self.discounts or []],
            'subtotal': self.subtotal,
        }

    def __repr__(self):
        return f"<SaleItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
