"""Return Item model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId


class ReturnItem(Base):
    """Return Item (riga di reso). subtotal is negative."""

    __tablename__ = 'return_item'

    id = Column(BigId, primary_key=True, autoincrement=True)
    return_id = Column(BigInteger, ForeignKey('returns.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='SET NULL'), nullable=True)
    product_name = Column(String(200), nullable=False)
    product_barcode = Column(String(64), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    sale_return = relationship('Return', back_populates='items')
    product = relationship('Product')

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'product_barcode': self.product_barcode,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'subtotal': self.subtotal,
        }

    def __repr__(self):
        return f"<ReturnItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
