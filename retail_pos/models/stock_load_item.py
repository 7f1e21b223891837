"""Stock Load Item model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId


class StockLoadItem(Base):
    """Stock Load Item (riga di carico)."""

    __tablename__ = 'stock_load_item'

    id = Column(BigId, primary_key=True, autoincrement=True)
    load_id = Column(BigInteger, ForeignKey('stock_load.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='SET NULL'), nullable=True)
    product_name = Column(String(200), nullable=False)
    product_barcode = Column(String(64), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_cost = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    load = relationship('StockLoad', back_populates='items')
    product = relationship('Product')

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'product_barcode': self.product_barcode,
            'quantity': self.quantity,
            'unit_cost': self.unit_cost,
        }

    def __repr__(self):
        return f"<StockLoadItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
