"""Price List Item model."""
from sqlalchemy import Column, BigInteger, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId


class PriceListItem(Base):
    """Custom price of one product inside one price list."""

    __tablename__ = 'price_list_item'

    id = Column(BigId, primary_key=True, autoincrement=True)
    price_list_id = Column(BigInteger, ForeignKey('price_list.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='CASCADE'), nullable=False, index=True)
    custom_price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('price_list_id', 'product_id', name='uq_price_list_item_product'),
    )

    # Relationships
    price_list = relationship('PriceList', back_populates='items')
    product = relationship('Product')

    def to_dict(self):
        return {
            'id': self.id,
            'price_list_id': self.price_list_id,
            'product_id': self.product_id,
            'custom_price': self.custom_price,
        }

    def __repr__(self):
        return f"<PriceListItem(price_list_id={self.price_list_id}, product_id={self.product_id}, custom_price={self.custom_price})>"
