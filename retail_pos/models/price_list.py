"""Price List model."""
from sqlalchemy import Column, String, Text, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId


class PriceList(Base):
    """
    Price List (listino).

    A named set of per-product price overrides. At most one list is the
    default; set_default_price_list is the only writer of is_default.
    """

    __tablename__ = 'price_list'

    id = Column(BigId, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    items = relationship('PriceListItem', back_populates='price_list', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'is_active': self.is_active,
            'is_default': self.is_default,
        }

    def __repr__(self):
        return f"<PriceList(id={self.id}, name='{self.name}', is_default={self.is_default})>"
