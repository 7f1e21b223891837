"""Stock Load model."""
from sqlalchemy import Column, Integer, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId


class StockLoad(Base):
    """Stock Load (carico di magazzino)."""

    __tablename__ = 'stock_load'

    id = Column(BigId, primary_key=True, autoincrement=True)
    load_number = Column(Integer, nullable=False, unique=True)
    total_items = Column(Integer, nullable=False, default=0)
    total_pieces = Column(Integer, nullable=False, default=0)
    total_value = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    items = relationship('StockLoadItem', back_populates='load', cascade='all, delete-orphan', order_by='StockLoadItem.id')

    def to_dict(self, include_items=True):
        rv = {
            'id': self.id,
            'load_number': self.load_number,
            'total_items': self.total_items,
            'total_pieces': self.total_pieces,
            'total_value': self.total_value,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_items:
            rv['items'] = [item.to_dict() for item in self.items]
        return rv

    def __repr__(self):
        return f"<StockLoad(id={self.id}, load_number={self.load_number}, total_pieces={self.total_pieces})>"
