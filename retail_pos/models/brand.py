"""Brand model."""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId


class Brand(Base):
    """Product brand (marca)."""

    __tablename__ = 'brand'

    id = Column(BigId, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Brand(id={self.id}, name='{self.name}')>"
