"""Category model."""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId


class Category(Base):
    """Product Category."""

    __tablename__ = 'category'

    id = Column(BigId, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"
