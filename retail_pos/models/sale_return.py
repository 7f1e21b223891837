"""Return model."""
from sqlalchemy import Column, BigInteger, Integer, Text, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId
import enum


class ReturnReason(str, enum.Enum):
    """Why goods came back."""
    DEFECTIVE_PRODUCT = 'defective_product'
    WRONG_PRODUCT = 'wrong_product'
    SIZE_CHANGE = 'size_change'
    CUSTOMER_REGRET = 'customer_regret'
    OTHER = 'other'


class Return(Base):
    """
    Return (reso).

    total is stored negative (a credit); the UI shows its absolute value
    as the amount returned.
    """

    __tablename__ = 'returns'

    id = Column(BigId, primary_key=True, autoincrement=True)
    return_number = Column(Integer, nullable=False, unique=True)
    customer_id = Column(BigInteger, ForeignKey('contact.id', ondelete='SET NULL'), nullable=True)
    reason = Column(Enum(ReturnReason, name='return_reason'), nullable=False)
    notes = Column(Text, nullable=True)
    total = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    customer = relationship('Contact')
    items = relationship('ReturnItem', back_populates='sale_return', cascade='all, delete-orphan', order_by='ReturnItem.id')

    @property
    def amount_returned(self):
        return -(self.total or 0)

    def to_dict(self, include_items=True):
        rv = {
            'id': self.id,
            'return_number': self.return_number,
            'customer_id': self.customer_id,
            'reason': self.reason.value,
            'notes': self.notes,
            'total': self.total,
            'amount_returned': self.amount_returned,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_items:
            rv['items'] = [item.to_dict() for item in self.items]
        return rv

    def __repr__(self):
        return f"<Return(id={self.id}, return_number={self.return_number}, total={self.total})>"
