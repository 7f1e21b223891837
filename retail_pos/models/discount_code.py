"""Discount Code model."""
import enum
from sqlalchemy import Column, String, Numeric, Boolean, DateTime, Enum, Index
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId


class DiscountType(str, enum.Enum):
    """How the discount value is interpreted."""
    PERCENTAGE = 'percentage'
    FIXED = 'fixed'


class DiscountScope(str, enum.Enum):
    """Target a discount code may be applied to."""
    CART = 'cart'
    PRODUCT = 'product'


class DiscountCode(Base):
    """
    Discount Code (codice sconto).

    Codes are matched case-insensitively, so uniqueness is enforced on
    lower(code). Settled sales keep their own snapshot of the code, type,
    value and computed amount: editing a code never rewrites history.
    """

    __tablename__ = 'discount_code'

    id = Column(BigId, primary_key=True, autoincrement=True)
    code = Column(String(64), nullable=False)
    type = Column(Enum(DiscountType, name='discount_type'), nullable=False)
    value = Column(Numeric(10, 2), nullable=False)
    applies_to = Column(Enum(DiscountScope, name='discount_scope'), nullable=False, default=DiscountScope.CART)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index('uq_discount_code_lower_code', func.lower(code), unique=True),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'type': self.type.value,
            'value': self.value,
            'applies_to': self.applies_to.value,
            'expiry_date': self.expiry_date.isoformat() if self.expiry_date else None,
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f"<DiscountCode(id={self.id}, code='{self.code}', type={self.type.value}, value={self.value})>"
