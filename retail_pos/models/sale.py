"""Sale model."""
from sqlalchemy import Column, BigInteger, Integer, String, Text, Numeric, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId
from retail_pos.models.applied_discount import AppliedDiscountList
import enum


class SaleStatus(str, enum.Enum):
    """Sale status enum. CANCELLED is terminal."""
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class CancellationReason(str, enum.Enum):
    """Reason recorded when a sale is cancelled."""
    CUSTOMER_REQUEST = 'customer_request'
    DEFECTIVE_PRODUCT = 'defective_product'
    CASHIER_ERROR = 'cashier_error'
    WRONG_PRODUCT = 'wrong_product'
    OTHER = 'other'


class Sale(Base):
    """
    Sale (vendita).

    Written once by confirm_sale; afterwards only the cancellation fields
    change. discount_code mirrors the first cart discount for older readers,
    cart_discounts holds the full snapshot list with amounts.
    """

    __tablename__ = 'sale'

    id = Column(BigId, primary_key=True, autoincrement=True)
    sale_number = Column(Integer, nullable=False, unique=True)
    customer_id = Column(BigInteger, ForeignKey('contact.id', ondelete='SET NULL'), nullable=True)
    price_list_id = Column(BigInteger, ForeignKey('price_list.id', ondelete='SET NULL'), nullable=True)
    subtotal = Column(Numeric(10, 2), nullable=False)
    discount_code = Column(String(64), nullable=True)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0, server_default='0')
    cart_discounts = Column(AppliedDiscountList, nullable=False, default=list)
    total = Column(Numeric(10, 2), nullable=False)
    status = Column(Enum(SaleStatus, name='sale_status'), nullable=False, default=SaleStatus.COMPLETED)

    # Cancellation
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Enum(CancellationReason, name='cancellation_reason'), nullable=True)
    cancellation_notes = Column(Text, nullable=True)
    refund_issued = Column(Boolean, nullable=False, default=False)
    refund_number = Column(Integer, nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    customer = relationship('Contact')
    price_list = relationship('PriceList')
    items = relationship('SaleItem', back_populates='sale', cascade='all, delete-orphan', order_by='SaleItem.id')

    @property
    def is_cancelled(self):
        return self.status == SaleStatus.CANCELLED

    @property
    def refund_document_number(self):
        """Printed refund number, e.g. R-0007."""
        if self.refund_number is None:
            return None
        return f"R-{self.refund_number:04d}"

    def to_dict(self, include_items=True):
        rv = {
            'id': self.id,
            'sale_number': self.sale_number,
            'customer_id': self.customer_id,
            'price_list_id': self.price_list_id,
            'subtotal': self.subtotal,
            'discount_code': self.discount_code,
            'discount_amount': self.discount_amount,
            'cart_discounts': [d.to_dict() for d in self.cart_discounts or []],
            'total': self.total,
            'status': self.status.value,
            'cancelled_at': self.cancelled_at.isoformat() if self.cancelled_at else None,
            'cancellation_reason': self.cancellation_reason.value if self.cancellation_reason else None,
            'cancellation_notes': self.cancellation_notes,
            'refund_issued': self.refund_issued,
            'refund_number': self.refund_number,
            'refund_document_number': self.refund_document_number,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_items:
            rv['items'] = [item.to_dict() for item in self.items]
        return rv

    def __repr__(self):
        return f"<Sale(id={self.id}, sale_number={self.sale_number}, total={self.total}, status={self.status.value})>"
