"""Contact model (customers and suppliers share one address book)."""
import enum
from sqlalchemy import Column, String, Text, DateTime, Enum
from sqlalchemy.sql import func
from retail_pos.database import Base, BigId


class ContactType(enum.Enum):
    """Contact type enum."""
    CLIENTE = "cliente"
    FORNITORE = "fornitore"


class Contact(Base):
    """Contact (cliente / fornitore)."""

    __tablename__ = 'contact'

    id = Column(BigId, primary_key=True, autoincrement=True)
    type = Column(Enum(ContactType, name='contact_type'), nullable=False, default=ContactType.CLIENTE)
    company_name = Column(String(200), nullable=False)
    vat = Column(String(32), nullable=True)
    fiscal_code = Column(String(32), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(120), nullable=True)
    postal_code = Column(String(16), nullable=True)
    province = Column(String(8), nullable=True)
    phone = Column(String(50), nullable=True)
    mobile = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type.value if self.type else None,
            'company_name': self.company_name,
            'vat': self.vat,
            'email': self.email,
            'phone': self.phone,
        }

    def __repr__(self):
        return f"<Contact(id={self.id}, company_name='{self.company_name}', type={self.type})>"
