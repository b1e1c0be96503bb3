"""Sale model."""
from sqlalchemy import Column, String, Numeric, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from despos.database import Base, BigIntPK
import enum


class SalesStatus(str, enum.Enum):
    """Sales status."""
    IN_PROGRESS = 'in-progress'
    PAID = 'paid'
    PENDING = 'pending'
    REFUNDED = 'refunded'
    RETURN = 'return'
    CANCELLED = 'cancelled'


class PaymentMethod(str, enum.Enum):
    """Supported payment methods."""
    CASH = 'cash'


class Sale(Base):
    """Sales header (sales table)."""
    
    __tablename__ = 'sales'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    customer_id = Column(BigIntPK, ForeignKey('contacts.id'), nullable=True)
    invoice_type_id = Column(BigIntPK, ForeignKey('invoice_types.id'), nullable=True)
    sales_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    sales_status = Column(String(20), nullable=False, default=SalesStatus.IN_PROGRESS.value)
    is_cancelled = Column(Boolean, nullable=False, default=False)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)
    sub_total = Column(Numeric(10, 2), nullable=False, default=0)
    total_due = Column(Numeric(10, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)
    change_due = Column(Numeric(10, 2), nullable=False, default=0)
    invoice_no = Column(String(64), nullable=False, unique=True, index=True)
    payment_method = Column(String(20), nullable=False, default='')
    
    # Relationships
    customer = relationship('Contact')
    invoice_type = relationship('InvoiceType')
    selections = relationship(
        'Selection',
        back_populates='sale',
        cascade='all, delete-orphan',
        passive_deletes=True
    )
    
    def __repr__(self):
        return f"<Sale(id={self.id}, invoice_no='{self.invoice_no}', status={self.sales_status})>"
