"""Invoice type model."""
from sqlalchemy import Column, String
from despos.database import Base, BigIntPK


class InvoiceType(Base):
    """Invoice type (e.g. CASH)."""
    
    __tablename__ = 'invoice_types'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    code = Column(String(20), nullable=False, unique=True)
    invoice_name = Column(String(100), nullable=False)
    
    def __repr__(self):
        return f"<InvoiceType(id={self.id}, code='{self.code}')>"
