"""Selection model (sale line)."""
from sqlalchemy import Column, BigInteger, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from despos.database import Base, BigIntPK


class Selection(Base):
    """Line item of a persisted sale."""
    
    __tablename__ = 'selections'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    sales_id = Column(BigIntPK, ForeignKey('sales.id', ondelete='CASCADE'), nullable=False, index=True)
    item_id = Column(BigIntPK, ForeignKey('items.id'), nullable=False, index=True)
    price_level_id = Column(BigIntPK, ForeignKey('price_levels.id'), nullable=True)
    quantity = Column(BigInteger, nullable=False, default=1)
    unit_cost = Column(Numeric(10, 2), nullable=False, default=0)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    # Quantity currently reflected in the product's inventory counters
    deducted_quantity = Column(BigInteger, nullable=False, default=0, server_default='0')
    # Sales status whose inventory delta was last applied to this line
    applied_status = Column(String(20), nullable=True)
    
    # Relationships
    sale = relationship('Sale', back_populates='selections')
    product = relationship('Product')
    
    def __repr__(self):
        return f"<Selection(id={self.id}, item_id={self.item_id}, qty={self.quantity})>"
