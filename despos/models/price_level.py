"""Price level models."""
from sqlalchemy import Column, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from despos.database import Base, BigIntPK


class PriceLevel(Base):
    """Named pricing tier ("Level 1", "Level 2", ...)."""
    
    __tablename__ = 'price_levels'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    level_name = Column(String(50), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    
    def __repr__(self):
        return f"<PriceLevel(id={self.id}, level='{self.level_name}', price={self.price})>"


class ItemPriceLevel(Base):
    """Join row between a product and one of its price levels."""
    
    __tablename__ = 'items_price_levels'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    item_id = Column(BigIntPK, ForeignKey('items.id', ondelete='CASCADE'), nullable=False, index=True)
    price_level_id = Column(BigIntPK, ForeignKey('price_levels.id'), nullable=False)
    
    # Relationships
    product = relationship('Product', back_populates='item_price_levels')
    price_level = relationship('PriceLevel')
    
    def __repr__(self):
        return f"<ItemPriceLevel(id={self.id}, item_id={self.item_id}, price_level_id={self.price_level_id})>"
