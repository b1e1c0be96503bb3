"""Item category model."""
from sqlalchemy import Column, String, Text
from despos.database import Base, BigIntPK


class ItemCategory(Base):
    """Product category (item_types table)."""
    
    __tablename__ = 'item_types'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    type_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    
    def __repr__(self):
        return f"<ItemCategory(id={self.id}, name='{self.type_name}')>"
