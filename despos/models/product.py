"""Product model."""
from sqlalchemy import Column, BigInteger, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from despos.database import Base, BigIntPK


class Product(Base):
    """Inventory item (items table)."""
    
    __tablename__ = 'items'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    code = Column(String(50), nullable=True)
    barcode = Column(String(100), nullable=True, index=True)
    item_name = Column(String(200), nullable=False)
    item_type_id = Column(BigIntPK, ForeignKey('item_types.id'), nullable=True)
    dealer_id = Column(BigIntPK, ForeignKey('contacts.id'), nullable=True)
    item_cost = Column(Numeric(10, 2), nullable=False, default=0, server_default='0.00')
    # Stock currently available to sell
    item_quantity = Column(BigInteger, nullable=False, default=0, server_default='0')
    # Baseline stock used when deductions are restored
    default_item_quantity = Column(BigInteger, nullable=False, default=0, server_default='0')
    item_sold = Column(BigInteger, nullable=False, default=0, server_default='0')
    item_image_url = Column(String(255), nullable=False, default='', server_default='')
    date_added = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    # Relationships
    category = relationship('ItemCategory')
    dealer = relationship('Contact')
    item_price_levels = relationship(
        'ItemPriceLevel',
        back_populates='product',
        cascade='all, delete-orphan'
    )
    
    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.item_name}', code='{self.code}')>"
