"""Location model."""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from despos.database import Base, BigIntPK


class Location(Base):
    """Store location (branch / warehouse)."""
    
    __tablename__ = 'locations'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    location_name = Column(String(200), nullable=False)
    address = Column(Text, nullable=True)
    date_added = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    def __repr__(self):
        return f"<Location(id={self.id}, name='{self.location_name}')>"
