"""Contact model (customers, staff and dealers)."""
import enum
from datetime import date

from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from despos.database import Base, BigIntPK


class ContactType(str, enum.Enum):
    """Contact type discriminator."""
    CUSTOMER = 'customer'
    STAFF = 'staff'
    DEALER = 'dealer'


class Contact(Base):
    """Customer, staff member or dealer."""
    
    __tablename__ = 'contacts'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    contact_type = Column(String(20), nullable=False, default=ContactType.CUSTOMER.value, index=True)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    location_id = Column(BigIntPK, ForeignKey('locations.id'), nullable=True)
    price_level = Column(String(50), nullable=True)
    date_open = Column(Date, nullable=False, default=date.today)
    birthdate = Column(Date, nullable=True)
    profile_url = Column(String(255), nullable=False, default='', server_default='')
    date_added = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    # Relationships
    location = relationship('Location')
    
    @property
    def full_name(self):
        parts = [self.first_name, self.middle_name, self.last_name]
        return ' '.join(p for p in parts if p)
    
    def __repr__(self):
        return f"<Contact(id={self.id}, type='{self.contact_type}', name='{self.full_name}')>"
