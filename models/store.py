from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from database.base import Base

DEFAULT_STORE_CATEGORY = "한식반찬"

class Store(Base):
    __tablename__ = "stores"
    
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=True, default=DEFAULT_STORE_CATEGORY)
    owner_telegram_id = Column(BigInteger, nullable=True, index=True)
    phone = Column(String, nullable=True)
    business_hours_start = Column(String(5), nullable=True)
    order_cutoff_time = Column(String(5), nullable=True)
    pickup_time_slots = Column(JSON, nullable=True)
    delivery_time_slots = Column(JSON, nullable=True)
    minimum_order_amount = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    
    delivery_areas = relationship("DeliveryArea", back_populates="store", cascade="all, delete-orphan")
    menus = relationship("Menu", back_populates="store", cascade="all, delete-orphan")
    daily_menus = relationship("DailyMenu", back_populates="store")
