from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from database.base import Base

class DailyMenu(Base):
    """Дневной лист заказов: один на пару (магазин, дата)"""
    __tablename__ = "daily_menus"
    
    id = Column(Integer, primary_key=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    menu_date = Column(String(10), nullable=False)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    pickup_time_slots = Column(JSON, nullable=True)
    delivery_time_slots = Column(JSON, nullable=True)
    order_cutoff_time = Column(String(5), nullable=True)
    minimum_order_amount = Column(Integer, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    
    store = relationship("Store", back_populates="daily_menus")
    items = relationship("DailyMenuItem", back_populates="daily_menu", cascade="all, delete-orphan")
    delivery_areas = relationship("DailyDeliveryArea", back_populates="daily_menu", cascade="all, delete-orphan")
    
    __table_args__ = (
        UniqueConstraint("store_id", "menu_date", name="uq_daily_menu_store_date"),
    )

class DailyMenuItem(Base):
    __tablename__ = "daily_menu_items"
    
    id = Column(Integer, primary_key=True)
    daily_menu_id = Column(Integer, ForeignKey("daily_menus.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_id = Column(Integer, ForeignKey("menus.id"), nullable=False)
    initial_quantity = Column(Integer, nullable=False, default=0)
    current_quantity = Column(Integer, nullable=False, default=0)
    is_available = Column(Boolean, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    
    daily_menu = relationship("DailyMenu", back_populates="items")
    menu = relationship("Menu", back_populates="daily_menu_items")
    
    __table_args__ = (
        UniqueConstraint("daily_menu_id", "menu_id", name="uq_daily_menu_item_menu"),
    )

class DailyDeliveryArea(Base):
    """Снимок зоны доставки магазина на конкретный дневной лист"""
    __tablename__ = "daily_delivery_areas"
    
    id = Column(Integer, primary_key=True)
    daily_menu_id = Column(Integer, ForeignKey("daily_menus.id", ondelete="CASCADE"), nullable=False, index=True)
    area_name = Column(String, nullable=False)
    delivery_fee = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    
    daily_menu = relationship("DailyMenu", back_populates="delivery_areas")
