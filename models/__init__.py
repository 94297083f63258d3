from .store import Store
from .delivery_area import DeliveryArea
from .menu import Menu
from .daily_menu import DailyMenu, DailyMenuItem, DailyDeliveryArea

__all__ = [
    "Store",
    "DeliveryArea",
    "Menu",
    "DailyMenu", "DailyMenuItem", "DailyDeliveryArea"
]
