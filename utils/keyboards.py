"""
Клавиатуры для сообщений с дневным листом
"""
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton
from typing import Optional


def get_daily_menu_keyboard(link: str, ordering_closed: bool) -> Optional[InlineKeyboardMarkup]:
    """
    Кнопка перехода на страницу листа

    Telegram принимает в кнопке только абсолютный URL, поэтому без
    PUBLIC_BASE_URL клавиатура не строится.
    """
    if not link.startswith(("http://", "https://")):
        return None

    text = "📋 메뉴 보기" if ordering_closed else "🛒 주문하기"
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=text, url=link)]
    ])
