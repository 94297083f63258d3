from typing import Any, Dict, List, Optional
from models.daily_menu import DailyMenu, DailyMenuItem, DailyDeliveryArea
from services.clock_service import parse_menu_date

WEEKDAYS = ["월", "화", "수", "목", "금", "토", "일"]

def format_price(amount: Optional[int]) -> str:
    return f"{amount or 0:,}원"

def format_menu_date_label(menu_date: Any) -> str:
    """2024-06-01 -> 6월 1일 (토)"""
    day = parse_menu_date(menu_date)
    return f"{day.month}월 {day.day}일 ({WEEKDAYS[day.weekday()]})"

def format_item_line(item: DailyMenuItem) -> str:
    name = item.menu.name if item.menu is not None else f"#{item.menu_id}"
    price = format_price(item.menu.price) if item.menu is not None else ""
    if not item.is_available or (item.current_quantity or 0) <= 0:
        return f"• <s>{name}</s> {price} (품절)"
    return f"• {name} {price} (남은 수량 {item.current_quantity})"

def format_daily_menu(
    daily_menu: DailyMenu,
    items: List[DailyMenuItem],
    areas: List[DailyDeliveryArea],
    window_status: Dict[str, Any],
    minimum_order_amount: int = 0,
    closed: Optional[bool] = None
) -> str:
    """Текст дневного листа для покупателя"""
    if closed is None:
        closed = window_status["closed"]
    status_line = "🔴 주문 마감" if closed else "🟢 주문 가능"

    lines = [
        f"🍱 <b>{daily_menu.title}</b>",
        f"📅 {format_menu_date_label(daily_menu.menu_date)}",
    ]
    if daily_menu.description:
        lines.append(daily_menu.description)
    lines.append("")
    lines.append(f"{status_line} - {window_status['message']}")
    if not daily_menu.is_active:
        lines.append("⚠️ 현재 비활성화된 메뉴입니다.")

    lines.append("")
    if items:
        lines.extend(format_item_line(item) for item in items)
    else:
        lines.append("등록된 반찬이 없습니다.")

    if areas:
        lines.append("")
        lines.append("🚚 <b>배달 지역</b>")
        lines.extend(f"• {area.area_name}: {format_price(area.delivery_fee)}" for area in areas)

    if minimum_order_amount:
        lines.append("")
        lines.append(f"💰 최소 주문 금액: {format_price(minimum_order_amount)}")

    return "\n".join(lines)

def format_template_preview(source_date: str, items: List[DailyMenuItem]) -> str:
    lines = [f"👀 <b>어제의 반찬</b> ({format_menu_date_label(source_date)})", "주문할 수 없는 미리보기입니다.", ""]
    lines.extend(format_item_line(item) for item in items)
    return "\n".join(lines)

def format_success_message(title: str, message: str = "", details: Optional[Dict[str, Any]] = None) -> str:
    result = f"✅ <b>{title}</b>"
    if message:
        result += f"\n\n{message}"
    if details:
        details_text = "\n".join([f"• {k}: {v}" for k, v in details.items()])
        result += f"\n\n{details_text}"
    return result

def format_error_message(title: str, message: str = "", suggestion: str = "") -> str:
    result = f"❌ <b>{title}</b>"
    if message:
        result += f"\n\n{message}"
    if suggestion:
        result += f"\n\n💡 {suggestion}"
    return result
