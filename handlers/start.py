from aiogram import Router
from aiogram.types import Message
from aiogram.filters import Command
from loguru import logger

router = Router()

HELP_TEXT = """👋 <b>반찬 주문 봇</b>

🛒 <b>고객</b>
/menu &lt;매장번호&gt; [YYYY-MM-DD] - 오늘(또는 지정한 날짜)의 반찬
/yesterday &lt;매장번호&gt; - 어제 메뉴 미리보기

🏪 <b>사장님</b>
/sheet &lt;매장번호&gt; [YYYY-MM-DD] - 메뉴 페이지 열기 (없으면 최근 메뉴로 생성)
/sheet_on, /sheet_off &lt;매장번호&gt; &lt;YYYY-MM-DD&gt; - 페이지 활성화/비활성화
/cutoff &lt;매장번호&gt; &lt;YYYY-MM-DD&gt; &lt;HH:MM&gt; - 주문 마감 시간 변경"""

@router.message(Command("start", "help"))
async def cmd_start(message: Message):
    user_id = message.from_user.id if message.from_user else None
    logger.info(f"Команда /start от пользователя {user_id}")
    await message.answer(HELP_TEXT, parse_mode="HTML")
