from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Message, CallbackQuery
from loguru import logger
from typing import Callable, Dict, Any, Awaitable
from utils.exceptions import UpstreamError, ValidationError
from utils.formatters import format_error_message

MENU_UNAVAILABLE_TEXT = format_error_message(
    "메뉴를 불러올 수 없습니다",
    "일시적인 문제로 메뉴 정보를 가져오지 못했습니다.",
    "잠시 후 다시 시도해주세요."
)
GENERIC_ERROR_TEXT = "요청을 처리하는 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."


def validation_error_text(error: ValidationError) -> str:
    return format_error_message("입력값을 확인해주세요", f"'{error.field}' 항목: {error}")


class ErrorMiddleware(BaseMiddleware):
    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        try:
            return await handler(event, data)
        except ValidationError as e:
            logger.info(f"Validation error in handler: {e.field}: {e}")
            await self._reply(event, validation_error_text(e))
        except UpstreamError as e:
            logger.error(f"Upstream error in handler: {e}", exc_info=True)
            await self._reply(event, MENU_UNAVAILABLE_TEXT)
        except Exception as e:
            if isinstance(event, CallbackQuery) and "message is not modified" in str(e).lower():
                await event.answer()
                return None
            logger.error(f"Error in handler: {e}", exc_info=True)
            await self._reply(event, GENERIC_ERROR_TEXT)
        return None

    @staticmethod
    async def _reply(event: TelegramObject, text: str) -> None:
        try:
            if isinstance(event, Message):
                await event.answer(text, parse_mode="HTML")
            elif isinstance(event, CallbackQuery):
                await event.answer(text.replace("<b>", "").replace("</b>", ""), show_alert=True)
        except Exception as inner_e:
            logger.error(f"Error in error handler: {inner_e}", exc_info=True)
