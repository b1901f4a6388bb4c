"""
Общие функции обработчиков: уведомления и проверка прав
"""
import logging
from typing import Optional

from aiogram import Bot
from aiogram.types import InlineKeyboardMarkup

from config import settings

logger = logging.getLogger(__name__)

STORE_FAILURE_TEXT = "⚠️ Ocurrió un error. Por favor intentá de nuevo en unos minutos."


def is_admin(user_id: int) -> bool:
    """Проверка прав администратора"""
    return settings.is_admin(user_id)


async def notify_admins(bot: Bot, text: str, reply_markup: Optional[InlineKeyboardMarkup] = None,
                        exclude: Optional[int] = None):
    """Уведомление всех администраторов"""
    for admin_id in settings.ADMIN_IDS:
        if admin_id == exclude:
            continue
        try:
            await bot.send_message(admin_id, text, reply_markup=reply_markup)
        except Exception as e:
            logger.error(f"Не удалось отправить уведомление админу {admin_id}: {e}")


async def notify_user(bot: Bot, user_id: int, text: str):
    """Уведомление пользователя; ошибки доставки только логируются"""
    try:
        await bot.send_message(user_id, text)
    except Exception as e:
        logger.error(f"Не удалось уведомить пользователя {user_id}: {e}")
