"""
Экраны бронирования в Telegram, которые перерисовываются при изменении данных
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError

from database.models import FreePlayTable, TimeSlot
from keyboards.keyboards import (
    format_tables, get_confirmation_keyboard, get_dates_keyboard, get_free_play_keyboard, get_times_keyboard
)
from services.availability import SlotAvailability
from services.sync import BookingView, SyncCache
from utils.time_utils import get_available_dates

logger = logging.getLogger(__name__)

STEP_DATE = 'date'
STEP_TIME = 'time'
STEP_DETAILS = 'details'
STEP_CONFIRM = 'confirm'
STEP_FREE_PLAY = 'free_play'


class TelegramBookingView(BookingView):
    """Экран пользователя: одно сообщение, которое редактируется по шагам"""

    def __init__(self, bot: Bot, chat_id: int, user_id: int):
        super().__init__()
        self.bot = bot
        self.chat_id = chat_id
        self.user_id = user_id
        self.message_id: Optional[int] = None
        self.step: Optional[str] = None
        self.render_summary: Optional[Callable[[int], str]] = None
        self.last_activity = datetime.now()
        self._tasks: Set[asyncio.Task] = set()

    def show(self, message_id: int, step: str):
        """Запоминает сообщение и шаг, который сейчас на экране"""
        self.message_id = message_id
        self.step = step
        self.confirming = step == STEP_CONFIRM
        self.last_activity = datetime.now()

    def redraw_time_slots(self, availability: List[Tuple[TimeSlot, SlotAvailability]]):
        if self.step != STEP_TIME or self.message_id is None:
            return
        self._schedule(self.bot.edit_message_reply_markup(
            chat_id=self.chat_id,
            message_id=self.message_id,
            reply_markup=get_times_keyboard(availability, self.selected_time)
        ))

    def redraw_calendar(self, blocked_dates: List[str], special_dates: Dict[str, str]):
        if self.step != STEP_DATE or self.message_id is None:
            return
        self._schedule(self.bot.edit_message_reply_markup(
            chat_id=self.chat_id,
            message_id=self.message_id,
            reply_markup=get_dates_keyboard(get_available_dates(blocked_dates), special_dates)
        ))

    def redraw_total(self, total: int):
        if not self.confirming or self.message_id is None or self.render_summary is None:
            return
        self._schedule(self.bot.edit_message_text(
            text=self.render_summary(total),
            chat_id=self.chat_id,
            message_id=self.message_id,
            reply_markup=get_confirmation_keyboard()
        ))

    def redraw_free_play(self, tables: List[FreePlayTable]):
        if self.step != STEP_FREE_PLAY or self.message_id is None:
            return
        self._schedule(self.bot.edit_message_text(
            text=format_tables(tables),
            chat_id=self.chat_id,
            message_id=self.message_id,
            reply_markup=get_free_play_keyboard(tables, self.user_id)
        ))

    def _schedule(self, edit: Awaitable):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            edit.close()
            logger.warning(f"Нет цикла событий для перерисовки экрана {self.user_id}")
            return

        task = loop.create_task(self._safe_edit(edit))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _safe_edit(self, edit: Awaitable):
        try:
            await edit
        except TelegramAPIError as e:
            # "message is not modified" и удалённые сообщения не критичны
            logger.debug(f"Не удалось обновить экран {self.user_id}: {e}")


class ViewRegistry:
    """Открытые экраны бронирования, не больше одного на пользователя"""

    def __init__(self, cache: SyncCache):
        self.cache = cache
        self._views: Dict[int, TelegramBookingView] = {}

    def open(self, bot: Bot, chat_id: int, user_id: int) -> TelegramBookingView:
        self.close(user_id)
        view = TelegramBookingView(bot, chat_id, user_id)
        self._views[user_id] = view
        self.cache.attach(view)
        return view

    def get(self, user_id: int) -> Optional[TelegramBookingView]:
        return self._views.get(user_id)

    def close(self, user_id: int):
        view = self._views.pop(user_id, None)
        if view is not None:
            self.cache.detach(view)

    def close_expired(self, timeout_minutes: int) -> int:
        """Закрытие экранов без активности дольше таймаута"""
        deadline = datetime.now() - timedelta(minutes=timeout_minutes)
        expired = [user_id for user_id, view in self._views.items() if view.last_activity < deadline]
        for user_id in expired:
            self.close(user_id)
        return len(expired)

    def close_all(self):
        for user_id in list(self._views):
            self.close(user_id)

    def __len__(self) -> int:
        return len(self._views)
