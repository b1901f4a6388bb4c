"""
Локальное зеркало данных хранилища с перерисовкой открытых экранов

SyncCache создаётся при запуске и закрывается при остановке: close()
снимает все подписки, после этого ни один обработчик не вызывается.
Каждая доставка подписки полностью заменяет кэшированное значение.
"""
import logging
from typing import Callable, Dict, List, Optional, Tuple

from config import settings
from database.models import FreePlayTable, Reservation, TimeSlot
from database.repository import (
    FreePlayRepository, ReservationRepository, TimeSlotRepository, VenueConfigRepository
)
from database.store import Unsubscribe
from services.availability import SlotAvailability, calculate_slot_availability, slots_availability
from utils.time_utils import get_available_dates, normalize_date

logger = logging.getLogger(__name__)


class BookingView:
    """
    Экран бронирования одного пользователя

    Хранит выбор пользователя; методы redraw_* переопределяются
    в слое представления.
    """

    def __init__(self):
        self.selected_date: Optional[str] = None
        self.selected_time: Optional[str] = None
        self.people: int = settings.MIN_PEOPLE
        self.confirming: bool = False

    def select_date(self, date: str):
        """Смена даты сбрасывает выбранный слот"""
        self.selected_date = normalize_date(date)
        self.selected_time = None
        self.confirming = False

    def redraw_time_slots(self, availability: List[Tuple[TimeSlot, SlotAvailability]]):
        pass

    def redraw_calendar(self, blocked_dates: List[str], special_dates: Dict[str, str]):
        pass

    def redraw_total(self, total: int):
        pass

    def redraw_free_play(self, tables: List[FreePlayTable]):
        pass


class SyncCache:
    """Кэш бронирований, слотов, дат, цены и столов свободной игры, обновляемый подписками"""

    def __init__(self, reservations: ReservationRepository, time_slots: TimeSlotRepository,
                 venue_config: VenueConfigRepository, free_play: FreePlayRepository):
        self._reservations_repo = reservations
        self._time_slots_repo = time_slots
        self._venue_config_repo = venue_config
        self._free_play_repo = free_play

        self.reservations: List[Reservation] = []
        self.time_slots: List[TimeSlot] = []
        self.blocked_dates: List[str] = []
        self.special_dates: Dict[str, str] = {}
        self.price: int = settings.DEFAULT_PRICE
        self.payment_alias: str = settings.DEFAULT_PAYMENT_ALIAS
        self.free_play_tables: List[FreePlayTable] = []

        self._unsubscribes: List[Unsubscribe] = []
        self._views: List[BookingView] = []

    @property
    def is_running(self) -> bool:
        return bool(self._unsubscribes)

    def start(self):
        """Первичная загрузка бронирований и подписка на все источники"""
        if self.is_running:
            return

        self.reservations = self._reservations_repo.get_reservations()
        logger.info(f"Загружено бронирований: {len(self.reservations)}")

        self._unsubscribes = [
            self._reservations_repo.subscribe(self._on_reservations),
            self._time_slots_repo.subscribe(self._on_time_slots),
            self._venue_config_repo.subscribe_blocked_dates(self._on_blocked_dates),
            self._venue_config_repo.subscribe_special_dates(self._on_special_dates),
            self._venue_config_repo.subscribe_price(self._on_price),
            self._venue_config_repo.subscribe_payment_alias(self._on_payment_alias),
            self._free_play_repo.subscribe(self._on_free_play_tables),
        ]

    def close(self):
        """Отмена всех подписок и отсоединение экранов"""
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes = []
        self._views = []
        logger.info("Подписки кэша сняты")

    # ------------------------------------------------------------------
    # Экраны
    # ------------------------------------------------------------------

    def attach(self, view: BookingView):
        if view not in self._views:
            self._views.append(view)

    def detach(self, view: BookingView):
        if view in self._views:
            self._views.remove(view)

    @property
    def views(self) -> List[BookingView]:
        return list(self._views)

    # ------------------------------------------------------------------
    # Чтение из кэша
    # ------------------------------------------------------------------

    @property
    def active_time_slots(self) -> List[TimeSlot]:
        return [slot for slot in self.time_slots if slot.active]

    def slot_availability(self, date: str, time: str) -> SlotAvailability:
        return calculate_slot_availability(self.reservations, normalize_date(date), time)

    def availability_for(self, date: str) -> List[Tuple[TimeSlot, SlotAvailability]]:
        return slots_availability(self.reservations, self.time_slots, normalize_date(date))

    def available_dates(self, today=None):
        return get_available_dates(self.blocked_dates, today)

    def special_date_label(self, date: str) -> Optional[str]:
        return self.special_dates.get(normalize_date(date))

    def total_for(self, people: int) -> int:
        return self.price * people

    # ------------------------------------------------------------------
    # Обработчики подписок
    # ------------------------------------------------------------------

    def _on_reservations(self, reservations: List[Reservation]):
        self.reservations = list(reservations)
        logger.debug(f"Кэш бронирований обновлён: {len(self.reservations)}")
        self._redraw_time_slots()

    def _on_time_slots(self, time_slots: List[TimeSlot]):
        self.time_slots = TimeSlotRepository.sort_slots(time_slots)
        self._redraw_time_slots()

    def _on_blocked_dates(self, blocked_dates: List[str]):
        self.blocked_dates = list(blocked_dates)
        self._redraw_calendar()

    def _on_special_dates(self, special_dates: Dict[str, str]):
        self.special_dates = dict(special_dates)
        self._redraw_calendar()

    def _on_price(self, price: int):
        self.price = price
        for view in self.views:
            if view.confirming:
                self._safe_redraw(view.redraw_total, self.total_for(view.people))

    def _on_payment_alias(self, alias: str):
        self.payment_alias = alias

    def _on_free_play_tables(self, tables: List[FreePlayTable]):
        self.free_play_tables = list(tables)
        for view in self.views:
            self._safe_redraw(view.redraw_free_play, self.free_play_tables)

    def _redraw_time_slots(self):
        # Без выбранной даты пересчитывать нечего
        for view in self.views:
            if view.selected_date is None:
                continue
            self._safe_redraw(view.redraw_time_slots, self.availability_for(view.selected_date))

    def _redraw_calendar(self):
        for view in self.views:
            self._safe_redraw(view.redraw_calendar, self.blocked_dates, self.special_dates)

    @staticmethod
    def _safe_redraw(redraw: Callable, *args):
        try:
            redraw(*args)
        except Exception as e:
            logger.error(f"Ошибка перерисовки экрана: {e}", exc_info=True)
