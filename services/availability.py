"""
Расчёт занятости столов по дате и временному слоту

Стол считается занятым с момента создания заявки: учитываются
подтверждённые и ожидающие оплаты бронирования, не учитываются
только отклонённые.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from config import settings
from database.models import Reservation, TimeSlot
from database.repository import ReservationRepository
from database.store import StoreError
from utils.time_utils import normalize_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotAvailability:
    """Свободные места на слот"""
    available: bool
    spots_left: int
    total: int

    @classmethod
    def from_occupied(cls, occupied: int, total: int = None) -> 'SlotAvailability':
        total = settings.TABLES_COUNT if total is None else total
        return cls(
            available=occupied < total,
            spots_left=max(0, total - occupied),
            total=total
        )

    @classmethod
    def closed(cls, total: int = None) -> 'SlotAvailability':
        """Слот недоступен (например, при ошибке чтения)"""
        total = settings.TABLES_COUNT if total is None else total
        return cls(available=False, spots_left=0, total=total)


def is_occupying(reservation: Reservation, date: str, time: str) -> bool:
    """Занимает ли бронирование стол на дату и слот"""
    return (
        reservation.date == date
        and reservation.time == time
        and not reservation.is_rejected
    )


def count_occupied(reservations: Iterable[Reservation], date: str, time: str) -> int:
    return sum(1 for reservation in reservations if is_occupying(reservation, date, time))


def calculate_slot_availability(reservations: Iterable[Reservation],
                                date: str, time: str) -> SlotAvailability:
    """Доступность слота по локальному кэшу бронирований"""
    occupied = count_occupied(reservations, date, time)
    logger.debug(f"Занято {occupied}/{settings.TABLES_COUNT} на {date} {time}")
    return SlotAvailability.from_occupied(occupied)


def check_slot_availability(repository: ReservationRepository,
                            date: str, time: str) -> SlotAvailability:
    """
    Доступность слота по свежему запросу к хранилищу

    При ошибке чтения слот считается недоступным.
    """
    date = normalize_date(date)
    try:
        reservations = repository.get_slot_reservations(date, time)
    except StoreError as e:
        logger.error(f"Не удалось проверить доступность {date} {time}: {e}", exc_info=True)
        return SlotAvailability.closed()

    return SlotAvailability.from_occupied(count_occupied(reservations, date, time))


def slots_availability(reservations: List[Reservation], time_slots: Iterable[TimeSlot],
                       date: str) -> List[Tuple[TimeSlot, SlotAvailability]]:
    """Доступность всех активных слотов на дату без отдельных запросов к хранилищу"""
    return [
        (slot, calculate_slot_availability(reservations, date, slot.label))
        for slot in time_slots
        if slot.active
    ]
