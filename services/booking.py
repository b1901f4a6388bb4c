"""
Правила оформления бронирования
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from config import settings
from database.models import GAME_DECIDE_ON_SITE, Reservation, ReservationStatus
from database.repository import ReservationRepository, VenueConfigRepository
from services.availability import check_slot_availability
from services.errors import SlotUnavailableError, ValidationError
from utils.time_utils import normalize_date

logger = logging.getLogger(__name__)

GAME_DECIDE_LATER = 'decide_later'
GAME_SPECIFIC = 'specific'

PHONE_PATTERN = re.compile(r'^\+?[0-9\s-]+$')


@dataclass
class BookingDraft:
    """Данные бронирования, собираемые по шагам"""
    date: Optional[str] = None
    time: Optional[str] = None
    people: int = settings.MIN_PEOPLE
    game_type: str = GAME_DECIDE_LATER
    game_name: str = ''
    phone: str = ''

    @property
    def game(self) -> str:
        if self.game_type == GAME_SPECIFIC:
            return self.game_name.strip()
        return GAME_DECIDE_ON_SITE


def normalize_phone(text: str) -> str:
    """Оставляет только цифры и ведущий '+'"""
    text = (text or '').strip()
    digits = re.sub(r'[^0-9]', '', text)
    return '+' + digits if text.startswith('+') else digits


def validate_people(people: int) -> int:
    if not settings.MIN_PEOPLE <= people <= settings.MAX_PEOPLE:
        raise ValidationError(
            f"La cantidad de personas debe estar entre {settings.MIN_PEOPLE} y {settings.MAX_PEOPLE}"
        )
    return people


def validate_draft(draft: BookingDraft):
    """Проверка шагов в порядке: дата, слот, игра, телефон"""
    if not draft.date:
        raise ValidationError("Seleccioná una fecha")
    if not draft.time:
        raise ValidationError("Seleccioná un horario")
    if draft.game_type == GAME_SPECIFIC and not draft.game_name.strip():
        raise ValidationError("Ingresá el nombre del juego")
    if not draft.phone or not PHONE_PATTERN.match(draft.phone):
        raise ValidationError("Ingresá un número de teléfono válido")
    validate_people(draft.people)


def build_reservation(draft: BookingDraft, user_id: int, user_name: str,
                      price_per_person: int, username: Optional[str] = None) -> Reservation:
    """Бронирование с ценой, зафиксированной на момент создания"""
    return Reservation(
        id=None,
        user_id=user_id,
        user_name=user_name,
        username=username,
        phone=draft.phone,
        date=normalize_date(draft.date),
        time=draft.time,
        people=draft.people,
        game=draft.game,
        price_per_person=price_per_person,
        total=price_per_person * draft.people,
        status=ReservationStatus.PENDING_PAYMENT
    )


def confirm_booking(draft: BookingDraft, user_id: int, user_name: str,
                    reservations: ReservationRepository, venue_config: VenueConfigRepository,
                    username: Optional[str] = None) -> Reservation:
    """
    Создание бронирования из черновика

    Доступность проверяется заново свежим запросом; между проверкой
    и записью другой клиент всё ещё может занять последний стол.
    """
    validate_draft(draft)

    availability = check_slot_availability(reservations, draft.date, draft.time)
    if not availability.available:
        raise SlotUnavailableError(draft.date, draft.time)

    reservation = build_reservation(
        draft, user_id, user_name, venue_config.get_price(), username=username
    )
    reservation.id = reservations.create_reservation(reservation)
    logger.info(
        f"Создано бронирование {reservation.id}: {reservation.date} {reservation.time}, "
        f"{reservation.people} чел., {reservation.total}"
    )
    return reservation
