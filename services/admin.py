"""
Вспомогательные функции админ-панели: фильтры, страницы, разбор команд
"""
import re
import shlex
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from config import settings
from database.models import FreePlayTable, Reservation, ReservationStatus, TimeSlot
from services.booking import normalize_phone, validate_people
from services.errors import ValidationError
from utils.time_utils import normalize_date

SLOT_LABEL_PATTERN = re.compile(r'^\d{1,2}:\d{2}\s*-\s*\d{1,2}:\d{2}$')

# Ключ команды /editar -> поле бронирования
RESERVATION_EDIT_FIELDS = {
    'fecha': 'date',
    'horario': 'time',
    'cliente': 'user_name',
    'telefono': 'phone',
    'juego': 'game',
    'personas': 'people',
    'estado': 'status',
}

# Ключ команд /mesa_nueva и /mesa_editar -> поле стола
FREE_TABLE_FIELDS = {
    'numero': 'number',
    'juego': 'game',
    'cupos': 'capacity',
    'fecha': 'date',
    'rango': 'time_range',
}


@dataclass
class Page:
    """Страница списка"""
    items: List[Any]
    page: int
    total_pages: int
    total_items: int


def filter_reservations(reservations: Iterable[Reservation], text: str = '',
                        date_from: Optional[str] = None, date_to: Optional[str] = None,
                        status: Optional[str] = None) -> List[Reservation]:
    """Поиск по имени или игре, диапазону дат (включительно) и статусу"""
    text = (text or '').lower()
    date_from = normalize_date(date_from) if date_from else None
    date_to = normalize_date(date_to) if date_to else None

    result = []
    for reservation in reservations:
        if text and text not in reservation.user_name.lower() and text not in reservation.game.lower():
            continue
        if (date_from or date_to) and not reservation.date:
            continue
        if date_from and reservation.date < date_from:
            continue
        if date_to and reservation.date > date_to:
            continue
        if status:
            if status == 'pending':
                if reservation.status not in ('pending', ReservationStatus.PENDING_PAYMENT):
                    continue
            elif reservation.status != status:
                continue
        result.append(reservation)
    return result


def paginate(items: Sequence[Any], page: int, per_page: int = None) -> Page:
    """Страница с номером, приведённым к допустимому диапазону"""
    per_page = per_page or settings.RESERVATIONS_PAGE_SIZE
    total_pages = max(1, -(-len(items) // per_page))
    page = min(max(page, 1), total_pages)
    start = (page - 1) * per_page
    return Page(
        items=list(items[start:start + per_page]),
        page=page,
        total_pages=total_pages,
        total_items=len(items)
    )


def parse_command_args(text: str) -> Tuple[List[str], Dict[str, str]]:
    """
    Разбор аргументов команды на позиционные и ключ=значение

    '/editar abc juego="Catan Junior"' -> (['abc'], {'juego': 'Catan Junior'})
    """
    try:
        tokens = shlex.split(text)
    except ValueError:
        raise ValidationError("Revisá las comillas del comando")

    positional, options = [], {}
    for token in tokens[1:]:
        if '=' in token:
            key, value = token.split('=', 1)
            options[key.strip().lower()] = value.strip()
        else:
            positional.append(token)
    return positional, options


def parse_positive_int(value: str, message: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(message)
    if number <= 0:
        raise ValidationError(message)
    return number


def validate_price(value: str) -> int:
    return parse_positive_int(value, "Ingresá un precio válido mayor a 0")


def validate_alias(value: str) -> str:
    alias = (value or '').strip()
    if not alias:
        raise ValidationError("El alias no puede estar vacío")
    return alias


def validate_slot_label(value: str) -> str:
    label = (value or '').strip()
    if not label or not SLOT_LABEL_PATTERN.match(label):
        raise ValidationError("Ingresá un horario válido, por ejemplo 17:00 - 19:00")
    return label


def validate_date(value: str) -> str:
    try:
        return normalize_date(value)
    except ValueError:
        raise ValidationError("Ingresá una fecha válida (AAAA-MM-DD)")


def build_reservation_changes(options: Dict[str, str],
                              time_slots: Iterable[TimeSlot]) -> Dict[str, Any]:
    """Изменения бронирования из аргументов /editar"""
    unknown = set(options) - set(RESERVATION_EDIT_FIELDS)
    if unknown:
        raise ValidationError(f"Campos desconocidos: {', '.join(sorted(unknown))}")
    if not options:
        raise ValidationError("Indicá al menos un campo para editar")

    changes: Dict[str, Any] = {}
    for key, value in options.items():
        field = RESERVATION_EDIT_FIELDS[key]
        if not value:
            raise ValidationError("Por favor, completá todos los campos")

        if field == 'date':
            changes[field] = validate_date(value)
        elif field == 'time':
            labels = {slot.label for slot in time_slots}
            if value not in labels:
                raise ValidationError(f"El horario '{value}' no existe")
            changes[field] = value
        elif field == 'people':
            changes[field] = validate_people(
                parse_positive_int(value, "Ingresá una cantidad de personas válida")
            )
        elif field == 'status':
            if value not in ReservationStatus.ALL:
                raise ValidationError(f"Estado inválido: {value}")
            changes[field] = value
        elif field == 'phone':
            changes[field] = normalize_phone(value)
        else:
            changes[field] = value
    return changes


def build_free_table_changes(options: Dict[str, str]) -> Dict[str, Any]:
    """Поля стола свободной игры из аргументов команды"""
    unknown = set(options) - set(FREE_TABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Campos desconocidos: {', '.join(sorted(unknown))}")

    changes: Dict[str, Any] = {}
    for key, value in options.items():
        field = FREE_TABLE_FIELDS[key]
        if field == 'number':
            changes[field] = parse_positive_int(value, "Ingresá un número de mesa válido")
        elif field == 'capacity':
            changes[field] = parse_positive_int(value, "Ingresá una cantidad de cupos válida")
        elif field == 'game':
            if not value.strip():
                raise ValidationError("Ingresá el nombre del juego")
            changes[field] = value.strip()
        elif field == 'date':
            changes[field] = validate_date(value) if value else None
        else:
            changes[field] = value.strip() or None
    return changes


def build_free_table(options: Dict[str, str]) -> FreePlayTable:
    """Новый стол свободной игры: номер, игра и количество мест обязательны"""
    changes = build_free_table_changes(options)
    if 'number' not in changes:
        raise ValidationError("Ingresá un número de mesa válido")
    if 'game' not in changes:
        raise ValidationError("Ingresá el nombre del juego")
    if 'capacity' not in changes:
        raise ValidationError("Ingresá una cantidad de cupos válida")
    return FreePlayTable(
        id=None,
        number=changes['number'],
        game=changes['game'],
        capacity=changes['capacity'],
        date=changes.get('date'),
        time_range=changes.get('time_range')
    )
