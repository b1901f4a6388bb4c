"""
Утилиты для работы с датами и расписанием

Даты бронирований - календарные строки YYYY-MM-DD. Сравнение только
строковое, без перевода во временные метки.
"""
import re
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union
from config import settings

DATE_FORMAT = '%Y-%m-%d'
_DATE_PREFIX = re.compile(r'^(\d{4})-(\d{2})-(\d{2})')

WEEKDAYS = ['Lun', 'Mar', 'Mié', 'Jue', 'Vie', 'Sáb', 'Dom']
WEEKDAYS_LONG = ['Lunes', 'Martes', 'Miércoles', 'Jueves', 'Viernes', 'Sábado', 'Domingo']
MONTHS = [
    'enero', 'febrero', 'marzo', 'abril', 'mayo', 'junio',
    'julio', 'agosto', 'septiembre', 'octubre', 'noviembre', 'diciembre'
]


def normalize_date(value: Union[str, date, datetime]) -> str:
    """
    Приведение даты к строке YYYY-MM-DD

    Для datetime (в т.ч. с часовым поясом) берутся его собственные
    год, месяц и день, без пересчёта в UTC. Из строки с временной
    меткой ISO берётся календарная часть.
    """
    if isinstance(value, datetime):
        return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    if isinstance(value, str):
        match = _DATE_PREFIX.match(value.strip())
        if match:
            year, month, day = (int(part) for part in match.groups())
            # Проверка, что такая дата существует
            return date(year, month, day).strftime(DATE_FORMAT)
    raise ValueError(f"Некорректная дата: {value!r}")


def parse_date(date_str: str) -> date:
    """Строка YYYY-MM-DD -> date (локальная календарная дата)"""
    return datetime.strptime(normalize_date(date_str), DATE_FORMAT).date()


def is_open_weekday(day: date) -> bool:
    """Работает ли заведение в этот день недели"""
    return day.weekday() in settings.OPEN_WEEKDAYS


def is_bookable_date(day: date, blocked_dates: Iterable[str],
                     today: Optional[date] = None) -> bool:
    """Можно ли бронировать дату: день работы, не в прошлом, не заблокирована"""
    today = today or date.today()
    if day < today:
        return False
    if not is_open_weekday(day):
        return False
    return normalize_date(day) not in set(blocked_dates)


def get_available_dates(blocked_dates: Iterable[str],
                        today: Optional[date] = None) -> List[date]:
    """Получение списка доступных дат для бронирования"""
    today = today or date.today()
    blocked = set(blocked_dates)
    dates = []

    for i in range(settings.MAX_BOOKING_DAYS):
        day = today + timedelta(days=i)
        if is_bookable_date(day, blocked, today):
            dates.append(day)

    return dates


def format_date(value: Union[str, date]) -> str:
    """Короткое отображение даты: 'Sáb 01/06'"""
    day = parse_date(value) if isinstance(value, str) else value
    return f"{WEEKDAYS[day.weekday()]} {day.strftime('%d/%m')}"


def format_long_date(value: Union[str, date]) -> str:
    """Полное отображение даты: 'Sábado 1 de junio de 2024'"""
    day = parse_date(value) if isinstance(value, str) else value
    return f"{WEEKDAYS_LONG[day.weekday()]} {day.day} de {MONTHS[day.month - 1]} de {day.year}"


def format_price(amount: int) -> str:
    """Сумма с разделителем тысяч: '$12.500'"""
    return '$' + f"{amount:,}".replace(',', '.')
