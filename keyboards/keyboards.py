"""
Клавиатуры для Telegram бота
"""
from datetime import date
from typing import Dict, List, Optional, Tuple

from aiogram.types import InlineKeyboardMarkup, ReplyKeyboardMarkup, KeyboardButton
from aiogram.utils.keyboard import InlineKeyboardBuilder

from config import settings
from database.models import FreePlayTable, Reservation, ReservationStatus, TimeSlot
from services.availability import SlotAvailability
from utils.time_utils import format_date, normalize_date

BTN_BOOK = "📅 Reservar mesa"
BTN_MY_RESERVATIONS = "📋 Mis reservas"
BTN_FREE_PLAY = "🎲 Juego libre"
BTN_NEWS = "📰 Novedades"
BTN_ADMIN = "⚙️ Administración"

STATUS_LABELS = {
    ReservationStatus.PENDING_PAYMENT: "⏳ Pendiente de pago",
    ReservationStatus.CONFIRMED: "✅ Aceptada",
    ReservationStatus.REJECTED: "❌ Rechazada",
}


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, STATUS_LABELS[ReservationStatus.PENDING_PAYMENT])


def availability_label(availability: SlotAvailability) -> str:
    if not availability.available:
        return "Cupos llenos"
    spots = availability.spots_left
    return f"{spots} mesa{'s' if spots != 1 else ''} disponible{'s' if spots != 1 else ''}"


def format_table(table: FreePlayTable) -> str:
    """Строка стола: номер, игра, дата и занятость"""
    parts = [f"Mesa {table.number}", table.game]
    when = " ".join(p for p in (format_date(table.date) if table.date else None, table.time_range) if p)
    if when:
        parts.append(when)
    parts.append(f"{len(table.players)}/{table.capacity} jugadores")
    return " · ".join(parts)


def format_tables(tables: List[FreePlayTable]) -> str:
    if not tables:
        return "No hay mesas de juego libre por ahora."
    lines = ["🎲 Mesas de juego libre\n"]
    for table in tables:
        icon = "🔴" if table.is_full else "🟢"
        lines.append(f"{icon} {format_table(table)}")
    return "\n".join(lines)


def get_main_menu_keyboard(is_admin: bool = False) -> ReplyKeyboardMarkup:
    """Главное меню"""
    buttons = [
        [KeyboardButton(text=BTN_BOOK)],
        [KeyboardButton(text=BTN_MY_RESERVATIONS), KeyboardButton(text=BTN_FREE_PLAY)],
        [KeyboardButton(text=BTN_NEWS)],
    ]

    if is_admin:
        buttons.append([KeyboardButton(text=BTN_ADMIN)])

    return ReplyKeyboardMarkup(keyboard=buttons, resize_keyboard=True)


def get_dates_keyboard(dates: List[date], special_dates: Dict[str, str]) -> InlineKeyboardMarkup:
    """Клавиатура выбора даты; особые даты отмечены звёздочкой"""
    builder = InlineKeyboardBuilder()

    for day in dates:
        date_str = normalize_date(day)
        text = format_date(day)
        if date_str in special_dates:
            text = f"★ {text} · {special_dates[date_str]}"
        builder.button(text=text, callback_data=f"date:{date_str}")

    builder.button(text="❌ Cancelar", callback_data="cancel")
    builder.adjust(1)

    return builder.as_markup()


def get_times_keyboard(availability: List[Tuple[TimeSlot, SlotAvailability]],
                       selected_time: Optional[str] = None) -> InlineKeyboardMarkup:
    """Клавиатура выбора слота со свободными местами"""
    builder = InlineKeyboardBuilder()

    for slot, slot_availability in availability:
        prefix = "✔️ " if slot.label == selected_time else ("🚫 " if not slot_availability.available else "")
        builder.button(
            text=f"{prefix}{slot.label} · {availability_label(slot_availability)}",
            callback_data=f"time:{slot.id}"
        )

    builder.button(text="◀️ Atrás", callback_data="back_to_date")
    builder.button(text="❌ Cancelar", callback_data="cancel")
    builder.adjust(*([1] * len(availability)), 2)

    return builder.as_markup()


def get_people_keyboard() -> InlineKeyboardMarkup:
    """Клавиатура выбора количества человек"""
    builder = InlineKeyboardBuilder()

    for people in range(settings.MIN_PEOPLE, settings.MAX_PEOPLE + 1):
        builder.button(text=f"👥 {people}", callback_data=f"people:{people}")

    builder.button(text="◀️ Atrás", callback_data="back_to_time")
    builder.button(text="❌ Cancelar", callback_data="cancel")
    builder.adjust(3, 3, 2)

    return builder.as_markup()


def get_game_keyboard() -> InlineKeyboardMarkup:
    """Клавиатура выбора игры"""
    builder = InlineKeyboardBuilder()

    builder.button(text="🎲 Decidimos en el local", callback_data="game:decide_later")
    builder.button(text="🧩 Tengo un juego en mente", callback_data="game:specific")
    builder.button(text="◀️ Atrás", callback_data="back_to_people")
    builder.button(text="❌ Cancelar", callback_data="cancel")
    builder.adjust(1, 1, 2)

    return builder.as_markup()


def get_phone_keyboard() -> ReplyKeyboardMarkup:
    """Клавиатура для отправки телефона"""
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text="📱 Enviar mi teléfono", request_contact=True)]],
        resize_keyboard=True
    )


def get_confirmation_keyboard() -> InlineKeyboardMarkup:
    """Клавиатура подтверждения бронирования"""
    builder = InlineKeyboardBuilder()

    builder.button(text="✅ Confirmar reserva", callback_data="confirm_booking")
    builder.button(text="◀️ Cambiar", callback_data="back_to_people")
    builder.button(text="❌ Cancelar", callback_data="cancel")
    builder.adjust(1)

    return builder.as_markup()


def get_reservations_keyboard(reservations: List[Reservation]) -> InlineKeyboardMarkup:
    """Клавиатура списка бронирований пользователя"""
    builder = InlineKeyboardBuilder()

    for reservation in reservations:
        icon = status_label(reservation.status).split()[0]
        text = f"{icon} {format_date(reservation.date)} {reservation.time}"
        builder.button(text=text, callback_data=f"show_reservation:{reservation.id}")

    builder.button(text="🏠 Menú principal", callback_data="main_menu")
    builder.adjust(1)

    return builder.as_markup()


def get_back_to_reservations_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.button(text="◀️ Atrás", callback_data="my_reservations")
    return builder.as_markup()


def get_free_play_keyboard(tables: List[FreePlayTable], user_id: int) -> InlineKeyboardMarkup:
    """Клавиатура столов свободной игры"""
    builder = InlineKeyboardBuilder()

    for table in tables:
        if table.has_player(user_id):
            builder.button(text=f"🚪 Salir de la mesa {table.number}", callback_data=f"fp_leave:{table.id}")
        elif not table.is_full:
            builder.button(text=f"✋ Anotarme en la mesa {table.number}", callback_data=f"fp_join:{table.id}")

    builder.button(text="🏠 Menú principal", callback_data="main_menu")
    builder.adjust(1)

    return builder.as_markup()


def get_admin_keyboard() -> InlineKeyboardMarkup:
    """Клавиатура админ-панели"""
    builder = InlineKeyboardBuilder()

    builder.button(text="⏳ Reservas pendientes", callback_data="admin_pending")
    builder.button(text="📋 Reservas de hoy", callback_data="admin_today")
    builder.button(text="🕐 Horarios", callback_data="admin_slots")
    builder.button(text="🎲 Mesas de juego libre", callback_data="admin_free_play")
    builder.button(text="❓ Comandos", callback_data="admin_help")
    builder.button(text="🏠 Menú principal", callback_data="main_menu")
    builder.adjust(1)

    return builder.as_markup()


def get_admin_reservation_keyboard(reservation: Reservation) -> InlineKeyboardMarkup:
    """Действия администратора с бронированием"""
    builder = InlineKeyboardBuilder()

    if reservation.status != ReservationStatus.CONFIRMED:
        builder.button(text="✅ Aceptar", callback_data=f"adm_confirm:{reservation.id}")
    if reservation.status != ReservationStatus.REJECTED:
        builder.button(text="❌ Rechazar", callback_data=f"adm_reject:{reservation.id}")
    builder.button(text="🗑 Eliminar", callback_data=f"adm_delete:{reservation.id}")
    builder.adjust(3)

    return builder.as_markup()


def get_pagination_keyboard(page: int, total_pages: int) -> Optional[InlineKeyboardMarkup]:
    """Переход между страницами списка бронирований"""
    if total_pages <= 1:
        return None

    builder = InlineKeyboardBuilder()
    if page > 1:
        builder.button(text="◀️", callback_data=f"adm_page:{page - 1}")
    builder.button(text=f"{page}/{total_pages}", callback_data="noop")
    if page < total_pages:
        builder.button(text="▶️", callback_data=f"adm_page:{page + 1}")
    return builder.as_markup()


def get_admin_slots_keyboard(time_slots: List[TimeSlot]) -> InlineKeyboardMarkup:
    """Управление каталогом слотов"""
    builder = InlineKeyboardBuilder()

    for slot in time_slots:
        state = "🟢" if slot.active else "⚪️"
        builder.button(text=f"{state} {slot.label}", callback_data=f"adm_slot_toggle:{slot.id}")
        builder.button(text="🗑", callback_data=f"adm_slot_delete:{slot.id}")

    builder.adjust(*([2] * len(time_slots)))

    return builder.as_markup()


def get_cancel_keyboard() -> InlineKeyboardMarkup:
    """Простая клавиатура отмены"""
    builder = InlineKeyboardBuilder()
    builder.button(text="❌ Cancelar", callback_data="cancel")
    return builder.as_markup()
