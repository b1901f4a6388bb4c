"""
Обработчики команд и сообщений пользователей
"""
import logging
from typing import Any, Dict

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery, ReplyKeyboardRemove
from aiogram.fsm.context import FSMContext

from config import settings
from database.store import StoreError
from handlers.common import STORE_FAILURE_TEXT, is_admin, notify_admins
from handlers.views import STEP_CONFIRM, STEP_DATE, STEP_DETAILS, STEP_TIME, TelegramBookingView, ViewRegistry
from keyboards.keyboards import (
    BTN_BOOK, BTN_MY_RESERVATIONS, BTN_NEWS,
    get_main_menu_keyboard, get_dates_keyboard, get_times_keyboard, get_people_keyboard,
    get_game_keyboard, get_phone_keyboard, get_confirmation_keyboard,
    get_reservations_keyboard, get_back_to_reservations_keyboard,
    get_admin_reservation_keyboard, get_cancel_keyboard, status_label
)
from services.booking import (
    GAME_DECIDE_LATER, GAME_SPECIFIC, BookingDraft, confirm_booking, normalize_phone, validate_draft
)
from services.container import Services
from services.errors import SlotUnavailableError, ValidationError
from states.booking_states import BookingStates
from utils.time_utils import format_long_date, format_price, is_bookable_date, parse_date

logger = logging.getLogger(__name__)
router = Router()


def draft_from_state(data: Dict[str, Any]) -> BookingDraft:
    """Черновик бронирования из данных FSM"""
    return BookingDraft(
        date=data.get('date'),
        time=data.get('time'),
        people=data.get('people', 1),
        game_type=data.get('game_type', GAME_DECIDE_LATER),
        game_name=data.get('game_name', ''),
        phone=data.get('phone', '')
    )


def build_summary_text(draft: BookingDraft, total: int, payment_alias: str) -> str:
    """Текст подтверждения с суммой и алиасом для перевода"""
    return (
        f"🧾 Resumen de tu reserva\n\n"
        f"📅 Fecha: {format_long_date(draft.date)}\n"
        f"🕐 Horario: {draft.time}\n"
        f"👥 Personas: {draft.people}\n"
        f"🎲 Juego: {draft.game}\n"
        f"📱 Teléfono: {draft.phone}\n\n"
        f"💰 Total: {format_price(total)}\n"
        f"Transferí {format_price(total)} al alias: {payment_alias}\n\n"
        f"Confirmá la reserva:"
    )


def ensure_view(views: ViewRegistry, callback: CallbackQuery, data: Dict[str, Any]) -> TelegramBookingView:
    """Экран пользователя; если он был закрыт по таймауту, открывается заново"""
    view = views.get(callback.from_user.id)
    if view is None:
        view = views.open(callback.bot, callback.message.chat.id, callback.from_user.id)
        if data.get('date'):
            view.select_date(data['date'])
        view.selected_time = data.get('time')
        view.people = data.get('people', 1)
    return view


@router.message(Command("start"))
async def cmd_start(message: Message, state: FSMContext, views: ViewRegistry):
    """Обработка команды /start"""
    await state.clear()
    views.close(message.from_user.id)

    await message.answer(
        f"👋 ¡Bienvenido/a a la reserva de mesas de juego!\n\n"
        f"Acá podés:\n"
        f"📅 Reservar una mesa para jugar\n"
        f"📋 Ver el estado de tus reservas\n"
        f"🎲 Anotarte en mesas de juego libre\n\n"
        f"Elegí una opción:",
        reply_markup=get_main_menu_keyboard(is_admin(message.from_user.id))
    )


@router.message(F.text == BTN_BOOK)
async def start_booking(message: Message, state: FSMContext, services: Services, views: ViewRegistry):
    """Начало процесса бронирования"""
    await state.clear()

    dates = services.cache.available_dates()
    if not dates:
        await message.answer("😔 No hay fechas disponibles por ahora. Consultá con el local.")
        return

    view = views.open(message.bot, message.chat.id, message.from_user.id)
    sent = await message.answer(
        "📅 Elegí una fecha:",
        reply_markup=get_dates_keyboard(dates, services.cache.special_dates)
    )
    view.show(sent.message_id, STEP_DATE)
    await state.set_state(BookingStates.choosing_date)


@router.callback_query(F.data.startswith("date:"), BookingStates.choosing_date)
async def process_date(callback: CallbackQuery, state: FSMContext, services: Services, views: ViewRegistry):
    """Обработка выбора даты"""
    date_str = callback.data.split(":", 1)[1]
    cache = services.cache

    # Дату могли закрыть, пока пользователь выбирал
    if not is_bookable_date(parse_date(date_str), cache.blocked_dates):
        await callback.answer("Esta fecha ya no está disponible", show_alert=True)
        return

    availability = cache.availability_for(date_str)
    if not availability:
        await callback.answer("No hay horarios disponibles. Consultá con el local.", show_alert=True)
        return

    await state.update_data(date=date_str, time=None)
    view = ensure_view(views, callback, await state.get_data())
    view.select_date(date_str)

    text = f"🕐 Elegí un horario para el {format_long_date(date_str)}:"
    special = cache.special_date_label(date_str)
    if special:
        text = f"★ {special}\n\n{text}"

    await callback.message.edit_text(text, reply_markup=get_times_keyboard(availability))
    view.show(callback.message.message_id, STEP_TIME)
    await state.set_state(BookingStates.choosing_time)
    await callback.answer()


@router.callback_query(F.data.startswith("time:"), BookingStates.choosing_time)
async def process_time(callback: CallbackQuery, state: FSMContext, services: Services, views: ViewRegistry):
    """Обработка выбора слота"""
    slot_id = callback.data.split(":", 1)[1]
    data = await state.get_data()
    cache = services.cache

    slot = next((s for s in cache.active_time_slots if s.id == slot_id), None)
    if slot is None:
        await callback.answer("Este horario ya no está disponible", show_alert=True)
        return

    availability = cache.slot_availability(data['date'], slot.label)
    if not availability.available:
        await callback.answer(
            "No hay mesas disponibles para este horario. Por favor, elegí otro horario.",
            show_alert=True
        )
        return

    await state.update_data(time=slot.label)
    view = ensure_view(views, callback, data)
    view.selected_time = slot.label

    await callback.message.edit_text(
        f"👥 ¿Cuántas personas van a jugar? (máximo {settings.MAX_PEOPLE})",
        reply_markup=get_people_keyboard()
    )
    view.show(callback.message.message_id, STEP_DETAILS)
    await state.set_state(BookingStates.choosing_people)
    await callback.answer()


@router.callback_query(F.data.startswith("people:"), BookingStates.choosing_people)
async def process_people(callback: CallbackQuery, state: FSMContext, views: ViewRegistry):
    """Обработка выбора количества человек"""
    people = int(callback.data.split(":")[1])

    await state.update_data(people=people)
    view = ensure_view(views, callback, await state.get_data())
    view.people = people

    await callback.message.edit_text("🎲 ¿Qué juego quieren jugar?", reply_markup=get_game_keyboard())
    view.show(callback.message.message_id, STEP_DETAILS)
    await state.set_state(BookingStates.choosing_game)
    await callback.answer()


@router.callback_query(F.data.startswith("game:"), BookingStates.choosing_game)
async def process_game(callback: CallbackQuery, state: FSMContext):
    """Обработка выбора игры"""
    game_type = callback.data.split(":")[1]

    if game_type == GAME_SPECIFIC:
        await state.update_data(game_type=GAME_SPECIFIC)
        await callback.message.edit_text(
            "🧩 Escribí el nombre del juego:",
            reply_markup=get_cancel_keyboard()
        )
        await state.set_state(BookingStates.entering_game)
        await callback.answer()
        return

    await state.update_data(game_type=GAME_DECIDE_LATER, game_name='')
    await callback.message.edit_text("🎲 Juego: a decidir en el local")
    await ask_phone(callback.message, state)
    await callback.answer()


@router.message(BookingStates.entering_game, F.text)
async def process_game_name(message: Message, state: FSMContext):
    """Обработка ввода названия игры"""
    game_name = message.text.strip()

    if not game_name:
        await message.answer("⚠️ Ingresá el nombre del juego")
        return

    await state.update_data(game_name=game_name)
    await ask_phone(message, state)


async def ask_phone(message: Message, state: FSMContext):
    await message.answer(
        "📱 Enviá tu número de WhatsApp para coordinar el pago.\n\n"
        "Tocá el botón o escribilo a mano:",
        reply_markup=get_phone_keyboard()
    )
    await state.set_state(BookingStates.entering_phone)


@router.message(BookingStates.entering_phone, F.contact)
async def process_contact(message: Message, state: FSMContext, services: Services, views: ViewRegistry):
    """Обработка контакта"""
    await process_phone_number(message, state, services, views, message.contact.phone_number)


@router.message(BookingStates.entering_phone, F.text)
async def process_phone_text(message: Message, state: FSMContext, services: Services, views: ViewRegistry):
    """Обработка текстового ввода телефона"""
    await process_phone_number(message, state, services, views, message.text)


async def process_phone_number(message: Message, state: FSMContext, services: Services,
                               views: ViewRegistry, raw_phone: str):
    """Общая обработка номера телефона и показ итогов"""
    phone = normalize_phone(raw_phone)
    await state.update_data(phone=phone)
    draft = draft_from_state(await state.get_data())

    try:
        validate_draft(draft)
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return

    cache = services.cache
    await message.answer("✅ Teléfono registrado", reply_markup=ReplyKeyboardRemove())
    sent = await message.answer(
        build_summary_text(draft, cache.total_for(draft.people), cache.payment_alias),
        reply_markup=get_confirmation_keyboard()
    )

    view = views.get(message.from_user.id) or views.open(message.bot, message.chat.id, message.from_user.id)
    view.selected_date = draft.date
    view.selected_time = draft.time
    view.people = draft.people
    # Итог пересчитывается при изменении цены, пока экран открыт
    view.render_summary = lambda total: build_summary_text(draft, total, cache.payment_alias)
    view.show(sent.message_id, STEP_CONFIRM)
    await state.set_state(BookingStates.confirming)


@router.callback_query(F.data == "confirm_booking", BookingStates.confirming)
async def process_confirm(callback: CallbackQuery, state: FSMContext, services: Services, views: ViewRegistry):
    """Подтверждение и создание бронирования"""
    draft = draft_from_state(await state.get_data())
    user = callback.from_user

    try:
        reservation = confirm_booking(
            draft, user.id, user.full_name, services.reservations, services.venue_config,
            username=user.username
        )
    except ValidationError as e:
        await callback.answer(str(e), show_alert=True)
        return
    except SlotUnavailableError:
        await callback.message.edit_text(
            "⚠️ Mientras completabas la reserva se ocuparon todas las mesas de este horario.\n"
            "Por favor, elegí otro horario."
        )
        await state.clear()
        views.close(user.id)
        await callback.answer()
        return
    except StoreError as e:
        logger.error(f"Ошибка при создании бронирования: {e}", exc_info=True)
        await callback.answer("Error al crear la reserva. Por favor intentá de nuevo.", show_alert=True)
        return

    views.close(user.id)
    await state.clear()

    admin_text = (
        f"📌 Nueva reserva\n\n"
        f"👤 {reservation.user_name} (@{user.username or 'sin username'})\n"
        f"📅 {format_long_date(reservation.date)} · {reservation.time}\n"
        f"👥 {reservation.people} · 🎲 {reservation.game}\n"
        f"📱 {reservation.phone}\n"
        f"💰 {format_price(reservation.total)}"
    )
    await notify_admins(callback.bot, admin_text, reply_markup=get_admin_reservation_keyboard(reservation))

    await callback.message.edit_text(
        f"✅ ¡Reserva creada con éxito!\n\n"
        f"📅 {format_long_date(reservation.date)} · {reservation.time}\n"
        f"💰 Total: {format_price(reservation.total)}\n\n"
        f"Pronto nos pondremos en contacto para confirmar el pago."
    )
    await callback.message.answer(
        "Elegí una opción:",
        reply_markup=get_main_menu_keyboard(is_admin(user.id))
    )
    await callback.answer()


@router.message(F.text == BTN_MY_RESERVATIONS)
async def my_reservations(message: Message, services: Services):
    """Просмотр бронирований пользователя"""
    try:
        reservations = services.reservations.get_reservations(message.from_user.id)
    except StoreError as e:
        logger.error(f"Ошибка чтения бронирований: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    if not reservations:
        await message.answer(
            "Todavía no tenés reservas.",
            reply_markup=get_main_menu_keyboard(is_admin(message.from_user.id))
        )
        return

    await message.answer("📋 Tus reservas:", reply_markup=get_reservations_keyboard(reservations))


@router.callback_query(F.data == "my_reservations")
async def callback_my_reservations(callback: CallbackQuery, services: Services):
    """Возврат к списку бронирований"""
    try:
        reservations = services.reservations.get_reservations(callback.from_user.id)
    except StoreError as e:
        logger.error(f"Ошибка чтения бронирований: {e}", exc_info=True)
        await callback.answer(STORE_FAILURE_TEXT, show_alert=True)
        return

    if not reservations:
        await callback.message.edit_text("Todavía no tenés reservas.")
    else:
        await callback.message.edit_text("📋 Tus reservas:", reply_markup=get_reservations_keyboard(reservations))
    await callback.answer()


@router.callback_query(F.data.startswith("show_reservation:"))
async def show_reservation_details(callback: CallbackQuery, services: Services):
    """Показать детали бронирования"""
    reservation_id = callback.data.split(":", 1)[1]
    try:
        reservation = services.reservations.get_reservation_by_id(reservation_id)
    except StoreError as e:
        logger.error(f"Ошибка чтения бронирования {reservation_id}: {e}", exc_info=True)
        await callback.answer(STORE_FAILURE_TEXT, show_alert=True)
        return

    if not reservation or reservation.user_id != callback.from_user.id:
        await callback.answer("Reserva no encontrada", show_alert=True)
        return

    text = (
        f"📋 Reserva\n\n"
        f"📅 {format_long_date(reservation.date)}\n"
        f"🕐 {reservation.time}\n"
        f"👥 Personas: {reservation.people}\n"
        f"🎲 Juego: {reservation.game}\n"
        f"💰 Total: {format_price(reservation.total)}\n"
        f"Estado: {status_label(reservation.status)}"
    )

    await callback.message.edit_text(text, reply_markup=get_back_to_reservations_keyboard())
    await callback.answer()


@router.message(F.text == BTN_NEWS)
async def show_news(message: Message, services: Services):
    """Новости заведения"""
    try:
        news = services.news.get_news()
    except StoreError as e:
        logger.error(f"Ошибка чтения новостей: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    if not news:
        await message.answer("No hay novedades.")
        return

    for item in news:
        text = f"📰 {item.title}\n\n{item.description}"
        if item.image_url:
            text += f"\n\n{item.image_url}"
        await message.answer(text)


# Навигация назад
@router.callback_query(F.data == "back_to_date")
async def back_to_date(callback: CallbackQuery, state: FSMContext, services: Services, views: ViewRegistry):
    """Возврат к выбору даты"""
    view = ensure_view(views, callback, await state.get_data())
    await callback.message.edit_text(
        "📅 Elegí una fecha:",
        reply_markup=get_dates_keyboard(services.cache.available_dates(), services.cache.special_dates)
    )
    view.show(callback.message.message_id, STEP_DATE)
    await state.set_state(BookingStates.choosing_date)
    await callback.answer()


@router.callback_query(F.data == "back_to_time")
async def back_to_time(callback: CallbackQuery, state: FSMContext, services: Services, views: ViewRegistry):
    """Возврат к выбору слота"""
    data = await state.get_data()
    if not data.get('date'):
        await back_to_date(callback, state, services, views)
        return

    view = ensure_view(views, callback, data)
    await callback.message.edit_text(
        f"🕐 Elegí un horario para el {format_long_date(data['date'])}:",
        reply_markup=get_times_keyboard(services.cache.availability_for(data['date']), data.get('time'))
    )
    view.show(callback.message.message_id, STEP_TIME)
    await state.set_state(BookingStates.choosing_time)
    await callback.answer()


@router.callback_query(F.data == "back_to_people")
async def back_to_people(callback: CallbackQuery, state: FSMContext, views: ViewRegistry):
    """Возврат к выбору количества человек"""
    view = ensure_view(views, callback, await state.get_data())
    await callback.message.edit_text("👥 ¿Cuántas personas van a jugar?", reply_markup=get_people_keyboard())
    view.show(callback.message.message_id, STEP_DETAILS)
    await state.set_state(BookingStates.choosing_people)
    await callback.answer()


@router.callback_query(F.data == "main_menu")
async def callback_main_menu(callback: CallbackQuery, state: FSMContext, views: ViewRegistry):
    """Возврат в главное меню"""
    await state.clear()
    views.close(callback.from_user.id)

    await callback.message.answer(
        "🏠 Menú principal",
        reply_markup=get_main_menu_keyboard(is_admin(callback.from_user.id))
    )
    await callback.answer()


@router.callback_query(F.data == "cancel")
async def cancel_booking_process(callback: CallbackQuery, state: FSMContext, views: ViewRegistry):
    """Отмена процесса бронирования"""
    await state.clear()
    views.close(callback.from_user.id)

    await callback.message.edit_text("❌ Reserva cancelada")
    await callback.message.answer(
        "Elegí una opción:",
        reply_markup=get_main_menu_keyboard(is_admin(callback.from_user.id))
    )
    await callback.answer()


@router.callback_query(F.data == "noop")
async def callback_noop(callback: CallbackQuery):
    await callback.answer()
