"""
Обработчики записи за столы свободной игры
"""
import logging

from aiogram import Router, F
from aiogram.types import Message, CallbackQuery, ReplyKeyboardRemove
from aiogram.fsm.context import FSMContext

from database.models import Player
from database.store import StoreError
from handlers.common import STORE_FAILURE_TEXT, is_admin
from handlers.views import STEP_FREE_PLAY, ViewRegistry
from keyboards.keyboards import (
    BTN_FREE_PLAY, format_tables, get_free_play_keyboard, get_main_menu_keyboard, get_phone_keyboard
)
from services.booking import PHONE_PATTERN, normalize_phone
from services.container import Services
from services.errors import BookingRuleError
from states.booking_states import FreePlayStates

logger = logging.getLogger(__name__)
router = Router()


@router.message(F.text == BTN_FREE_PLAY)
async def show_free_play(message: Message, state: FSMContext, services: Services, views: ViewRegistry):
    """Список столов свободной игры; сообщение обновляется при записи других игроков"""
    await state.clear()
    try:
        tables = services.free_play.get_tables()
    except StoreError as e:
        logger.error(f"Ошибка чтения столов: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    view = views.open(message.bot, message.chat.id, message.from_user.id)
    sent = await message.answer(
        format_tables(tables),
        reply_markup=get_free_play_keyboard(tables, message.from_user.id)
    )
    view.show(sent.message_id, STEP_FREE_PLAY)


@router.callback_query(F.data.startswith("fp_join:"))
async def join_table(callback: CallbackQuery, state: FSMContext, services: Services):
    """Запись за стол: сначала запрашивается телефон"""
    table_id = callback.data.split(":", 1)[1]
    try:
        table = services.free_play.get_table_by_id(table_id)
    except StoreError as e:
        logger.error(f"Ошибка чтения стола {table_id}: {e}", exc_info=True)
        await callback.answer(STORE_FAILURE_TEXT, show_alert=True)
        return

    if table is None:
        await callback.answer("La mesa ya no existe", show_alert=True)
        return
    if table.has_player(callback.from_user.id):
        await callback.answer("Ya estás anotado/a en esta mesa", show_alert=True)
        return
    if table.is_full:
        await callback.answer("La mesa está completa", show_alert=True)
        return

    await state.update_data(table_id=table_id)
    await callback.message.answer(
        f"✋ Mesa {table.number} · {table.game}\n\n"
        f"📱 Enviá tu número de WhatsApp para anotarte:",
        reply_markup=get_phone_keyboard()
    )
    await state.set_state(FreePlayStates.entering_phone)
    await callback.answer()


@router.message(FreePlayStates.entering_phone, F.contact)
async def process_free_play_contact(message: Message, state: FSMContext, services: Services):
    await sign_up(message, state, services, message.contact.phone_number)


@router.message(FreePlayStates.entering_phone, F.text)
async def process_free_play_phone(message: Message, state: FSMContext, services: Services):
    await sign_up(message, state, services, message.text)


async def sign_up(message: Message, state: FSMContext, services: Services, raw_phone: str):
    """Запись игрока за стол после ввода телефона"""
    phone = normalize_phone(raw_phone)
    if not phone or not PHONE_PATTERN.match(phone):
        await message.answer("⚠️ Ingresá un número de teléfono válido")
        return

    data = await state.get_data()
    await state.clear()
    player = Player(user_id=message.from_user.id, user_name=message.from_user.full_name, phone=phone)
    menu = get_main_menu_keyboard(is_admin(message.from_user.id))

    try:
        services.free_play.add_player(data.get('table_id'), player)
    except BookingRuleError as e:
        await message.answer(f"⚠️ {e}", reply_markup=menu)
        return
    except StoreError as e:
        logger.error(f"Ошибка записи за стол {data.get('table_id')}: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT, reply_markup=menu)
        return

    logger.info(f"Пользователь {player.user_id} записан за стол {data.get('table_id')}")
    await message.answer("✅ ¡Listo! Quedaste anotado/a en la mesa.", reply_markup=ReplyKeyboardRemove())
    await message.answer("Elegí una opción:", reply_markup=menu)


@router.callback_query(F.data.startswith("fp_leave:"))
async def leave_table(callback: CallbackQuery, services: Services, views: ViewRegistry):
    """Выход из-за стола; открытый список перерисует кэш"""
    table_id = callback.data.split(":", 1)[1]

    try:
        removed = services.free_play.remove_player(table_id, callback.from_user.id)
    except StoreError as e:
        logger.error(f"Ошибка выхода из-за стола {table_id}: {e}", exc_info=True)
        await callback.answer(STORE_FAILURE_TEXT, show_alert=True)
        return

    if not removed:
        await callback.answer("No estabas anotado/a en esta mesa", show_alert=True)
        return

    view = views.get(callback.from_user.id)
    tracked = (view is not None and view.step == STEP_FREE_PLAY
               and view.message_id == callback.message.message_id)
    if not tracked:
        tables = services.cache.free_play_tables
        await callback.message.edit_text(
            format_tables(tables),
            reply_markup=get_free_play_keyboard(tables, callback.from_user.id)
        )
    await callback.answer("Saliste de la mesa")
