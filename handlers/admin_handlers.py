"""
Обработчики команд администраторов
"""
import logging
from datetime import date
from typing import List

from aiogram import Router, F
from aiogram.filters import Command, CommandObject
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from database.models import NewsItem, Reservation, ReservationStatus
from database.store import StoreError
from handlers.common import STORE_FAILURE_TEXT, is_admin, notify_admins, notify_user
from keyboards.keyboards import (
    BTN_ADMIN, format_table, get_admin_keyboard, get_admin_reservation_keyboard, get_admin_slots_keyboard,
    get_pagination_keyboard, status_label
)
from services.admin import (
    build_free_table, build_free_table_changes, build_reservation_changes, filter_reservations,
    paginate, parse_command_args, parse_positive_int, validate_alias, validate_date, validate_price,
    validate_slot_label
)
from services.container import Services
from services.errors import ValidationError
from utils.time_utils import format_date, format_long_date, format_price, normalize_date

logger = logging.getLogger(__name__)
router = Router()

NO_ACCESS_TEXT = "⚠️ No tenés acceso a esta función"

ADMIN_HELP_TEXT = (
    "❓ Comandos de administración\n\n"
    "Reservas\n"
    "/reservas [texto] [desde=AAAA-MM-DD] [hasta=AAAA-MM-DD] [estado=pending|confirmed|rejected] [pagina=N]\n"
    "/editar <id> campo=valor (fecha, horario, cliente, telefono, juego, personas, estado)\n"
    "/borrar <id> [<id> ...]\n\n"
    "Calendario y precios\n"
    "/bloquear <fecha>\n"
    "/especial <fecha> <nombre>\n"
    "/quitar_especial <fecha>\n"
    "/precio <monto>\n"
    "/alias <alias>\n\n"
    "Horarios\n"
    "/horarios\n"
    "/horario_nuevo \"17:00 - 19:00\"\n"
    "/horario_toggle <id>\n"
    "/horario_borrar <id>\n\n"
    "Juego libre\n"
    "/mesas\n"
    "/mesa_nueva numero=N cupos=N juego=\"...\" [fecha=AAAA-MM-DD] [rango=\"19:00 - 23:00\"]\n"
    "/mesa_editar <id> campo=valor (numero, cupos, juego, fecha, rango)\n"
    "/mesa_borrar <id>\n"
    "/mesa_quitar <id> <user_id>\n\n"
    "Novedades\n"
    "/novedad <título> | <descripción>\n"
    "/novedad_borrar <id>"
)


def format_reservation(reservation: Reservation) -> str:
    """Карточка бронирования для администратора"""
    return (
        f"🔹 {reservation.user_name} (@{reservation.username or 'sin username'})\n"
        f"   📅 {format_date(reservation.date)} · {reservation.time}\n"
        f"   👥 {reservation.people} · 🎲 {reservation.game}\n"
        f"   📱 {reservation.phone}\n"
        f"   💰 {format_price(reservation.total)} · {status_label(reservation.status)}\n"
        f"   🆔 {reservation.id}"
    )


async def send_reservations(message: Message, reservations: List[Reservation], title: str, page: int = 1):
    """Отправка страницы бронирований с кнопками действий"""
    result = paginate(reservations, page)

    if not result.items:
        await message.answer(f"{title}\n\nNo hay reservas.")
        return

    await message.answer(
        f"{title}\n\nPágina {result.page}/{result.total_pages} · {result.total_items} reservas",
        reply_markup=get_pagination_keyboard(result.page, result.total_pages)
    )
    for reservation in result.items:
        await message.answer(
            format_reservation(reservation),
            reply_markup=get_admin_reservation_keyboard(reservation)
        )


@router.message(F.text == BTN_ADMIN)
async def admin_panel(message: Message):
    """Открытие админ-панели"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    await message.answer(
        "⚙️ Panel de administración\n\nElegí una acción:",
        reply_markup=get_admin_keyboard()
    )


@router.callback_query(F.data == "admin_help")
async def callback_help(callback: CallbackQuery):
    if not is_admin(callback.from_user.id):
        await callback.answer(NO_ACCESS_TEXT, show_alert=True)
        return

    await callback.message.answer(ADMIN_HELP_TEXT)
    await callback.answer()


# Бронирования

@router.callback_query(F.data == "admin_pending")
async def callback_pending(callback: CallbackQuery, state: FSMContext, services: Services):
    """Бронирования, ожидающие оплаты"""
    if not is_admin(callback.from_user.id):
        await callback.answer(NO_ACCESS_TEXT, show_alert=True)
        return

    filters = {'status': 'pending'}
    await state.update_data(admin_filters=filters)
    try:
        reservations = filter_reservations(services.reservations.get_reservations(), **filters)
    except StoreError as e:
        logger.error(f"Ошибка чтения бронирований: {e}", exc_info=True)
        await callback.answer(STORE_FAILURE_TEXT, show_alert=True)
        return

    await send_reservations(callback.message, reservations, "⏳ Reservas pendientes")
    await callback.answer()


@router.callback_query(F.data == "admin_today")
async def callback_today(callback: CallbackQuery, state: FSMContext, services: Services):
    """Бронирования на сегодня"""
    if not is_admin(callback.from_user.id):
        await callback.answer(NO_ACCESS_TEXT, show_alert=True)
        return

    today = normalize_date(date.today())
    filters = {'date_from': today, 'date_to': today}
    await state.update_data(admin_filters=filters)
    try:
        reservations = filter_reservations(services.reservations.get_reservations(), **filters)
    except StoreError as e:
        logger.error(f"Ошибка чтения бронирований: {e}", exc_info=True)
        await callback.answer(STORE_FAILURE_TEXT, show_alert=True)
        return

    await send_reservations(callback.message, reservations, f"📋 Reservas de hoy ({format_date(today)})")
    await callback.answer()


@router.message(Command("reservas"))
async def cmd_reservations(message: Message, state: FSMContext, services: Services):
    """Команда /reservas - поиск по тексту, датам и статусу"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        positional, options = parse_command_args(message.text)
        filters = {
            'text': " ".join(positional),
            'date_from': validate_date(options['desde']) if options.get('desde') else None,
            'date_to': validate_date(options['hasta']) if options.get('hasta') else None,
            'status': options.get('estado') or None,
        }
        page = parse_positive_int(options.get('pagina', '1'), "Ingresá un número de página válido")
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return

    await state.update_data(admin_filters=filters)
    try:
        reservations = filter_reservations(services.reservations.get_reservations(), **filters)
    except StoreError as e:
        logger.error(f"Ошибка чтения бронирований: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    await send_reservations(message, reservations, "📋 Reservas", page)


@router.callback_query(F.data.startswith("adm_page:"))
async def callback_page(callback: CallbackQuery, state: FSMContext, services: Services):
    """Переход на другую страницу с последними фильтрами"""
    if not is_admin(callback.from_user.id):
        await callback.answer(NO_ACCESS_TEXT, show_alert=True)
        return

    page = int(callback.data.split(":")[1])
    filters = (await state.get_data()).get('admin_filters', {})
    try:
        reservations = filter_reservations(services.reservations.get_reservations(), **filters)
    except StoreError as e:
        logger.error(f"Ошибка чтения бронирований: {e}", exc_info=True)
        await callback.answer(STORE_FAILURE_TEXT, show_alert=True)
        return

    await send_reservations(callback.message, reservations, "📋 Reservas", page)
    await callback.answer()


async def change_status(callback: CallbackQuery, services: Services, status: str):
    """Подтверждение или отклонение бронирования с уведомлением клиента"""
    if not is_admin(callback.from_user.id):
        await callback.answer(NO_ACCESS_TEXT, show_alert=True)
        return

    reservation_id = callback.data.split(":", 1)[1]
    try:
        reservation = services.reservations.get_reservation_by_id(reservation_id)
        if reservation is None:
            await callback.answer("Reserva no encontrada", show_alert=True)
            return
        services.reservations.set_status(reservation_id, status)
    except StoreError as e:
        logger.error(f"Ошибка смены статуса {reservation_id}: {e}", exc_info=True)
        await callback.answer(STORE_FAILURE_TEXT, show_alert=True)
        return

    reservation.status = status
    logger.info(f"Администратор {callback.from_user.id} перевёл {reservation_id} в статус {status}")
    await callback.message.edit_text(
        format_reservation(reservation),
        reply_markup=get_admin_reservation_keyboard(reservation)
    )

    if status == ReservationStatus.CONFIRMED:
        user_text = (
            f"✅ ¡Tu reserva fue aceptada!\n\n"
            f"📅 {format_long_date(reservation.date)} · {reservation.time}\n"
            f"👥 {reservation.people}\n\n"
            f"¡Te esperamos!"
        )
    else:
        user_text = (
            f"❌ Tu reserva fue rechazada\n\n"
            f"📅 {format_long_date(reservation.date)} · {reservation.time}\n\n"
            f"Ante cualquier duda, comunicate con el local."
        )
    await notify_user(callback.bot, reservation.user_id, user_text)
    await notify_admins(
        callback.bot,
        f"ℹ️ @{callback.from_user.username or 'sin username'} marcó la reserva {reservation_id} "
        f"como {status_label(status)}",
        exclude=callback.from_user.id
    )
    await callback.answer(status_label(status))


@router.callback_query(F.data.startswith("adm_confirm:"))
async def callback_confirm(callback: CallbackQuery, services: Services):
    await change_status(callback, services, ReservationStatus.CONFIRMED)


@router.callback_query(F.data.startswith("adm_reject:"))
async def callback_reject(callback: CallbackQuery, services: Services):
    await change_status(callback, services, ReservationStatus.REJECTED)


@router.callback_query(F.data.startswith("adm_delete:"))
async def callback_delete(callback: CallbackQuery, services: Services):
    """Удаление бронирования"""
    if not is_admin(callback.from_user.id):
        await callback.answer(NO_ACCESS_TEXT, show_alert=True)
        return

    reservation_id = callback.data.split(":", 1)[1]
    try:
        deleted = services.reservations.delete_reservation(reservation_id)
    except StoreError as e:
        logger.error(f"Ошибка удаления {reservation_id}: {e}", exc_info=True)
        await callback.answer(STORE_FAILURE_TEXT, show_alert=True)
        return

    if not deleted:
        await callback.answer("Reserva no encontrada", show_alert=True)
        return

    logger.info(f"Администратор {callback.from_user.id} удалил бронирование {reservation_id}")
    await callback.message.edit_text(f"🗑 Reserva {reservation_id} eliminada")
    await callback.answer()


@router.message(Command("editar"))
async def cmd_edit(message: Message, services: Services):
    """Команда /editar <id> campo=valor"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        positional, options = parse_command_args(message.text)
        if len(positional) != 1:
            raise ValidationError("Uso: /editar <id> campo=valor")
        changes = build_reservation_changes(options, services.time_slots.get_time_slots())
        updated = services.reservations.update_reservation(positional[0], changes)
        reservation = services.reservations.get_reservation_by_id(positional[0]) if updated else None
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return
    except StoreError as e:
        logger.error(f"Ошибка редактирования бронирования: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    if reservation is None:
        await message.answer("⚠️ Reserva no encontrada")
        return

    await message.answer(
        f"✅ Reserva actualizada\n\n{format_reservation(reservation)}",
        reply_markup=get_admin_reservation_keyboard(reservation)
    )


@router.message(Command("borrar"))
async def cmd_delete(message: Message, services: Services):
    """Команда /borrar <id> [<id> ...]"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        ids, _ = parse_command_args(message.text)
        if not ids:
            raise ValidationError("Uso: /borrar <id> [<id> ...]")
        deleted = services.reservations.delete_reservations(ids)
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return
    except StoreError as e:
        logger.error(f"Ошибка удаления бронирований: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    logger.info(f"Администратор {message.from_user.id} удалил {deleted} бронирований")
    await message.answer(f"🗑 Reservas eliminadas: {deleted} de {len(ids)}")


# Календарь, цена и алиас

@router.message(Command("bloquear"))
async def cmd_block(message: Message, command: CommandObject, services: Services):
    """Команда /bloquear <fecha> - закрыть или снова открыть дату"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        day = validate_date((command.args or '').strip())
        blocked = services.venue_config.toggle_blocked_date(day)
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return
    except StoreError as e:
        logger.error(f"Ошибка блокировки даты: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    if day in blocked:
        await message.answer(f"🔒 {format_long_date(day)} bloqueado")
    else:
        await message.answer(f"🔓 {format_long_date(day)} habilitado")


@router.message(Command("especial"))
async def cmd_special(message: Message, services: Services):
    """Команда /especial <fecha> <nombre>"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        positional, _ = parse_command_args(message.text)
        if len(positional) < 2:
            raise ValidationError("Uso: /especial <fecha> <nombre>")
        day = validate_date(positional[0])
        name = " ".join(positional[1:]).strip()
        if not name:
            raise ValidationError("Ingresá el nombre de la fecha especial")
        services.venue_config.save_special_date(day, name)
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return
    except StoreError as e:
        logger.error(f"Ошибка сохранения особой даты: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    await message.answer(f"★ {format_long_date(day)}: {name}")


@router.message(Command("quitar_especial"))
async def cmd_remove_special(message: Message, command: CommandObject, services: Services):
    """Команда /quitar_especial <fecha>"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        day = validate_date((command.args or '').strip())
        removed = services.venue_config.delete_special_date(day)
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return
    except StoreError as e:
        logger.error(f"Ошибка удаления особой даты: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    if removed:
        await message.answer(f"✅ {format_long_date(day)} ya no es fecha especial")
    else:
        await message.answer(f"⚠️ {format_long_date(day)} no era fecha especial")


@router.message(Command("precio"))
async def cmd_price(message: Message, command: CommandObject, services: Services):
    """Команда /precio <n> - цена за человека"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        price = validate_price((command.args or '').strip())
        services.venue_config.set_price(price)
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return
    except StoreError as e:
        logger.error(f"Ошибка сохранения цены: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    logger.info(f"Администратор {message.from_user.id} изменил цену на {price}")
    await message.answer(f"💰 Precio por persona: {format_price(price)}")


@router.message(Command("alias"))
async def cmd_alias(message: Message, command: CommandObject, services: Services):
    """Команда /alias <texto> - алиас для перевода"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        alias = validate_alias(command.args or '')
        services.venue_config.set_payment_alias(alias)
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return
    except StoreError as e:
        logger.error(f"Ошибка сохранения алиаса: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    await message.answer(f"🏦 Alias de pago: {alias}")


# Слоты

async def send_slots(message: Message, services: Services):
    time_slots = services.time_slots.get_time_slots()
    if not time_slots:
        await message.answer("No hay horarios cargados. Usá /horario_nuevo")
        return

    lines = ["🕐 Horarios (tocá para activar o desactivar)\n"]
    for slot in time_slots:
        lines.append(f"{'🟢' if slot.active else '⚪️'} {slot.label} · {slot.id}")
    await message.answer("\n".join(lines), reply_markup=get_admin_slots_keyboard(time_slots))


@router.message(Command("horarios"))
async def cmd_slots(message: Message, services: Services):
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        await send_slots(message, services)
    except StoreError as e:
        logger.error(f"Ошибка чтения слотов: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)


@router.callback_query(F.data == "admin_slots")
async def callback_slots(callback: CallbackQuery, services: Services):
    if not is_admin(callback.from_user.id):
        await callback.answer(NO_ACCESS_TEXT, show_alert=True)
        return

    try:
        await send_slots(callback.message, services)
    except StoreError as e:
        logger.error(f"Ошибка чтения слотов: {e}", exc_info=True)
        await callback.answer(STORE_FAILURE_TEXT, show_alert=True)
        return
    await callback.answer()


@router.message(Command("horario_nuevo"))
async def cmd_add_slot(message: Message, command: CommandObject, services: Services):
    """Команда /horario_nuevo <label>"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        label = validate_slot_label((command.args or '').strip().strip('"'))
        if any(slot.label == label for slot in services.time_slots.get_time_slots()):
            raise ValidationError(f"El horario {label} ya existe")
        services.time_slots.add_time_slot(label)
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return
    except StoreError as e:
        logger.error(f"Ошибка добавления слота: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    await message.answer(f"✅ Horario {label} agregado")


def slot_action(services: Services, slot_id: str, delete: bool) -> str:
    """Переключение или удаление слота; возвращает текст ответа"""
    if delete:
        done = services.time_slots.delete_time_slot(slot_id)
        return "🗑 Horario eliminado" if done else "⚠️ Horario no encontrado"
    done = services.time_slots.toggle_active(slot_id)
    return "✅ Horario actualizado" if done else "⚠️ Horario no encontrado"


@router.message(Command("horario_toggle", "horario_borrar"))
async def cmd_slot_action(message: Message, command: CommandObject, services: Services):
    """Команды /horario_toggle <id> и /horario_borrar <id>"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    slot_id = (command.args or '').strip()
    if not slot_id:
        await message.answer(f"⚠️ Uso: /{command.command} <id>")
        return

    try:
        text = slot_action(services, slot_id, command.command == "horario_borrar")
    except StoreError as e:
        logger.error(f"Ошибка изменения слота {slot_id}: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return
    await message.answer(text)


@router.callback_query(F.data.startswith("adm_slot_toggle:") | F.data.startswith("adm_slot_delete:"))
async def callback_slot_action(callback: CallbackQuery, services: Services):
    if not is_admin(callback.from_user.id):
        await callback.answer(NO_ACCESS_TEXT, show_alert=True)
        return

    action, slot_id = callback.data.split(":", 1)
    try:
        text = slot_action(services, slot_id, action == "adm_slot_delete")
        time_slots = services.time_slots.get_time_slots()
    except StoreError as e:
        logger.error(f"Ошибка изменения слота {slot_id}: {e}", exc_info=True)
        await callback.answer(STORE_FAILURE_TEXT, show_alert=True)
        return

    await callback.message.edit_reply_markup(reply_markup=get_admin_slots_keyboard(time_slots))
    await callback.answer(text)


# Свободная игра

async def send_tables(message: Message, services: Services):
    tables = services.free_play.get_tables()
    if not tables:
        await message.answer("No hay mesas de juego libre. Usá /mesa_nueva")
        return

    for table in tables:
        players = "\n".join(
            f"   👤 {p.user_name} · {p.phone} · {p.user_id}" for p in table.players
        ) or "   Sin jugadores"
        await message.answer(f"🎲 {format_table(table)}\n🆔 {table.id}\n{players}")


@router.message(Command("mesas"))
async def cmd_tables(message: Message, services: Services):
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        await send_tables(message, services)
    except StoreError as e:
        logger.error(f"Ошибка чтения столов: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)


@router.callback_query(F.data == "admin_free_play")
async def callback_tables(callback: CallbackQuery, services: Services):
    if not is_admin(callback.from_user.id):
        await callback.answer(NO_ACCESS_TEXT, show_alert=True)
        return

    try:
        await send_tables(callback.message, services)
    except StoreError as e:
        logger.error(f"Ошибка чтения столов: {e}", exc_info=True)
        await callback.answer(STORE_FAILURE_TEXT, show_alert=True)
        return
    await callback.answer()


@router.message(Command("mesa_nueva"))
async def cmd_add_table(message: Message, services: Services):
    """Команда /mesa_nueva numero=N cupos=N juego=..."""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        _, options = parse_command_args(message.text)
        table = build_free_table(options)
        table.id = services.free_play.add_table(table)
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return
    except StoreError as e:
        logger.error(f"Ошибка добавления стола: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    await message.answer(f"✅ Mesa creada\n\n🎲 {format_table(table)}\n🆔 {table.id}")


@router.message(Command("mesa_editar"))
async def cmd_edit_table(message: Message, services: Services):
    """Команда /mesa_editar <id> campo=valor"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        positional, options = parse_command_args(message.text)
        if len(positional) != 1 or not options:
            raise ValidationError("Uso: /mesa_editar <id> campo=valor")
        updated = services.free_play.update_table(positional[0], build_free_table_changes(options))
        table = services.free_play.get_table_by_id(positional[0]) if updated else None
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return
    except StoreError as e:
        logger.error(f"Ошибка редактирования стола: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    if table is None:
        await message.answer("⚠️ Mesa no encontrada")
        return
    await message.answer(f"✅ Mesa actualizada\n\n🎲 {format_table(table)}")


@router.message(Command("mesa_borrar"))
async def cmd_delete_table(message: Message, command: CommandObject, services: Services):
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    table_id = (command.args or '').strip()
    if not table_id:
        await message.answer("⚠️ Uso: /mesa_borrar <id>")
        return

    try:
        deleted = services.free_play.delete_table(table_id)
    except StoreError as e:
        logger.error(f"Ошибка удаления стола {table_id}: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    await message.answer("🗑 Mesa eliminada" if deleted else "⚠️ Mesa no encontrada")


@router.message(Command("mesa_quitar"))
async def cmd_remove_player(message: Message, services: Services):
    """Команда /mesa_quitar <id> <user_id>"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    try:
        positional, _ = parse_command_args(message.text)
        if len(positional) != 2:
            raise ValidationError("Uso: /mesa_quitar <id> <user_id>")
        user_id = parse_positive_int(positional[1], "Ingresá un user_id válido")
        removed = services.free_play.remove_player(positional[0], user_id)
    except ValidationError as e:
        await message.answer(f"⚠️ {e}")
        return
    except StoreError as e:
        logger.error(f"Ошибка удаления игрока: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    await message.answer("✅ Jugador quitado de la mesa" if removed else "⚠️ El jugador no está en esa mesa")


# Новости

@router.message(Command("novedad"))
async def cmd_add_news(message: Message, command: CommandObject, services: Services):
    """Команда /novedad <titulo> | <descripcion>"""
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    title, _, description = (command.args or '').partition('|')
    title, description = title.strip(), description.strip()
    if not title or not description:
        await message.answer("⚠️ Uso: /novedad <título> | <descripción>")
        return

    try:
        news_id = services.news.add_news(NewsItem(id=None, title=title, description=description))
    except StoreError as e:
        logger.error(f"Ошибка добавления новости: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    await message.answer(f"📰 Novedad publicada\n🆔 {news_id}")


@router.message(Command("novedad_borrar"))
async def cmd_delete_news(message: Message, command: CommandObject, services: Services):
    if not is_admin(message.from_user.id):
        await message.answer(NO_ACCESS_TEXT)
        return

    news_id = (command.args or '').strip()
    if not news_id:
        await message.answer("⚠️ Uso: /novedad_borrar <id>")
        return

    try:
        deleted = services.news.delete_news(news_id)
    except StoreError as e:
        logger.error(f"Ошибка удаления новости {news_id}: {e}", exc_info=True)
        await message.answer(STORE_FAILURE_TEXT)
        return

    await message.answer("🗑 Novedad eliminada" if deleted else "⚠️ Novedad no encontrada")
