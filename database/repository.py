"""
Репозитории для работы с данными
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from config import settings
from database.models import FreePlayTable, NewsItem, Player, Reservation, ReservationStatus, TimeSlot
from database.store import Document, DocumentStore, Unsubscribe
from services.errors import AlreadySignedUpError, TableFullError, TableNotFoundError, ValidationError
from utils.time_utils import normalize_date

logger = logging.getLogger(__name__)


def _normalize_stored_date(value: Any) -> Optional[str]:
    """Нормализация даты из документа; нераспознанное значение оставляем как есть"""
    if value is None:
        return None
    try:
        return normalize_date(value)
    except ValueError:
        logger.warning(f"Не удалось распознать дату {value!r}")
        return str(value)


class ReservationRepository:
    """Репозиторий для работы с бронированиями"""

    COLLECTION = 'reservations'

    # Поле модели -> ключ документа
    FIELDS = {
        'user_id': 'userId',
        'user_name': 'userName',
        'username': 'username',
        'phone': 'phone',
        'date': 'date',
        'time': 'time',
        'people': 'people',
        'game': 'game',
        'price_per_person': 'pricePerPerson',
        'total': 'total',
        'status': 'status',
        'created_at': 'createdAt',
    }

    def __init__(self, store: DocumentStore):
        self.store = store

    def create_reservation(self, reservation: Reservation) -> str:
        """Создание нового бронирования"""
        document = {
            key: getattr(reservation, attr) for attr, key in self.FIELDS.items()
        }
        document['date'] = normalize_date(reservation.date)
        document['status'] = reservation.status or ReservationStatus.PENDING_PAYMENT
        document['createdAt'] = datetime.now().isoformat()
        return self.store.create(self.COLLECTION, document)

    def get_reservations(self, user_id: Optional[int] = None) -> List[Reservation]:
        """Все бронирования (или бронирования пользователя), новые первыми"""
        filters = {'userId': user_id} if user_id is not None else None
        documents = self.store.read_all(
            self.COLLECTION, filters, order_by='createdAt', descending=True
        )
        return [self._doc_to_reservation(doc) for doc in documents]

    def get_reservation_by_id(self, reservation_id: str) -> Optional[Reservation]:
        """Получение бронирования по ID"""
        document = self.store.read_one(self.COLLECTION, reservation_id)
        return self._doc_to_reservation(document) if document else None

    def get_slot_reservations(self, date: str, time: str) -> List[Reservation]:
        """Бронирования на конкретную дату и слот (включая отклонённые)"""
        target_date = normalize_date(date)
        documents = self.store.read_all(self.COLLECTION, {'time': time})
        reservations = [self._doc_to_reservation(doc) for doc in documents]
        return [r for r in reservations if r.date == target_date]

    def update_reservation(self, reservation_id: str, changes: Dict[str, Any]) -> bool:
        """Обновление полей бронирования (имена полей модели)"""
        unknown = set(changes) - set(self.FIELDS)
        if unknown:
            raise ValueError(f"Неизвестные поля: {', '.join(sorted(unknown))}")

        document = {self.FIELDS[attr]: value for attr, value in changes.items()}
        if 'date' in document:
            document['date'] = normalize_date(document['date'])
        return self.store.update(self.COLLECTION, reservation_id, document)

    def set_status(self, reservation_id: str, status: str) -> bool:
        """Смена статуса бронирования"""
        if status not in ReservationStatus.ALL:
            raise ValueError(f"Неизвестный статус: {status}")
        return self.store.update(self.COLLECTION, reservation_id, {'status': status})

    def delete_reservation(self, reservation_id: str) -> bool:
        """Удаление бронирования"""
        return self.store.delete(self.COLLECTION, reservation_id)

    def delete_reservations(self, reservation_ids: Iterable[str]) -> int:
        """Массовое удаление, возвращает количество удалённых"""
        return sum(1 for reservation_id in reservation_ids
                   if self.store.delete(self.COLLECTION, reservation_id))

    def subscribe(self, callback: Callable[[List[Reservation]], None]) -> Unsubscribe:
        """Подписка на полный список бронирований, новые первыми"""
        return self.store.subscribe(
            self.COLLECTION,
            lambda documents: callback([self._doc_to_reservation(doc) for doc in documents]),
            order_by='createdAt',
            descending=True
        )

    @staticmethod
    def _doc_to_reservation(document: Document) -> Reservation:
        """Преобразование документа в объект Reservation"""
        return Reservation(
            id=document['id'],
            user_id=document.get('userId'),
            user_name=document.get('userName') or '',
            username=document.get('username'),
            phone=document.get('phone') or '',
            date=_normalize_stored_date(document.get('date')),
            time=document.get('time') or '',
            people=int(document.get('people') or 0),
            game=document.get('game') or '',
            price_per_person=int(document.get('pricePerPerson') or 0),
            total=int(document.get('total') or 0),
            status=document.get('status', ReservationStatus.PENDING_PAYMENT),
            created_at=document.get('createdAt')
        )


class TimeSlotRepository:
    """Репозиторий для работы с каталогом временных слотов"""

    COLLECTION = 'timeSlots'

    def __init__(self, store: DocumentStore):
        self.store = store

    def get_time_slots(self) -> List[TimeSlot]:
        """Все слоты, отсортированные по порядку"""
        documents = self.store.read_all(self.COLLECTION)
        return self.sort_slots([self._doc_to_slot(doc) for doc in documents])

    def add_time_slot(self, label: str, active: bool = True) -> str:
        """Новый слот получает порядок max + 1"""
        slots = self.get_time_slots()
        max_order = max((slot.order for slot in slots), default=0)
        return self.store.create(self.COLLECTION, {
            'label': label,
            'active': active,
            'order': max_order + 1
        })

    def toggle_active(self, slot_id: str) -> bool:
        """Переключение активности слота"""
        document = self.store.read_one(self.COLLECTION, slot_id)
        if not document:
            return False
        return self.store.update(self.COLLECTION, slot_id, {'active': not document.get('active', True)})

    def delete_time_slot(self, slot_id: str) -> bool:
        return self.store.delete(self.COLLECTION, slot_id)

    def ensure_defaults(self, labels: Iterable[str]):
        """Заполнение каталога слотами по умолчанию, если он пуст"""
        if self.store.read_all(self.COLLECTION):
            return
        for label in labels:
            self.add_time_slot(label)
        logger.info("Добавлены временные слоты по умолчанию")

    def subscribe(self, callback: Callable[[List[TimeSlot]], None]) -> Unsubscribe:
        """Подписка на каталог слотов (уже отсортированный)"""
        return self.store.subscribe(
            self.COLLECTION,
            lambda documents: callback(self.sort_slots([self._doc_to_slot(doc) for doc in documents]))
        )

    @staticmethod
    def sort_slots(slots: List[TimeSlot]) -> List[TimeSlot]:
        return sorted(slots, key=lambda slot: slot.order or 0)

    @staticmethod
    def _doc_to_slot(document: Document) -> TimeSlot:
        return TimeSlot(
            id=document['id'],
            label=document.get('label', ''),
            active=bool(document.get('active', True)),
            order=int(document.get('order') or 0)
        )


class VenueConfigRepository:
    """Настройки заведения: цена, алиас для оплаты, особые и закрытые даты"""

    COLLECTION = 'settings'
    PRICE = 'price'
    PAYMENT_ALIAS = 'paymentAlias'
    BLOCKED_DATES = 'blockedDates'
    SPECIAL_DATES = 'specialDates'

    def __init__(self, store: DocumentStore):
        self.store = store

    # Цена и алиас

    def get_price(self) -> int:
        return self._price_from(self.store.read_one(self.COLLECTION, self.PRICE))

    def set_price(self, value: int):
        self.store.set(self.COLLECTION, self.PRICE, {
            'value': int(value),
            'updatedAt': datetime.now().isoformat()
        })

    def get_payment_alias(self) -> str:
        return self._alias_from(self.store.read_one(self.COLLECTION, self.PAYMENT_ALIAS))

    def set_payment_alias(self, alias: str):
        self.store.set(self.COLLECTION, self.PAYMENT_ALIAS, {
            'value': alias.strip(),
            'updatedAt': datetime.now().isoformat()
        })

    # Закрытые даты

    def get_blocked_dates(self) -> List[str]:
        return self._blocked_from(self.store.read_one(self.COLLECTION, self.BLOCKED_DATES))

    def toggle_blocked_date(self, date: str) -> List[str]:
        """Закрыть дату или снова открыть её; возвращает новый список"""
        date = normalize_date(date)
        blocked = self.get_blocked_dates()
        if date in blocked:
            blocked = [d for d in blocked if d != date]
        else:
            blocked.append(date)

        self.store.set(self.COLLECTION, self.BLOCKED_DATES, {
            'dates': blocked,
            'updatedAt': datetime.now().isoformat()
        })
        return blocked

    # Особые даты

    def get_special_dates(self) -> Dict[str, str]:
        return self._special_from(self.store.read_one(self.COLLECTION, self.SPECIAL_DATES))

    def save_special_date(self, date: str, name: str):
        special_dates = self.get_special_dates()
        special_dates[normalize_date(date)] = name.strip()
        self._write_special_dates(special_dates)

    def delete_special_date(self, date: str) -> bool:
        special_dates = self.get_special_dates()
        if special_dates.pop(normalize_date(date), None) is None:
            return False
        self._write_special_dates(special_dates)
        return True

    def _write_special_dates(self, special_dates: Dict[str, str]):
        self.store.set(self.COLLECTION, self.SPECIAL_DATES, {
            'dates': special_dates,
            'updatedAt': datetime.now().isoformat()
        })

    # Подписки

    def subscribe_price(self, callback: Callable[[int], None]) -> Unsubscribe:
        return self.store.subscribe_document(
            self.COLLECTION, self.PRICE, lambda doc: callback(self._price_from(doc))
        )

    def subscribe_payment_alias(self, callback: Callable[[str], None]) -> Unsubscribe:
        return self.store.subscribe_document(
            self.COLLECTION, self.PAYMENT_ALIAS, lambda doc: callback(self._alias_from(doc))
        )

    def subscribe_blocked_dates(self, callback: Callable[[List[str]], None]) -> Unsubscribe:
        return self.store.subscribe_document(
            self.COLLECTION, self.BLOCKED_DATES, lambda doc: callback(self._blocked_from(doc))
        )

    def subscribe_special_dates(self, callback: Callable[[Dict[str, str]], None]) -> Unsubscribe:
        return self.store.subscribe_document(
            self.COLLECTION, self.SPECIAL_DATES, lambda doc: callback(self._special_from(doc))
        )

    @staticmethod
    def _price_from(document: Optional[Document]) -> int:
        if document and document.get('value') is not None:
            return int(document['value'])
        return settings.DEFAULT_PRICE

    @staticmethod
    def _alias_from(document: Optional[Document]) -> str:
        if document and document.get('value'):
            return document['value']
        return settings.DEFAULT_PAYMENT_ALIAS

    @staticmethod
    def _blocked_from(document: Optional[Document]) -> List[str]:
        if not document:
            return []
        return [normalize_date(d) for d in document.get('dates') or []]

    @staticmethod
    def _special_from(document: Optional[Document]) -> Dict[str, str]:
        """Особые даты всегда как словарь дата -> название"""
        if not document:
            return {}
        dates = document.get('dates') or {}
        # Старый формат: список {"date": ..., "name": ...}
        if isinstance(dates, list):
            return {normalize_date(item['date']): item.get('name', '') for item in dates if item.get('date')}
        return {normalize_date(date): name for date, name in dates.items()}


class FreePlayRepository:
    """Репозиторий для столов свободной игры"""

    COLLECTION = 'freePlayTables'

    def __init__(self, store: DocumentStore):
        self.store = store

    def get_tables(self) -> List[FreePlayTable]:
        documents = self.store.read_all(self.COLLECTION)
        return self._sort_tables([self._doc_to_table(doc) for doc in documents])

    def get_table_by_id(self, table_id: str) -> Optional[FreePlayTable]:
        document = self.store.read_one(self.COLLECTION, table_id)
        return self._doc_to_table(document) if document else None

    def add_table(self, table: FreePlayTable) -> str:
        """Новый стол всегда создаётся без игроков"""
        return self.store.create(self.COLLECTION, {
            'number': table.number,
            'game': table.game,
            'capacity': table.capacity,
            'date': normalize_date(table.date) if table.date else None,
            'timeRange': table.time_range or None,
            'players': []
        })

    def update_table(self, table_id: str, changes: Dict[str, Any]) -> bool:
        """Обновление number / game / capacity / date / time_range"""
        document = {}
        for attr, value in changes.items():
            if attr == 'time_range':
                document['timeRange'] = value or None
            elif attr == 'date':
                document['date'] = normalize_date(value) if value else None
            elif attr in ('number', 'game', 'capacity'):
                document[attr] = value
            else:
                raise ValueError(f"Неизвестное поле: {attr}")

        if 'capacity' in document:
            table = self.get_table_by_id(table_id)
            if table is None:
                return False
            if document['capacity'] < len(table.players):
                raise ValidationError(
                    f"La mesa ya tiene {len(table.players)} jugadores anotados"
                )
        return self.store.update(self.COLLECTION, table_id, document)

    def delete_table(self, table_id: str) -> bool:
        return self.store.delete(self.COLLECTION, table_id)

    def add_player(self, table_id: str, player: Player):
        """Запись игрока; состояние стола читается непосредственно перед записью"""
        table = self.get_table_by_id(table_id)
        if table is None:
            raise TableNotFoundError(table_id)
        if table.has_player(player.user_id):
            raise AlreadySignedUpError(table_id, player.user_id)
        if table.is_full:
            raise TableFullError(table_id)

        players = table.players + [player]
        self.store.update(self.COLLECTION, table_id, {
            'players': [self._player_to_doc(p) for p in players]
        })

    def remove_player(self, table_id: str, user_id: int) -> bool:
        table = self.get_table_by_id(table_id)
        if table is None or not table.has_player(user_id):
            return False
        players = [p for p in table.players if p.user_id != user_id]
        return self.store.update(self.COLLECTION, table_id, {
            'players': [self._player_to_doc(p) for p in players]
        })

    def subscribe(self, callback: Callable[[List[FreePlayTable]], None]) -> Unsubscribe:
        return self.store.subscribe(
            self.COLLECTION,
            lambda documents: callback(self._sort_tables([self._doc_to_table(doc) for doc in documents]))
        )

    @staticmethod
    def _sort_tables(tables: List[FreePlayTable]) -> List[FreePlayTable]:
        return sorted(tables, key=lambda table: table.number)

    @staticmethod
    def _player_to_doc(player: Player) -> Document:
        return {'userId': player.user_id, 'userName': player.user_name, 'phone': player.phone}

    @staticmethod
    def _doc_to_table(document: Document) -> FreePlayTable:
        return FreePlayTable(
            id=document['id'],
            number=int(document.get('number') or 0),
            game=document.get('game', ''),
            capacity=int(document.get('capacity') or 0),
            date=_normalize_stored_date(document.get('date')),
            time_range=document.get('timeRange'),
            players=[
                Player(user_id=p.get('userId'), user_name=p.get('userName', ''), phone=p.get('phone', ''))
                for p in document.get('players') or []
            ]
        )


class NewsRepository:
    """Репозиторий для новостей"""

    COLLECTION = 'news'

    def __init__(self, store: DocumentStore):
        self.store = store

    def get_news(self) -> List[NewsItem]:
        """Активные новости, новые первыми"""
        documents = self.store.read_all(
            self.COLLECTION, {'isActive': True}, order_by='createdAt', descending=True
        )
        return [self._doc_to_news(doc) for doc in documents]

    def add_news(self, item: NewsItem) -> str:
        return self.store.create(self.COLLECTION, {
            'title': item.title,
            'description': item.description,
            'imageUrl': item.image_url,
            'isActive': True,
            'createdAt': datetime.now().isoformat()
        })

    def delete_news(self, news_id: str) -> bool:
        return self.store.delete(self.COLLECTION, news_id)

    @staticmethod
    def _doc_to_news(document: Document) -> NewsItem:
        return NewsItem(
            id=document['id'],
            title=document.get('title', ''),
            description=document.get('description', ''),
            image_url=document.get('imageUrl'),
            is_active=bool(document.get('isActive', True)),
            created_at=document.get('createdAt')
        )
