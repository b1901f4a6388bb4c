"""
Хранилище документов поверх SQLite

Каждая коллекция - набор JSON-документов с идентификатором, который
присваивает хранилище. Подписчики получают полный снимок коллекции
(или одного документа) сразу при подписке и после каждого изменения.
"""
import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Generator, List, Optional

from database.database import get_db

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
Unsubscribe = Callable[[], None]


class StoreError(Exception):
    """Ошибка чтения или записи в хранилище"""


@dataclass
class _Subscription:
    """Активная подписка на коллекцию или документ"""
    collection: str
    doc_id: Optional[str]
    deliver: Callable[[], None]
    active: bool = True


class DocumentStore:
    """Коллекции документов с чтением, записью и подписками"""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path
        self._subscriptions: List[_Subscription] = []

    @contextmanager
    def _cursor(self) -> Generator[sqlite3.Cursor, None, None]:
        try:
            with get_db(self.db_path) as conn:
                yield conn.cursor()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    # ------------------------------------------------------------------
    # Чтение
    # ------------------------------------------------------------------

    def read_all(self, collection: str, filters: Optional[Dict[str, Any]] = None,
                 order_by: Optional[str] = None, descending: bool = False) -> List[Document]:
        """Все документы коллекции с фильтром по равенству полей"""
        query = "SELECT id, data FROM documents WHERE collection = ?"
        params: List[Any] = [collection]

        for key, value in (filters or {}).items():
            query += " AND json_extract(data, ?) = ?"
            params.extend([f'$.{key}', value])

        if order_by:
            query += " ORDER BY json_extract(data, ?)"
            query += " DESC" if descending else " ASC"
            params.append(f'$.{order_by}')
        else:
            query += " ORDER BY created_at"

        with self._cursor() as cursor:
            cursor.execute(query, params)
            rows = cursor.fetchall()

        return [self._row_to_document(row) for row in rows]

    def read_one(self, collection: str, doc_id: str) -> Optional[Document]:
        """Документ по идентификатору или None"""
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT id, data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id)
            )
            row = cursor.fetchone()
        return self._row_to_document(row) if row else None

    # ------------------------------------------------------------------
    # Запись
    # ------------------------------------------------------------------

    def create(self, collection: str, data: Document) -> str:
        """Создание документа, возвращает присвоенный идентификатор"""
        doc_id = uuid.uuid4().hex
        with self._cursor() as cursor:
            cursor.execute("""
                INSERT INTO documents (collection, id, data, created_at)
                VALUES (?, ?, ?, ?)
            """, (collection, doc_id, self._dump(data), datetime.now().isoformat()))

        logger.debug(f"Создан документ {collection}/{doc_id}")
        self._notify(collection, doc_id)
        return doc_id

    def set(self, collection: str, doc_id: str, data: Document):
        """Полная запись документа с известным идентификатором"""
        with self._cursor() as cursor:
            cursor.execute("""
                INSERT INTO documents (collection, id, data, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(collection, id) DO UPDATE SET data = excluded.data
            """, (collection, doc_id, self._dump(data), datetime.now().isoformat()))

        logger.debug(f"Записан документ {collection}/{doc_id}")
        self._notify(collection, doc_id)

    def update(self, collection: str, doc_id: str, changes: Document) -> bool:
        """Частичное обновление полей, False если документа нет"""
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id)
            )
            row = cursor.fetchone()
            if row is None:
                return False

            data = json.loads(row['data'])
            data.update(changes)
            cursor.execute(
                "UPDATE documents SET data = ? WHERE collection = ? AND id = ?",
                (self._dump(data), collection, doc_id)
            )

        logger.debug(f"Обновлён документ {collection}/{doc_id}: {sorted(changes)}")
        self._notify(collection, doc_id)
        return True

    def delete(self, collection: str, doc_id: str) -> bool:
        """Удаление документа, False если документа нет"""
        with self._cursor() as cursor:
            cursor.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id)
            )
            deleted = cursor.rowcount > 0

        if deleted:
            logger.debug(f"Удалён документ {collection}/{doc_id}")
            self._notify(collection, doc_id)
        return deleted

    # ------------------------------------------------------------------
    # Подписки
    # ------------------------------------------------------------------

    def subscribe(self, collection: str, callback: Callable[[List[Document]], None],
                  filters: Optional[Dict[str, Any]] = None,
                  order_by: Optional[str] = None, descending: bool = False) -> Unsubscribe:
        """Подписка на снимки коллекции"""
        def deliver():
            callback(self.read_all(collection, filters, order_by, descending))

        return self._add_subscription(_Subscription(collection, None, deliver))

    def subscribe_document(self, collection: str, doc_id: str,
                           callback: Callable[[Optional[Document]], None]) -> Unsubscribe:
        """Подписка на один документ (None, если его нет)"""
        def deliver():
            callback(self.read_one(collection, doc_id))

        return self._add_subscription(_Subscription(collection, doc_id, deliver))

    @property
    def active_subscriptions(self) -> int:
        return len(self._subscriptions)

    def _add_subscription(self, subscription: _Subscription) -> Unsubscribe:
        self._subscriptions.append(subscription)

        def unsubscribe():
            if subscription.active:
                subscription.active = False
                self._subscriptions.remove(subscription)

        self._run(subscription)
        return unsubscribe

    def _notify(self, collection: str, doc_id: str):
        for subscription in list(self._subscriptions):
            if not subscription.active or subscription.collection != collection:
                continue
            if subscription.doc_id is not None and subscription.doc_id != doc_id:
                continue
            self._run(subscription)

    def _run(self, subscription: _Subscription):
        # Отписка могла произойти внутри другого обработчика
        if not subscription.active:
            return
        try:
            subscription.deliver()
        except Exception as e:
            logger.error(f"Ошибка в подписке на {subscription.collection}: {e}", exc_info=True)

    @staticmethod
    def _dump(data: Document) -> str:
        payload = {key: value for key, value in data.items() if key != 'id'}
        return json.dumps(payload, ensure_ascii=False)

    @staticmethod
    def _row_to_document(row) -> Document:
        """Преобразование строки БД в документ"""
        document = json.loads(row['data'])
        document['id'] = row['id']
        return document
