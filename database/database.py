"""
Модуль для работы с базой данных SQLite
"""
import sqlite3
import os
from contextlib import contextmanager
from typing import Generator, Optional
from config import settings


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Получение подключения к БД"""
    conn = sqlite3.Connection(db_path or settings.DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_db(db_path: Optional[str] = None) -> Generator[sqlite3.Connection, None, None]:
    """Контекстный менеджер для работы с БД"""
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Optional[str] = None):
    """Инициализация базы данных"""
    db_path = db_path or settings.DB_PATH

    # Создание директории для БД, если не существует
    db_dir = os.path.dirname(db_path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)

    with get_db(db_path) as conn:
        cursor = conn.cursor()

        # Все коллекции хранятся как JSON-документы
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                collection TEXT NOT NULL,
                id TEXT NOT NULL,
                data TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL,
                PRIMARY KEY (collection, id)
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_documents_created
            ON documents(collection, created_at)
        """)

        conn.commit()
