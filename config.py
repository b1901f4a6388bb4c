"""
Конфигурация проекта
"""
import os
from dataclasses import dataclass
from typing import List, Tuple


@dataclass
class Settings:
    """Настройки приложения"""
    # Telegram
    BOT_TOKEN: str = os.getenv('BOT_TOKEN', '')
    ADMIN_IDS: List[int] = None

    # Хранилище документов
    DB_PATH: str = os.getenv('DB_PATH', 'data/mesas.db')

    # Бизнес-правила
    TABLES_COUNT: int = 4
    MIN_PEOPLE: int = 1
    MAX_PEOPLE: int = 6
    MAX_BOOKING_DAYS: int = 30
    VIEW_TIMEOUT_MINUTES: int = 15
    RESERVATIONS_PAGE_SIZE: int = 10

    # Дни работы (0 = Пн ... 6 = Вс): Чт, Пт, Сб, Вс
    OPEN_WEEKDAYS: Tuple[int, ...] = (3, 4, 5, 6)

    # Значения по умолчанию для настроек в хранилище
    DEFAULT_PRICE: int = 5000
    DEFAULT_PAYMENT_ALIAS: str = 'ALIAS.DE.EJEMPLO'
    DEFAULT_TIME_SLOTS: Tuple[str, ...] = ('17:00 - 19:00', '19:00 - 21:00', '21:00 - 23:00')

    def __post_init__(self):
        """Инициализация после создания объекта"""
        if not self.BOT_TOKEN:
            raise ValueError("BOT_TOKEN не установлен")

        # Парсинг ADMIN_IDS из переменной окружения
        if self.ADMIN_IDS is None:
            admin_ids_str = os.getenv('ADMIN_IDS', '')
            if admin_ids_str:
                self.ADMIN_IDS = [int(id.strip()) for id in admin_ids_str.split(',') if id.strip()]
            else:
                self.ADMIN_IDS = []

    def is_admin(self, user_id: int) -> bool:
        """Проверка, является ли пользователь администратором"""
        return user_id in self.ADMIN_IDS


# Глобальный экземпляр настроек
settings = Settings()
