"""
Сборка хранилища, репозиториев и кэша для одного процесса
"""
from dataclasses import dataclass
from typing import Optional

from config import settings
from database.database import init_db
from database.repository import (
    FreePlayRepository, NewsRepository, ReservationRepository,
    TimeSlotRepository, VenueConfigRepository
)
from database.store import DocumentStore
from services.sync import SyncCache


@dataclass
class Services:
    """Зависимости обработчиков"""
    store: DocumentStore
    reservations: ReservationRepository
    time_slots: TimeSlotRepository
    venue_config: VenueConfigRepository
    free_play: FreePlayRepository
    news: NewsRepository
    cache: SyncCache

    def close(self):
        self.cache.close()


def build_services(db_path: Optional[str] = None, seed_defaults: bool = True) -> Services:
    """Инициализация БД и создание всех репозиториев; кэш ещё не запущен"""
    db_path = db_path or settings.DB_PATH
    init_db(db_path)

    store = DocumentStore(db_path)
    reservations = ReservationRepository(store)
    time_slots = TimeSlotRepository(store)
    venue_config = VenueConfigRepository(store)
    free_play = FreePlayRepository(store)

    if seed_defaults:
        time_slots.ensure_defaults(settings.DEFAULT_TIME_SLOTS)

    return Services(
        store=store,
        reservations=reservations,
        time_slots=time_slots,
        venue_config=venue_config,
        free_play=free_play,
        news=NewsRepository(store),
        cache=SyncCache(reservations, time_slots, venue_config, free_play)
    )
