"""
Модели данных для работы с хранилищем
"""
from dataclasses import dataclass, field
from typing import List, Optional


GAME_DECIDE_ON_SITE = 'A decidir en el local'


class ReservationStatus:
    """Статусы бронирования"""
    PENDING_PAYMENT = 'pending_payment'
    CONFIRMED = 'confirmed'
    REJECTED = 'rejected'

    ALL = (PENDING_PAYMENT, CONFIRMED, REJECTED)


@dataclass
class Reservation:
    """Модель бронирования"""
    id: Optional[str]
    user_id: int
    user_name: str
    phone: str
    date: str  # YYYY-MM-DD
    time: str  # метка слота
    people: int
    game: str
    price_per_person: int
    total: int  # фиксируется при создании
    status: str = ReservationStatus.PENDING_PAYMENT
    created_at: Optional[str] = None
    username: Optional[str] = None

    @property
    def is_rejected(self) -> bool:
        return self.status == ReservationStatus.REJECTED


@dataclass
class TimeSlot:
    """Модель временного слота"""
    id: Optional[str]
    label: str
    active: bool = True
    order: int = 0


@dataclass
class Player:
    """Игрок, записавшийся за стол свободной игры"""
    user_id: int
    user_name: str
    phone: str


@dataclass
class FreePlayTable:
    """Модель стола свободной игры"""
    id: Optional[str]
    number: int
    game: str
    capacity: int
    date: Optional[str] = None
    time_range: Optional[str] = None
    players: List[Player] = field(default_factory=list)

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.capacity

    def has_player(self, user_id: int) -> bool:
        return any(player.user_id == user_id for player in self.players)


@dataclass
class NewsItem:
    """Модель новости"""
    id: Optional[str]
    title: str
    description: str
    image_url: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
