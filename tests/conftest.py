import os

# Settings() читает окружение при импорте config
os.environ.setdefault("BOT_TOKEN", "test-token")
os.environ.setdefault("ADMIN_IDS", "1000")

import pytest

from database.models import Reservation, ReservationStatus
from services.container import build_services


@pytest.fixture
def services(tmp_path):
    services = build_services(str(tmp_path / "test.db"))
    yield services
    services.close()


@pytest.fixture
def make_reservation(services):
    def _make(date="2024-06-06", time="17:00 - 19:00", status=ReservationStatus.PENDING_PAYMENT,
              user_id=1, user_name="Ana", game="Catan", people=2, price=5000):
        reservation = Reservation(
            id=None,
            user_id=user_id,
            user_name=user_name,
            phone="+5491100000000",
            date=date,
            time=time,
            people=people,
            game=game,
            price_per_person=price,
            total=price * people,
            status=status
        )
        reservation.id = services.reservations.create_reservation(reservation)
        return reservation

    return _make
