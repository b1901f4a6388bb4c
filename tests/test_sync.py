import pytest

from database.models import FreePlayTable, Player
from database.store import StoreError
from services.sync import BookingView

SLOT = "17:00 - 19:00"


class RecordingView(BookingView):
    def __init__(self):
        super().__init__()
        self.calls = []

    def redraw_time_slots(self, availability):
        self.calls.append(("time_slots", [(slot.label, a.spots_left) for slot, a in availability]))

    def redraw_calendar(self, blocked_dates, special_dates):
        self.calls.append(("calendar", list(blocked_dates), dict(special_dates)))

    def redraw_total(self, total):
        self.calls.append(("total", total))

    def redraw_free_play(self, tables):
        self.calls.append(("free_play", [(table.number, len(table.players)) for table in tables]))


@pytest.fixture
def cache(services):
    services.cache.start()
    return services.cache


def test_start_loads_everything(cache):
    assert cache.is_running
    assert [slot.label for slot in cache.time_slots] == ["17:00 - 19:00", "19:00 - 21:00", "21:00 - 23:00"]
    assert cache.price == 5000
    assert cache.payment_alias == "ALIAS.DE.EJEMPLO"
    assert cache.blocked_dates == []
    assert cache.special_dates == {}


def test_reservation_changes_reach_cache(cache, make_reservation):
    make_reservation()
    make_reservation()

    assert cache.slot_availability("2024-06-06", SLOT).spots_left == 2


def test_redraw_time_slots_only_for_views_with_date(cache, make_reservation):
    with_date, without_date = RecordingView(), RecordingView()
    with_date.select_date("2024-06-06")
    cache.attach(with_date)
    cache.attach(without_date)

    make_reservation()

    assert with_date.calls[-1] == ("time_slots", [(SLOT, 3), ("19:00 - 21:00", 4), ("21:00 - 23:00", 4)])
    assert without_date.calls == []


def test_inactive_slot_disappears_from_redraw(cache, services):
    view = RecordingView()
    view.select_date("2024-06-06")
    cache.attach(view)

    slot = cache.time_slots[1]
    services.time_slots.toggle_active(slot.id)

    labels = [label for label, _ in view.calls[-1][1]]
    assert slot.label not in labels
    assert [s.label for s in cache.active_time_slots] == labels


def test_blocked_and_special_dates_redraw_calendar(cache, services):
    view = RecordingView()
    cache.attach(view)

    services.venue_config.toggle_blocked_date("2024-06-08")
    services.venue_config.save_special_date("2024-06-09", "Noche de rol")

    assert view.calls == [
        ("calendar", ["2024-06-08"], {}),
        ("calendar", ["2024-06-08"], {"2024-06-09": "Noche de rol"}),
    ]
    assert cache.special_date_label("2024-06-09T20:00:00") == "Noche de rol"


def test_price_change_redraws_only_confirming_views(cache, services):
    confirming, browsing = RecordingView(), RecordingView()
    confirming.confirming = True
    confirming.people = 3
    cache.attach(confirming)
    cache.attach(browsing)

    services.venue_config.set_price(6000)

    assert cache.price == 6000
    assert cache.total_for(3) == 18000
    assert confirming.calls == [("total", 18000)]
    assert browsing.calls == []


def test_select_date_resets_time_and_confirmation():
    view = RecordingView()
    view.selected_time = SLOT
    view.confirming = True

    view.select_date("2024-06-07T10:00:00")

    assert view.selected_date == "2024-06-07"
    assert view.selected_time is None
    assert not view.confirming


def test_close_stops_all_callbacks(cache, services, make_reservation):
    view = RecordingView()
    view.select_date("2024-06-06")
    cache.attach(view)

    cache.close()
    make_reservation()
    services.venue_config.set_price(9000)

    assert not cache.is_running
    assert services.store.active_subscriptions == 0
    assert view.calls == []
    assert cache.price == 5000
    assert cache.views == []


def test_failing_view_does_not_break_others(cache, make_reservation):
    class BrokenView(RecordingView):
        def redraw_time_slots(self, availability):
            raise RuntimeError("message deleted")

    broken, healthy = BrokenView(), RecordingView()
    for view in (broken, healthy):
        view.select_date("2024-06-06")
        cache.attach(view)

    make_reservation()

    assert healthy.calls


def test_start_propagates_initial_read_failure(services):
    def broken(*args, **kwargs):
        raise StoreError("disk I/O error")

    services.reservations.get_reservations = broken

    with pytest.raises(StoreError):
        services.cache.start()
    assert not services.cache.is_running


def test_time_slots_resorted_on_delivery(cache, services):
    last = cache.time_slots[-1]

    services.store.update("timeSlots", last.id, {"order": 0})

    assert cache.time_slots[0].id == last.id
    assert [slot.order for slot in cache.time_slots] == [0, 1, 2]


def test_reservations_newest_first(cache, services):
    ids = [
        services.store.create("reservations", {
            "userName": name, "date": "2024-06-06", "time": SLOT,
            "status": "pending_payment", "createdAt": created_at
        })
        for name, created_at in (
            ("Ana", "2024-06-01T10:00:00"),
            ("Bruno", "2024-06-01T11:00:00"),
            ("Carla", "2024-06-01T12:00:00"),
        )
    ]

    assert [reservation.id for reservation in cache.reservations] == list(reversed(ids))


def test_free_play_sign_up_reaches_mirror_and_views(cache, services):
    view = RecordingView()
    cache.attach(view)
    table_id = services.free_play.add_table(FreePlayTable(id=None, number=1, game="Catan", capacity=4))

    services.free_play.add_player(table_id, Player(user_id=7, user_name="Ana", phone="+5491100000000"))

    assert [player.user_id for player in cache.free_play_tables[0].players] == [7]
    assert view.calls[-1] == ("free_play", [(1, 1)])


def test_close_stops_free_play_mirror(cache, services):
    cache.close()

    services.free_play.add_table(FreePlayTable(id=None, number=1, game="Catan", capacity=4))

    assert cache.free_play_tables == []
