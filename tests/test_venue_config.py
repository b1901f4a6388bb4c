from database.models import NewsItem


def test_defaults_when_nothing_stored(services):
    config = services.venue_config

    assert config.get_price() == 5000
    assert config.get_payment_alias() == "ALIAS.DE.EJEMPLO"
    assert config.get_blocked_dates() == []
    assert config.get_special_dates() == {}


def test_price_and_alias(services):
    services.venue_config.set_price(7500)
    services.venue_config.set_payment_alias("  mesas.juegos  ")

    assert services.venue_config.get_price() == 7500
    assert services.venue_config.get_payment_alias() == "mesas.juegos"


def test_toggle_blocked_date(services):
    assert services.venue_config.toggle_blocked_date("2024-06-08T00:00:00") == ["2024-06-08"]
    assert services.venue_config.toggle_blocked_date("2024-06-08") == []


def test_special_dates(services):
    services.venue_config.save_special_date("2024-06-09", "Noche de rol")

    assert services.venue_config.get_special_dates() == {"2024-06-09": "Noche de rol"}
    assert services.venue_config.delete_special_date("2024-06-09")
    assert not services.venue_config.delete_special_date("2024-06-09")


def test_legacy_special_dates_list_is_read_as_mapping(services):
    services.store.set("settings", "specialDates", {
        "dates": [{"date": "2024-06-09", "name": "Torneo"}, {"name": "sin fecha"}]
    })

    assert services.venue_config.get_special_dates() == {"2024-06-09": "Torneo"}

    services.venue_config.save_special_date("2024-06-13", "Noche de rol")
    stored = services.store.read_one("settings", "specialDates")
    assert stored["dates"] == {"2024-06-09": "Torneo", "2024-06-13": "Noche de rol"}


def test_time_slots_catalog(services):
    repo = services.time_slots
    new_id = repo.add_time_slot("23:00 - 01:00", active=False)

    slots = repo.get_time_slots()
    assert [slot.order for slot in slots] == [1, 2, 3, 4]
    assert slots[-1].id == new_id
    assert new_id not in [slot.id for slot in repo.get_time_slots() if slot.active]

    assert repo.toggle_active(new_id)
    assert new_id in [slot.id for slot in repo.get_time_slots() if slot.active]
    assert repo.delete_time_slot(new_id)
    assert not repo.toggle_active(new_id)


def test_defaults_seeded_once(services):
    services.time_slots.ensure_defaults(["10:00 - 12:00"])

    assert len(services.time_slots.get_time_slots()) == 3


def test_news_lists_active_items(services):
    news_id = services.news.add_news(NewsItem(id=None, title="Nuevo juego", description="Llegó Azul"))
    services.store.update("news", news_id, {"isActive": False})
    services.news.add_news(NewsItem(id=None, title="Horario", description="Abrimos el jueves"))

    assert [item.title for item in services.news.get_news()] == ["Horario"]
