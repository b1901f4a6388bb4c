import pytest

from database.models import FreePlayTable, Player
from services.errors import (
    AlreadySignedUpError, TableFullError, TableNotFoundError, ValidationError
)


@pytest.fixture
def table_id(services):
    return services.free_play.add_table(
        FreePlayTable(id=None, number=2, game="Catan", capacity=2, date="2024-06-06", time_range="19:00 - 23:00")
    )


def player(user_id):
    return Player(user_id=user_id, user_name=f"Jugador {user_id}", phone="+5491100000000")


def test_new_table_has_no_players(services, table_id):
    table = services.free_play.get_table_by_id(table_id)

    assert table.players == []
    assert table.time_range == "19:00 - 23:00"
    assert not table.is_full


def test_tables_sorted_by_number(services, table_id):
    services.free_play.add_table(FreePlayTable(id=None, number=1, game="Azul", capacity=4))

    assert [table.number for table in services.free_play.get_tables()] == [1, 2]


def test_sign_up_until_full(services, table_id):
    services.free_play.add_player(table_id, player(1))
    services.free_play.add_player(table_id, player(2))

    with pytest.raises(TableFullError):
        services.free_play.add_player(table_id, player(3))

    table = services.free_play.get_table_by_id(table_id)
    assert [p.user_id for p in table.players] == [1, 2]
    assert table.is_full


def test_cannot_sign_up_twice(services, table_id):
    services.free_play.add_player(table_id, player(1))

    with pytest.raises(AlreadySignedUpError):
        services.free_play.add_player(table_id, player(1))
    assert len(services.free_play.get_table_by_id(table_id).players) == 1


def test_sign_up_to_missing_table(services):
    with pytest.raises(TableNotFoundError):
        services.free_play.add_player("missing", player(1))


def test_remove_player(services, table_id):
    services.free_play.add_player(table_id, player(1))

    assert services.free_play.remove_player(table_id, 1)
    assert not services.free_play.remove_player(table_id, 1)
    assert services.free_play.get_table_by_id(table_id).players == []


def test_capacity_cannot_drop_below_players(services, table_id):
    services.free_play.add_player(table_id, player(1))
    services.free_play.add_player(table_id, player(2))

    with pytest.raises(ValidationError):
        services.free_play.update_table(table_id, {"capacity": 1})

    assert services.free_play.update_table(table_id, {"capacity": 5, "game": "Carcassonne"})
    table = services.free_play.get_table_by_id(table_id)
    assert (table.capacity, table.game, len(table.players)) == (5, "Carcassonne", 2)


def test_delete_table(services, table_id):
    assert services.free_play.delete_table(table_id)
    assert services.free_play.get_tables() == []
