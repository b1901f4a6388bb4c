import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

from database.models import FreePlayTable
from database.store import StoreError
from handlers.common import STORE_FAILURE_TEXT
from handlers.free_play_handlers import join_table


def callback(table_id, user_id=7):
    return SimpleNamespace(
        data=f"fp_join:{table_id}",
        from_user=SimpleNamespace(id=user_id),
        message=SimpleNamespace(answer=AsyncMock()),
        answer=AsyncMock()
    )


def test_join_reports_store_failure(services):
    def broken(table_id):
        raise StoreError("database is locked")

    services.free_play.get_table_by_id = broken
    query, state = callback("abc"), AsyncMock()

    asyncio.run(join_table(query, state, services))

    query.answer.assert_awaited_once_with(STORE_FAILURE_TEXT, show_alert=True)
    state.set_state.assert_not_awaited()


def test_join_asks_for_phone(services):
    table_id = services.free_play.add_table(FreePlayTable(id=None, number=3, game="Azul", capacity=4))
    query, state = callback(table_id), AsyncMock()

    asyncio.run(join_table(query, state, services))

    state.update_data.assert_awaited_once_with(table_id=table_id)
    assert "Mesa 3" in query.message.answer.await_args.args[0]
    query.answer.assert_awaited_once_with()
