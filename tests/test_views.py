from datetime import datetime, timedelta

from handlers.views import STEP_CONFIRM, STEP_FREE_PLAY, STEP_TIME, ViewRegistry


def test_one_view_per_user(services):
    views = ViewRegistry(services.cache)

    first = views.open(None, 10, 1)
    second = views.open(None, 10, 1)

    assert len(views) == 1
    assert views.get(1) is second
    assert services.cache.views == [second]
    assert first not in services.cache.views


def test_show_tracks_confirmation_step(services):
    view = ViewRegistry(services.cache).open(None, 10, 1)

    view.show(55, STEP_CONFIRM)
    assert view.confirming
    view.show(55, STEP_TIME)
    assert not view.confirming
    view.show(56, STEP_FREE_PLAY)
    assert not view.confirming
    assert view.message_id == 56


def test_expired_views_are_detached(services):
    views = ViewRegistry(services.cache)
    stale = views.open(None, 10, 1)
    views.open(None, 20, 2)
    stale.last_activity = datetime.now() - timedelta(minutes=20)

    assert views.close_expired(15) == 1
    assert views.get(1) is None
    assert [view.user_id for view in services.cache.views] == [2]

    views.close_all()
    assert len(views) == 0
    assert services.cache.views == []
