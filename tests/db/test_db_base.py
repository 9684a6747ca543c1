"""Tests for engine binding in capsule_workflow.db.base."""
import pytest
from structlog.testing import capture_logs

from capsule_workflow.db import close_db, get_session_factory, init_db

pytestmark = pytest.mark.integration


def _url(path) -> str:
    return f"sqlite+aiosqlite:///{path}"


async def test_same_url_twice_keeps_engine(tmp_path):
    """Re-initializing with the bound URL is a no-op."""
    url = _url(tmp_path / "first.db")
    try:
        await init_db(url)
        factory = get_session_factory()
        await init_db(url)
        assert get_session_factory() is factory
    finally:
        await close_db()


async def test_different_url_is_refused(tmp_path):
    """A second URL raises instead of silently reusing the first engine."""
    first, second = _url(tmp_path / "first.db"), _url(tmp_path / "second.db")
    try:
        await init_db(first)
        factory = get_session_factory()

        with capture_logs() as logs, pytest.raises(RuntimeError, match="already bound"):
            await init_db(second)

        assert get_session_factory() is factory
        assert any(entry["event"] == "db_already_bound" for entry in logs)
        assert not (tmp_path / "second.db").exists()
    finally:
        await close_db()


async def test_close_allows_rebinding(tmp_path):
    """After close_db a different URL can be bound."""
    await init_db(_url(tmp_path / "first.db"))
    await close_db()

    try:
        await init_db(_url(tmp_path / "second.db"))
        assert get_session_factory() is not None
    finally:
        await close_db()


async def test_session_factory_requires_init():
    """get_session_factory fails before init_db."""
    await close_db()
    with pytest.raises(RuntimeError, match="not initialized"):
        get_session_factory()
