import pytest

from event_planner import config, db


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    """Point the app at a fresh sqlite file for the duration of one test."""
    monkeypatch.setattr(config, 'DATA_DIR', tmp_path)
    monkeypatch.setattr(config, 'DB_PATH', tmp_path / 'events.db')
    db.init_db()
    return tmp_path / 'events.db'


@pytest.fixture
def user(temp_db):
    return db.ensure_user('host@example.com', 'Pat Host')
