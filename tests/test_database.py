import logging
from datetime import datetime, timedelta

import config
import database


def test_missing_url_warns_once(monkeypatch, caplog):
    monkeypatch.setattr(config, "DATABASE_URL", None)
    monkeypatch.setattr(database, "_warned_unconfigured", False)
    with caplog.at_level(logging.WARNING, logger="database"):
        assert database.get_db() is None
        assert database.get_db() is None
    assert [r.message for r in caplog.records].count("DATABASE_URL not set; database features are unavailable") == 1


def test_next_timestamp_is_strictly_later():
    future = database.utcnow() + timedelta(seconds=5)
    assert database.next_timestamp(future) == future + timedelta(milliseconds=1)
    assert database.next_timestamp(None) <= database.utcnow()
    assert isinstance(database.next_timestamp("not a date"), datetime)
