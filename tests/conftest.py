from datetime import datetime, timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from main import app


@pytest.fixture
def mongo(monkeypatch):
    """Point the database module at an in-memory mongomock database."""
    mock_db = mongomock.MongoClient()["video_editor_test"]
    monkeypatch.setattr(database, "db", mock_db)
    monkeypatch.setattr(database, "_collections", {})
    return mock_db


@pytest.fixture
def client(mongo):
    return TestClient(app)


@pytest.fixture
def clock(monkeypatch):
    """Deterministic, strictly increasing write times one second apart."""
    ticks = iter(datetime(2026, 1, 1, 12, 0, 0) + timedelta(seconds=i) for i in range(100))
    monkeypatch.setattr(database, "_now", lambda: next(ticks))


@pytest.fixture
def project_payload():
    return {
        "userId": "user-1",
        "name": "Launch teaser",
        "platform": "instagram-reel",
        "trackItems": {
            "ids": ["t1", "t2"],
            "byId": {
                "t1": {"type": "video", "display": {"from": 0, "to": 4000}},
                "t2": {"type": "text", "details": {"text": "Hello", "fontSize": 48}},
            },
        },
        "size": {"width": 1080, "height": 1920},
        "metadata": {"duration": 4000, "fps": 30},
    }
