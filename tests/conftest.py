import random

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
import models  # noqa: F401
from core.exceptions import NotificationFailure
from core.game_manager import GameManager
from core.game_store import SqlGameStore


class RecordingNotifier:
    """Notifier fake：記錄所有呼叫，fail_for 內的 email 會寄送失敗"""

    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.created = []
        self.assignments = []

    def notify_game_created(self, game_id, organizer_email):
        if organizer_email in self.fail_for:
            raise NotificationFailure(None, "mailbox unavailable")
        self.created.append((game_id, organizer_email))

    def notify_assignment(self, gifter, recipient, event_date, spending_limit, shared_notes, organizer_name):
        if gifter.email in self.fail_for:
            raise NotificationFailure(gifter.id, "mailbox unavailable")
        self.assignments.append({
            "gifter": gifter.name,
            "recipient": recipient.name,
            "recipient_notes": recipient.notes,
            "event_date": event_date,
            "spending_limit": spending_limit,
            "shared_notes": shared_notes,
            "organizer_name": organizer_name,
        })


def make_request(names=("Alice", "Bob", "Carol"), **overrides):
    request = {
        "name": "Office party",
        "organizer_name": "Olivia",
        "organizer_email": "olivia@example.com",
        "event_date": "2026-12-20T18:00:00+00:00",
        "spending_limit": {"amount": "25.00", "currency": "USD"},
        "notes": "Bring snacks",
        "participants": [
            {"name": name, "email": f"{name.lower()}@example.com", "notes": f"{name} likes tea"}
            for name in names
        ],
    }
    request.update(overrides)
    return request


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return SqlGameStore(db)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def manager(store, notifier, rng):
    return GameManager(store=store, notifier=notifier, rng=rng)


@pytest.fixture
def request_factory():
    return make_request


@pytest.fixture
def notifier_factory():
    return RecordingNotifier
