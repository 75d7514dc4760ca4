import pytest
from sqlalchemy.exc import OperationalError

from models import EventLog, Game, Participant
from schemas import GameCreate, ParticipantCreate
from core.exceptions import AlreadyBegun, GameNotFound, InvalidInput, StorageFailure
from core.game_store import SqlGameStore


class FailingStore(SqlGameStore):
    """寫了一半的 recipient_id 之後模擬資料庫斷線"""

    def _write_assignments(self, participants, assignments):
        participants[0].recipient_id = assignments[participants[0].id]
        self.db.flush()
        raise OperationalError("UPDATE participants", {}, Exception("connection lost"))


def create(store, request_factory, names=("Alice", "Bob", "Carol")):
    return store.create_game(GameCreate.model_validate(request_factory(names)))


def rotation(ids):
    return {ids[i]: ids[(i + 1) % len(ids)] for i in range(len(ids))}


def test_create_then_get_game(store, request_factory):
    game_id = create(store, request_factory)

    game = store.get_game(game_id)
    assert game.started is False
    assert game.started_at is None
    assert game.organizer_email == "olivia@example.com"
    assert game.spending_limit_currency == "USD"
    assert [p.name for p in game.participants] == ["Alice", "Bob", "Carol"]
    assert all(p.recipient_id is None for p in game.participants)

    events = store.list_events(game_id)
    assert [e.event_type for e in events] == ["GAME_CREATED"]
    assert events[0].data == {"participant_count": 3}


def test_participant_ids_follow_roster_order(store, request_factory):
    game_id = create(store, request_factory, names=("Zed", "Amy", "Mo"))
    game = store.get_game(game_id)

    assert store.get_participant_ids(game_id) == [p.id for p in game.participants]
    assert [p.position for p in game.participants] == [0, 1, 2]


def test_unknown_game(store):
    with pytest.raises(GameNotFound):
        store.get_game("missing")
    with pytest.raises(GameNotFound):
        store.get_participant_ids("missing")
    with pytest.raises(GameNotFound):
        store.assign_and_begin("missing", {})


def test_create_failure_leaves_no_rows(db, store, request_factory):
    request = GameCreate.model_validate(request_factory(("Alice", "Bob")))
    # 略過 schema 驗證，讓資料庫的 NOT NULL 在寫入最後一位參加者時失敗
    request.participants.append(
        ParticipantCreate.model_construct(name=None, email="nobody@example.com", notes="")
    )
    with pytest.raises(StorageFailure):
        store.create_game(request)

    assert db.query(Game).count() == 0
    assert db.query(Participant).count() == 0
    assert db.query(EventLog).count() == 0


def test_assign_and_begin(store, request_factory):
    game_id = create(store, request_factory)
    ids = store.get_participant_ids(game_id)

    store.assign_and_begin(game_id, rotation(ids))

    game = store.get_game(game_id)
    assert game.started is True
    assert game.started_at is not None
    assert {p.id: p.recipient_id for p in game.participants} == rotation(ids)
    assert game.participants[0].recipient.id == ids[1]
    assert [e.event_type for e in store.list_events(game_id)] == ["GAME_CREATED", "GAME_STARTED"]


def test_second_assign_is_rejected_and_mapping_unchanged(store, request_factory):
    game_id = create(store, request_factory)
    ids = store.get_participant_ids(game_id)
    store.assign_and_begin(game_id, rotation(ids))

    reversed_ids = list(reversed(ids))
    with pytest.raises(AlreadyBegun):
        store.assign_and_begin(game_id, rotation(reversed_ids))

    game = store.get_game(game_id)
    assert {p.id: p.recipient_id for p in game.participants} == rotation(ids)


def test_invalid_mapping_is_rejected(store, request_factory):
    game_id = create(store, request_factory)
    ids = store.get_participant_ids(game_id)

    with pytest.raises(InvalidInput):
        store.assign_and_begin(game_id, {ids[0]: ids[0], ids[1]: ids[2], ids[2]: ids[1]})

    game = store.get_game(game_id)
    assert game.started is False
    assert all(p.recipient_id is None for p in game.participants)


def test_storage_failure_during_begin_leaves_game_unstarted(db, request_factory):
    store = FailingStore(db)
    game_id = create(store, request_factory)
    ids = store.get_participant_ids(game_id)

    with pytest.raises(StorageFailure):
        store.assign_and_begin(game_id, rotation(ids))

    game = SqlGameStore(db).get_game(game_id)
    assert game.started is False
    assert game.started_at is None
    assert all(p.recipient_id is None for p in game.participants)
    assert [e.event_type for e in store.list_events(game_id)] == ["GAME_CREATED"]


def test_record_event(store, request_factory):
    game_id = create(store, request_factory)
    store.record_event(game_id, "NOTIFICATION_FAILED", {"participant_id": "p1", "reason": "bounced"})

    failures = store.list_events(game_id, "NOTIFICATION_FAILED")
    assert len(failures) == 1
    assert failures[0].data["reason"] == "bounced"
