"""
資料模型（SQLAlchemy ORM）

- Game：一場交換禮物活動，建立時就固定參加者名單
- Participant：活動中的一位參加者，recipient_id 在抽籤後才會設定
- EventLog：遊戲事件紀錄（建立、開始、通知失敗）
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameStatus(str, enum.Enum):
    UNSTARTED = "UNSTARTED"
    STARTED = "STARTED"


class Game(Base):
    __tablename__ = "games"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    organizer_name = Column(Text, nullable=False)
    organizer_email = Column(String(320), nullable=False)
    event_date = Column(DateTime(timezone=True), nullable=False)
    spending_limit_amount = Column(Numeric(12, 2), nullable=False)
    spending_limit_currency = Column(String(8), nullable=False)
    notes = Column(Text, nullable=False, default="")

    # 只會 False -> True 一次，之後不會再改回來
    started = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    started_at = Column(DateTime(timezone=True), nullable=True)

    participants = relationship(
        "Participant",
        back_populates="game",
        order_by="Participant.position",
        cascade="all, delete-orphan",
        foreign_keys="Participant.game_id",
    )

    @property
    def status(self) -> GameStatus:
        return GameStatus.STARTED if self.started else GameStatus.UNSTARTED


class Participant(Base):
    __tablename__ = "participants"

    id = Column(String(36), primary_key=True, default=_new_id)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(Text, nullable=False)
    email = Column(String(320), nullable=False)
    notes = Column(Text, nullable=False, default="")
    recipient_id = Column(String(36), ForeignKey("participants.id"), nullable=True)

    game = relationship("Game", back_populates="participants", foreign_keys=[game_id])
    recipient = relationship(
        "Participant", remote_side=[id], foreign_keys=[recipient_id], viewonly=True
    )


class EventLog(Base):
    __tablename__ = "event_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False, index=True)
    event_type = Column(String(50), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
