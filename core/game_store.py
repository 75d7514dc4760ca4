"""
Game Store：遊戲與參加者的持久化

GameStore 是 GameManager 依賴的介面（Protocol），
SqlGameStore 是 SQLAlchemy 的實作；測試可以換成任何符合同一介面的物件

原子性：
- create_game：Game 和所有 Participant 在同一個 transaction，要嘛全部寫入，要嘛都沒有
- assign_and_begin：所有 recipient_id 和 started 旗標在同一個 transaction，
  並以 started = false 為條件，兩個請求同時 begin 只有一個會成功
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol
import logging

from sqlalchemy.orm import Session

from database import transactional
from models import Game, Participant, EventLog
from schemas import GameCreate
from core.locks import with_game_lock
from core.exceptions import GameNotFound, AlreadyBegun, InvalidInput
from services.assignment_service import is_derangement

logger = logging.getLogger(__name__)


class GameStore(Protocol):
    """GameManager 需要的持久化操作"""

    def create_game(self, request: GameCreate) -> str:
        """寫入新遊戲（含參加者），返回 game_id"""
        ...

    def get_participant_ids(self, game_id: str) -> List[str]:
        """依名單順序返回參加者 ID"""
        ...

    def get_game(self, game_id: str) -> Game:
        """返回完整的 Game（含參加者）"""
        ...

    def assign_and_begin(self, game_id: str, assignments: Dict[str, str]) -> None:
        """寫入 gifter -> recipient 對應並把遊戲標記為已開始"""
        ...

    def record_event(self, game_id: str, event_type: str, data: dict) -> None:
        ...

    def list_events(self, game_id: str, event_type: Optional[str] = None) -> List[EventLog]:
        ...


class SqlGameStore:
    """SQLAlchemy 實作的 GameStore"""

    def __init__(self, db: Session):
        self.db = db

    @transactional
    def create_game(self, request: GameCreate) -> str:
        """
        建立 Game 和所有 Participant

        流程：
        1. 建立 Game（started = False）
        2. 依名單順序建立 Participant（position 0..n-1）
        3. 記錄 GAME_CREATED 事件

        返回：
            新遊戲的 ID

        異常：
            StorageFailure: 資料庫錯誤（已 rollback，不會留下任何資料）
        """
        game = Game(
            name=request.name,
            organizer_name=request.organizer_name,
            organizer_email=request.organizer_email,
            event_date=request.event_date,
            spending_limit_amount=request.spending_limit.amount,
            spending_limit_currency=request.spending_limit.currency,
            notes=request.notes,
            started=False,
        )
        game.participants = [
            Participant(
                position=position,
                name=p.name,
                email=p.email,
                notes=p.notes,
            )
            for position, p in enumerate(request.participants)
        ]
        self.db.add(game)
        self.db.flush()  # 取得 game.id

        self.db.add(EventLog(
            game_id=game.id,
            event_type="GAME_CREATED",
            data={"participant_count": len(game.participants)}
        ))

        logger.info(f"Created game {game.id} with {len(game.participants)} participants")
        return game.id

    def get_game(self, game_id: str) -> Game:
        game = self.db.query(Game).filter(Game.id == game_id).first()
        if not game:
            raise GameNotFound(game_id)
        return game

    def get_participant_ids(self, game_id: str) -> List[str]:
        # 先確認遊戲存在，避免「沒有參加者」和「沒有遊戲」混在一起
        if not self.db.query(Game.id).filter(Game.id == game_id).first():
            raise GameNotFound(game_id)

        rows = (
            self.db.query(Participant.id)
            .filter(Participant.game_id == game_id)
            .order_by(Participant.position)
            .all()
        )
        return [row.id for row in rows]

    @transactional
    def assign_and_begin(self, game_id: str, assignments: Dict[str, str]) -> None:
        """
        原子性地寫入抽籤結果並開始遊戲

        流程：
        1. 鎖定 Game（PostgreSQL 行級鎖）
        2. 條件式 UPDATE：只有 started = false 時才改成 true
        3. 驗證 assignments 剛好覆蓋整份名單且沒有人抽到自己
        4. 寫入每位參加者的 recipient_id

        參數：
            game_id: Game ID
            assignments: {gifter_id: recipient_id}

        異常：
            GameNotFound: 遊戲不存在
            AlreadyBegun: 遊戲已經開始（包含被另一個請求搶先）
            InvalidInput: assignments 不是合法的配對
            StorageFailure: 資料庫錯誤

        注意：
            任何異常都會 rollback，started 維持 false，recipient_id 維持未設定
        """
        game = with_game_lock(game_id, self.db).first()
        if not game:
            raise GameNotFound(game_id)
        if game.started:
            raise AlreadyBegun(game_id)

        claimed = (
            self.db.query(Game)
            .filter(Game.id == game_id, Game.started.is_(False))
            .update(
                {Game.started: True, Game.started_at: datetime.now(timezone.utc)},
                synchronize_session="fetch",
            )
        )
        if claimed != 1:
            # 另一個請求在讀取和更新之間搶先開始了
            raise AlreadyBegun(game_id)

        participants = (
            self.db.query(Participant)
            .filter(Participant.game_id == game_id)
            .order_by(Participant.position)
            .all()
        )
        if not is_derangement(list(assignments.items()), [p.id for p in participants]):
            raise InvalidInput(f"Assignments for game {game_id} are not a valid derangement")

        self._write_assignments(participants, assignments)

        self.db.add(EventLog(
            game_id=game_id,
            event_type="GAME_STARTED",
            data={"participant_count": len(participants)}
        ))

        logger.info(f"Game {game_id} started with {len(participants)} assignments")

    def _write_assignments(self, participants: List[Participant], assignments: Dict[str, str]) -> None:
        for participant in participants:
            participant.recipient_id = assignments[participant.id]
        self.db.flush()

    @transactional
    def record_event(self, game_id: str, event_type: str, data: dict) -> None:
        self.db.add(EventLog(game_id=game_id, event_type=event_type, data=data))

    def list_events(self, game_id: str, event_type: Optional[str] = None) -> List[EventLog]:
        query = self.db.query(EventLog).filter(EventLog.game_id == game_id)
        if event_type:
            query = query.filter(EventLog.event_type == event_type)
        return query.order_by(EventLog.id).all()
