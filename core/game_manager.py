"""
Game Manager：管理 Game 的完整生命週期

職責：
1. 建立 Game（含所有參加者）並通知主辦人
2. 開始遊戲（抽籤 + 狀態轉換 + 通知每位參加者）
3. 查詢 Game 資訊和通知失敗紀錄

原則：
- 資料庫是唯一的事實來源：狀態轉換 commit 之後才寄信
- 寄信失敗只記錄，不回滾（否則就得允許重新 begin，違反只能開始一次的規則）
- GameStore、Notifier、亂數來源都由外部注入，方便測試
"""
from dataclasses import dataclass, field
from typing import List, Optional, Union
import logging
import random

from pydantic import ValidationError

from models import Game, EventLog
from schemas import GameCreate, SpendingLimit
from core.game_store import GameStore
from core.state_machine import GameStateMachine
from core.exceptions import AlreadyBegun, InvalidInput, NotificationFailure, StorageFailure
from services.assignment_service import MIN_PARTICIPANTS, assign_recipients
from services.notification_service import Notifier

logger = logging.getLogger(__name__)

NOTIFICATION_FAILED = "NOTIFICATION_FAILED"


@dataclass
class BeginResult:
    game: Game
    notified: List[str] = field(default_factory=list)
    failures: List[NotificationFailure] = field(default_factory=list)


class GameManager:
    """Game 生命週期管理器"""

    def __init__(self, store: GameStore, notifier: Notifier, rng: Optional[random.Random] = None):
        self.store = store
        self.notifier = notifier
        self.rng = rng

    @staticmethod
    def validate_request(request: Union[GameCreate, dict]) -> GameCreate:
        """
        驗證建立遊戲的請求

        檢查：
        1. 欄位格式（email、金額 >= 0 等，由 GameCreate schema 負責）
        2. 參加者至少 2 位（1 位以下無法抽籤）

        異常：
            InvalidInput: 任何一項不符合
        """
        if not isinstance(request, GameCreate):
            try:
                request = GameCreate.model_validate(request)
            except ValidationError as e:
                raise InvalidInput(str(e)) from e

        if len(request.participants) < MIN_PARTICIPANTS:
            raise InvalidInput(
                f"Need at least {MIN_PARTICIPANTS} participants, got {len(request.participants)}"
            )
        return request

    def create_game(self, request: Union[GameCreate, dict]) -> Game:
        """
        建立新遊戲

        流程：
        1. 驗證請求（失敗時不寫入任何資料）
        2. 原子性地寫入 Game 和所有 Participant（started = False）
        3. 寄信告訴主辦人 game_id（寄信失敗只記錄）

        返回：
            新建立的 Game

        異常：
            InvalidInput: 請求不合法
            StorageFailure: 資料庫寫入失敗
        """
        request = self.validate_request(request)

        game_id = self.store.create_game(request)

        try:
            self.notifier.notify_game_created(game_id, request.organizer_email)
        except NotificationFailure as e:
            logger.error(f"Failed to notify organizer of game {game_id}: {e}", exc_info=True)
            self._record_failure(game_id, e)

        return self.store.get_game(game_id)

    def begin_game(self, game_id: str) -> BeginResult:
        """
        開始遊戲（狀態轉換 UNSTARTED -> STARTED）

        前置條件：
        1. Game 必須存在
        2. Game 狀態必須是 UNSTARTED

        流程：
        1. 驗證前置條件
        2. 依名單抽籤
        3. 原子性地寫入配對並標記 started（以 started = false 為條件）
        4. 逐一通知每位送禮者，單一失敗不影響其他人

        返回：
            BeginResult（已開始的 Game、成功通知的參加者、通知失敗清單）

        異常：
            GameNotFound: Game 不存在
            AlreadyBegun: Game 已經開始過（不會重抽，也不會重寄）
            StorageFailure: 寫入失敗（Game 維持 UNSTARTED）
        """
        game = self.store.get_game(game_id)
        try:
            GameStateMachine.ensure_can_begin(game)
        except AlreadyBegun:
            logger.warning(f"Rejected begin for game {game_id}: already started")
            raise

        participant_ids = self.store.get_participant_ids(game_id)
        try:
            pairs = assign_recipients(participant_ids, self.rng)
        except ValueError as e:
            raise InvalidInput(str(e)) from e

        logger.info(f"Starting game {game_id} with {len(participant_ids)} participants")

        # 若另一個請求同時 begin，這裡會拋出 AlreadyBegun
        self.store.assign_and_begin(game_id, dict(pairs))

        game = self.store.get_game(game_id)
        result = BeginResult(game=game)
        self._notify_assignments(game, result)

        logger.info(
            f"Game {game_id} begun: {len(result.notified)} notified, "
            f"{len(result.failures)} notification failures"
        )
        return result

    def _notify_assignments(self, game: Game, result: BeginResult) -> None:
        by_id = {p.id: p for p in game.participants}
        spending_limit = SpendingLimit(
            amount=game.spending_limit_amount,
            currency=game.spending_limit_currency
        )

        for gifter in game.participants:
            recipient = by_id[gifter.recipient_id]
            try:
                self.notifier.notify_assignment(
                    gifter,
                    recipient,
                    game.event_date,
                    spending_limit,
                    game.notes,
                    game.organizer_name,
                )
            except NotificationFailure as e:
                logger.error(
                    f"Failed to notify participant {gifter.id} of game {game.id}: {e.reason}"
                )
                result.failures.append(e)
                self._record_failure(game.id, e)
            else:
                result.notified.append(gifter.id)

    def _record_failure(self, game_id: str, failure: NotificationFailure) -> None:
        try:
            self.store.record_event(
                game_id,
                NOTIFICATION_FAILED,
                {"participant_id": failure.participant_id, "reason": failure.reason}
            )
        except StorageFailure:
            logger.error(f"Could not record notification failure for game {game_id}", exc_info=True)

    def get_game(self, game_id: str) -> Game:
        """
        異常：
            GameNotFound: Game 不存在
        """
        return self.store.get_game(game_id)

    def get_notification_failures(self, game_id: str) -> List[EventLog]:
        self.store.get_game(game_id)
        return self.store.list_events(game_id, NOTIFICATION_FAILED)
