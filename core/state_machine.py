"""
狀態機：集中管理 Game 的狀態轉換

狀態圖：
    UNSTARTED --begin--> STARTED

- 建立遊戲時一律是 UNSTARTED
- STARTED 是終態：不能回到 UNSTARTED，也不能再次進入 STARTED
"""
from models import Game, GameStatus
from core.exceptions import AlreadyBegun


class GameStateMachine:
    """Game 狀態轉換規則"""

    TRANSITIONS = {
        GameStatus.UNSTARTED: {GameStatus.STARTED},
        GameStatus.STARTED: set(),
    }

    @classmethod
    def can_transition(cls, current: GameStatus, target: GameStatus) -> bool:
        return target in cls.TRANSITIONS.get(current, set())

    @classmethod
    def ensure_can_begin(cls, game: Game) -> None:
        """
        檢查遊戲是否可以開始

        異常：
            AlreadyBegun: 遊戲已經是 STARTED
        """
        if not cls.can_transition(game.status, GameStatus.STARTED):
            raise AlreadyBegun(game.id)
