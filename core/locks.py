"""
並發控制工具

提供 Database-level 的鎖定機制，防止兩個 begin 請求同時抽籤

PostgreSQL 使用 SELECT ... FOR UPDATE（悲觀鎖）；
SQLite 不支援行級鎖，SQLAlchemy 會忽略 FOR UPDATE，
此時靠 SqlGameStore 的條件式 UPDATE（WHERE started = false）保證只有一個人成功
"""
from sqlalchemy.orm import Session, Query

from models import Game


def with_game_lock(game_id: str, db: Session) -> Query:
    """
    鎖定一個 Game（行級鎖）

    使用場景：
    - begin 時檢查並修改 started
    - 需要確保 Game 在整個 transaction 期間不被其他請求修改

    範例：
        game = with_game_lock(game_id, db).first()
        if not game:
            raise GameNotFound(game_id)

    參數：
        game_id: Game ID
        db: SQLAlchemy Session

    返回：
        Query object（需要呼叫 .first() 或 .one() 來取得結果）

    注意：
        - 必須在 transaction 內使用（確保有 commit 或 rollback）
    """
    return db.query(Game).filter(
        Game.id == game_id
    ).with_for_update(nowait=False)
