"""
Game API Endpoints

職責：
1. 建立遊戲（主辦人 endpoint）
2. 開始遊戲：抽籤並寄信（主辦人 endpoint）
3. 查詢遊戲資訊和通知失敗紀錄

注意：
    API 永遠不會回傳抽籤結果，只有每位送禮者自己的信件裡有
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from config import get_settings
from database import get_db
from models import Game
from schemas import (
    BeginResponse,
    GameCreate,
    GameResponse,
    NotificationFailureResponse,
    ParticipantResponse,
    SpendingLimit,
)
from core.game_manager import GameManager
from core.game_store import SqlGameStore
from core.exceptions import (
    AlreadyBegun,
    GameNotFound,
    InvalidInput,
    StorageFailure,
)
from services.notification_service import Notifier, build_notifier

router = APIRouter(prefix="/api/games", tags=["games"])
logger = logging.getLogger(__name__)


def get_notifier() -> Notifier:
    return build_notifier(get_settings())


def get_game_manager(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
) -> GameManager:
    return GameManager(store=SqlGameStore(db), notifier=notifier)


def to_game_response(game: Game) -> GameResponse:
    return GameResponse(
        game_id=game.id,
        name=game.name,
        organizer_name=game.organizer_name,
        event_date=game.event_date,
        spending_limit=SpendingLimit(
            amount=game.spending_limit_amount,
            currency=game.spending_limit_currency
        ),
        notes=game.notes,
        started=game.started,
        started_at=game.started_at,
        participants=[
            ParticipantResponse(participant_id=p.id, name=p.name, email=p.email)
            for p in game.participants
        ]
    )


@router.post("", response_model=GameResponse, status_code=201)
def create_game(game_data: GameCreate, manager: GameManager = Depends(get_game_manager)):
    """
    建立遊戲

    返回：
        新遊戲資訊（started = False）；game_id 同時會寄給主辦人
    """
    try:
        game = manager.create_game(game_data)
        return to_game_response(game)

    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageFailure:
        raise HTTPException(status_code=503, detail="Storage unavailable")
    except Exception as e:
        logger.error(f"Failed to create game: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{game_id}/begin", response_model=BeginResponse)
def begin_game(game_id: str, manager: GameManager = Depends(get_game_manager)):
    """
    開始遊戲（只能呼叫一次）

    返回：
        - started: True
        - notified / failed: 寄信成功與失敗的人數（失敗不影響遊戲已開始）
    """
    try:
        result = manager.begin_game(game_id)
        return BeginResponse(
            game_id=game_id,
            started=result.game.started,
            notified=len(result.notified),
            failed=len(result.failures)
        )

    except GameNotFound:
        raise HTTPException(status_code=404, detail="Game not found")
    except AlreadyBegun as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageFailure:
        raise HTTPException(status_code=503, detail="Storage unavailable")
    except Exception as e:
        logger.error(f"Failed to begin game {game_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{game_id}", response_model=GameResponse)
def get_game(game_id: str, manager: GameManager = Depends(get_game_manager)):
    try:
        return to_game_response(manager.get_game(game_id))

    except GameNotFound:
        raise HTTPException(status_code=404, detail="Game not found")
    except Exception as e:
        logger.error(f"Failed to get game {game_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get(
    "/{game_id}/notifications/failures",
    response_model=List[NotificationFailureResponse]
)
def get_notification_failures(game_id: str, manager: GameManager = Depends(get_game_manager)):
    """
    查詢寄信失敗紀錄（給主辦人或維運人員重寄用）
    """
    try:
        events = manager.get_notification_failures(game_id)
        return [
            NotificationFailureResponse(
                participant_id=event.data.get("participant_id"),
                reason=event.data.get("reason", ""),
                recorded_at=event.created_at
            )
            for event in events
        ]

    except GameNotFound:
        raise HTTPException(status_code=404, detail="Game not found")
    except Exception as e:
        logger.error(f"Failed to get notification failures for game {game_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
