"""
Request / Response schemas（pydantic）
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class SpendingLimit(BaseModel):
    """禮物金額上限（不做幣別換算或驗證，只存代碼）"""
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    currency: str = Field(min_length=1, max_length=8)


class ParticipantCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    notes: str = ""


class GameCreate(BaseModel):
    """
    建立遊戲的請求

    注意：
        參加者人數（>= 2）由 GameManager 檢查，不在這裡限制，
        讓人數不足時統一回報 InvalidInput
    """
    name: str = Field(min_length=1)
    organizer_name: str = Field(min_length=1)
    organizer_email: EmailStr
    event_date: datetime
    spending_limit: SpendingLimit
    notes: str = ""
    participants: List[ParticipantCreate]


class ParticipantResponse(BaseModel):
    participant_id: str
    name: str
    email: str


class GameResponse(BaseModel):
    game_id: str
    name: str
    organizer_name: str
    event_date: datetime
    spending_limit: SpendingLimit
    notes: str
    started: bool
    started_at: Optional[datetime] = None
    participants: List[ParticipantResponse]


class BeginResponse(BaseModel):
    game_id: str
    started: bool
    notified: int
    failed: int


class NotificationFailureResponse(BaseModel):
    participant_id: Optional[str]
    reason: str
    recorded_at: datetime
