"""
自定義異常類別

集中管理所有業務邏輯異常，方便 API 層統一處理

分類：
- InvalidInput：請求欄位格式錯誤或超出範圍（呼叫者修正後可重送）
- GameNotFound：遊戲不存在
- AlreadyBegun：遊戲已經開始過（前置條件被拒絕，不是系統錯誤）
- StorageFailure：資料庫無法完成寫入（不會留下部分資料）
- NotificationFailure：某位參加者的通知寄送失敗（只記錄，不回滾）
"""


class SecretSantaException(Exception):
    """所有遊戲異常的基類"""
    pass


# ============ 輸入驗證異常 ============

class InvalidInput(SecretSantaException):
    """建立遊戲的請求不合法（人數不足、email 格式錯誤、金額為負等）"""
    pass


# ============ Game 相關異常 ============

class GameNotFound(SecretSantaException):
    """遊戲不存在"""
    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")


# ============ 狀態轉換異常 ============

class InvalidStateTransition(SecretSantaException):
    """非法的狀態轉換"""
    pass


class AlreadyBegun(InvalidStateTransition):
    """遊戲已經開始（STARTED 是終態，不能重新抽籤）"""
    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__(f"Game {game_id} has already begun")


# ============ 外部協作者異常 ============

class StorageFailure(SecretSantaException):
    """資料庫寫入失敗"""
    pass


class NotificationFailure(SecretSantaException):
    """通知寄送失敗"""
    def __init__(self, participant_id, reason):
        self.participant_id = participant_id
        self.reason = reason
        super().__init__(f"Failed to notify participant {participant_id}: {reason}")
