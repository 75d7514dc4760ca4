from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from functools import wraps
import logging

from config import get_settings
from core.exceptions import SecretSantaException, StorageFailure

logger = logging.getLogger(__name__)


settings = get_settings()

# SQLite 需要特殊設定：connect_args={"check_same_thread": False}
# 這允許多執行緒存取同一個 SQLite 連線（FastAPI 的多執行緒環境需要）
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
    pool_pre_ping=True
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """
    FastAPI dependency：提供 Database Session

    使用 yield 確保 session 在請求結束後會被關閉
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _find_session(args, kwargs):
    if args and isinstance(args[0], Session):
        return args[0]
    if 'db' in kwargs:
        return kwargs['db']
    # 方法呼叫：args[0] 是 self，session 掛在 self.db 上
    if args and isinstance(getattr(args[0], 'db', None), Session):
        return args[0].db
    return None


def transactional(func):
    """
    Transaction decorator：確保資料庫操作的原子性

    使用方式：
        @transactional
        def create_game(db: Session, ...):
            # 所有 DB 操作都在一個 transaction 內
            game = Game(...)
            db.add(game)
            # 不需要手動 commit，decorator 會處理

        class SqlGameStore:
            @transactional
            def assign_and_begin(self, ...):
                # session 取自 self.db
                ...

    如果函式內發生異常：
        - 自動 rollback
        - SQLAlchemyError 轉成 StorageFailure 再拋出
        - 其他異常（例如 AlreadyBegun）原樣拋出（讓上層處理）

    注意：
        - session 必須是第一個參數、db= 關鍵字參數，或 self.db
        - 不要在函式內手動 commit（decorator 會處理）
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        db = _find_session(args, kwargs)

        if db is None:
            raise ValueError(
                f"@transactional requires a Session (first argument, db= or self.db), "
                f"but got args={args}, kwargs={kwargs}"
            )

        try:
            result = func(*args, **kwargs)
            db.commit()
            return result
        except SQLAlchemyError as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            db.rollback()
            raise StorageFailure(f"Storage error in {func.__name__}: {e}") from e
        except SecretSantaException as e:
            logger.warning(f"Transaction rolled back in {func.__name__}: {e}")
            db.rollback()
            raise
        except Exception as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            db.rollback()
            raise

    return wrapper
