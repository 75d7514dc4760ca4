"""
應用程式設定

所有設定都從環境變數（或 .env）讀取，透過 get_settings() 取得快取後的單一實例
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./secret_santa.db"
    log_level: str = "INFO"

    # "log" 只把信件寫進 log，開發環境用；正式環境用 "smtp"
    notifier_backend: Literal["smtp", "log"] = "log"

    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = False
    smtp_timeout: float = 10.0

    mail_from_address: str = "secretsanta@localhost"
    mail_from_name: str = "Secret Santa"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
