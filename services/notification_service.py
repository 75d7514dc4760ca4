"""
通知服務：把信件送到參加者或主辦人手上

Notifier 是 GameManager 依賴的介面；任何錯誤都包成 NotificationFailure 拋出，
由 GameManager 決定記錄或略過（通知只是 best-effort，不會回滾已開始的遊戲）

實作：
- SmtpNotifier：透過 SMTP 寄信
- LoggingNotifier：只寫 log（開發環境用）
"""
from abc import ABC, abstractmethod
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr
from typing import Protocol
import logging
import smtplib

from config import Settings
from models import Participant
from schemas import SpendingLimit
from core.exceptions import NotificationFailure
from services.message_service import (
    MailContent,
    build_assignment_message,
    build_game_created_message,
    format_amount,
)

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify_game_created(self, game_id: str, organizer_email: str) -> None:
        ...

    def notify_assignment(
        self,
        gifter: Participant,
        recipient: Participant,
        event_date: datetime,
        spending_limit: SpendingLimit,
        shared_notes: str,
        organizer_name: str,
    ) -> None:
        ...


class _MailNotifier(ABC):
    """組信件內容的共用邏輯，子類別只需實作 _deliver"""

    def notify_game_created(self, game_id: str, organizer_email: str) -> None:
        content = build_game_created_message(game_id)
        self._send(organizer_email, None, content, participant_id=None)

    def notify_assignment(
        self,
        gifter: Participant,
        recipient: Participant,
        event_date: datetime,
        spending_limit: SpendingLimit,
        shared_notes: str,
        organizer_name: str,
    ) -> None:
        content = build_assignment_message(
            gifter_name=gifter.name,
            recipient_name=recipient.name,
            recipient_email=recipient.email,
            recipient_notes=recipient.notes,
            event_date=event_date,
            spending_limit=format_amount(spending_limit.amount, spending_limit.currency),
            shared_notes=shared_notes,
            organizer_name=organizer_name,
        )
        self._send(gifter.email, gifter.name, content, participant_id=gifter.id)

    def _send(self, to_address, to_name, content: MailContent, participant_id) -> None:
        try:
            self._deliver(to_address, to_name, content)
        except NotificationFailure:
            raise
        except Exception as e:
            raise NotificationFailure(participant_id, str(e)) from e

    @abstractmethod
    def _deliver(self, to_address, to_name, content: MailContent) -> None:
        ...


class SmtpNotifier(_MailNotifier):
    """透過 SMTP 寄信，每封信開一次連線"""

    def __init__(self, settings: Settings):
        self.settings = settings

    def build_email(self, to_address, to_name, content: MailContent) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = content.subject
        message["From"] = formataddr((self.settings.mail_from_name, self.settings.mail_from_address))
        message["To"] = formataddr((to_name, to_address)) if to_name else to_address
        message.set_content(content.text)
        message.add_alternative(content.html, subtype="html")
        return message

    def _deliver(self, to_address, to_name, content: MailContent) -> None:
        s = self.settings
        message = self.build_email(to_address, to_name, content)
        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout) as smtp:
            if s.smtp_use_tls:
                smtp.starttls()
            if s.smtp_username:
                smtp.login(s.smtp_username, s.smtp_password or "")
            smtp.send_message(message)


class LoggingNotifier(_MailNotifier):
    """不寄信，只記錄收件人和主旨"""

    def _deliver(self, to_address, to_name, content: MailContent) -> None:
        logger.info(f"[mail] to={to_address} subject={content.subject!r}")


def build_notifier(settings: Settings) -> Notifier:
    if settings.notifier_backend == "smtp":
        return SmtpNotifier(settings)
    return LoggingNotifier()
