"""
信件內容服務：產生主辦人歡迎信和抽籤結果信

純計算邏輯，只負責組字串，不負責寄送
每封信都有純文字和 HTML 兩個版本，HTML 版的使用者輸入一律 escape
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from html import escape

WELCOME_SUBJECT = "Welcome to this Secret Santa"
ASSIGNMENT_SUBJECT = "Your Secret Santa assignment"


@dataclass(frozen=True)
class MailContent:
    subject: str
    text: str
    html: str


def format_amount(amount: Decimal, currency: str) -> str:
    """
    範例：
        format_amount(Decimal("25.00"), "USD") -> "25.00 USD"
    """
    return f"{amount} {currency}"


def build_game_created_message(game_id: str) -> MailContent:
    text = (
        f"Welcome to the Secret Santa service! Your game ID is {game_id}.\n\n"
        "Please save this email: the ID is the only thing that will let you "
        "check on or start your game in the future."
    )
    html = (
        f"<p>Welcome to the Secret Santa service! Your game ID is <b>{escape(game_id)}</b>.</p>"
        "<p>Please save this email: the ID is the only thing that will let you "
        "check on or start your game in the future.</p>"
    )
    return MailContent(subject=WELCOME_SUBJECT, text=text, html=html)


def build_assignment_message(
    gifter_name: str,
    recipient_name: str,
    recipient_email: str,
    recipient_notes: str,
    event_date: datetime,
    spending_limit: str,
    shared_notes: str,
    organizer_name: str,
) -> MailContent:
    """
    產生送給 gifter 的抽籤結果信

    內容：
    - 你要送禮給誰（名字、email）
    - 收禮者留下的備註
    - 金額上限、送禮日期
    - 主辦人給所有人的留言

    參數：
        spending_limit: 已格式化的金額字串（見 format_amount）
    """
    due = event_date.date().isoformat()
    text = (
        f"Welcome {gifter_name} to this Secret Santa! This was set up by {organizer_name}. "
        "This email tells you who you'll be giving a gift to, so save it for future reference.\n\n"
        f"You will be giving a gift to {recipient_name} (email: {recipient_email}). "
        "They left the following notes:\n\n"
        f"{recipient_notes}\n\n"
        f"{organizer_name} has set the max gift price to {spending_limit}. "
        f"The gift is due on {due}. {organizer_name} also left this message for all of you:\n\n"
        f"{shared_notes}\n\n"
        "Enjoy and Happy Holidays!"
    )
    html = (
        f"<p>Welcome {escape(gifter_name)} to this Secret Santa! This was set up by "
        f"{escape(organizer_name)}. This email tells you who you'll be giving a gift to, "
        "so save it for future reference.</p>"
        f"<p>You will be giving a gift to <b>{escape(recipient_name)}</b> "
        f"(email: {escape(recipient_email)}). They left the following notes:</p>"
        f"<p>{escape(recipient_notes)}</p>"
        f"<p>{escape(organizer_name)} has set the max gift price to {escape(spending_limit)}. "
        f"The gift is due on {due}. {escape(organizer_name)} also left this message for all of you:</p>"
        f"<p>{escape(shared_notes)}</p>"
        "<p>Enjoy and Happy Holidays!</p>"
    )
    return MailContent(subject=ASSIGNMENT_SUBJECT, text=text, html=html)
