"""Building message rows from user input."""

from ..errors import ValidationError
from ..models import FILE_BODY_PREFIX, Attachment, ChatMessage, PrivateMessage, TeamMessage
from ..session import ChatSession


def file_body(attachment: Attachment) -> str:
    return f"{FILE_BODY_PREFIX} {attachment.name}"


def prepare_body(body: str | None, attachment: Attachment | None = None) -> str:
    """Trimmed body; a bare attachment gets a placeholder body."""
    text = (body or "").strip()
    if text:
        return text
    if attachment is None:
        raise ValidationError("Message body is empty")
    return file_body(attachment)


def reply_fields(reply_to: ChatMessage | None, preview_chars: int = 100) -> dict:
    if reply_to is None:
        return {}
    return {
        "reply_to_id": reply_to.id,
        "reply_to_message": reply_to.body[:preview_chars],
        "reply_to_sender": reply_to.sender_name,
    }


def _file_fields(attachment: Attachment | None) -> dict:
    if attachment is None:
        return {}
    return {
        "file_url": attachment.url,
        "file_name": attachment.name,
        "file_type": attachment.type,
    }


def build_team_message(
    session: ChatSession,
    owner_id: str,
    body: str,
    attachment: Attachment | None = None,
    reply_to: ChatMessage | None = None,
    preview_chars: int = 100,
) -> TeamMessage:
    """Unsaved team message; the store assigns id and created_at."""
    return TeamMessage(
        id="",
        owner_id=owner_id,
        sender_id=session.user_id,
        sender_name=session.display_name,
        sender_email=session.email,
        sender_avatar=session.avatar_url,
        body=prepare_body(body, attachment),
        created_at=None,
        **_file_fields(attachment),
        **reply_fields(reply_to, preview_chars),
    )


def build_private_message(
    session: ChatSession,
    owner_id: str,
    receiver_id: str,
    body: str,
    attachment: Attachment | None = None,
    reply_to: ChatMessage | None = None,
    preview_chars: int = 100,
) -> PrivateMessage:
    """Unsaved private message; the store assigns id and created_at."""
    if receiver_id == session.user_id:
        raise ValidationError("Cannot send a private message to yourself")
    return PrivateMessage(
        id="",
        team_owner_id=owner_id,
        sender_id=session.user_id,
        receiver_id=receiver_id,
        sender_name=session.display_name,
        sender_avatar=session.avatar_url,
        body=prepare_body(body, attachment),
        created_at=None,
        **_file_fields(attachment),
        **reply_fields(reply_to, preview_chars),
    )
