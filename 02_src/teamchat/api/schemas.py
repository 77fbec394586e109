"""Request and response models for the HTTP API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ..models import ReactionType


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


class TeamMessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    sender_id: str
    sender_name: str
    sender_email: str
    sender_avatar: str | None = None
    body: str
    file_url: str | None = None
    file_name: str | None = None
    file_type: str | None = None
    reply_to_id: str | None = None
    reply_to_message: str | None = None
    reply_to_sender: str | None = None
    created_at: datetime


class PrivateMessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    team_owner_id: str
    sender_id: str
    receiver_id: str
    sender_name: str
    sender_avatar: str | None = None
    body: str
    is_read: bool
    file_url: str | None = None
    file_name: str | None = None
    file_type: str | None = None
    reply_to_id: str | None = None
    reply_to_message: str | None = None
    reply_to_sender: str | None = None
    created_at: datetime


class SendTeamMessageRequest(BaseModel):
    """Request model for posting to the team channel."""

    user_id: str
    name: str
    email: str = ""
    avatar_url: str | None = None
    text: str = ""
    reply_to_id: str | None = None


class SendPrivateMessageRequest(BaseModel):
    """Request model for a private message."""

    user_id: str
    name: str
    receiver_id: str
    avatar_url: str | None = None
    text: str = ""
    reply_to_id: str | None = None


class MarkReadRequest(BaseModel):
    receiver_id: str
    sender_id: str


class MarkReadResponse(BaseModel):
    updated: int


class ToggleReactionRequest(BaseModel):
    user_id: str
    user_name: str
    value: str
    type: ReactionType = ReactionType.EMOJI


class ToggleReactionResponse(BaseModel):
    result: str


class GroupedReactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    value: str
    type: ReactionType
    count: int
    users: list[str]
    has_current_user: bool


class MemberOut(BaseModel):
    id: str
    owner_id: str
    user_id: str | None = None
    name: str
    display_name: str
    email: str
    role: str
    position: str | None = None
    status: str
    presence: str
    last_seen: datetime | None = None
    is_chat_blocked: bool


class InviteRequest(BaseModel):
    name: str = ""
    email: str = ""
    role: str = "Member"
    position: str | None = None


class LinkRequest(BaseModel):
    user_id: str
    email: str


class BlockRequest(BaseModel):
    requester_id: str
    blocked: bool


class OfflineRequest(BaseModel):
    user_id: str | None = None
    status: str = "Offline"
