"""Messaging API routes."""

from fastapi import APIRouter, Query

from ...app import Application
from ...channel import build_private_message, build_team_message
from ...errors import ChatBlockedError, ValidationError
from ...models import Table
from ...reactions import group_reactions
from ...session import ChatSession
from ..errors import to_http_exception
from ..schemas import (
    GroupedReactionOut,
    MarkReadRequest,
    MarkReadResponse,
    PrivateMessageOut,
    SendPrivateMessageRequest,
    SendTeamMessageRequest,
    TeamMessageOut,
    ToggleReactionRequest,
    ToggleReactionResponse,
)

REACTION_TABLES = {
    "team": Table.MESSAGE_REACTIONS,
    "private": Table.PRIVATE_MESSAGE_REACTIONS,
}


def create_messaging_router(app: Application) -> APIRouter:
    """Create messaging router."""
    router = APIRouter(prefix="/api", tags=["messaging"])

    async def ensure_can_send(owner_id: str, user_id: str) -> None:
        membership = await app.storage.find_membership(user_id, owner_id=owner_id)
        if membership and membership.is_chat_blocked:
            raise ChatBlockedError("You have been blocked from sending messages")

    @router.get("/teams/{owner_id}/messages", response_model=list[TeamMessageOut])
    async def list_team_messages(owner_id: str, limit: int = Query(100, ge=1, le=100)):
        """Most recent team messages, oldest first."""
        try:
            return await app.storage.list_team_messages(owner_id, limit=limit)
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/teams/{owner_id}/messages", response_model=TeamMessageOut)
    async def send_team_message(owner_id: str, request: SendTeamMessageRequest):
        """Post a message to the team channel."""
        try:
            await ensure_can_send(owner_id, request.user_id)
            session = ChatSession(
                user_id=request.user_id,
                name=request.name,
                email=request.email,
                avatar_url=request.avatar_url,
            )
            reply_to = None
            if request.reply_to_id:
                recent = await app.storage.list_team_messages(owner_id)
                reply_to = next((m for m in recent if m.id == request.reply_to_id), None)
            message = build_team_message(
                session,
                owner_id,
                request.text,
                reply_to=reply_to,
                preview_chars=app.config.reply_preview_chars,
            )
            return await app.storage.insert_team_message(message)
        except Exception as e:
            raise to_http_exception(e)

    @router.get(
        "/teams/{owner_id}/private/{user_a}/{user_b}",
        response_model=list[PrivateMessageOut],
    )
    async def list_private_messages(
        owner_id: str, user_a: str, user_b: str, limit: int = Query(100, ge=1, le=100)
    ):
        try:
            return await app.storage.list_private_messages(owner_id, user_a, user_b, limit=limit)
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/teams/{owner_id}/private", response_model=PrivateMessageOut)
    async def send_private_message(owner_id: str, request: SendPrivateMessageRequest):
        try:
            await ensure_can_send(owner_id, request.user_id)
            session = ChatSession(
                user_id=request.user_id, name=request.name, avatar_url=request.avatar_url
            )
            reply_to = None
            if request.reply_to_id:
                thread = await app.storage.list_private_messages(
                    owner_id, request.user_id, request.receiver_id
                )
                reply_to = next((m for m in thread if m.id == request.reply_to_id), None)
            message = build_private_message(
                session,
                owner_id,
                request.receiver_id,
                request.text,
                reply_to=reply_to,
                preview_chars=app.config.reply_preview_chars,
            )
            return await app.storage.insert_private_message(message)
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/teams/{owner_id}/private/read", response_model=MarkReadResponse)
    async def mark_read(owner_id: str, request: MarkReadRequest) -> dict:
        try:
            updated = await app.storage.mark_private_read(
                owner_id, request.receiver_id, request.sender_id
            )
            return {"updated": updated}
        except Exception as e:
            raise to_http_exception(e)

    @router.get("/teams/{owner_id}/unread/{user_id}", response_model=dict[str, int])
    async def unread_counts(owner_id: str, user_id: str) -> dict:
        try:
            return await app.storage.count_unread_by_sender(owner_id, user_id)
        except Exception as e:
            raise to_http_exception(e)

    def reaction_table(kind: str) -> Table:
        if kind not in REACTION_TABLES:
            raise ValidationError(f"Unknown reaction kind: {kind}")
        return REACTION_TABLES[kind]

    @router.post("/reactions/{kind}/{message_id}", response_model=ToggleReactionResponse)
    async def toggle_reaction(kind: str, message_id: str, request: ToggleReactionRequest) -> dict:
        """Add the reaction, or remove it if the user already has it."""
        try:
            outcome = await app.storage.toggle_reaction(
                reaction_table(kind),
                message_id,
                request.user_id,
                request.user_name,
                request.type,
                request.value,
            )
            return {"result": outcome.value}
        except Exception as e:
            raise to_http_exception(e)

    @router.get("/reactions/{kind}/{message_id}", response_model=list[GroupedReactionOut])
    async def list_reactions(kind: str, message_id: str, viewer_id: str = ""):
        try:
            reactions = await app.storage.list_reactions(reaction_table(kind), message_id)
            return group_reactions(reactions, viewer_id)
        except Exception as e:
            raise to_http_exception(e)

    return router
