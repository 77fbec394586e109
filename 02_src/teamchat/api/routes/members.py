"""Team roster, invites and presence routes."""

from fastapi import APIRouter, HTTPException

from ...app import Application
from ...errors import PermissionDeniedError
from ...models import TeamMember
from ...models.rows import utcnow
from ...presence import effective_presence
from ...session import ChatSession
from ...team import TeamContext, invite_member, link_member_on_auth, load_roster
from ..errors import to_http_exception
from ..schemas import BlockRequest, InviteRequest, LinkRequest, MemberOut, OfflineRequest, StatusResponse


def create_members_router(app: Application) -> APIRouter:
    """Create members router."""
    router = APIRouter(prefix="/api", tags=["members"])

    def member_out(member: TeamMember) -> dict:
        presence = effective_presence(member, utcnow(), app.config.online_window_seconds)
        return {
            "id": member.id,
            "owner_id": member.owner_id,
            "user_id": member.user_id,
            "name": member.name,
            "display_name": member.display_name,
            "email": member.email,
            "role": member.role,
            "position": member.position,
            "status": member.status,
            "presence": presence.label,
            "last_seen": member.last_seen,
            "is_chat_blocked": member.is_chat_blocked,
        }

    @router.get("/teams/{owner_id}/members", response_model=list[MemberOut])
    async def list_members(owner_id: str, viewer_id: str | None = None) -> list[dict]:
        """Roster with presence; non-owner viewers also get the owner entry."""
        try:
            context = TeamContext(owner_id=owner_id, is_owner=viewer_id in (None, owner_id))
            roster = await load_roster(app.storage, context)
            return [member_out(m) for m in roster]
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/teams/{owner_id}/members", response_model=MemberOut)
    async def invite(owner_id: str, request: InviteRequest) -> dict:
        try:
            member = await invite_member(
                app.storage,
                owner_id,
                request.name,
                request.email,
                role=request.role,
                position=request.position,
            )
            return member_out(member)
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/members/link", response_model=list[MemberOut])
    async def link(request: LinkRequest) -> list[dict]:
        """Activate pending invites for a user who just signed in."""
        try:
            session = ChatSession(user_id=request.user_id, name="", email=request.email)
            linked = await link_member_on_auth(app.storage, session)
            return [member_out(m) for m in linked]
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/teams/{owner_id}/members/{member_id}/block", response_model=MemberOut)
    async def set_blocked(owner_id: str, member_id: str, request: BlockRequest) -> dict:
        try:
            if request.requester_id != owner_id:
                raise PermissionDeniedError("Only the team owner can do this")
            member = await app.storage.get_member(member_id)
            if member is None or member.owner_id != owner_id:
                raise HTTPException(status_code=404, detail="Member not found")
            updated = await app.storage.set_member_blocked(member_id, request.blocked)
            return member_out(updated)
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/presence/offline", response_model=StatusResponse)
    async def mark_offline(request: OfflineRequest) -> dict:
        """Publish a status for a user leaving the page."""
        if not request.user_id:
            raise HTTPException(status_code=400, detail="user_id is required")
        try:
            await app.storage.update_member_status(request.user_id, request.status or "Offline")
            return {"status": "ok"}
        except Exception as e:
            raise to_http_exception(e)

    return router
