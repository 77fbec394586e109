"""Team context, roster and invite lifecycle."""

import re
import uuid
from dataclasses import dataclass

from ..errors import ValidationError
from ..logging_config import get_logger
from ..models import ACTIVE, PENDING, TeamMember
from ..models.rows import utcnow
from ..session import ChatSession
from ..storage import IStorage

logger = get_logger(__name__)

OWNER_ENTRY_PREFIX = "owner-"
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass
class TeamContext:
    """Which team the signed-in user chats in."""

    owner_id: str
    is_owner: bool
    is_blocked: bool = False
    membership_id: str | None = None


async def resolve_team_context(storage: IStorage, session: ChatSession) -> TeamContext:
    """A linked membership makes the user a member; otherwise they own a team."""
    membership = await storage.find_membership(session.user_id)
    if membership is not None:
        return TeamContext(
            owner_id=membership.owner_id,
            is_owner=False,
            is_blocked=membership.is_chat_blocked,
            membership_id=membership.id,
        )
    return TeamContext(owner_id=session.user_id, is_owner=True)


def is_owner_entry(member: TeamMember) -> bool:
    return member.id.startswith(OWNER_ENTRY_PREFIX)


async def load_roster(storage: IStorage, context: TeamContext) -> list[TeamMember]:
    """Members of the team; members also see the owner listed first."""
    members = await storage.list_members(context.owner_id)
    if context.is_owner or not members:
        return members

    profile = await storage.get_profile(context.owner_id)
    owner = TeamMember(
        id=f"{OWNER_ENTRY_PREFIX}{context.owner_id}",
        owner_id=context.owner_id,
        name=(profile.name if profile else None) or "Team Owner",
        email=(profile.email if profile else None) or "",
        role="Owner",
        avatar_url=profile.avatar_url if profile else None,
        status=ACTIVE,
        user_id=context.owner_id,
        last_seen=(profile.last_seen if profile else None) or utcnow(),
    )
    return [owner, *members]


async def invite_member(
    storage: IStorage,
    owner_id: str,
    name: str,
    email: str,
    role: str = "Member",
    position: str | None = None,
) -> TeamMember:
    """Create a Pending membership for an email."""
    name = (name or "").strip()
    email = (email or "").strip().lower()
    if not name or not email:
        raise ValidationError("Name and email are required")
    if not _EMAIL_RE.match(email):
        raise ValidationError(f"Invalid email address: {email}")

    existing = await storage.find_member_by_email(owner_id, email)
    if existing is not None:
        raise ValidationError(f"{email} is already on this team")

    member = TeamMember(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        name=name,
        email=email,
        role=role,
        position=position,
        status=PENDING,
    )
    stored = await storage.save_member(member)
    logger.info("Invited member", extra={"context": {"owner_id": owner_id, "member_id": stored.id}})
    return stored


async def link_member_on_auth(storage: IStorage, session: ChatSession) -> list[TeamMember]:
    """Activate pending invites addressed to the user's email."""
    if not session.email:
        return []
    try:
        linked = await storage.link_members_on_auth(session.user_id, session.email)
    except Exception as e:
        logger.error("Error linking team invites: %s", e, exc_info=True)
        return []
    if linked:
        logger.info("Linked %d pending invite(s) for %s", len(linked), session.user_id)
    return linked
