"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def sleep_forever(_delay: float) -> None:
    """Heartbeat sleep that never wakes; tests drive heartbeats directly."""
    await asyncio.Event().wait()


@pytest.fixture
def feed():
    """Create an in-memory change feed."""
    from teamchat.change_feed import ChangeFeed

    return ChangeFeed()


@pytest_asyncio.fixture
async def storage(feed):
    """Create in-memory storage wired to the feed."""
    from teamchat.storage import Storage

    st = Storage(":memory:", feed)
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def local_store():
    """In-memory local settings store."""
    from teamchat.settings import LocalSettingsStore

    return LocalSettingsStore(None)


@pytest.fixture
def sound_sink():
    from teamchat.sounds import MemorySink

    return MemorySink()


@pytest.fixture
def sound(local_store, sound_sink):
    """Sound engine rendering at a low sample rate into memory."""
    from teamchat.sounds import SoundEngine

    return SoundEngine(local_store, sink=sound_sink, sample_rate=8000)


@pytest.fixture
def files(tmp_path):
    from teamchat.storage import FileStore

    return FileStore(tmp_path / "files", base_url="/files")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def owner_session():
    from teamchat.session import ChatSession

    return ChatSession(user_id="owner-1", name="Olivia", email="olivia@example.com")


@pytest.fixture
def alice_session():
    from teamchat.session import ChatSession

    return ChatSession(user_id="alice-1", name="Alice", email="alice@example.com")


@pytest.fixture
def bob_session():
    from teamchat.session import ChatSession

    return ChatSession(user_id="bob-1", name="Bob", email="bob@example.com")


@pytest_asyncio.fixture
async def team(storage, owner_session, alice_session, bob_session):
    """Owner with Alice and Bob as active members."""
    from teamchat.models import ACTIVE, TeamMember

    members = {}
    for session in (alice_session, bob_session):
        member = TeamMember(
            id=f"member-{session.user_id}",
            owner_id=owner_session.user_id,
            name=session.name,
            email=session.email,
            status=ACTIVE,
            user_id=session.user_id,
        )
        members[session.user_id] = await storage.save_member(member)
    return members


@pytest_asyncio.fixture
async def make_page(storage, feed, files, local_store, sound, clock):
    """Factory for chat pages whose presence heartbeat never fires on its own."""
    from teamchat.orchestrator import AutoConfirm, ChatPage
    from teamchat.presence import PresenceTracker

    pages = []

    def _make(session, confirmer=None):
        tracker = PresenceTracker(storage, session, clock=clock, sleep=sleep_forever)
        page = ChatPage(
            storage,
            feed,
            files,
            local_store,
            session,
            sound=sound,
            confirmer=confirmer or AutoConfirm(),
            tracker=tracker,
        )
        pages.append(page)
        return page

    yield _make

    for page in pages:
        await page.close()
