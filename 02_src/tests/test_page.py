"""Tests for the ChatPage orchestrator."""

import pytest

from teamchat.errors import (
    AttachmentTooLargeError,
    ChatBlockedError,
    PermissionDeniedError,
    ValidationError,
)
from teamchat.models import Manual, ManualStatus, TeamMember
from teamchat.orchestrator import AutoConfirm, WindowState
from teamchat.session import ChatSession
from teamchat.settings import settings_key


def roster_entry(page, member_id):
    return next(m for m in page.roster if m.id == member_id)


class TestChatPageOpen:
    """Tests for opening the chat page."""

    @pytest.mark.asyncio
    async def test_owner_opens_own_team(self, make_page, owner_session, team):
        page = make_page(owner_session)
        await page.open()

        assert page.is_owner
        assert page.context.owner_id == "owner-1"
        assert {m.id for m in page.roster} == {"member-alice-1", "member-bob-1"}
        assert page.tracker.running

    @pytest.mark.asyncio
    async def test_member_sees_owner_first(self, make_page, storage, alice_session, team):
        from teamchat.models import Profile

        await storage.save_profile(Profile(id="owner-1", name="Olivia", email="olivia@example.com"))
        page = make_page(alice_session)
        await page.open()

        assert not page.is_owner
        assert page.context.owner_id == "owner-1"
        assert page.roster[0].id == "owner-owner-1"
        assert page.roster[0].role == "Owner"
        assert page.roster[0].name == "Olivia"

    @pytest.mark.asyncio
    async def test_properties_require_open(self, make_page, alice_session):
        page = make_page(alice_session)

        with pytest.raises(RuntimeError, match="not opened"):
            page.is_owner
        with pytest.raises(RuntimeError):
            page.settings

    @pytest.mark.asyncio
    async def test_pending_invite_is_linked_on_open(self, make_page, storage, team):
        await storage.save_member(
            TeamMember(id="member-carol", owner_id="owner-1", name="Carol", email="carol@example.com")
        )
        carol = ChatSession(user_id="carol-1", name="Carol", email="carol@example.com")

        page = make_page(carol)
        await page.open()

        assert not page.is_owner
        assert page.context.membership_id == "member-carol"

    @pytest.mark.asyncio
    async def test_saved_status_is_applied(self, make_page, local_store, alice_session, team):
        local_store.set(settings_key("alice-1"), {"status": "Do not disturb"})

        page = make_page(alice_session)
        await page.open()

        assert page.tracker.state == Manual(ManualStatus.DO_NOT_DISTURB)

    @pytest.mark.asyncio
    async def test_roster_presence(self, make_page, owner_session, alice_session, team):
        owner = make_page(owner_session)
        await owner.open()
        alice = make_page(alice_session)
        await alice.open()

        labels = {member.id: state.label for member, state in owner.roster_presence()}

        assert labels == {"member-alice-1": "Online", "member-bob-1": "Offline"}


class TestChatPageMessaging:
    """Tests for sending through the page."""

    @pytest.mark.asyncio
    async def test_team_message_reaches_members(
        self, make_page, owner_session, alice_session, team, sound_sink
    ):
        owner = make_page(owner_session)
        alice = make_page(alice_session)
        await owner.open()
        await alice.open()

        await owner.send_message("hello")

        assert [m.body for m in alice.team_channel.messages] == ["hello"]
        assert [m.body for m in owner.team_channel.messages] == ["hello"]
        assert sound_sink.played == ["knock"]

    @pytest.mark.asyncio
    async def test_send_file(self, make_page, alice_session, team, files):
        page = make_page(alice_session)
        await page.open()

        message = await page.send_file("notes.txt", b"hello", "text/plain")

        assert message.body == "Shared a file: notes.txt"
        assert message.file_url.startswith("/files/owner-1/")
        assert message.file_url.endswith(".txt")
        stored = files.root / message.file_url.removeprefix("/files/")
        assert stored.read_bytes() == b"hello"

    @pytest.mark.asyncio
    async def test_attachment_too_large(self, make_page, alice_session, team, files):
        page = make_page(alice_session)
        await page.open()

        with pytest.raises(AttachmentTooLargeError):
            await page.send_file("big.bin", b"x" * (10 * 1024 * 1024 + 1), "application/octet-stream")

        assert page.team_channel.messages == []
        assert not files.root.exists()

    @pytest.mark.asyncio
    async def test_gif_and_sticker(self, make_page, alice_session, team):
        page = make_page(alice_session)
        await page.open()

        gif = await page.send_gif("https://media.giphy.com/media/x/giphy.gif")
        sticker = await page.send_sticker("🐱")

        assert gif.body == "Shared a file: GIF"
        assert gif.file_type == "image/gif"
        assert gif.attachment.is_image
        assert sticker.body == "🐱"
        assert sticker.file_url is None

    @pytest.mark.asyncio
    async def test_nickname_is_used(self, make_page, alice_session, team):
        page = make_page(alice_session)
        await page.open()

        page.set_nickname("Al")
        message = await page.send_message("hi")

        assert message.sender_name == "Al"
        assert page.display_name("alice-1", "Alice") == "Al"
        assert page.display_name("bob-1", "Bob") == "Bob"

    @pytest.mark.asyncio
    async def test_private_send_needs_open_thread(self, make_page, alice_session, team):
        page = make_page(alice_session)
        await page.open()

        with pytest.raises(ValidationError):
            await page.send_message("psst", peer_id="bob-1")

    @pytest.mark.asyncio
    async def test_unread_until_thread_opened(
        self, make_page, alice_session, bob_session, team
    ):
        alice = make_page(alice_session)
        bob = make_page(bob_session)
        await alice.open()
        await bob.open()
        await alice.open_private_chat("bob-1")

        await alice.send_message("psst", peer_id="bob-1")
        await alice.send_message("you there?", peer_id="bob-1")
        assert bob.unread.count("alice-1") == 2

        channel = await bob.open_private_chat("alice-1")

        assert bob.unread.count("alice-1") == 0
        assert [m.body for m in channel.messages] == ["psst", "you there?"]

    @pytest.mark.asyncio
    async def test_pop_out_thread(self, make_page, alice_session, bob_session, team):
        alice = make_page(alice_session)
        bob = make_page(bob_session)
        await alice.open()
        await bob.open()

        window = await bob.pop_out("alice-1")
        await alice.pop_out("bob-1")
        await alice.send_message("in a window", peer_id="bob-1")

        assert window.state == WindowState.OPEN
        assert [m.body for m in bob.pop_out_channel("alice-1").messages] == ["in a window"]
        assert bob.unread.total == 0

        await bob.close_pop_out("alice-1")
        assert bob.pop_out_channel("alice-1") is None
        assert bob.pop_outs.windows == []

    @pytest.mark.asyncio
    async def test_reactions_through_page(self, make_page, alice_session, bob_session, team):
        alice = make_page(alice_session)
        bob = make_page(bob_session)
        await alice.open()
        await bob.open()
        message = await alice.send_message("ship it")
        view = await alice.watch_reactions(message)

        await bob.react(message, "🚀")

        assert [(g.value, g.count) for g in view.groups] == [("🚀", 1)]


class TestChatPageAdmin:
    """Tests for owner-only actions."""

    @pytest.mark.asyncio
    async def test_block_is_live(self, make_page, owner_session, alice_session, team):
        owner = make_page(owner_session)
        alice = make_page(alice_session)
        await owner.open()
        await alice.open()

        result = await owner.toggle_block(roster_entry(owner, "member-alice-1"))

        assert result.ok
        assert result.message == "User blocked"
        assert alice.is_blocked
        with pytest.raises(ChatBlockedError):
            await alice.send_message("let me talk")

        result = await owner.toggle_block(roster_entry(owner, "member-alice-1"))
        assert result.message == "User unblocked"
        assert not alice.is_blocked
        await alice.send_message("thanks")

    @pytest.mark.asyncio
    async def test_blocked_at_open(self, make_page, storage, alice_session, team):
        await storage.set_member_blocked("member-alice-1", True)
        page = make_page(alice_session)
        await page.open()

        assert page.is_blocked
        assert page.team_channel.blocked

    @pytest.mark.asyncio
    async def test_blocked_file_is_not_uploaded(self, make_page, storage, alice_session, team, files):
        await storage.set_member_blocked("member-alice-1", True)
        page = make_page(alice_session)
        await page.open()

        with pytest.raises(ChatBlockedError):
            await page.send_file("a.txt", b"hello", "text/plain")

        assert not files.root.exists()
        assert await storage.list_team_messages("owner-1") == []

    @pytest.mark.asyncio
    async def test_members_cannot_administer(self, make_page, alice_session, team):
        page = make_page(alice_session)
        await page.open()

        with pytest.raises(PermissionDeniedError):
            await page.clear_all_messages()
        with pytest.raises(PermissionDeniedError):
            await page.toggle_block(team["bob-1"])

    @pytest.mark.asyncio
    async def test_owner_entry_cannot_be_blocked(self, make_page, owner_session, team):
        page = make_page(owner_session)
        await page.open()
        entry = TeamMember(id="owner-owner-1", owner_id="owner-1", name="Olivia", email="")

        with pytest.raises(ValidationError):
            await page.toggle_block(entry)

    @pytest.mark.asyncio
    async def test_clear_all_messages(self, make_page, owner_session, alice_session, team):
        confirmer = AutoConfirm()
        owner = make_page(owner_session, confirmer=confirmer)
        alice = make_page(alice_session)
        await owner.open()
        await alice.open()
        await owner.send_message("one")
        await alice.send_message("two")

        result = await owner.clear_all_messages()

        assert result.ok
        assert result.affected == 2
        assert confirmer.prompts == ["Clear All Messages?"]
        assert owner.team_channel.messages == []
        assert alice.team_channel.messages == []

    @pytest.mark.asyncio
    async def test_cancelled_confirmation(self, make_page, storage, owner_session, team):
        owner = make_page(owner_session, confirmer=AutoConfirm(answer=False))
        await owner.open()
        await owner.send_message("keep me")

        result = await owner.clear_all_messages()

        assert result.cancelled
        assert len(await storage.list_team_messages("owner-1")) == 1

    @pytest.mark.asyncio
    async def test_delete_private_message(self, make_page, alice_session, team):
        page = make_page(alice_session)
        await page.open()
        channel = await page.open_private_chat("bob-1")
        message = await page.send_message("oops", peer_id="bob-1")

        result = await page.delete_private_message(message)

        assert result.ok
        assert channel.messages == []


class TestChatPageSettings:
    """Tests for settings and status."""

    @pytest.mark.asyncio
    async def test_update_status(self, make_page, storage, alice_session, team):
        page = make_page(alice_session)
        await page.open()

        await page.update_status("Busy")

        assert page.settings.status == "Busy"
        assert page.tracker.state == Manual(ManualStatus.BUSY)
        assert (await storage.get_member("member-alice-1")).status == "Busy"

        await page.update_status("Available")
        assert page.tracker.manual_status is None
        assert (await storage.get_member("member-alice-1")).status == "Active"

    @pytest.mark.asyncio
    async def test_unknown_status(self, make_page, alice_session, team):
        page = make_page(alice_session)
        await page.open()

        with pytest.raises(ValidationError):
            await page.update_status("Sleeping")
        assert page.settings.status == "Available"

    @pytest.mark.asyncio
    async def test_theme_and_sound(self, make_page, alice_session, team):
        page = make_page(alice_session)
        await page.open()

        page.set_background("ocean")
        assert page.settings.chat_theme == "custom"

        page.set_theme("gradient-blue")
        assert page.settings.background_image is None

        page.select_sound("plink")
        assert page.sound.selected_sound_id == "plink"

    @pytest.mark.asyncio
    async def test_close_publishes_offline(self, make_page, storage, alice_session, team):
        page = make_page(alice_session)
        await page.open()

        await page.close()

        assert (await storage.get_member("member-alice-1")).status == "Offline"
        assert not page.tracker.running
