"""SIM implementation - a virtual team chatting through the HTTP API."""

import asyncio
import random
from typing import Protocol

import httpx

from teamchat.logging_config import get_logger

logger = get_logger(__name__)

OWNER = {"user_id": "owner_001", "name": "Olivia", "email": "olivia@example.com"}

VIRTUAL_MEMBERS = [
    {"user_id": "user_001", "name": "Alice", "email": "alice@example.com"},
    {"user_id": "user_002", "name": "Bob", "email": "bob@example.com"},
    {"user_id": "user_003", "name": "Charlie", "email": "charlie@example.com"},
]

TEAM_LINES = [
    ["Morning everyone!", "Pushed the fix for the login bug", "Heading out, see you tomorrow"],
    ["Hi all", "Can someone review my PR?", "Thanks, merged"],
    ["Good morning", "Standup in 5?", "Notes are in the doc"],
]

REACTIONS = ["👍", "❤️", "🎉", "🔥"]


class ISim(Protocol):
    """Generate chat traffic for manual testing."""

    async def start(self) -> None:
        """Start the scenario."""
        ...

    async def stop(self) -> None:
        """Stop the scenario."""
        ...


class Sim:
    """Virtual team: invites members, then chats, reacts and DMs the owner."""

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        min_delay: float = 1.0,
        max_delay: float = 3.0,
    ):
        self._api_url = api_url
        self._min_delay = min_delay
        self._max_delay = max_delay
        self._running = False
        self._task: asyncio.Task | None = None
        self._client: httpx.AsyncClient | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scenario."""
        if self._running:
            return

        self._running = True
        self._client = httpx.AsyncClient(base_url=self._api_url, timeout=10.0)

        # Start background task
        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop the scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client:
            await self._client.aclose()
            self._client = None

    async def _pause(self) -> None:
        await asyncio.sleep(random.uniform(self._min_delay, self._max_delay))

    async def _run_scenario(self) -> None:
        owner_id = OWNER["user_id"]
        try:
            await self._setup_team(owner_id)

            for round_idx in range(3):
                if not self._running:
                    break

                for member, lines in zip(VIRTUAL_MEMBERS, TEAM_LINES):
                    if not self._running:
                        break
                    message = await self._post(
                        f"/api/teams/{owner_id}/messages",
                        {
                            "user_id": member["user_id"],
                            "name": member["name"],
                            "email": member["email"],
                            "text": lines[round_idx],
                        },
                    )
                    if message and random.random() < 0.5:
                        reactor = random.choice(VIRTUAL_MEMBERS)
                        await self._post(
                            f"/api/reactions/team/{message['id']}",
                            {
                                "user_id": reactor["user_id"],
                                "user_name": reactor["name"],
                                "value": random.choice(REACTIONS),
                            },
                        )
                    await self._pause()

                # One member pings the owner privately each round
                member = VIRTUAL_MEMBERS[round_idx % len(VIRTUAL_MEMBERS)]
                await self._post(
                    f"/api/teams/{owner_id}/private",
                    {
                        "user_id": member["user_id"],
                        "name": member["name"],
                        "receiver_id": owner_id,
                        "text": f"Quick question from {member['name']}",
                    },
                )
                await self._pause()

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            for member in VIRTUAL_MEMBERS:
                await self._post("/api/presence/offline", {"user_id": member["user_id"]})

    async def _setup_team(self, owner_id: str) -> None:
        """Invite the virtual members and link them as if they signed in."""
        for member in VIRTUAL_MEMBERS:
            await self._post(
                f"/api/teams/{owner_id}/members",
                {"name": member["name"], "email": member["email"]},
                quiet_statuses=(400,),
            )
            await self._post(
                "/api/members/link",
                {"user_id": member["user_id"], "email": member["email"]},
            )

    async def _post(
        self,
        path: str,
        payload: dict,
        quiet_statuses: tuple[int, ...] = (),
    ) -> dict | None:
        """POST via HTTP API; returns the JSON body on success."""
        if not self._client:
            return None

        try:
            response = await self._client.post(path, json=payload)
        except Exception as e:
            logger.error("SIM: Request to %s failed: %s", path, e)
            return None

        if response.status_code == 200:
            logger.info("SIM: %s -> %s", path, payload.get("text", "ok"))
            return response.json()
        if response.status_code not in quiet_statuses:
            logger.error("SIM: Error calling %s: %s", path, response.status_code)
        return None
