"""The signed-in user's identity, passed explicitly to every chat component."""

from dataclasses import dataclass


@dataclass
class ChatSession:
    user_id: str
    name: str
    email: str = ""
    avatar_url: str | None = None
    nickname: str | None = None

    @property
    def display_name(self) -> str:
        return self.nickname or self.name
