"""Team Chat core: real-time team and private chat."""

from .app import Application, IApplication
from .config import ChatConfig
from .session import ChatSession

__all__ = ["Application", "ChatConfig", "ChatSession", "IApplication"]
