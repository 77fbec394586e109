"""Application bootstrap and lifecycle management."""

import os
from pathlib import Path
from typing import Protocol

from .change_feed import ChangeFeed
from .config import DEFAULT_SETTINGS_PATH, FILES_DIR, ChatConfig, resolve_db_path
from .logging_config import get_logger
from .orchestrator import ChatPage
from .session import ChatSession
from .settings import LocalSettingsStore
from .sounds import AudioSink, SoundEngine
from .storage import FileStore, IStorage, Storage

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        config: ChatConfig | None = None,
        files_dir: str | Path | None = None,
        settings_path: str | Path | None = None,
        sound_sink: AudioSink | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._config = config or ChatConfig.from_env()
        self._files_dir = Path(files_dir) if files_dir else FILES_DIR
        # ":memory:" databases get an in-memory settings store too
        if settings_path is None and str(self._db_path) != ":memory:":
            settings_path = DEFAULT_SETTINGS_PATH
        self._settings_path = settings_path
        self._sound_sink = sound_sink

        # Components (will be initialized in start())
        self._feed: ChangeFeed | None = None
        self._storage: IStorage | None = None
        self._files: FileStore | None = None
        self._local_store: LocalSettingsStore | None = None
        self._sound: SoundEngine | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. ChangeFeed (no dependencies)
        self._feed = ChangeFeed()

        # 2. Storage (publishes to the feed)
        self._storage = Storage(self._db_path, self._feed)
        await self._storage.init()
        logger.info("Storage initialized")

        # 3. File store and local settings
        self._files_dir.mkdir(parents=True, exist_ok=True)
        self._files = FileStore(self._files_dir, base_url=self._config.files_base_url)
        self._local_store = LocalSettingsStore(self._settings_path)

        # 4. Sound engine (reads the selected cue from local settings)
        self._sound = SoundEngine(self._local_store, sink=self._sound_sink)
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")
        if self._local_store:
            self._local_store.clear()
        logger.info("Reset complete")

    def create_page(self, session: ChatSession, **kwargs) -> ChatPage:
        """A chat page for one signed-in user, wired to shared components."""
        return ChatPage(
            self.storage,
            self.feed,
            self.files,
            self.local_store,
            session,
            config=self._config,
            sound=kwargs.pop("sound", self.sound),
            **kwargs,
        )

    @property
    def config(self) -> ChatConfig:
        return self._config

    @property
    def files_root(self) -> Path:
        """Directory attachments are written to (available before start)."""
        return self._files_dir

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def feed(self) -> ChangeFeed:
        """Get change feed instance."""
        if not self._feed:
            raise RuntimeError("Application not started")
        return self._feed

    @property
    def files(self) -> FileStore:
        if not self._files:
            raise RuntimeError("Application not started")
        return self._files

    @property
    def local_store(self) -> LocalSettingsStore:
        if not self._local_store:
            raise RuntimeError("Application not started")
        return self._local_store

    @property
    def sound(self) -> SoundEngine:
        if not self._sound:
            raise RuntimeError("Application not started")
        return self._sound
