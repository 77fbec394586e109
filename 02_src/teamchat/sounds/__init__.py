"""Notification sound engine."""

from .catalog import NOTIFICATION_SOUNDS, NotificationSound, Tone
from .engine import (
    SOUND_STORAGE_KEY,
    AudioSink,
    FileSink,
    MemorySink,
    SoundEngine,
    render_sound,
    to_wav_bytes,
)

__all__ = [
    "AudioSink",
    "FileSink",
    "MemorySink",
    "NOTIFICATION_SOUNDS",
    "NotificationSound",
    "SOUND_STORAGE_KEY",
    "SoundEngine",
    "Tone",
    "render_sound",
    "to_wav_bytes",
]
