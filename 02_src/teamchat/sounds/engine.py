"""Procedural notification cues rendered with numpy."""

import io
import wave
from pathlib import Path
from typing import Protocol

import numpy as np

from ..errors import ValidationError
from ..logging_config import get_logger
from ..settings import LocalSettingsStore
from .catalog import (
    DEFAULT_SOUND_ID,
    MUTED_SOUND_ID,
    NOTIFICATION_SOUNDS,
    SOUNDS_BY_ID,
    NotificationSound,
    Tone,
)

logger = get_logger(__name__)

SOUND_STORAGE_KEY = "chat_notification_sound"
SAMPLE_RATE = 44100
_GAIN_FLOOR = 0.01


def render_tone(tone: Tone, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Render one oscillator tone as float samples in [-1, 1]."""
    n = int(round((tone.stop - tone.start) * sample_rate))
    if n <= 0:
        return np.zeros(0, dtype=np.float64)

    t = tone.start + np.arange(n) / sample_rate

    # Exponential ramps are linear in log-frequency
    times = np.array([point[0] for point in tone.sweep])
    log_freqs = np.log(np.array([point[1] for point in tone.sweep]))
    freq = np.exp(np.interp(t, times, log_freqs))

    phase = 2 * np.pi * np.cumsum(freq) / sample_rate
    if tone.waveform == "triangle":
        samples = (2 / np.pi) * np.arcsin(np.sin(phase))
    else:
        samples = np.sin(phase)

    progress = (t - tone.start) / (tone.stop - tone.start)
    envelope = tone.gain * (_GAIN_FLOOR / tone.gain) ** progress
    return samples * envelope


def render_sound(sound: NotificationSound, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Mix every tone of a cue into one mono buffer."""
    total = int(round(sound.duration * sample_rate))
    buffer = np.zeros(total, dtype=np.float64)
    for tone in sound.tones:
        samples = render_tone(tone, sample_rate)
        offset = int(round(tone.start * sample_rate))
        end = min(offset + len(samples), total)
        buffer[offset:end] += samples[: end - offset]
    return np.clip(buffer, -1.0, 1.0)


def to_wav_bytes(samples: np.ndarray, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Encode float samples as 16-bit mono WAV."""
    pcm = (samples * 32767).astype(np.int16)
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)  # 16-bit
        wav.setframerate(sample_rate)
        wav.writeframes(pcm.tobytes())
    return buffer.getvalue()


class AudioSink(Protocol):
    """Where rendered cues go."""

    def play(self, sound_id: str, wav: bytes) -> None:
        ...


class MemorySink:
    """Keeps every played cue in memory."""

    def __init__(self):
        self.played: list[str] = []
        self.last_wav: bytes | None = None

    def play(self, sound_id: str, wav: bytes) -> None:
        self.played.append(sound_id)
        self.last_wav = wav


class FileSink:
    """Writes the most recent cue to ``<directory>/<sound_id>.wav``."""

    def __init__(self, directory: str | Path):
        self._directory = Path(directory)

    def play(self, sound_id: str, wav: bytes) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        (self._directory / f"{sound_id}.wav").write_bytes(wav)


class SoundEngine:
    """Plays the user-selected notification cue."""

    def __init__(
        self,
        store: LocalSettingsStore,
        sink: AudioSink | None = None,
        sample_rate: int = SAMPLE_RATE,
    ):
        self._store = store
        self._sink = sink or MemorySink()
        self._sample_rate = sample_rate
        self._cache: dict[str, bytes] = {}

    @property
    def sink(self) -> AudioSink:
        return self._sink

    @property
    def sounds(self) -> tuple[NotificationSound, ...]:
        return NOTIFICATION_SOUNDS

    @property
    def selected_sound_id(self) -> str:
        return self._store.get(SOUND_STORAGE_KEY) or DEFAULT_SOUND_ID

    @property
    def selected_sound(self) -> NotificationSound:
        return SOUNDS_BY_ID.get(self.selected_sound_id, NOTIFICATION_SOUNDS[0])

    def select(self, sound_id: str) -> None:
        if sound_id not in SOUNDS_BY_ID:
            raise ValidationError(f"Unknown notification sound: {sound_id}")
        self._store.set(SOUND_STORAGE_KEY, sound_id)

    def render(self, sound_id: str) -> bytes:
        """WAV bytes for a cue, cached per sound."""
        if sound_id not in self._cache:
            sound = SOUNDS_BY_ID[sound_id]
            self._cache[sound_id] = to_wav_bytes(
                render_sound(sound, self._sample_rate), self._sample_rate
            )
        return self._cache[sound_id]

    def play(self) -> None:
        """Play the selected cue. Never raises."""
        self._emit(self.selected_sound_id)

    def preview(self, sound_id: str) -> None:
        self._emit(sound_id)

    def _emit(self, sound_id: str) -> None:
        if sound_id == MUTED_SOUND_ID or sound_id not in SOUNDS_BY_ID:
            return
        try:
            self._sink.play(sound_id, self.render(sound_id))
        except Exception as e:
            logger.warning("Could not play notification sound %s: %s", sound_id, e)
