"""Notification cue catalog.

Each cue is a handful of oscillator tones. A tone has a frequency sweep given
as ``(time, hz)`` keyframes with exponential ramps between them, and a gain
that decays exponentially from ``gain`` to 0.01 over the tone's lifetime.
All times are seconds from the start of the cue.
"""

from dataclasses import dataclass, field

DEFAULT_SOUND_ID = "knock"
MUTED_SOUND_ID = "none"


@dataclass(frozen=True)
class Tone:
    start: float
    stop: float
    sweep: tuple[tuple[float, float], ...]
    gain: float
    waveform: str = "sine"  # "sine" | "triangle"


@dataclass(frozen=True)
class NotificationSound:
    id: str
    name: str
    description: str
    tones: tuple[Tone, ...] = field(default_factory=tuple)

    @property
    def muted(self) -> bool:
        return not self.tones

    @property
    def duration(self) -> float:
        return max((tone.stop for tone in self.tones), default=0.0)


def _wow_tones() -> tuple[Tone, ...]:
    # G4, C5, E5 arpeggio
    return tuple(
        Tone(start=i * 0.1, stop=i * 0.1 + 0.2, sweep=((i * 0.1, freq),), gain=0.2)
        for i, freq in enumerate((392.0, 523.25, 659.25))
    )


NOTIFICATION_SOUNDS: tuple[NotificationSound, ...] = (
    NotificationSound(
        id="knock",
        name="Knock Brush",
        description="Classic Slack knock sound",
        tones=(
            Tone(start=0.0, stop=0.1, sweep=((0.0, 800.0), (0.1, 400.0)), gain=0.3),
            Tone(start=0.15, stop=0.25, sweep=((0.15, 600.0), (0.25, 300.0)), gain=0.25),
        ),
    ),
    NotificationSound(
        id="ding",
        name="Ding",
        description="Simple notification ding",
        tones=(Tone(start=0.0, stop=0.5, sweep=((0.0, 880.0),), gain=0.3),),
    ),
    NotificationSound(
        id="here_you_go",
        name="Here You Go",
        description="Friendly two-tone alert",
        tones=(
            Tone(start=0.0, stop=0.15, sweep=((0.0, 523.25),), gain=0.25),
            Tone(start=0.12, stop=0.35, sweep=((0.12, 659.25),), gain=0.25),
        ),
    ),
    NotificationSound(
        id="plink",
        name="Plink",
        description="Water drop sound",
        tones=(
            Tone(start=0.0, stop=0.3, sweep=((0.0, 1800.0), (0.15, 400.0)), gain=0.25),
        ),
    ),
    NotificationSound(
        id="wow",
        name="Wow",
        description="Ascending alert",
        tones=_wow_tones(),
    ),
    NotificationSound(
        id="yoink",
        name="Yoink",
        description="Playful pop",
        tones=(
            Tone(
                start=0.0,
                stop=0.25,
                sweep=((0.0, 300.0), (0.1, 1200.0), (0.2, 600.0)),
                gain=0.3,
                waveform="triangle",
            ),
        ),
    ),
    NotificationSound(
        id=MUTED_SOUND_ID,
        name="None (Muted)",
        description="No notification sound",
    ),
)

SOUNDS_BY_ID: dict[str, NotificationSound] = {s.id: s for s in NOTIFICATION_SOUNDS}
