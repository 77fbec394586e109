"""Catalogs behind the reaction, media and status pickers."""

from ..models import ManualStatus

QUICK_REACTIONS = ["👍", "❤️", "😂", "😮", "😢", "🎉", "🔥", "💯"]

EMOJI_CATEGORIES: dict[str, list[str]] = {
    "😀": ["😀", "😃", "😄", "😁", "😅", "😂", "🤣", "😊", "😇", "🙂", "😉", "😍", "🥰", "😘", "😋", "😛", "🤪", "😜", "🤨", "🧐", "🤓", "😎", "🤩", "🥳", "😏", "😒", "😞", "😔", "😟", "😕", "🙁", "😣", "😖", "😫", "😩", "🥺", "😢", "😭", "😤", "😠", "😡", "🤬", "🤯", "😳", "🥵", "🥶", "😱", "😨", "😰"],
    "👍": ["👍", "👎", "👌", "🤌", "🤏", "✌️", "🤞", "🤟", "🤘", "🤙", "👈", "👉", "👆", "👇", "☝️", "👋", "🤚", "🖐️", "✋", "🖖", "👏", "🙌", "👐", "🤲", "🤝", "🙏", "✍️", "💪", "🦾", "🦿"],
    "❤️": ["❤️", "🧡", "💛", "💚", "💙", "💜", "🖤", "🤍", "🤎", "💔", "❣️", "💕", "💞", "💓", "💗", "💖", "💘", "💝", "💟"],
    "🎉": ["🎉", "🎊", "🎁", "🎈", "🏆", "🥇", "🥈", "🥉", "⚽", "🏀", "🎮", "🎲", "🎯", "🎵", "🎶", "🔔", "📣", "💡", "🔥", "⭐", "🌟", "✨", "💫", "🌈", "☀️", "🌙", "⚡", "💥", "💢", "💯"],
    "🍕": ["🍕", "🍔", "🍟", "🌭", "🍿", "🧀", "🥓", "🥚", "🍳", "🥞", "🧇", "🥐", "🍞", "🥖", "🥨", "🧁", "🍰", "🎂", "🍩", "🍪", "🍫", "🍬", "🍭", "🍮", "🍯", "🍼", "☕", "🍵", "🧃", "🥤"],
}

# Emoji used as stickers
STICKER_PACKS: dict[str, list[str]] = {
    "Cute": ["🐱", "🐶", "🐰", "🦊", "🐻", "🐼", "🐨", "🦁", "🐯", "🐮", "🐷", "🐸", "🐵", "🐔", "🐧", "🐦", "🦆", "🦅", "🦉", "🦋"],
    "Love": ["💕", "💖", "💗", "💓", "💞", "💘", "💝", "😍", "🥰", "😘", "💋", "🌹", "🌸", "💐", "🎀", "💑", "👫", "👬", "👭", "💏"],
    "Fun": ["🎉", "🎊", "🥳", "🎈", "🎁", "🎂", "🍾", "🥂", "🎵", "🎶", "💃", "🕺", "🎤", "🎸", "🎮", "🎲", "🎯", "🏆", "🥇", "⭐"],
    "Work": ["💻", "📱", "⌨️", "🖥️", "🖨️", "📂", "📁", "📋", "📊", "📈", "📉", "✏️", "📝", "✅", "❌", "💡", "🔍", "📧", "📞", "🗓️"],
}

TRENDING_GIFS = [
    "https://media.giphy.com/media/3o7TKSjRrfIPjeiVyM/giphy.gif",
    "https://media.giphy.com/media/xT9IgG50Fb7Mi0prBC/giphy.gif",
    "https://media.giphy.com/media/l0HlvtIPzPdt2usKs/giphy.gif",
    "https://media.giphy.com/media/xT1XGWbE0XiBDX2T8Q/giphy.gif",
    "https://media.giphy.com/media/3o7TKoWXm3okO1kgHC/giphy.gif",
    "https://media.giphy.com/media/xT5LMHxhOfscxPfIfm/giphy.gif",
]

AVAILABLE_STATUS = "Available"

# (value, manual status); Available clears the override
STATUS_OPTIONS: list[tuple[str, ManualStatus | None]] = [
    (AVAILABLE_STATUS, None),
    (ManualStatus.BUSY.value, ManualStatus.BUSY),
    (ManualStatus.BE_RIGHT_BACK.value, ManualStatus.BE_RIGHT_BACK),
    (ManualStatus.DO_NOT_DISTURB.value, ManualStatus.DO_NOT_DISTURB),
    (ManualStatus.APPEAR_OFFLINE.value, ManualStatus.APPEAR_OFFLINE),
]

# Older picker values still found in saved settings
_LEGACY_STATUS = {
    "Away": ManualStatus.BE_RIGHT_BACK,
    "Offline": ManualStatus.APPEAR_OFFLINE,
}


def status_to_manual(value: str) -> ManualStatus | None:
    """Manual status for a picker value; raises KeyError for unknown values."""
    for option, manual in STATUS_OPTIONS:
        if option == value:
            return manual
    return _LEGACY_STATUS[value]

