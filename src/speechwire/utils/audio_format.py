"""
Container/codec detection for recognition requests.
"""

from pathlib import Path
from typing import Dict, Tuple, Union


# extension -> (format, codec)
_FORMATS_BY_EXTENSION: Dict[str, Tuple[str, str]] = {
    "webm": ("webm", "opus"),
    "ogg": ("ogg", "opus"),
    "mp4": ("mp4", "aac"),
    "m4a": ("mp4", "aac"),
    "mp3": ("mp3", "raw"),
    "wav": ("wav", "raw"),
    "pcm": ("pcm", "raw"),
}

# Browser recordings come without an extension
_DEFAULT_FORMAT = ("webm", "opus")


def audio_format_from_path(path: Union[str, Path]) -> Tuple[str, str]:
    """
    Map an audio file extension to the (format, codec) pair the service expects.

    Raises:
        ValueError: Unsupported extension
    """
    ext = Path(path).suffix.lstrip(".").lower()
    if not ext:
        return _DEFAULT_FORMAT
    try:
        return _FORMATS_BY_EXTENSION[ext]
    except KeyError:
        raise ValueError(f"Unsupported audio extension: {ext}") from None
