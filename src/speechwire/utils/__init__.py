"""
Utility functions for text chunking, audio format detection and logging
"""

from speechwire.utils.audio_format import audio_format_from_path
from speechwire.utils.logger_config import configure_logger, reset_logger, get_logger, is_file_logging_enabled
from speechwire.utils.text_chunker import TextChunker, split_text

__all__ = [
    "audio_format_from_path",
    "configure_logger",
    "reset_logger",
    "get_logger",
    "is_file_logging_enabled",
    "TextChunker",
    "split_text",
]
