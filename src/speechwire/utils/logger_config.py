"""
Loguru configuration for speechwire

Provides centralized logger configuration with:
- Console output tagged with the protocol session id
- File logging to logs/ directory (when SPEECHWIRE_LOG_MODE=file)
- Automatic log rotation
- Per-component DEBUG output

Log Mode Control:
    Set environment variable SPEECHWIRE_LOG_MODE to control file logging:
    - SPEECHWIRE_LOG_MODE=file: Enable file logging
    - SPEECHWIRE_LOG_MODE=none or not set: Console only (default)
"""

import os
import sys
from pathlib import Path
from typing import Callable, List, Optional

from loguru import logger


LOG_MODE_ENV = "SPEECHWIRE_LOG_MODE"
LOG_MODE_FILE = "file"
LOG_MODE_NONE = "none"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<yellow>[{extra[session_id]}]</yellow> | "
    "<cyan>{extra[component]}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | [{extra[session_id]}] | "
    "{extra[component]} | {name}:{function}:{line} | {message}"
)

_configured = False


def is_file_logging_enabled() -> bool:
    """
    Check if file logging is enabled via environment variable.

    Returns:
        True if SPEECHWIRE_LOG_MODE=file, False otherwise
    """
    return os.environ.get(LOG_MODE_ENV, "").lower() == LOG_MODE_FILE


def make_component_filter(min_level_name: str, debug_components: List[str]) -> Callable[[dict], bool]:
    """
    Create a loguru filter allowing DEBUG for selected components only.

    Components are matched by prefix against the `component` extra bound by
    each module, so "SynthesisSession" matches "SynthesisSession-3f2a".
    """
    min_level_no = logger.level(min_level_name).no

    def component_filter(record) -> bool:
        component_name = record["extra"].get("component") or ""
        if any(component_name.startswith(prefix) for prefix in debug_components):
            return True
        return record["level"].no >= min_level_no

    return component_filter


def configure_logger(
    log_dir: str = "logs",
    level: str = "INFO",
    rotation: str = "100 MB",
    retention: str = "30 days",
    debug_components: Optional[List[str]] = None,
    force: bool = False,
) -> None:
    """
    Configure loguru logger with console and optional file outputs.

    Args:
        log_dir: Directory for log files (default: "logs")
        level: Log level for both handlers (default: "INFO")
        rotation: When to rotate log files (default: "100 MB")
        retention: How long to keep log files (default: "30 days")
        debug_components: Component names to enable DEBUG output for
                          (e.g., ["SynthesisSession"])
        force: Reconfigure even if already configured

    Example:
        >>> from speechwire.utils.logger_config import configure_logger
        >>> configure_logger(level="DEBUG")
        >>> configure_logger(level="INFO", debug_components=["RecognitionExchange"], force=True)
    """
    global _configured

    if _configured and not force:
        logger.debug("Logger already configured, skipping reconfiguration")
        return

    logger.remove()
    logger.configure(extra={"session_id": "--------", "component": "speechwire"})

    debug_components = debug_components or []
    handler_level = "DEBUG" if debug_components else level

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=handler_level,
        filter=make_component_filter(level, debug_components),
        colorize=True,
    )

    file_logging_enabled = is_file_logging_enabled()
    if file_logging_enabled:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path / "speechwire_{time:YYYY-MM-DD}.log"),
            format=FILE_FORMAT,
            level=handler_level,
            filter=make_component_filter(level, debug_components),
            rotation=rotation,
            retention=retention,
            compression="zip",
            encoding="utf-8",
        )

    _configured = True

    file_info = f", log_dir={log_dir}" if file_logging_enabled else " (file logging disabled)"
    debug_info = f" (DEBUG components: {', '.join(debug_components)})" if debug_components else ""
    logger.info(f"Logger configured: level={level}{file_info}{debug_info}")


def reset_logger() -> None:
    """
    Reset logger configuration flag.

    Allows configure_logger() to run again; useful in tests.
    """
    global _configured
    _configured = False
    logger.remove()


def get_logger():
    """Return the shared loguru logger, configuring defaults on first use."""
    if not _configured:
        configure_logger()
    return logger


def auto_configure() -> None:
    """Auto-configure logger on import with default settings."""
    # Leave pytest's capture untouched
    if "pytest" in sys.modules:
        return

    if not _configured:
        try:
            configure_logger()
        except Exception as e:
            print(f"Warning: Failed to configure logger: {e}", file=sys.stderr)


auto_configure()
