import logging
import os
from pathlib import Path
from typing import Optional
from logging.handlers import TimedRotatingFileHandler
from rich.logging import RichHandler
from voxpress.core.console import console as console_manager

def setup_logging(log_dir: Optional[str] = None, debug: bool = False, output_mode: str = "standard") -> logging.Logger:
    """Configures logging to console and rotating file.

    Args:
        log_dir: Directory for log files. If None, uses ~/.local/state/voxpress/logs
        debug: If True, set logging level to DEBUG, otherwise INFO
        output_mode: 'standard', 'verbose', 'silent'. 'silent' suppresses console output.
    """
    if log_dir is None:
        xdg_state = os.environ.get("XDG_STATE_HOME")
        if xdg_state:
            log_dir = str(Path(xdg_state) / "voxpress" / "logs")
        else:
            log_dir = str(Path.home() / ".local" / "state" / "voxpress" / "logs")

    log_file = os.path.join(log_dir, "app.log")

    # Silence noisy 3rd party loggers
    for logger_name in ["watchdog", "asyncio", "numba", "matplotlib"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger("Voxpress")

    if output_mode == "silent":
        console_level = logging.CRITICAL
        file_level = logging.DEBUG  # Always log details to file
    elif debug:
        console_level = logging.DEBUG
        file_level = logging.DEBUG
    else:
        console_level = logging.INFO
        file_level = logging.INFO

    # Handlers filter; the logger itself lets everything through
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    if not logger.handlers:
        if output_mode != "silent":
            console_handler = RichHandler(
                console=console_manager.console,
                rich_tracebacks=True,
                markup=False,
                show_time=True,
                show_path=False
            )
            console_handler.setLevel(console_level)
            logger.addHandler(console_handler)

        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = TimedRotatingFileHandler(log_file, when="midnight", interval=1, backupCount=30)
            file_handler.setLevel(file_level)
            file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
            logger.addHandler(file_handler)
        except OSError as e:
            # Handlers are not set up yet, so this cannot go through the logger
            if output_mode != "silent":
                console_manager.warning(f"Could not create log file at {log_file}: {e}. Logging to console only.")

    else:
        for handler in logger.handlers:
            if isinstance(handler, TimedRotatingFileHandler):
                handler.setLevel(file_level)
            elif isinstance(handler, RichHandler):
                handler.setLevel(logging.CRITICAL if output_mode == "silent" else console_level)

    return logger

def format_bytes(size: int) -> str:
    """Human-readable size, in MB the way the converter screen reports it."""
    return f"{size / 1024 / 1024:.2f} MB"

def format_duration(seconds: Optional[float]) -> str:
    """Format seconds as HH:MM:SS.mmm"""
    if seconds is None:
        return "00:00:00"
    m, s = divmod(seconds, 60)
    h, m = divmod(m, 60)
    return f"{int(h):02d}:{int(m):02d}:{s:06.3f}"
