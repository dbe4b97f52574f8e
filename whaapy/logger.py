import logging
import re

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

custom_theme = Theme(
    {
        "info": "dim cyan",
        "warning": "magenta",
        "error": "bold red",
        "node": "bold blue",
        "webhook": "bold green",
    }
)

console = Console(theme=custom_theme)


class CompactFilter(logging.Filter):
    """Shortens UUIDs and masks API keys before records reach the console."""

    UUID_PATTERN = re.compile(
        r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.I
    )
    # Whaapy keys start with wha_
    API_KEY_PATTERN = re.compile(r"\bwha_[A-Za-z0-9_\-]{4,}")
    BEARER_PATTERN = re.compile(r"(Bearer\s+)\S+", re.I)

    def filter(self, record):
        if not isinstance(record.msg, str):
            return True

        msg = record.msg.replace("whaapy.workflows.engine.", "engine.")

        def shorten_uuid(match):
            val = match.group(0)
            return f"{val[:4]}.."

        def mask_key(match):
            val = match.group(0)
            return f"{val[:6]}***"

        msg = self.UUID_PATTERN.sub(shorten_uuid, msg)
        msg = self.API_KEY_PATTERN.sub(mask_key, msg)
        msg = self.BEARER_PATTERN.sub(r"\1***", msg)

        record.msg = msg
        return True


def setup_global_logger(log_level: str = "INFO"):
    """
    Configures the package logger with a Rich console handler.
    """
    logger = logging.getLogger("whaapy")

    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if not logger.handlers:
        rich_handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            markup=False,
            show_path=False,
            show_time=True,
            omit_repeated_times=True,
            keywords=["node", "webhook", "message", "contact", "ERROR", "WARNING"],
        )

        formatter = logging.Formatter("%(message)s", datefmt="[%X]")
        rich_handler.setFormatter(formatter)
        rich_handler.addFilter(CompactFilter())
        logger.addHandler(rich_handler)

    return logger


logger = logging.getLogger("whaapy")
