import sys
from datetime import datetime
from typing import Optional, TextIO
from models.enums import LogLevel, LogCategory

# === ANSI COLORS ===
class Colors:
    """ANSI escape codes for colored terminal output"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'

    BRIGHT_BLUE = '\033[94m'
    BRIGHT_MAGENTA = '\033[95m'
    BRIGHT_CYAN = '\033[96m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_WHITE = '\033[97m'


CATEGORY_COLORS = {
    LogCategory.CONFIG: Colors.CYAN,
    LogCategory.HARDWARE: Colors.BRIGHT_BLUE,
    LogCategory.TRANSPORT: Colors.DIM,
    LogCategory.SYNC: Colors.BRIGHT_CYAN,
    LogCategory.CLOCK: Colors.BRIGHT_MAGENTA,
    LogCategory.I2C: Colors.BRIGHT_GREEN,
    LogCategory.PIXEL: Colors.BRIGHT_YELLOW,
    LogCategory.SYSTEM: Colors.BRIGHT_WHITE,
}

LEVEL_SYMBOLS = {
    LogLevel.DEBUG: '·',
    LogLevel.INFO: '✓',
    LogLevel.WARN: '⚠',
    LogLevel.ERROR: '✗',
}

LEVEL_COLORS = {
    LogLevel.DEBUG: Colors.DIM,
    LogLevel.INFO: Colors.GREEN,
    LogLevel.WARN: Colors.YELLOW,
    LogLevel.ERROR: Colors.RED,
}

LEVEL_PRIORITY = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
}


# === CORE LOGGER ===
class Logger:
    """
    Structured logger with compact output format

    Format:
    [HH:MM:SS] CATEGORY · Message
               ├─ Detail 1
               └─ Detail 2

    Example:
    [14:23:45] CLOCK     ✓ MPSSE clock configured
               ├─ requested: 400.00kHz
               └─ error: 0.00%
    """

    def __init__(
        self,
        min_level: LogLevel = LogLevel.INFO,
        use_colors: bool = True,
        stream: Optional[TextIO] = None,
    ):
        """
        Initialize logger

        Args:
            min_level: Minimum log level to display
            use_colors: Enable ANSI color codes (disable for file output)
            stream: Output stream, defaults to stderr so stdout stays free for program output
        """
        self.min_level = min_level
        self.use_colors = use_colors
        self.stream = stream

    def _should_log(self, level: LogLevel) -> bool:
        return LEVEL_PRIORITY[level] >= LEVEL_PRIORITY[self.min_level]

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    def _format_timestamp(self) -> str:
        """Format current time as [HH:MM:SS]"""
        return datetime.now().strftime('[%H:%M:%S]')

    def _format_category(self, category: LogCategory) -> str:
        color = CATEGORY_COLORS.get(category, Colors.WHITE)
        return self._colorize(category.name.ljust(9), color)

    def _format_level_symbol(self, level: LogLevel) -> str:
        symbol = LEVEL_SYMBOLS.get(level, '·')
        return self._colorize(symbol, LEVEL_COLORS.get(level, Colors.WHITE))

    def _write(self, line: str) -> None:
        print(line, file=self.stream or sys.stderr)

    def log(
        self,
        category: LogCategory,
        message: str,
        level: LogLevel = LogLevel.INFO,
        details: Optional[list] = None,
        **kwargs
    ):
        """
        Log a structured message

        Args:
            category: Log category (TRANSPORT, I2C, etc.)
            message: Main message text
            level: Log level (DEBUG, INFO, WARN, ERROR)
            details: List of detail strings to show below message
            **kwargs: Additional key-value pairs to show as details

        Example:
            logger.log(
                LogCategory.I2C,
                "Address NACKed",
                level=LogLevel.WARN,
                addr="0x18",
            )
        """
        if not self._should_log(level):
            return

        timestamp = self._format_timestamp()
        cat = self._format_category(category)
        sym = self._format_level_symbol(level)
        msg = self._colorize(message, LEVEL_COLORS.get(level, Colors.WHITE))

        self._write(f"{timestamp} {cat} {sym} {msg}")

        all_details = list(details or [])
        for k, v in kwargs.items():
            all_details.append(f"{k}: {v}")

        if all_details:
            indent = " " * 11
            for i, d in enumerate(all_details):
                # Last item gets different tree character
                tree = "└─" if i == len(all_details) - 1 else "├─"
                self._write(f"{indent}{self._colorize(tree, Colors.DIM)} {d}")

    # === Level helpers ===
    def debug(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.DEBUG, **kw)
    def info(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.INFO, **kw)
    def warn(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.WARN, **kw)
    def error(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.ERROR, **kw)

    # === Contextual logger creation ===
    def for_category(self, category: LogCategory) -> 'BoundLogger':
        """Return a contextual logger bound to a specific category."""
        return BoundLogger(self, category)


class BoundLogger:
    """Logger bound to a default category, with ability to override if needed."""

    def __init__(self, base: Logger, category: LogCategory):
        self._base = base
        self._category = category

    def log(self, message: str, level: LogLevel = LogLevel.INFO, category: Optional[LogCategory] = None, **kw):
        self._base.log(category or self._category, message, level, **kw)

    def is_enabled(self, level: LogLevel) -> bool:
        """Cheap check before building expensive detail strings (hex dumps)."""
        return self._base._should_log(level)

    def debug(self, message: str, **kw): self.log(message, LogLevel.DEBUG, **kw)
    def info(self, message: str, **kw): self.log(message, LogLevel.INFO, **kw)
    def warn(self, message: str, **kw): self.log(message, LogLevel.WARN, **kw)
    def error(self, message: str, **kw): self.log(message, LogLevel.ERROR, **kw)

    def with_category(self, category: LogCategory) -> 'BoundLogger':
        """Create another bound logger from this one."""
        return BoundLogger(self._base, category)


# === Global instance helpers ===
_logger = Logger()

def get_logger() -> Logger:
    return _logger

def get_category_logger(category: LogCategory) -> BoundLogger:
    return _logger.for_category(category)

def configure_logger(min_level: LogLevel = LogLevel.INFO, use_colors: bool = True):
    """
    Configure the logger singleton in place.

    Module-level BoundLoggers keep a reference to the singleton, so it is
    updated rather than replaced.
    """
    _logger.min_level = min_level
    _logger.use_colors = use_colors


def hex_bytes(data, limit: int = 32) -> str:
    """Render bytes as 'AB CD ..' for debug details."""
    text = ' '.join(f"{b:02X}" for b in data[:limit])
    return text + (" …" if len(data) > limit else '')
