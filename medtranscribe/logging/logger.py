import logging
import sys

# Attributes every LogRecord carries; anything else came in as keyword context.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Formats a line and appends keyword context as sorted key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if not context:
            return line
        pairs = " ".join(f"{key}={context[key]}" for key in sorted(context))
        return f"{line} {pairs}"


class Log:
    """Centralized logging for the worker.

    Keyword arguments are attached to the record as structured context.
    Never pass transcript text or entity text as context.
    """

    _logger: logging.Logger = logging.getLogger("medtranscribe")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Set the level and attach a single stdout handler."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(ContextFormatter("%(asctime)s [%(levelname)s] %(message)s"))
            cls._logger.addHandler(handler)

    @classmethod
    def debug(cls, message: str, **context: object) -> None:
        cls._emit(logging.DEBUG, message, context)

    @classmethod
    def info(cls, message: str, **context: object) -> None:
        cls._emit(logging.INFO, message, context)

    @classmethod
    def warning(cls, message: str, **context: object) -> None:
        cls._emit(logging.WARNING, message, context)

    @classmethod
    def error(cls, message: str, **context: object) -> None:
        cls._emit(logging.ERROR, message, context)

    @classmethod
    def alert(cls, message: str, **context: object) -> None:
        """Critical entry for upstream contract breaks that need an operator."""
        cls._emit(logging.CRITICAL, message, {"operator_alert": True, **context})

    @classmethod
    def _emit(cls, level: int, message: str, context: dict[str, object]) -> None:
        clashes = _RECORD_ATTRS.intersection(context)
        if clashes:
            raise ValueError(f"Log context uses reserved names: {sorted(clashes)}")
        # stacklevel 3 attributes the record to the caller of info()/error()/...
        cls._logger.log(level, message, extra=context, stacklevel=3)
