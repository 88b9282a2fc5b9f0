import logging
import os
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler

locale_var: ContextVar[str] = ContextVar("locale", default="-")


class SafeLogFilter(logging.Filter):
    def __init__(self, secrets: list[str]) -> None:
        super().__init__()
        self.secrets = [value for value in secrets if value]

    def _mask(self, text: str) -> str:
        for secret in self.secrets:
            text = text.replace(secret, "***")
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        record.locale = locale_var.get("-")
        record.msg = self._mask(record.getMessage())
        record.args = ()
        # tracebacks carry exception text too
        if record.exc_info:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
            record.exc_info = None
        if record.exc_text:
            record.exc_text = self._mask(record.exc_text)
        if record.stack_info:
            record.stack_info = self._mask(record.stack_info)
        return True


def setup_logging(verbose: bool = False, secrets: list[str] | None = None) -> None:
    """Configure console and optional rotating file logging for a sync run."""
    log_format = "%(asctime)s [%(levelname)s] [%(locale)s] %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    file_path = os.getenv("GGLOT_LOG_FILE")
    if file_path:
        os.makedirs(os.path.dirname(os.path.abspath(file_path)), exist_ok=True)
        handlers.append(
            RotatingFileHandler(file_path, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
        )

    filter_instance = SafeLogFilter([os.getenv("OPENAI_API_KEY", ""), *(secrets or [])])
    for handler in handlers:
        handler.addFilter(filter_instance)

    logging.basicConfig(level=logging.INFO, format=log_format, handlers=handlers, force=True)
    logging.getLogger("gglot").setLevel(logging.DEBUG if verbose else logging.INFO)


__all__ = ["setup_logging", "locale_var", "SafeLogFilter"]
