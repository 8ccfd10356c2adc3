import logging
import re
import sys
from datetime import datetime, timedelta
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from apikey_service.config import settings

LOG_FILE_NAME = "apikey-service.log"
_REQUEST_ID_PATTERN = re.compile(r"\s*\|\s*RequestID:\s*([A-Za-z0-9-]+)\s*$")


class RequestIDFormatter(logging.Formatter):
    """Formatter that prefixes each line with the request id or [SYSTEM]."""

    BASE_FORMAT = (
        "%(asctime)s - %(levelname)s - %(request_id)s - "
        "[%(filename)s:%(lineno)d] - %(funcName)s - %(message)s"
    )

    def __init__(self, datefmt: str = "%Y-%m-%d %H:%M:%S"):
        super().__init__(self.BASE_FORMAT, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        request_id = getattr(record, "request_id", None) or getattr(record, "RequestID", None)

        # sanitize_log_message appends "| RequestID: <id>" to the message
        if not request_id and isinstance(record.msg, str):
            match = _REQUEST_ID_PATTERN.search(record.msg)
            if match:
                request_id = match.group(1)
                record.msg = record.msg[:match.start()]

        record.request_id = f"[{str(request_id).strip('[]')}]" if request_id else "[SYSTEM]"
        return super().format(record)


def setup_logging() -> None:
    """
    Configure application-wide logging with daily file rotation.
    Creates the log directory if missing.
    """
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    log_level = settings.get_log_level()
    numeric_level = getattr(logging, log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    formatter = RequestIDFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Rotates at midnight: apikey-service.log.YYYY-MM-DD
    file_handler = TimedRotatingFileHandler(
        filename=str(log_dir / LOG_FILE_NAME),
        when="midnight",
        interval=1,
        backupCount=settings.LOG_RETENTION_DAYS,
        encoding="utf-8"
    )
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(formatter)
    file_handler.suffix = "%Y-%m-%d"
    root_logger.addHandler(file_handler)

    # Suppress noisy third-party loggers
    for name in ("uvicorn.access", "uvicorn.error", "sqlalchemy.engine", "aiosqlite", "asyncio", "passlib"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured - Level: {log_level}, Directory: {log_dir.absolute()}"
    )


def cleanup_old_logs() -> None:
    """Delete rotated log files older than the retention period."""
    log_dir = Path(settings.LOG_DIR)
    if not log_dir.exists():
        return

    logger = logging.getLogger(__name__)
    cutoff_date = datetime.now() - timedelta(days=settings.LOG_RETENTION_DAYS)
    deleted_count = 0

    for log_file in log_dir.glob(f"{LOG_FILE_NAME}.*"):
        try:
            file_date = datetime.strptime(log_file.suffix.lstrip("."), "%Y-%m-%d")
            if file_date < cutoff_date:
                log_file.unlink()
                deleted_count += 1
                logger.debug(f"Deleted old log file: {log_file.name}")
        except (ValueError, OSError) as e:
            logger.warning(f"Error processing log file {log_file.name}: {str(e)}")

    if deleted_count > 0:
        logger.info(
            f"Cleaned up {deleted_count} old log file(s) (older than {settings.LOG_RETENTION_DAYS} days)"
        )
