import logging
import sys
from pathlib import Path

from loguru import logger

from src.forum_admin.runtime.config.config_data import ConfigData
from src.forum_admin.runtime.context import get_config

PLAIN_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "[<cyan>{extra[request_id]}</cyan>] | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# stdlib loggers that are too chatty at INFO
QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "httpx": logging.WARNING,
    "temporalio": logging.INFO,
    "uvicorn": logging.INFO,
    "uvicorn.error": logging.INFO,
    "uvicorn.access": logging.CRITICAL,
}


class InterceptHandler(logging.Handler):
    """Forward stdlib ``logging`` records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # request logging middleware already covers access logs
        if record.name == "uvicorn.access":
            return

        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.opt(depth=2, exception=record.exc_info).bind(
            logger_name=record.name
        ).log(level, record.getMessage())


def _ensure_request_id(record) -> None:
    record["extra"].setdefault("request_id", "-")


def configure_logging(config: ConfigData | None = None) -> None:
    """Route every log line of the process through loguru.

    Console output is always human readable; the optional file sink rotates
    and is JSON-serialized unless ``logging.format`` is ``plain``.
    """
    main_config = config or get_config()
    cfg = main_config.logging
    env = main_config.app.environment
    verbose_errors = env != "production"

    logger.remove()
    logger.configure(extra={"request_id": "-"}, patcher=_ensure_request_id)

    logger.add(
        sys.stderr,
        level=cfg.level,
        format=PLAIN_FORMAT,
        colorize=True,
        backtrace=verbose_errors,
        diagnose=verbose_errors,
    )

    if cfg.file:
        path = Path(cfg.file)
        path.parent.mkdir(parents=True, exist_ok=True)
        as_json = cfg.format == "json"
        logger.add(
            str(path),
            level=cfg.level,
            format="{message}" if as_json else PLAIN_FORMAT,
            serialize=as_json,
            rotation=f"{cfg.max_size_mb} MB",
            retention=cfg.backup_count,
            compression="zip",
            enqueue=True,
            backtrace=verbose_errors,
            diagnose=verbose_errors,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in list(logging.root.manager.loggerDict.keys()):
        stdlog = logging.getLogger(name)
        stdlog.handlers = []
        stdlog.propagate = True

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logger.bind(
        app_level=cfg.level, app_format=cfg.format, app_file=cfg.file, environment=env
    ).info("Logging configured")
