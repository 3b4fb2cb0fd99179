import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .config import settings

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _file_handler(path: str) -> logging.Handler:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8"
    )


def setup_logging() -> logging.Logger:
    """
    Configure the relay's root logger from settings.

    Module loggers are children of this one (see get_logger) and inherit
    its handlers. An unusable LOG_FILE falls back to console-only output.

    Returns:
        logging.Logger: Configured logger instance
    """
    level = getattr(logging, settings.LOG_LEVEL)
    formatter = logging.Formatter(fmt=settings.LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    app_logger = logging.getLogger(settings.APP_NAME)
    app_logger.setLevel(level)
    app_logger.handlers.clear()
    app_logger.propagate = False

    handlers = [logging.StreamHandler()]
    file_error = None
    if settings.LOG_FILE:
        try:
            handlers.append(_file_handler(settings.LOG_FILE))
        except OSError as e:
            file_error = e

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        app_logger.addHandler(handler)

    if file_error is not None:
        app_logger.warning(f"Log file {settings.LOG_FILE} unusable, console only: {file_error}")
    return app_logger


logger = setup_logging()


def get_logger(module_name: Optional[str] = None) -> logging.Logger:
    """Logger for a module (typically __name__), or the relay's root logger"""
    if module_name:
        return logging.getLogger(f"{settings.APP_NAME}.{module_name}")
    return logger


def log_startup_info():
    """Summarize the effective configuration once the app is up"""
    provider = f"{settings.LLM_TYPE}/{settings.LLM_MODEL_NAME}"
    if settings.RAG_ENABLED:
        retrieval = (
            f"on (collection={settings.CHROMA_COLLECTION_NAME}, "
            f"embeddings={settings.EMBEDDING_MODEL}, top_k={settings.RETRIEVAL_TOP_K})"
        )
    else:
        retrieval = "off"

    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} ready")
    logger.info(f"  provider:  {provider}")
    logger.info(f"  prompt:    {settings.SYSTEM_PROMPT}")
    logger.info(f"  retrieval: {retrieval}")
    logger.info(f"  debug={settings.DEBUG} log_level={settings.LOG_LEVEL}")


def log_shutdown_info():
    logger.info(f"{settings.APP_NAME} stopping")
