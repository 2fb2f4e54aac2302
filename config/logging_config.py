"""
Configuração de logging da aplicação
"""

import logging
import sys
from pathlib import Path
from loguru import logger

from config.settings import get_settings

# bibliotecas cujos loggers padrão são redirecionados para o loguru
INTERCEPTED_LOGGERS = ["uvicorn", "uvicorn.access", "fastapi", "httpx"]


class InterceptHandler(logging.Handler):
    """Encaminha registros do logging padrão para o loguru"""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging():
    """Configurar sistema de logging"""
    settings = get_settings()

    logger.remove()
    # turnos de conversa usam logger.bind(tracker_id=...); demais registros mostram "-"
    logger.configure(extra={"tracker_id": "-"})

    log_dir = Path(settings.log_dir)
    log_dir.mkdir(exist_ok=True)

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<magenta>tracker={extra[tracker_id]}</magenta> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stdout,
        format=log_format,
        level=settings.log_level,
        colorize=True
    )

    logger.add(
        log_dir / "chat_ledger.log",
        format=log_format,
        level=settings.log_level,
        rotation="1 day",
        retention="30 days",
        compression="zip"
    )

    logger.add(
        log_dir / "errors.log",
        format=log_format,
        level="ERROR",
        rotation="1 week",
        retention="4 weeks"
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in INTERCEPTED_LOGGERS:
        logging.getLogger(logger_name).handlers = [InterceptHandler()]
