"""Bootstrap: logging setup and component wiring."""

from __future__ import annotations

import logging
import logging.handlers

import structlog

from gitbridge.core.config import GitBridgeConfig
from gitbridge.core.locator import ExecutableLocator
from gitbridge.core.process import GitExecutor, Transport
from gitbridge.git.service import GitService

logger = structlog.get_logger()


def _formatted(
    handler: logging.Handler, renderer: structlog.types.Processor
) -> logging.Handler:
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer))
    return handler


def configure_logging(config: GitBridgeConfig) -> None:
    """Route gitbridge's structlog events through stdlib logging.

    Events go to stderr in console form and, when ``log_dir`` is set, to a
    rotating ``gitbridge.log`` as JSON lines.
    """
    handlers = [_formatted(logging.StreamHandler(), structlog.dev.ConsoleRenderer())]
    if config.log_dir is not None:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            config.log_dir / "gitbridge.log",
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
        )
        handlers.append(_formatted(rotating, structlog.processors.JSONRenderer()))

    root_logger = logging.getLogger()
    root_logger.setLevel(config.log_level)
    root_logger.handlers[:] = handlers

    structlog.configure(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_service(
    config: GitBridgeConfig | None = None,
    transport: Transport | None = None,
    locator: ExecutableLocator | None = None,
) -> GitService:
    """Wire config, locator and executor into a GitService.

    Pass the same *locator* to several services to share one discovery.
    """
    config = config or GitBridgeConfig()
    locator = locator or ExecutableLocator(hint=config.local_git_path)
    executor = GitExecutor(config=config, locator=locator, transport=transport)
    logger.debug(
        "gitbridge_built",
        use_local_git=config.use_local_git,
        local_git_directory=str(config.local_git_directory)
        if config.local_git_directory
        else None,
        transport=type(transport).__name__ if transport else "LocalTransport",
    )
    return GitService(executor)
