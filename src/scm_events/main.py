"""FastAPI application entry point for the head-event service.

This module provides the webhook receiver in front of the notification
dispatcher. It accepts GitHub ``create``, ``delete`` and ``push`` deliveries,
hands them to the dispatcher and acknowledges immediately; head resolution
and delivery happen after the configured delay.

Signature validation is performed upstream (by the ingress that forwards
deliveries here), so this endpoint trusts that requests are authentic. The
payload contents are still treated as untrusted.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from .config import EventSettings, get_settings
from .dispatcher import NotificationDispatcher
from .events.listener import LoggingHeadEventListener
from .events.metrics import generate_metrics_output
from .sources.models import InMemorySourceRegistry
from .webhook.models import Notification
from .webhook.parser import parse_event_kind

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"

# Global instances, initialized during lifespan startup
settings: EventSettings
dispatcher: Optional[NotificationDispatcher] = None


def build_log_formatter(log_format: str) -> Optional[logging.Formatter]:
    """Build the root handler formatter for a log format.

    For ``json``, records from stdlib loggers are rendered by structlog as one
    JSON object per line, with the ``extra=`` context as top-level keys.

    Returns:
        The formatter, or None to keep the basicConfig text format.
    """
    if log_format != "json":
        return None
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ExtraAdder(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ],
    )


def _configure_logging(settings: EventSettings) -> None:
    root = logging.getLogger()
    root.setLevel(settings.log_level)
    formatter = build_log_formatter(settings.log_format)
    if formatter is None:
        return
    for handler in root.handlers:
        handler.setFormatter(formatter)


def _log_configuration(settings: EventSettings) -> None:
    """Log configuration values on startup.

    Args:
        settings: The service settings to log.
    """
    logger.info("Head-event service configuration:")
    logger.info(f"  Event Delay Seconds: {settings.event_delay_seconds}")
    logger.info(f"  API Host Aliases: {settings.api_host_aliases}")
    for source in settings.sources:
        logger.info(
            f"  Source: {source.repo_owner}/{source.repository} "
            f"(api: {source.api_uri}, branches: {source.want_branches}, "
            f"tags: {source.want_tags})"
        )
    for navigator in settings.navigators:
        logger.info(
            f"  Navigator: {navigator.repo_owner} (api: {navigator.api_uri})"
        )
    logger.info(f"  Log Level: {settings.log_level}")
    logger.info(f"  Log Format: {settings.log_format}")
    logger.info(f"  Host: {settings.host}")
    logger.info(f"  Port: {settings.port}")


def _build_dispatcher(cfg: EventSettings) -> NotificationDispatcher:
    """Wire the registry and listener into a NotificationDispatcher.

    Args:
        cfg: Validated service settings.

    Returns:
        Fully wired NotificationDispatcher.
    """
    registry = InMemorySourceRegistry(
        sources=[source.to_source() for source in cfg.sources],
        navigators=[navigator.to_navigator() for navigator in cfg.navigators],
    )
    return NotificationDispatcher(
        registry=registry,
        listener=LoggingHeadEventListener(),
        delay_seconds=cfg.event_delay_seconds,
        host_aliases=cfg.api_host_aliases,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown.

    Handles:
    - Configuration loading and validation
    - Dependency wiring for the dispatcher
    - Cancelling pending deliveries on shutdown
    """
    global settings, dispatcher

    logger.info("Head-event service starting up...")

    settings = get_settings()
    _configure_logging(settings)
    _log_configuration(settings)

    dispatcher = _build_dispatcher(settings)

    logger.info("Head-event service started successfully")

    yield

    logger.info("Head-event service shutting down...")

    if dispatcher is not None:
        await dispatcher.close()
        dispatcher = None

    logger.info("Head-event service shutdown complete")


def _origin(request: Request) -> str:
    client = request.client.host if request.client else "unknown"
    delivery = request.headers.get(DELIVERY_HEADER)
    if delivery:
        return f"{client} (delivery {delivery})"
    return client


app = FastAPI(
    title="SCM Head Events",
    description="Classifies GitHub webhook deliveries into branch and tag head events",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health():
    """Liveness probe endpoint.

    Returns:
        dict: Status indicating the application is healthy.
    """
    return {"status": "healthy"}


@app.get("/metrics", response_class=PlainTextResponse)
async def metrics():
    """Prometheus metrics endpoint.

    Returns:
        str: Prometheus-formatted metrics text.
    """
    return generate_metrics_output().decode("utf-8")


@app.post("/webhooks/github")
async def github_webhook(request: Request):
    """GitHub webhook receiver endpoint.

    The event kind is taken from the ``X-GitHub-Event`` header. Event types
    that cannot move a head are acknowledged and ignored.

    Returns:
        dict: Acknowledgment of webhook receipt.
    """
    if dispatcher is None:
        logger.error("Dispatcher not initialized")
        return {"status": "error", "message": "Dispatcher not initialized"}

    header = request.headers.get(EVENT_HEADER)
    kind = parse_event_kind(header)
    if kind is None:
        logger.debug("Ignoring unsupported event type %r", header)
        return {"status": "ignored", "message": f"Unsupported event type: {header}"}

    notification = Notification(
        kind=kind,
        origin=_origin(request),
        raw_payload=await request.body(),
    )

    event = dispatcher.dispatch(notification)
    if event is None:
        return {"status": "ignored", "message": "Invalid payload"}

    return {
        "status": "accepted",
        "kind": kind.value,
        "repository": event.identity.full_name,
        "change_type": event.change_type.value,
    }


if __name__ == "__main__":
    import uvicorn

    # For local development, load settings to get host/port
    dev_settings = get_settings()
    uvicorn.run(
        "src.scm_events.main:app",
        host=dev_settings.host,
        port=dev_settings.port,
        reload=True,
    )
