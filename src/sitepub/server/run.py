"""Run the site and metrics listeners side by side under uvicorn"""

import asyncio
import logging

import uvicorn

from sitepub.config import Settings
from sitepub.server.app import create_metrics_app, create_site_app


logger = logging.getLogger(__name__)


def make_servers(settings: Settings) -> list[uvicorn.Server]:
    log_level = "debug" if settings.debug else "info"
    site = uvicorn.Config(create_site_app(settings), host=settings.host, port=settings.port,
                          log_level=log_level, access_log=False)
    metrics = uvicorn.Config(create_metrics_app(), host=settings.host, port=settings.metrics_port,
                             log_level=log_level, access_log=False)
    return [uvicorn.Server(site), uvicorn.Server(metrics)]


async def serve_all(servers: list[uvicorn.Server]) -> None:
    """Run until any server stops, then shut the rest down."""
    tasks = [asyncio.create_task(s.serve()) for s in servers]
    await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    for s in servers:
        s.should_exit = True
    await asyncio.gather(*tasks)


def serve(settings: Settings) -> None:
    """Block serving settings.web_root on settings.port and metrics on settings.metrics_port.

    A listener that fails to bind exits the process.
    """
    if settings.debug:
        for name, value in settings.model_dump(include={"port", "metrics_port", "web_root", "use_memory"}).items():
            logger.info("%s: %s", name, value)
    servers = make_servers(settings)
    logger.info("Serving %s on port %d; metrics on port %d", settings.web_root, settings.port, settings.metrics_port)
    asyncio.run(serve_all(servers))
