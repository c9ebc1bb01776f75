"""Unit tests for server/run.py"""

import asyncio

from sitepub.server.run import make_servers, serve_all


class FakeServer:
    """Stands in for uvicorn.Server: runs until should_exit, or stops at once when failing."""

    def __init__(self, fails: bool = False):
        self.fails = fails
        self.should_exit = False
        self.stopped = False

    async def serve(self):
        while not (self.fails or self.should_exit):
            await asyncio.sleep(0.01)
        self.stopped = True


def test_make_servers(settings):
    settings.port, settings.metrics_port = 8081, 9091
    site, metrics = make_servers(settings)
    assert (site.config.port, metrics.config.port) == (8081, 9091)
    assert site.config.access_log is False
    assert site.config.log_level == "info"


def test_serve_all_stops_every_listener():
    """One listener exiting (e.g. a failed bind) shuts the others down."""
    running, failing = FakeServer(), FakeServer(fails=True)
    asyncio.run(serve_all([running, failing]))
    assert running.should_exit and failing.should_exit
    assert running.stopped and failing.stopped
