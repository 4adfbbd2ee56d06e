"""Demo exporter to point promtop at.

Serves a counter and a histogram in the Prometheus text format:

    requests_total              requests per path
    request_duration_seconds    handling time of those requests

Besides real requests to ``/``, simulated traffic is recorded every few seconds.

Run it, then browse it:

    python examples/serve_metrics.py
    promtop localhost:8080/metrics
"""

from __future__ import annotations

import asyncio
import random
from bisect import bisect_left
from contextlib import suppress
from dataclasses import dataclass, field

from aiohttp import web

BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0)
PORT = 8080
TICK_SECONDS = 3.0
PATHS = ("/", "/api/orders", "/api/users")


@dataclass(slots=True)
class Registry:
    requests: dict[str, int] = field(default_factory=dict)
    bucket_counts: list[int] = field(default_factory=lambda: [0] * len(BUCKETS))
    duration_count: int = 0
    duration_sum: float = 0.0

    def observe(self, path: str, seconds: float) -> None:
        self.requests[path] = self.requests.get(path, 0) + 1
        index = bisect_left(BUCKETS, seconds)
        if index < len(BUCKETS):
            self.bucket_counts[index] += 1
        self.duration_count += 1
        self.duration_sum += seconds

    def exposition(self) -> str:
        lines = [
            "# HELP requests_total Total number of requests handled.",
            "# TYPE requests_total counter",
        ]
        lines += [f'requests_total{{path="{p}"}} {n}' for p, n in self.requests.items()]
        lines += [
            "# HELP request_duration_seconds Time spent handling a request.",
            "# TYPE request_duration_seconds histogram",
        ]
        cumulative = 0
        for bound, count in zip(BUCKETS, self.bucket_counts, strict=True):
            cumulative += count
            lines.append(f'request_duration_seconds_bucket{{le="{bound}"}} {cumulative}')
        lines += [
            f'request_duration_seconds_bucket{{le="+Inf"}} {self.duration_count}',
            f"request_duration_seconds_sum {self.duration_sum}",
            f"request_duration_seconds_count {self.duration_count}",
        ]
        return "\n".join(lines) + "\n"


async def simulate_traffic(registry: Registry) -> None:
    while True:
        await asyncio.sleep(TICK_SECONDS)
        for _ in range(random.randint(1, 5)):
            registry.observe(random.choice(PATHS), random.expovariate(20))


def create_app(registry: Registry | None = None, *, simulate: bool = True) -> web.Application:
    registry = registry or Registry()
    app = web.Application()

    async def background(_: web.Application):
        task = asyncio.create_task(simulate_traffic(registry))
        yield
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    if simulate:
        app.cleanup_ctx.append(background)

    async def hello(request: web.Request) -> web.Response:
        seconds = random.uniform(0.001, 0.3)
        await asyncio.sleep(seconds)
        registry.observe(request.path, seconds)
        return web.Response(text="hello\n")

    async def metrics(_: web.Request) -> web.Response:
        return web.Response(text=registry.exposition(), content_type="text/plain")

    app.router.add_get("/", hello)
    app.router.add_get("/metrics", metrics)
    return app


if __name__ == "__main__":
    web.run_app(create_app(), port=PORT)
