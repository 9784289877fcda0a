"""Connection manager: connect backing services and mount routes, once.

Serverless flow (`ensure_connections`, called on every request):
1. Connect each configured backing service that isn't connected yet.
   Attempts are isolated: one failure is logged and doesn't block the rest.
2. `connected` becomes True only after every configured service succeeded;
   until then later calls retry just the ones still down.
3. Mount the route table under /api at most once, whatever step 1 produced.

Each pass runs as one shared task, so concurrent requests await the pass in
flight instead of each opening their own connections, even when it fails.

Standalone flow: `mount_routes()` at app construction and
`connect_services(strict=True)` at startup, where any failure is fatal.
"""

import asyncio
import logging
from typing import Protocol

from fastapi import FastAPI

from backend.context import AppContext
from backend.routes import API_PREFIX, RouteTable, RouteVariant, build_route_table

logger = logging.getLogger("uvicorn.error")


class BackingService(Protocol):
    name: str

    @property
    def configured(self) -> bool: ...

    @property
    def connected(self) -> bool: ...

    async def connect(self) -> None: ...


class ServiceConnectionError(RuntimeError):
    """A backing service could not be connected in strict mode."""

    def __init__(self, service: str, cause: Exception) -> None:
        super().__init__(f"Failed to connect {service}: {cause}")
        self.service = service


class ConnectionManager:
    """Owns the `connected` / `routes_mounted` flags for one app."""

    def __init__(self, app: FastAPI, context: AppContext) -> None:
        self.app = app
        self.context = context
        self.connected = False
        self.routes_mounted = False
        self.route_table: RouteTable | None = None
        self._pass: asyncio.Task[None] | None = None

    @property
    def services(self) -> list[BackingService]:
        return list(self.context.services)

    async def ensure_connections(self) -> None:
        """Idempotent: connect what's configured, then mount routes once.

        Concurrent callers share the pass already in flight and all see its
        outcome. A new pass starts only after that one finished.
        """
        if self.connected and self.routes_mounted:
            return
        if self._pass is None or self._pass.done():
            self._pass = asyncio.create_task(self._run_pass())
        await asyncio.shield(self._pass)

    async def _run_pass(self) -> None:
        if not self.connected:
            self.connected = await self.connect_services()
        if not self.routes_mounted:
            self.mount_routes()

    async def connect_services(self, *, strict: bool = False) -> bool:
        """Connect every configured service that is still down.

        Returns True when all configured services are connected.

        Raises:
            ServiceConnectionError: In strict mode, on the first failure.
        """
        all_connected = True
        for service in self.services:
            if not service.configured:
                logger.info(f"{service.name} not configured, skipping")
                continue
            if service.connected:
                continue
            try:
                await service.connect()
            except Exception as e:
                if strict:
                    raise ServiceConnectionError(service.name, e) from e
                logger.exception(f"Failed to connect {service.name}")
                all_connected = False
        return all_connected

    def mount_routes(self) -> None:
        """Mount the route table under /api, at most once."""
        if self.routes_mounted:
            return
        table = build_route_table()
        self.app.include_router(table.router, prefix=API_PREFIX)
        self.route_table = table
        self.routes_mounted = True
        if table.variant is RouteVariant.DEGRADED:
            logger.warning(f"Degraded API routes mounted: {table.reason}")
        else:
            logger.info("API routes mounted")
