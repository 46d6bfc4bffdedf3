"""FastAPI server setup and routes"""
import asyncio
import os
import time
from typing import List
from fastapi import FastAPI, HTTPException
from config import Config
from app.listener import StatsdListener
from metrics.engine import StatsdEngine
from logging_config import get_logger, log_error


logger = get_logger(__name__)


class StatsdServer:
    """FastAPI service hosting the StatsD aggregator"""

    def __init__(self, config: Config):
        self.config = config
        self.app = FastAPI(
            title="StatsD Aggregator",
            version=config.service_version,
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )
        self.engine = StatsdEngine(config)
        self.listener = StatsdListener(config, self.engine)
        self.started_at = time.time()
        self.tasks: List[asyncio.Task] = []

        # Setup routes
        self._setup_routes()

        # Setup startup/shutdown events
        self._setup_events()

    def _last_flush_age(self) -> float:
        """Seconds since the last flush, or since startup before the first one"""
        reference = self.engine.last_flush_time or self.started_at
        return time.time() - reference

    def _setup_routes(self):
        """Setup FastAPI routes"""

        @self.app.get('/health')
        def health_check():
            """Health check endpoint"""
            age = self._last_flush_age()
            is_healthy = age < self.config.flush_interval * 2

            health_data = {
                "status": "healthy" if is_healthy else "unhealthy",
                "last_flush_seconds_ago": round(age, 1),
                "flush_interval": self.config.flush_interval,
                "total_flushes": self.engine.flush_count,
                "parse_errors": self.engine.parse_errors,
            }

            if not is_healthy:
                raise HTTPException(status_code=503, detail=health_data)

            return health_data

        @self.app.get('/status')
        def get_status():
            """Detailed status information"""
            return {
                "service": {
                    "name": self.config.service_name,
                    "version": self.config.service_version,
                    "uptime_seconds": round(time.time() - self.started_at, 1),
                    "hostname": os.uname().nodename
                },
                "listener": {
                    "bind": self.config.bind,
                    "port": self.config.port,
                    "address": self.listener.address,
                },
                "aggregation": {
                    "flush_interval": self.config.flush_interval,
                    "send_interval": self.config.send_interval,
                    "percentile": self.config.percentile,
                    "clear_on_flush": self.config.clear_on_flush,
                    "harvest_mode": self.config.harvest_mode.value,
                },
                "engine": self.engine.stats(),
            }

        @self.app.post('/flush')
        async def manual_flush():
            """Manually trigger a flush"""
            try:
                lines = self.engine.flush()
                return {
                    "success": True,
                    "lines": lines,
                    "flush_count": self.engine.flush_count
                }
            except Exception as e:
                log_error(logger, e, {"component": "manual_flush", "endpoint": "/flush"})
                raise HTTPException(status_code=500, detail={"error": str(e)})

        @self.app.post('/harvest')
        async def harvest():
            """Hand the buffered output to the host"""
            output, status = self.engine.harvest()
            return {"output": output, "status": status}

    def _setup_events(self):
        """Setup FastAPI startup/shutdown events"""

        @self.app.on_event("startup")
        async def startup_event():
            """Open sockets and start background tasks"""
            logger.info(
                "Application startup initiated",
                service_name=self.config.service_name,
                flush_interval=self.config.flush_interval,
                send_interval=self.config.send_interval,
                event_type="server_startup"
            )
            await self.start()

        @self.app.on_event("shutdown")
        async def shutdown_event():
            """Cleanup on shutdown"""
            logger.info("Shutting down statsd aggregator", event_type="server_shutdown")
            await self.stop()

    async def start(self):
        """Start the listener, the queue consumer and the periodic loops"""
        self.started_at = time.time()
        await self.listener.start()
        self.tasks.append(asyncio.create_task(self.engine.run_consumer()))
        self.tasks.append(asyncio.create_task(self.engine.run_flush_loop()))
        if self.config.is_stdout_harvest():
            self.tasks.append(asyncio.create_task(self.engine.run_harvest_loop()))

    async def stop(self):
        """Cancel background tasks and close the sockets"""
        for task in self.tasks:
            task.cancel()
        for task in self.tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.tasks = []
        await self.listener.stop()

    def get_app(self) -> FastAPI:
        """Get the FastAPI application"""
        return self.app
