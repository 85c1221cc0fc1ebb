"""
FastAPI application for the DoH Bench GUI.

Serves the web interface and streams benchmark progress over a WebSocket.
"""

import asyncio
import logging
import webbrowser
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
import uvicorn

from .. import __version__
from ..client import DohClient, HttpxDohClient
from ..models import (
    DEFAULT_COOLDOWN_MS,
    DEFAULT_QUERY_TYPE,
    DEFAULT_ROUNDS,
    DEFAULT_TIMEOUT_MS,
    BenchmarkCancelled,
    BenchmarkConfig,
    ConfigurationError,
)
from ..output import JSONOutput, stats_to_dict
from ..providers import (
    DEFAULT_DOMAINS,
    DEFAULT_PROVIDERS,
    PROVIDERS,
    get_provider,
    parse_custom_provider,
)
from ..ranking import RankingReporter
from ..runner import BenchmarkRunner
from ..statistics import ResultAggregator

logger = logging.getLogger(__name__)

# Builds the DoH client for one benchmark from its timeout in milliseconds
ClientFactory = Callable[[float], DohClient]


def build_config(request: dict) -> BenchmarkConfig:
    """
    Build a benchmark configuration from a WebSocket request.

    Raises:
        ConfigurationError: if the request names nothing runnable
    """
    providers = []
    for key in request.get("providers", DEFAULT_PROVIDERS):
        try:
            providers.append(get_provider(key))
        except ValueError:
            logger.warning("Ignoring unknown provider %r", key)

    for spec in request.get("custom_providers", []):
        if spec.strip():
            providers.append(parse_custom_provider(spec.strip()))

    domains = [d.strip() for d in request.get("domains", DEFAULT_DOMAINS) if d.strip()]

    config = BenchmarkConfig(
        providers=tuple(providers),
        domains=tuple(domains),
        rounds=int(request.get("rounds", DEFAULT_ROUNDS)),
        timeout_ms=float(request.get("timeout_ms", DEFAULT_TIMEOUT_MS)),
        cooldown_ms=float(request.get("cooldown_ms", DEFAULT_COOLDOWN_MS)),
        query_type=str(request.get("query_type", DEFAULT_QUERY_TYPE)).upper(),
    )
    config.validate()
    return config


def create_app(client_factory: Optional[ClientFactory] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    client_factory = client_factory or (lambda timeout_ms: HttpxDohClient(timeout_ms=timeout_ms))

    app = FastAPI(
        title="DoH Bench",
        description="DNS-over-HTTPS resolver benchmarking",
        version=__version__,
    )

    static_dir = Path(__file__).parent / "static"

    # Store for benchmark results
    latest_results = {}

    @app.get("/")
    async def root():
        """Serve the main HTML page."""
        return FileResponse(static_dir / "index.html")

    @app.get("/api/providers")
    async def get_providers():
        """Get list of available providers."""
        return {
            "providers": [
                {
                    "id": key,
                    "name": provider.name,
                    "endpoint": provider.endpoint,
                    "format": provider.query_format.value,
                    "description": provider.description,
                }
                for key, provider in PROVIDERS.items()
            ],
            "defaults": DEFAULT_PROVIDERS,
        }

    @app.get("/api/config")
    async def get_config():
        """Get default configuration options."""
        return {
            "defaults": {
                "providers": DEFAULT_PROVIDERS,
                "domains": DEFAULT_DOMAINS,
                "rounds": DEFAULT_ROUNDS,
                "timeout_ms": DEFAULT_TIMEOUT_MS,
                "cooldown_ms": DEFAULT_COOLDOWN_MS,
                "query_type": DEFAULT_QUERY_TYPE,
            }
        }

    @app.get("/api/results/json")
    async def get_results_json():
        """Get latest results as JSON."""
        if "last" in latest_results:
            return JSONOutput.to_dict(latest_results["last"])
        return JSONResponse({"error": "No results available"}, status_code=404)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """WebSocket endpoint for real-time progress updates."""
        await websocket.accept()

        try:
            while True:
                data = await websocket.receive_json()

                if data.get("action") == "start_benchmark":
                    await run_benchmark(websocket, data)
                elif data.get("action") == "ping":
                    await websocket.send_json({"type": "pong"})
                else:
                    await websocket.send_json({
                        "type": "error",
                        "message": f"Unknown action: {data.get('action')}",
                    })
        except WebSocketDisconnect:
            logger.debug("WebSocket client disconnected")

    async def run_benchmark(websocket: WebSocket, request: dict):
        """Run benchmark in a worker thread and send progress updates."""
        try:
            config = build_config(request)
        except (ConfigurationError, TypeError, ValueError) as e:
            await websocket.send_json({"type": "error", "message": str(e)})
            return

        loop = asyncio.get_running_loop()
        finished = []

        # Both callbacks run on the worker thread; sends go through the event loop
        def progress_callback(message: str, current: int, total: int):
            percent = (current / total * 100) if total > 0 else 0
            asyncio.run_coroutine_threadsafe(
                websocket.send_json({
                    "type": "progress",
                    "message": message,
                    "current": current,
                    "total": total,
                    "percent": round(percent, 1),
                }),
                loop,
            )

        def provider_callback(aggregate: ResultAggregator):
            finished.append(aggregate)
            asyncio.run_coroutine_threadsafe(
                websocket.send_json({
                    "type": "provider_complete",
                    "provider": stats_to_dict(aggregate.summary()),
                    "ranking": [a.provider_name for a in RankingReporter(finished).rank()],
                }),
                loop,
            )

        await websocket.send_json({
            "type": "started",
            "providers": [p.name for p in config.providers],
            "total": config.total_queries,
        })

        client = None
        runner = None
        try:
            client = client_factory(config.timeout_ms)
            runner = BenchmarkRunner.from_config(
                config,
                client,
                progress_callback=progress_callback,
                provider_callback=provider_callback,
            )
            result = await loop.run_in_executor(None, runner.run_config, config)
        except BenchmarkCancelled as e:
            await websocket.send_json({"type": "error", "message": str(e)})
            return
        except asyncio.CancelledError:
            if runner is not None:
                runner.cancel()
            raise
        except Exception as e:
            logger.exception("Benchmark failed")
            await websocket.send_json({"type": "error", "message": f"Benchmark failed: {e}"})
            return
        finally:
            if client is not None:
                client.close()

        latest_results["last"] = result
        payload = JSONOutput.to_dict(result)
        payload["type"] = "complete"
        await websocket.send_json(payload)

    app.mount("/static", StaticFiles(directory=static_dir), name="static")

    return app


def run_gui(host: str = "127.0.0.1", port: int = 5000, open_browser: bool = True):
    """Run the GUI server."""
    app = create_app()

    if open_browser:
        # Open browser after a short delay
        import threading

        def open_browser_delayed():
            import time
            time.sleep(1)
            webbrowser.open(f"http://{host}:{port}")

        threading.Thread(target=open_browser_delayed, daemon=True).start()

    uvicorn.run(app, host=host, port=port, log_level="warning")
