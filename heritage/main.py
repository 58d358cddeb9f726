"""
Heritage Lens pipeline service - Main Entry Point

An asynchronous HTTP service that:
- Accepts uploaded images of heritage inscriptions
- Extracts text (Cloud Vision OCR, offline fallback)
- Translates it (Google Translate, LibreTranslate, offline fallback)
- Synthesizes speech of the translation on request (Google TTS)
- Persists uploads, translations and audio references
"""

import asyncio
import signal
from pathlib import Path

import httpx
from aiohttp import web

from heritage.api.auth import TokenVerifier
from heritage.api.server import create_app
from heritage.config import config
from heritage.db.connection import close_db, init_db, init_schema
from heritage.db.store import PostgresResultStore
from heritage.pipeline.factory import build_chains
from heritage.pipeline.orchestrator import PipelineOrchestrator
from heritage.storage.object_store import LocalObjectStore
from heritage.utils.logger import get_logger, setup_logging

# Initialize logging
setup_logging(config.LOG_LEVEL, config.ENVIRONMENT)
logger = get_logger(__name__)


async def main():
    """
    Main entry point for the service.

    Initialization sequence:
    1. Initialize database connection pool and schema
    2. Build provider chains (once, from configuration)
    3. Wire stores and orchestrator into the HTTP app
    4. Serve until SIGINT/SIGTERM
    """
    logger.info("Starting Heritage Lens pipeline service",
                environment=config.ENVIRONMENT,
                port=config.API_PORT)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop_event.set)

    http_client = httpx.AsyncClient()
    runner = None

    try:
        # Step 1: Database
        logger.info("Initializing database connection...")
        await init_db()
        await init_schema()

        # Step 2: Provider chains
        chains = build_chains(config, client=http_client)

        # Step 3: Stores, orchestrator, app
        Path(config.STORAGE_ROOT).mkdir(parents=True, exist_ok=True)
        image_store = LocalObjectStore(config.STORAGE_ROOT, config.IMAGE_BUCKET,
                                       config.STORAGE_PUBLIC_URL)
        audio_store = LocalObjectStore(config.STORAGE_ROOT, config.AUDIO_BUCKET,
                                       config.STORAGE_PUBLIC_URL)
        store = PostgresResultStore()
        orchestrator = PipelineOrchestrator(store, image_store, audio_store, chains)
        verifier = TokenVerifier(config.AUTH_JWT_SECRET, config.AUTH_JWT_ALGORITHM,
                                 config.AUTH_JWT_AUDIENCE)
        if not config.AUTH_JWT_SECRET:
            logger.warning("AUTH_JWT_SECRET not set: all authenticated endpoints will reject requests")

        app = create_app(orchestrator, store, image_store, verifier, config,
                         static_root=config.STORAGE_ROOT)

        # Step 4: Serve
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, config.API_HOST, config.API_PORT)
        await site.start()
        logger.info("Service started", host=config.API_HOST, port=config.API_PORT)

        await stop_event.wait()
        logger.info("Shutdown requested")

    except Exception as e:
        logger.error("Fatal error", error=str(e), exc_info=True)
        raise
    finally:
        logger.info("Shutting down...")
        if runner is not None:
            await runner.cleanup()
        await http_client.aclose()
        await close_db()
        logger.info("Shutdown complete")


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
