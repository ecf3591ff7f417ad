"""
ASGI host. Migrations run inside the lifespan startup, so the server only starts
accepting requests once the ledger is consistent; an integrity fault aborts startup.
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from loguru import logger

from schemaledger_common.settings import Settings
from schemaledger.api.config import settings
from schemaledger.api.database import Database
from schemaledger.api.migrations.router import MigrationsRouter
from schemaledger.schema_migrations import load_migrations, run_migrations
from schemaledger.util import now_str


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    if app_settings is None:
        app_settings = settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database.from_settings(app_settings)
        try:
            await database.wait_until_ready(app_settings.connect_timeout)
            catalog = load_migrations(app_settings.migrations, app_settings.migrations_dir)
            await run_migrations(database, catalog)
            app.state.database = database
            app.state.catalog = catalog
            logger.info("Startup complete, accepting requests")
            yield
        finally:
            await database.dispose()

    app = FastAPI(title="schemaledger", lifespan=lifespan)
    app.include_router(MigrationsRouter().router, prefix="/migrations", tags=["Migrations"])
    app.add_api_route("/ping", ping, methods=["GET"])
    return app


async def ping():
    return {"status": "ok", "timestamp": now_str()}


app = create_app(settings)


def run():
    """Run the host with uvicorn."""
    logger.info(f"Starting schemaledger on {settings.bind_address}:{settings.port}")
    uvicorn.run(
        app,
        host=settings.bind_address,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
