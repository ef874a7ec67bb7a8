# foodstore/api.py
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from pymongo.errors import PyMongoError

from foodstore.core.config import Settings
from foodstore.core.errors import format_validation_errors
from foodstore.core.security import PasswordHasher
from foodstore.db import Database, connect, ensure_indexes, rebuild_indexes_on_ready
from foodstore.resources.audits import AUDIT
from foodstore.resources.items import ITEM
from foodstore.resources.locations import LOCATION
from foodstore.resources.lots import LOT
from foodstore.resources.transactions import TRANSACTION
from foodstore.resources.users import USER, UserHandlers
from foodstore.responses import Failure
from foodstore.routers import audits, auth, health, inventory, items, locations, transactions, users

logger = logging.getLogger(__name__)

SCHEMAS = [ITEM, LOCATION, LOT, TRANSACTION, AUDIT, USER]


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def malformed_body(request: Request, exc: RequestValidationError):
    """Report an unparsable body in the same shape as every other failure."""
    logger.debug("unparsable request body on %s %s", request.method, request.url.path)
    issues = {"kind": "malformed_request", "validation": format_validation_errors(exc)}
    return Failure(status.HTTP_400_BAD_REQUEST, "Invalid request payload.", issues).to_response()


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)
    database = database or connect(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        stop_rebuilding = None
        try:
            await ensure_indexes(database, SCHEMAS)
        except PyMongoError as exc:
            logger.warning("could not ensure indexes: %s", exc)
            stop_rebuilding = rebuild_indexes_on_ready(database, SCHEMAS, asyncio.get_running_loop())
            database.state.mark_lost(exc)
        logger.info("registered routes: %s", health.registered_routes(app))
        yield
        if stop_rebuilding is not None:
            stop_rebuilding()
        database.close()

    app = FastAPI(title="Food Storage Inventory API", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.users = UserHandlers(USER, PasswordHasher(settings.bcrypt_rounds), settings)
    app.add_exception_handler(RequestValidationError, malformed_body)

    app.include_router(health.router)
    app.include_router(items.router)
    app.include_router(locations.router)
    app.include_router(inventory.router)
    app.include_router(transactions.router)
    app.include_router(audits.router)
    app.include_router(users.router)
    app.include_router(auth.router)
    return app
