import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from mandodesk.api.errors import register_exception_handlers
from mandodesk.api.routes import ping, stats, tickets, users
from mandodesk.core.config import get_settings
from mandodesk.core.errors import StoreError
from mandodesk.core.logging import configure_logging, init_tracer, shutdown_tracer
from mandodesk.db.session import create_engine_from_settings, create_session_factory
from mandodesk.middleware import RBACMiddleware
from mandodesk.stats.service import StatsService
from mandodesk.tickets.repository import TicketRepository
from mandodesk.tickets.service import TicketService
from mandodesk.users.repository import UserRepository
from mandodesk.users.service import UserDirectory

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    app.state.logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)
    app.state.tracer_provider = tracer_provider

    db_engine = create_engine_from_settings(settings)
    session_factory = create_session_factory(db_engine)
    user_repository = UserRepository(session_factory, engine=db_engine)
    ticket_repository = TicketRepository(session_factory, engine=db_engine)
    user_directory = UserDirectory(user_repository)

    app.state.db_engine = db_engine
    app.state.user_directory = None
    app.state.ticket_service = None
    app.state.stats_service = None
    try:
        await user_repository.ensure_schema()
        await ticket_repository.ensure_schema()
    except StoreError:
        # Routes answer 503 until the database is reachable on the next start
        logger.exception("Database schema initialisation failed")
    else:
        app.state.user_directory = user_directory
        app.state.ticket_service = TicketService(ticket_repository, user_directory)
        app.state.stats_service = StatsService(ticket_repository, user_directory)
        logger.info("%s ready (%s)", settings.app_name, settings.environment)
    try:
        yield
    finally:
        await db_engine.dispose()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(RBACMiddleware)
    register_exception_handlers(app)
    app.include_router(ping.router)
    app.include_router(stats.router)
    app.include_router(tickets.router)
    app.include_router(users.router)
    return app


app = create_app()
