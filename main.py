"""
Movie API entry point.

Provides the FastAPI application factory and the command line:

    python main.py http-serve [--config PATH] [--port N]
    python main.py init-db [--config PATH]
"""

import argparse
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from config.settings import ConfigurationError, Settings, get_settings, validate_startup
from database.connection import (
    DatabaseConnectionError,
    DatabaseConnections,
    build_connections,
    create_database_engine,
)
from errors.handlers import register_exception_handlers
from health.probes import build_database_probes, create_probe_executor
from health.routes import router as health_router
from health.service import HealthCheckService
from middleware.request_id import RequestIDMiddleware
from movie.repository import MovieRepository, create_schema
from movie.routes import router as movie_router
from movie.service import MovieService
from telemetry.service import TelemetryService, initialize_telemetry

logger = logging.getLogger(__name__)

APP_VERSION = "v0.1.0"
SERVICE_NAME = "movie-api-http-serve"
BANNER = """### Movie RESTful API {version} ###
Name: {name}
Port: {port}
------------------------------------------------------------------------------
"""


def wire_services(app: FastAPI, connections: DatabaseConnections) -> None:
    """Build the repositories and services on top of ``connections``."""
    settings: Settings = app.state.settings
    telemetry: TelemetryService = app.state.telemetry

    app.state.connections = connections
    app.state.probe_executor = create_probe_executor()
    app.state.health_check_service = HealthCheckService(
        probes=build_database_probes(
            connections.master,
            connections.slave,
            telemetry=telemetry,
            executor=app.state.probe_executor,
        ),
        check_timeout=settings.health_check_timeout,
        telemetry=telemetry,
    )
    app.state.movie_service = MovieService(
        MovieRepository(connections.master, connections.slave, telemetry=telemetry)
    )


def create_app(
    settings: Optional[Settings] = None,
    connections: Optional[DatabaseConnections] = None,
    telemetry: Optional[TelemetryService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings; loaded from the environment when omitted
        connections: Ready master/slave engines. When omitted they are opened
            on startup and disposed on shutdown.
        telemetry: Telemetry service; a process-wide one is initialized when omitted

    Returns:
        The configured FastAPI application
    """
    settings = settings or get_settings()
    telemetry = telemetry or initialize_telemetry(settings)
    owns_connections = connections is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if owns_connections:
            logger.info("Connecting to master and slave databases...")
            wire_services(app, await build_connections(settings))

        yield

        probe_executor = getattr(app.state, "probe_executor", None)
        if probe_executor is not None:
            probe_executor.shutdown(wait=False, cancel_futures=True)

        if owns_connections and hasattr(app.state, "connections"):
            app.state.connections.dispose()
            logger.info("Database connections closed")

    app = FastAPI(title="Movie API", version=APP_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.telemetry = telemetry

    if connections is not None:
        wire_services(app, connections)

    register_exception_handlers(app)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health_router)
    app.include_router(movie_router)

    return app


def serve(settings: Settings, port: Optional[int] = None) -> None:
    """
    Connect both databases, then run the HTTP server until interrupted.

    Raises:
        DatabaseConnectionError: If either database is still unreachable after
            the configured attempts. The server is not started.
    """
    import uvicorn

    port = port or settings.app_port
    print(BANNER.format(version=APP_VERSION, name=SERVICE_NAME, port=port))

    telemetry = initialize_telemetry(settings)
    logger.info("Connecting to master and slave databases...")
    connections = asyncio.run(build_connections(settings))
    try:
        app = create_app(settings, connections=connections, telemetry=telemetry)
        uvicorn.run(
            app,
            host="0.0.0.0",
            port=port,
            log_config=None,
            timeout_graceful_shutdown=settings.graceful_timeout,
        )
    finally:
        connections.dispose()
        logger.info("Database connections closed")


def init_db(settings: Settings) -> None:
    """Create the movies table on the master database."""
    engine = create_database_engine(settings.master_database_url)
    try:
        create_schema(engine)
    finally:
        engine.dispose()
    logger.info("Schema created on master database")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="movie-api", description="Movie RESTful API")
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="directory holding the .env files, or a single env file",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("http-serve", help="Listening HTTP server")
    serve_parser.add_argument("--port", type=int, default=None, help="override APP_PORT")

    subparsers.add_parser("init-db", help="Create the database schema")
    return parser


def cli(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings(config_path=args.config)
        validate_startup(settings)
    except ConfigurationError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 1

    try:
        if args.command == "http-serve":
            serve(settings, port=args.port)
        elif args.command == "init-db":
            initialize_telemetry(settings)
            init_db(settings)
    except (DatabaseConnectionError, SQLAlchemyError) as e:
        logger.error("Startup failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(cli())
