"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient
from pymongo.errors import PyMongoError

from config import AppSettings
from errors import register_error_handlers
from infrastructure.email.console import ConsoleEmailProvider
from infrastructure.email.protocol import EmailProvider
from infrastructure.email.zeptomail import ZeptoMailProvider
from infrastructure.geoip import GeoIPService
from infrastructure.http_client import HttpClient
from infrastructure.steam import SteamClient
from repositories.user_repository import UserRepository
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from services.auth_service import AuthService
from services.maintenance import MaintenanceService
from services.profile_service import ProfileService
from services.session_context import SessionContextResolver
from services.steam_stats import SteamStatsAggregator
from services.token_service import TokenService
from shared.logging import get_logger, setup_logging
from workers.signup_sweeper import SignupSweeper

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, is_production=settings.is_production)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        app.state.mongo_client = mongo_client
        app.state.db = mongo_client[settings.db.db_name]
        app.state.settings = settings

        users = UserRepository(app.state.db["users"])
        try:
            await users.ensure_indexes()
        except PyMongoError as e:
            log.warning(
                "ensure_indexes_failed", error=str(e), error_type=type(e).__name__
            )

        # One HTTP client per external service keeps timeouts independent
        email_http = HttpClient(timeout=10.0)
        steam_http = HttpClient(timeout=settings.steam.steam_request_timeout_seconds)

        email_provider: EmailProvider
        if settings.email.zepto_api_token:
            email_provider = ZeptoMailProvider(
                settings.email,
                email_http,
                app_url=settings.app_url,
                app_name=settings.app_name,
            )
        else:
            log.warning("email_transport_not_configured", fallback="console")
            email_provider = ConsoleEmailProvider()

        geoip = GeoIPService(settings.geoip_city_db)
        tokens = TokenService(settings.jwt)
        app.state.token_service = tokens
        app.state.auth_service = AuthService(
            users,
            email_provider,
            SessionContextResolver(geoip, settings.geoip_loopback_fallback_ip),
            tokens,
            settings.verification,
        )
        app.state.profile_service = ProfileService(
            users,
            SteamStatsAggregator(SteamClient(settings.steam, steam_http), settings.steam),
        )

        maintenance = MaintenanceService(
            users, default_game_limit=settings.maintenance.default_game_limit
        )
        sweeper: Optional[SignupSweeper] = None
        if settings.maintenance.signup_sweep_interval_seconds > 0:
            sweeper = SignupSweeper(
                maintenance, settings.maintenance.signup_sweep_interval_seconds
            )
            sweeper.start()

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        if sweeper is not None:
            await sweeper.stop()
        await email_http.aclose()
        await steam_http.aclose()
        geoip.close()
        await mongo_client.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)

    return app
