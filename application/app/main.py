from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config.settings import SinglespineConfigs
from app.config.sentry import init_sentry
from app.core.dependencies import build_otp_service
from app.logging.utils import initialize_logging, get_app_logger
from app.middlewares.handlers import register_exception_handlers
from app.middlewares.logging_middleware import AuditMiddleware
from app.routes.auth_otp import router as auth_otp_router
from app.routes.health import router as health_router
from app.services.otp_service import OTPService
from app.services.otp_sweeper import OTPSweeper

configs = SinglespineConfigs()

initialize_logging()
logger = get_app_logger('app.main')


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Singlespine OTP service")
    sweeper = OTPSweeper(app.state.otp_service.repository, interval_seconds=configs.OTP_SWEEP_INTERVAL_SECONDS)
    sweeper.start()
    app.state.otp_sweeper = sweeper
    yield
    await sweeper.stop()
    logger.info("Shutting down Singlespine OTP service")


def create_app(otp_service: Optional[OTPService] = None) -> FastAPI:
    init_sentry()

    debug = configs.DEBUG
    logger.info(f"Running in {'debug' if debug else 'production'} mode")

    # Disable docs in production (when DEBUG=false)
    app = FastAPI(
        title="Singlespine OTP",
        version=configs.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if debug else None,
        redoc_url="/redoc" if debug else None,
    )
    app.state.otp_service = otp_service or build_otp_service(configs)

    if configs.ALLOWED_ORIGINS:
        origins = [origin.strip() for origin in configs.ALLOWED_ORIGINS.split(",")]
    else:
        origins = ["*"]

    app.add_middleware(AuditMiddleware)

    logger.info(f"Configuring CORS with allowed origins: {origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth_otp_router, prefix="/auth")
    app.include_router(health_router, tags=["health"])
    return app


app = create_app()
