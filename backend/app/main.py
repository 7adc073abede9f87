"""
Application FastAPI principale pour TrainLog
Expose le contrat wire (snake_case) au-dessus de la couche requêtes/mutations
"""
import logging
from logging.handlers import RotatingFileHandler
import sys
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.requests import Request
import sentry_sdk

from app.core.settings import Settings, get_settings
from app.core.container import ServiceContainer, build_container
from app.api.routers import router
from app.api.routers._shared import http_status_for
from app.domain.errors import ServiceError

settings = get_settings()

# Initialiser Sentry (uniquement si SENTRY_DSN est configure)
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        send_default_pii=False,
    )

# Configuration du logging conditionnée par ENVIRONMENT
_log_level = getattr(logging, settings.LOG_LEVEL, logging.INFO)

_handler = logging.StreamHandler(sys.stdout)

if settings.ENVIRONMENT == "production":
    from pythonjsonlogger import jsonlogger
    _handler.setFormatter(jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level"},
    ))
else:
    _handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))

_handlers: list[logging.Handler] = [_handler]
if settings.ENVIRONMENT != "production":
    _handlers.append(RotatingFileHandler(
        'trainlog.log', maxBytes=5_000_000, backupCount=3,
    ))

logging.basicConfig(
    level=_log_level,
    handlers=_handlers,
)

# En production, réduire le bruit des modules tiers
if settings.ENVIRONMENT == "production":
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def create_app(app_settings: Optional[Settings] = None, services: Optional[ServiceContainer] = None) -> FastAPI:
    """Construit l'application ; `services` permet d'injecter un conteneur déjà assemblé."""
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Gestionnaire de cycle de vie de l'application"""
        # Startup
        logger.info(f"🚀 Démarrage de TrainLog API v{API_VERSION}")
        logger.info(f"Environment: {app_settings.ENVIRONMENT}")
        logger.info(f"Debug mode: {app_settings.DEBUG}")

        container = services or build_container(app_settings)
        app.state.services = container
        logger.info(f"✅ Backend actif: {container.backend.name}")

        yield

        # Shutdown
        await container.aclose()
        logger.info("🛑 Backend fermé")

    app = FastAPI(
        title="TrainLog API",
        description="API de suivi des séances d'entraînement (réalisées et planifiées)",
        version=API_VERSION,
        docs_url="/docs" if app_settings.ENVIRONMENT != "production" else None,
        redoc_url="/redoc" if app_settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Configuration CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    # Inclure les routes
    app.include_router(router, prefix="/api")

    @app.get("/health")
    async def health_check(request: Request):
        """Point de santé de l'API"""
        container = getattr(request.app.state, "services", None)
        return JSONResponse(
            content={
                "status": "healthy" if container is not None else "starting",
                "version": API_VERSION,
                "environment": app_settings.ENVIRONMENT,
                "services": {
                    "backend": container.backend.name if container is not None else None,
                },
            }
        )

    @app.exception_handler(ServiceError)
    async def service_exception_handler(request: Request, exc: ServiceError):
        """Erreurs du domaine -> code HTTP correspondant"""
        status_code = http_status_for(exc)
        if status_code >= 500:
            logger.error(f"Erreur backend sur {request.method} {request.url.path}: {exc}")
        else:
            logger.info(f"{status_code} sur {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": exc.message or type(exc).__name__})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc):
        """Gestionnaire global des exceptions"""
        logger.error(f"Erreur non gérée: {type(exc).__name__}: {str(exc)}", exc_info=True)
        if app_settings.DEBUG:
            content = {
                "detail": "Erreur interne du serveur",
                "type": type(exc).__name__,
                "message": str(exc),
            }
        else:
            content = {
                "detail": "Erreur interne du serveur",
                "message": "Une erreur s'est produite",
            }
        return JSONResponse(status_code=500, content=content)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    logger.info(f"Lancement de l'application sur le port 8000")
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
