"""
Configuration centralisée pour l'application TrainLog
Utilise pydantic-settings pour la gestion des variables d'environnement
"""
from pydantic_settings import BaseSettings
from pydantic import Field, model_validator
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Configuration de l'application"""

    # Sélection du backend (lue une seule fois au démarrage)
    USE_MOCK_DATA: bool = Field(
        default=True,
        description="True = données mock en mémoire, False = API distante"
    )

    # API distante
    API_BASE_URL: str = Field(
        default="http://localhost:3001/api",
        description="URL de base de l'API distante (sans slash final)"
    )
    API_TIMEOUT_S: float = Field(
        default=15.0,
        description="Timeout des appels HTTP vers l'API distante (secondes)"
    )

    # Latence simulée du store mock (millisecondes, 0 pour les tests)
    MOCK_READ_DELAY_MS: int = Field(default=500, ge=0)
    MOCK_DETAIL_DELAY_MS: int = Field(default=300, ge=0)
    MOCK_PLANNED_DELAY_MS: int = Field(default=400, ge=0)
    MOCK_WRITE_DELAY_MS: int = Field(default=300, ge=0)
    MOCK_CREATE_DELAY_MS: int = Field(default=500, ge=0)

    # Pagination de la liste infinie
    INFINITE_PAGE_SIZE: int = Field(default=10, gt=0)

    # Cache de requêtes (nombre de clés max, expiration en secondes)
    QUERY_CACHE_MAX_ENTRIES: int = Field(default=500, gt=0)
    QUERY_CACHE_GC_TIME_S: float = Field(default=300.0, gt=0)

    # CORS
    FRONTEND_URL: str = Field(
        default="http://localhost:3000",
        description="URL du frontend (utilisée pour CORS)"
    )
    ALLOWED_ORIGINS: List[str] = Field(
        default=[],
        description="Origines autorisées pour CORS (configuré automatiquement selon ENVIRONMENT si vide)"
    )

    # Monitoring (Sentry)
    SENTRY_DSN: str = Field(
        default="",
        description="DSN Sentry pour le error tracking (vide = Sentry desactive)"
    )

    # Application
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(
        default="",
        description="Niveau de logging (auto-configuré selon ENVIRONMENT si vide)"
    )

    @model_validator(mode="after")
    def _configure_environment(self) -> "Settings":
        """Configure DEBUG, LOG_LEVEL et l'URL de l'API selon ENVIRONMENT."""
        is_prod = self.ENVIRONMENT == "production"
        # En production, forcer DEBUG=False
        if is_prod:
            self.DEBUG = False
        # LOG_LEVEL par défaut selon ENVIRONMENT
        if not self.LOG_LEVEL:
            self.LOG_LEVEL = "WARNING" if is_prod else "INFO"
        self.API_BASE_URL = self.API_BASE_URL.rstrip("/")
        return self

    @model_validator(mode="after")
    def _set_default_origins(self) -> "Settings":
        """Définit les origines CORS par défaut si non configurées."""
        if not self.ALLOWED_ORIGINS:
            self.ALLOWED_ORIGINS = [
                "http://localhost:3000",
                "http://127.0.0.1:3000",
                "http://localhost:8080",
            ]
        frontend = self.FRONTEND_URL.rstrip("/")
        if frontend and frontend not in self.ALLOWED_ORIGINS:
            self.ALLOWED_ORIGINS.append(frontend)
        return self

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Récupère la configuration (lue une seule fois par process)"""
    return Settings()
