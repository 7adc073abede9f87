"""
Utilitaires partages entre les routers API.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status

from app.core.container import ServiceContainer
from app.domain.entities import TrainLogModel
from app.domain.errors import BACKEND_UNAVAILABLE, AuthError, NotFoundError, ServiceError, ValidationError
from app.domain.services.wire_mapping import EntityMapping

logger = logging.getLogger(__name__)


def get_services(request: Request) -> ServiceContainer:
    """Conteneur de services créé au démarrage (lifespan)."""
    services: Optional[ServiceContainer] = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Services not initialized")
    return services


def http_status_for(error: ServiceError) -> int:
    """Code HTTP renvoyé pour une erreur du domaine."""
    if isinstance(error, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, AuthError):
        return error.status_code or status.HTTP_401_UNAUTHORIZED
    if isinstance(error, BACKEND_UNAVAILABLE):
        # Échec du backend distant derrière ce serveur
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def to_wire(model: TrainLogModel, mapping: Optional[EntityMapping] = None) -> Dict[str, Any]:
    """Sérialise un modèle au format wire snake_case."""
    if mapping is not None:
        return mapping.model_to_wire(model)
    return model.model_dump(mode="json")


def from_wire(payload: Dict[str, Any], mapping: EntityMapping) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError("JSON object expected")
    return mapping.from_wire(payload)
