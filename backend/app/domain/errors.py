"""
Exceptions du domaine TrainLog.

Le facade de service propage ces erreurs telles quelles ; c'est la couche
requêtes/mutations (ou le router HTTP) qui décide quoi en faire.
"""
from typing import Optional


class ServiceError(Exception):
    """Erreur de base de la couche d'accès aux données."""

    status_code: Optional[int] = None

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ServiceError):
    """Identifiant absent du backend actif."""

    status_code = 404


class ValidationError(ServiceError):
    """Champ obligatoire manquant ou valeur invalide à la frontière."""

    status_code = 400


class NetworkError(ServiceError):
    """L'appel distant n'a pas abouti (connexion, timeout...)."""


class HttpError(ServiceError):
    """L'API distante a répondu avec un statut non-2xx ou un corps inexploitable."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message, status_code)


class AuthError(ServiceError):
    """Session absente, invalide, expirée ou en attente d'approbation."""

    status_code = 401


# Pannes du backend distant : seules erreurs qui autorisent un repli local.
# NotFound/Auth/Validation sont des réponses valides et remontent telles quelles.
BACKEND_UNAVAILABLE = (NetworkError, HttpError)
