"""
Stockage de session en mémoire (token d'authentification, utilisateur mock).
Rien n'est persisté au-delà du process.
"""
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

AUTH_TOKEN_KEY = "authToken"
MOCK_USER_KEY = "mockUser"


class SessionStorage:
    """Clé/valeur de session, une instance par session utilisateur."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    @property
    def auth_token(self) -> Optional[str]:
        return self.get(AUTH_TOKEN_KEY)
