"""
Cache de requêtes asynchrone (clés hiérarchiques, invalidation par préfixe).

- Une clé est un tuple : ("trainings",) est préfixe de ("trainings", "list", 10).
- Lectures concurrentes d'une même clé : un seul fetch partagé (tâche asyncio).
- Chaque clé porte un numéro de génération, renouvelé à chaque invalidation
  ou annulation. Une réponse arrivée avec une génération dépassée est rendue
  à l'appelant mais n'écrase jamais le cache. Les générations viennent d'un
  compteur unique : une clé évincée puis relue ne reprend jamais un ancien numéro.
- Cache borné : au plus `max_entries` clés (LRU) et expiration après
  `gc_time` secondes. Une clé en cours de fetch n'est jamais évincée.
"""
import asyncio
import itertools
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 500
DEFAULT_GC_TIME_S = 300.0

QueryKey = Tuple[Any, ...]
Fetcher = Callable[[], Awaitable[Any]]
PageFetcher = Callable[[int, int], Awaitable[List[Any]]]


def _as_key(key: Iterable[Any]) -> QueryKey:
    return key if isinstance(key, tuple) else tuple(key)


def matches_prefix(key: QueryKey, prefix: QueryKey) -> bool:
    return key[:len(prefix)] == prefix


@dataclass
class QueryState:
    data: Any
    generation: int
    updated_at: float = field(default_factory=time.monotonic)
    is_stale: bool = False


@dataclass
class InfiniteData:
    """Pages chargées successivement (offset = somme des tailles de page)."""
    pages: List[List[Any]] = field(default_factory=list)
    page_params: List[int] = field(default_factory=list)
    page_size: int = 10

    @property
    def items(self) -> List[Any]:
        return [item for page in self.pages for item in page]

    @property
    def has_next_page(self) -> bool:
        return bool(self.pages) and len(self.pages[-1]) == self.page_size

    @property
    def next_page_param(self) -> Optional[int]:
        if not self.pages:
            return 0
        return len(self.pages) * self.page_size if self.has_next_page else None


class QueryClient:
    """Cache de requêtes partagé par une session (une instance par event loop)."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES, gc_time: Optional[float] = DEFAULT_GC_TIME_S):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self.gc_time = gc_time
        self._cache: "OrderedDict[QueryKey, QueryState]" = OrderedDict()
        self._in_flight: Dict[QueryKey, Tuple[int, "asyncio.Task[Any]"]] = {}
        self._generations: Dict[QueryKey, int] = {}
        self._counter = itertools.count(1)

    # ------------------------------------------------------------------
    # Lecture / écriture directe
    # ------------------------------------------------------------------

    def generation(self, key: Iterable[Any]) -> int:
        return self._generations.get(_as_key(key), 0)

    def _bump(self, key: QueryKey) -> int:
        self._generations[key] = next(self._counter)
        return self._generations[key]

    def _current(self, key: QueryKey) -> int:
        if key not in self._generations:
            return self._bump(key)
        return self._generations[key]

    def _expired(self, state: QueryState) -> bool:
        return self.gc_time is not None and time.monotonic() - state.updated_at > self.gc_time

    def _store(self, key: QueryKey, state: QueryState) -> None:
        self._cache[key] = state
        self._cache.move_to_end(key)
        self._collect()

    def _collect(self) -> None:
        """Évince les entrées expirées puis les moins récemment utilisées."""
        evicted = [k for k, s in self._cache.items() if k not in self._in_flight and self._expired(s)]
        for key in evicted:
            del self._cache[key]
        overflow = len(self._cache) - self.max_entries
        if overflow > 0:
            lru = [k for k in self._cache if k not in self._in_flight][:overflow]
            for key in lru:
                del self._cache[key]
            evicted.extend(lru)
        # Génération inutile sans donnée ni fetch en cours
        for key in [k for k in self._generations if k not in self._cache and k not in self._in_flight]:
            del self._generations[key]
        if evicted:
            logger.debug(f"Cache de requêtes : {len(evicted)} clé(s) évincée(s)")

    def get_query_data(self, key: Iterable[Any]) -> Any:
        state = self._cache.get(_as_key(key))
        return state.data if state is not None else None

    def get_query_state(self, key: Iterable[Any]) -> Optional[QueryState]:
        return self._cache.get(_as_key(key))

    def set_query_data(self, key: Iterable[Any], data_or_updater: Any) -> Any:
        """Écrit la donnée (ou applique `updater(ancienne)`) et la marque fraîche."""
        key = _as_key(key)
        if callable(data_or_updater):
            data = data_or_updater(self.get_query_data(key))
        else:
            data = data_or_updater
        self._store(key, QueryState(data=data, generation=self.generation(key)))
        return data

    def keys(self) -> List[QueryKey]:
        return list(self._cache.keys())

    def is_fetching(self, key: Iterable[Any]) -> bool:
        return _as_key(key) in self._in_flight

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def _run(self, key: QueryKey, generation: int, fetcher: Fetcher) -> Any:
        try:
            data = await fetcher()
        finally:
            entry = self._in_flight.get(key)
            if entry is not None and entry[0] == generation:
                del self._in_flight[key]

        if generation == self.generation(key):
            self._store(key, QueryState(data=data, generation=generation))
        else:
            logger.debug(f"Réponse périmée ignorée pour {key} (génération {generation})")
        return data

    async def fetch_query(self, key: Iterable[Any], fetcher: Fetcher, force: bool = False) -> Any:
        """Retourne la donnée en cache si fraîche, sinon lance (ou rejoint) le fetch en cours.

        `force=True` ne rejoint jamais un fetch en cours : il en lance un
        nouveau, et la réponse de l'ancien n'écrira plus le cache.
        """
        key = _as_key(key)
        state = self._cache.get(key)
        if state is not None and not force and not state.is_stale and not self._expired(state):
            self._cache.move_to_end(key)
            return state.data

        entry = self._in_flight.get(key)
        if entry is None or force:
            # Un fetch forcé rend périmé tout fetch plus ancien
            generation = self._bump(key) if force else self._current(key)
            task = asyncio.ensure_future(self._run(key, generation, fetcher))
            entry = (generation, task)
            self._in_flight[key] = entry
        # shield : l'annulation d'un appelant n'annule pas le fetch partagé
        return await asyncio.shield(entry[1])

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def _matching(self, prefix: QueryKey) -> List[QueryKey]:
        known = set(self._cache) | set(self._in_flight) | set(self._generations)
        return [key for key in known if matches_prefix(key, prefix)]

    def invalidate_queries(self, prefix: Iterable[Any]) -> List[QueryKey]:
        """Marque périmées toutes les clés descendant de `prefix`.

        Les fetchs en cours sur ces clés sont détachés : leur réponse sera
        ignorée et la prochaine lecture relancera un fetch.
        """
        prefix = _as_key(prefix)
        invalidated = self._matching(prefix)
        for key in invalidated:
            self._bump(key)
            self._in_flight.pop(key, None)
            state = self._cache.get(key)
            if state is not None:
                state.is_stale = True
        logger.debug(f"Invalidation {prefix}: {len(invalidated)} clé(s)")
        return invalidated

    def cancel_queries(self, prefix: Iterable[Any]) -> None:
        """Détache les fetchs en cours sans toucher à la donnée en cache."""
        prefix = _as_key(prefix)
        for key in [k for k in self._in_flight if matches_prefix(k, prefix)]:
            self._bump(key)
            del self._in_flight[key]

    def remove_queries(self, prefix: Iterable[Any]) -> None:
        prefix = _as_key(prefix)
        for key in self._matching(prefix):
            # Compteur unique : oublier la génération suffit à détacher les fetchs
            self._generations.pop(key, None)
            self._in_flight.pop(key, None)
            self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()
        self._in_flight.clear()
        self._generations.clear()

    # ------------------------------------------------------------------
    # Requêtes paginées
    # ------------------------------------------------------------------

    async def fetch_infinite_query(
        self, key: Iterable[Any], page_fetcher: PageFetcher, page_size: int = 10
    ) -> InfiniteData:
        """Première page (ou pages en cache si fraîches)."""
        async def first_page() -> InfiniteData:
            page = await page_fetcher(page_size, 0)
            return InfiniteData(pages=[page], page_params=[0], page_size=page_size)

        return await self.fetch_query(key, first_page)

    async def fetch_next_page(
        self, key: Iterable[Any], page_fetcher: PageFetcher, page_size: int = 10
    ) -> InfiniteData:
        """Ajoute la page suivante ; sans effet quand la dernière page est incomplète."""
        key = _as_key(key)
        current: Optional[InfiniteData] = self.get_query_data(key)
        if current is None:
            return await self.fetch_infinite_query(key, page_fetcher, page_size)
        if not current.has_next_page:
            return current

        offset = current.next_page_param
        generation = self._current(key)
        page = await page_fetcher(current.page_size, offset)
        updated = InfiniteData(
            pages=current.pages + [page],
            page_params=current.page_params + [offset],
            page_size=current.page_size,
        )
        if generation == self.generation(key):
            self._store(key, QueryState(data=updated, generation=generation))
        else:
            logger.debug(f"Page {offset} périmée ignorée pour {key}")
        return updated


def snapshot(client: QueryClient, keys: Sequence[Iterable[Any]]) -> Dict[QueryKey, Any]:
    """Copie des données en cache pour un rollback éventuel."""
    return {_as_key(k): client.get_query_data(k) for k in keys}
