"""
Remote fallback for queries the local dataset cannot answer well.

RemoteFallback holds the shared policy: the quality predicate, the decision
of when to fall back, and a per-run answer cache keyed by the full query
shape. Subclasses provide the transport. A failing transport is logged and
reported as "no remote answer"; failures are not cached.

The cache is never invalidated or bounded; a long-lived process should swap
it for an LRU or TTL cache.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx
from bs4 import BeautifulSoup

from tekla_api_docs.config import Settings
from tekla_api_docs.errors import RemoteFallbackError
from tekla_api_docs.parsing.markup_normalizer import MarkupNormalizer
from tekla_api_docs.schemas import RemoteApiResult, TocEntry
from tekla_api_docs.utils.naming import classify_kind, derive_namespace
from tekla_api_docs.utils.text_cleaner import clean_text

logger = logging.getLogger(__name__)

PLACEHOLDER_NAMESPACES = {"", "n/a", "unknown"}
COPYRIGHT_MARKER = "Copyright ©"
USER_AGENT = "tekla-api-docs/0.1"

# Checked in order against the queried name
NAMESPACE_HINTS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("Model", "Beam", "Column"), "Tekla.Structures.Model"),
    (("Drawing", "View", "Dimension"), "Tekla.Structures.Drawing"),
    (("Point", "Vector", "Geometry"), "Tekla.Structures.Geometry3d"),
    (("Plugin",), "Tekla.Structures.Plugins"),
)


def _field(result: Any, name: str) -> str:
    if isinstance(result, dict):
        value = result.get(name)
    else:
        value = getattr(result, name, None)
    return value or ""


def is_low_quality(result: Any) -> bool:
    """
    Whether a result is too thin to trust.

    True when the namespace is empty or a placeholder, or when the summary or
    description is copyright boilerplate. Accepts records, results or plain dicts.
    """
    namespace = _field(result, "namespace").strip()
    if namespace.lower() in PLACEHOLDER_NAMESPACES:
        return True
    return COPYRIGHT_MARKER in _field(result, "summary") or COPYRIGHT_MARKER in _field(result, "description")


def should_use_fallback(local_results: Iterable[Any], query: str = "") -> bool:
    """
    Decide whether local results need remote help.

    Args:
        local_results: Results produced locally
        query: The query text (kept for callers that log the decision)

    Returns:
        True when there are no results or more than half are low quality

    Example:
        >>> should_use_fallback([], "Beam")
        True
        >>> should_use_fallback([{"namespace": "Tekla.Structures.Model"}], "Beam")
        False
    """
    results = list(local_results)
    if not results:
        return True
    poor = sum(1 for result in results if is_low_quality(result))
    return poor / len(results) > 0.5


def infer_namespace(name: str, default: str = "Tekla.Structures") -> str:
    """Best guess of a namespace from a bare symbol name."""
    for hints, namespace in NAMESPACE_HINTS:
        if any(hint in name for hint in hints):
            return namespace
    return default


def slugify(name: str) -> str:
    """Developer-site URL slug: lowercase, dots and whitespace runs as dashes."""
    return re.sub(r"\s+", "-", name.strip().lower().replace(".", "-"))


class RemoteFallback:
    """
    Base class for remote lookups with answer caching.

    Subclasses implement ``_search``, ``_class_details`` and ``_method_details``
    and may raise; the public methods never do.
    """

    def __init__(self):
        self._cache: Dict[Tuple, Any] = {}

    def should_use_fallback(self, local_results: Iterable[Any], query: str = "") -> bool:
        return should_use_fallback(local_results, query)

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    async def search_online(self, query: str, kind_filter: str = "all", limit: int = 10) -> List[RemoteApiResult]:
        """
        Search the remote source.

        Returns:
            Up to ``limit`` results, empty when the lookup fails
        """
        key = ("search", query, kind_filter, limit)
        if key in self._cache:
            return list(self._cache[key])
        try:
            results = list(await self._search(query, kind_filter, limit))[:limit]
        except Exception as e:
            logger.warning(f"Remote search failed for '{query}' ({kind_filter}, {limit}): {e}")
            return []
        self._cache[key] = results
        return list(results)

    async def get_class_details_online(self, name: str) -> Optional[RemoteApiResult]:
        key = ("class", name)
        if key in self._cache:
            return self._cache[key]
        try:
            result = await self._class_details(name)
        except Exception as e:
            logger.warning(f"Remote class lookup failed for '{name}': {e}")
            return None
        self._cache[key] = result
        return result

    async def get_method_details_online(self, name: str, class_name: Optional[str] = None) -> Optional[RemoteApiResult]:
        key = ("method", name, class_name)
        if key in self._cache:
            return self._cache[key]
        try:
            result = await self._method_details(name, class_name)
        except Exception as e:
            logger.warning(f"Remote method lookup failed for '{name}' (class: {class_name}): {e}")
            return None
        self._cache[key] = result
        return result

    async def _search(self, query: str, kind_filter: str, limit: int) -> List[RemoteApiResult]:
        raise NotImplementedError

    async def _class_details(self, name: str) -> Optional[RemoteApiResult]:
        raise NotImplementedError

    async def _method_details(self, name: str, class_name: Optional[str]) -> Optional[RemoteApiResult]:
        raise NotImplementedError


class DisabledFallback(RemoteFallback):
    """Fallback that never answers, for offline use."""

    async def _search(self, query: str, kind_filter: str, limit: int) -> List[RemoteApiResult]:
        logger.debug(f"Remote fallback disabled, no results for '{query}'")
        return []

    async def _class_details(self, name: str) -> Optional[RemoteApiResult]:
        return None

    async def _method_details(self, name: str, class_name: Optional[str]) -> Optional[RemoteApiResult]:
        return None


class OnlineApiFallback(RemoteFallback):
    """
    Fallback against the Tekla developer site.

    Pages are fetched with httpx and parsed with the same normalizer as local
    help pages.

    Example:
        >>> fallback = OnlineApiFallback(settings)
        >>> result = await fallback.get_class_details_online("Beam")
        >>> result.namespace
        'Tekla.Structures.Model'
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the online fallback.

        Args:
            settings: Base URL and timeout
            client: Shared client (a short-lived client per request when omitted)
        """
        super().__init__()
        self.settings = settings or Settings()
        self.base_url = self.settings.fallback_base_url.rstrip("/")
        self._client = client
        self._normalizer = MarkupNormalizer(settings=self.settings)

    async def _fetch(self, url: str, params: Optional[Dict[str, str]] = None) -> Optional[str]:
        """GET a page; None when it does not exist."""
        try:
            if self._client is not None:
                response = await self._client.get(url, params=params)
            else:
                async with httpx.AsyncClient(
                    timeout=self.settings.fallback_timeout,
                    headers={"User-Agent": USER_AGENT},
                    follow_redirects=True,
                ) as client:
                    response = await client.get(url, params=params)
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise RemoteFallbackError(f"GET {url} failed: {e}") from e
        return response.text

    def construct_search_query(self, query: str, kind_filter: str = "all") -> str:
        search_query = query
        if kind_filter and kind_filter != "all":
            search_query += f" {kind_filter}"
        return f"{search_query} Tekla Structures Open API"

    async def _search(self, query: str, kind_filter: str, limit: int) -> List[RemoteApiResult]:
        url = f"{self.base_url}/search"
        logger.info(f"Searching developer site: {url} ({query})")
        markup = await self._fetch(url, params={"q": self.construct_search_query(query, kind_filter)})
        if not markup:
            return []

        soup = BeautifulSoup(markup, "html.parser")
        results: List[RemoteApiResult] = []
        seen = set()
        for link in soup.find_all("a", href=True):
            title = clean_text(link.get_text())
            kind = classify_kind(title, self.settings.root_namespace)
            if not title or kind == "other" or title.lower() in seen:
                continue
            if kind_filter != "all" and kind != kind_filter:
                continue
            seen.add(title.lower())

            container = link.find_parent(["li", "div", "article", "tr"])
            description = clean_text(container.get_text(" ")) if container is not None else ""
            if description.startswith(title):
                description = description[len(title):].strip()

            results.append(RemoteApiResult(
                title=title,
                description=description,
                namespace=derive_namespace(title, self.settings.root_token) or infer_namespace(title),
                kind=kind,
                url=str(httpx.URL(url).join(link["href"])),
            ))
            if len(results) >= limit:
                break
        return results

    async def _page_result(self, url: str, display_name: str, kind: str, name: str) -> Optional[RemoteApiResult]:
        markup = await self._fetch(url)
        if not markup:
            return None
        entry = TocEntry(display_name=display_name, target_page=url, kind=kind)
        record = self._normalizer.normalize_markup(markup, entry)
        if record is None:
            return None
        namespace = record.namespace
        if namespace.strip().lower() in PLACEHOLDER_NAMESPACES:
            namespace = infer_namespace(name)
        return RemoteApiResult(
            title=record.title,
            description=record.summary or record.description,
            namespace=namespace,
            kind=record.kind if record.kind != "other" else kind,
            url=url,
        )

    async def _class_details(self, name: str) -> Optional[RemoteApiResult]:
        url = f"{self.base_url}/{slugify(name)}"
        logger.info(f"Fetching class page: {url}")
        return await self._page_result(url, f"{name} Class", "class", name)

    async def _method_details(self, name: str, class_name: Optional[str]) -> Optional[RemoteApiResult]:
        method_slug = slugify(name)
        url = f"{self.base_url}/{slugify(class_name)}/{method_slug}" if class_name else f"{self.base_url}/{method_slug}"
        logger.info(f"Fetching method page: {url}")
        display_name = f"{class_name}.{name} Method" if class_name else f"{name} Method"
        return await self._page_result(url, display_name, "method", class_name or name)


def create_fallback(settings: Settings) -> RemoteFallback:
    """Fallback selected by configuration."""
    if settings.fallback_enabled:
        return OnlineApiFallback(settings)
    return DisabledFallback()
