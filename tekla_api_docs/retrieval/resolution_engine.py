"""
Resolution engine: the query surface over the local dataset.

The engine owns its record store, fuzzy index, remote fallback and detail
extractor; nothing is module-global, so several engines can coexist.

Every public operation is a coroutine that never raises. Unexpected errors
are logged with the operation name and its inputs and turned into the
operation's "not found" value (None, an empty list, or zeroed statistics).
"""

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from tekla_api_docs.config import Settings
from tekla_api_docs.parsing.detail_extractor import DetailExtractor
from tekla_api_docs.retrieval.fuzzy_index import FuzzySearchIndex
from tekla_api_docs.retrieval.remote_fallback import RemoteFallback, create_fallback, is_low_quality
from tekla_api_docs.schemas import (
    TOP_LEVEL_KINDS,
    ApiRecord,
    CodeExample,
    CodeExampleResult,
    LocalResult,
    RemoteResult,
    SearchResult,
    Statistics,
    coerce_kind,
    remote_to_api_record,
    to_search_result,
)
from tekla_api_docs.store.record_store import RecordStore
from tekla_api_docs.utils.naming import canonical_namespace

logger = logging.getLogger(__name__)

MAX_EXAMPLES = 5
MAX_SNIPPETS_PER_EXAMPLE = 3
DEFAULT_LANGUAGE = "csharp"

ClassPredicate = Callable[[ApiRecord, str], bool]


# ============================================================================
# CLASS NAME MATCHING
# ============================================================================

def matches_exactly(record: ApiRecord, query: str) -> bool:
    """Title is '<query> Class' or '<query>', or the bare/qualified identifier is the query."""
    title = record.title.lower()
    identifier = record.identifier.lower()
    if title in (f"{query} class", query) or identifier == query:
        return True
    return bool(record.namespace) and f"{record.namespace}.{record.identifier}".lower() == query


def matches_word_boundary(record: ApiRecord, query: str) -> bool:
    """Query aligned to a whole word of the title, never inside a longer identifier."""
    title = record.title.lower()
    return (
        title.startswith(f"{query} ")
        or title.endswith(f" {query}")
        or f" {query} " in title
        or f" {query}class" in title
    )


def matches_broadly(record: ApiRecord, query: str) -> bool:
    return query in record.title.lower() or query in record.identifier.lower()


CLASS_MATCH_PASSES: Sequence[ClassPredicate] = (matches_exactly, matches_word_boundary, matches_broadly)


class ResolutionEngine:
    """
    Answer name, namespace and keyword lookups against the documentation set.

    Operations:
    - search: fuzzy search with quality-based remote top-up
    - get_class_details: class lookup with disambiguation and lazy details
    - get_method_details: method lookup, optionally scoped to a class
    - browse_namespace: namespace prefix listing
    - get_code_examples: example overviews and snippets mentioning an element
    - get_statistics, get_namespaces and the example catalogue lookups

    Example:
        >>> engine = await ResolutionEngine.create(Settings(dataset_dir=Path("parsed-api")))
        >>> record = await engine.get_class_details("Beam")
        >>> record.namespace
        'Tekla.Structures.Model'
    """

    def __init__(
        self,
        store: RecordStore,
        index: Optional[FuzzySearchIndex] = None,
        fallback: Optional[RemoteFallback] = None,
        detail_extractor: Optional[DetailExtractor] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the engine from already-built components.

        Args:
            store: Loaded record store
            index: Fuzzy index (built from the store's projection when omitted)
            fallback: Remote fallback (chosen from settings when omitted)
            detail_extractor: Deep-detail parser (reads settings.html_dir when omitted)
            settings: Naming conventions and tuning knobs
        """
        self.settings = settings or Settings()
        self.store = store
        self.index = index if index is not None else FuzzySearchIndex(
            store.search_entries,
            threshold=self.settings.search_threshold,
            min_match_length=self.settings.min_match_length,
        )
        self.fallback = fallback if fallback is not None else create_fallback(self.settings)
        self.detail_extractor = detail_extractor or DetailExtractor(self.settings.html_dir, self.settings)

    @classmethod
    async def create(
        cls,
        settings: Optional[Settings] = None,
        fallback: Optional[RemoteFallback] = None,
    ) -> "ResolutionEngine":
        """
        Load the dataset and build the index off the event loop.

        Args:
            settings: Dataset location and tuning (environment defaults when omitted)
            fallback: Remote fallback override

        Returns:
            Ready-to-query engine
        """
        settings = settings or Settings.from_env()
        store = await asyncio.to_thread(RecordStore.load, settings.dataset_dir, settings.root_token)
        index = await asyncio.to_thread(
            FuzzySearchIndex,
            store.search_entries,
            settings.search_threshold,
            settings.min_match_length,
        )
        engine = cls(store, index=index, fallback=fallback, settings=settings)
        logger.info(
            f"Resolution engine ready: {len(store.records)} records, {len(index)} indexed, "
            f"fallback={type(engine.fallback).__name__}"
        )
        return engine

    # ========================================================================
    # SEARCH
    # ========================================================================

    async def search(self, query: str, kind_filter: str = "all", limit: int = 10) -> List[SearchResult]:
        """
        Fuzzy search over the local index, topped up remotely when results are thin.

        Args:
            query: Free text
            kind_filter: "all" or one kind; applied after ranking, before truncation
            limit: Maximum number of results

        Returns:
            Results in one shape regardless of which source answered
        """
        try:
            if limit <= 0:
                return []

            local = self._search_local(query, kind_filter, limit)
            if local is None:
                return await self._search_remote(query, kind_filter, limit)

            resolved = list(local)
            if self.fallback.should_use_fallback([item.entry for item in local], query):
                logger.info(f"Local results for '{query}' are thin, consulting remote fallback")
                remote = await self.fallback.search_online(query, kind_filter, limit)
                seen = {item.entry.title.lower() for item in local}
                for item in remote:
                    if len(resolved) >= limit:
                        break
                    if item.title.lower() in seen:
                        continue
                    if kind_filter != "all" and coerce_kind(item.kind) != kind_filter:
                        continue
                    seen.add(item.title.lower())
                    resolved.append(RemoteResult(result=item))

            return [to_search_result(item) for item in resolved]
        except Exception as e:
            logger.error(f"search failed (query={query!r}, kind_filter={kind_filter!r}, limit={limit}): {e}",
                         exc_info=True)

        try:
            return await self._search_remote(query, kind_filter, limit)
        except Exception as e:
            logger.error(f"Remote search failed after local error for {query!r}: {e}", exc_info=True)
            return []

    async def _search_remote(self, query: str, kind_filter: str, limit: int) -> List[SearchResult]:
        """Answer the whole query from the remote fallback."""
        remote = await self.fallback.search_online(query, kind_filter, limit)
        resolved = [RemoteResult(result=item) for item in remote]
        return [to_search_result(item) for item in resolved[:limit]]

    def _search_local(self, query: str, kind_filter: str, limit: int) -> Optional[List[LocalResult]]:
        """Ranked local results, or None when the index is empty or fails."""
        if len(self.index) == 0:
            logger.info(f"Local index is empty, delegating '{query}' to remote fallback")
            return None
        try:
            matches = self.index.search(query)
        except Exception as e:
            logger.error(f"Index search failed for {query!r}: {e}", exc_info=True)
            return None

        results = [LocalResult(entry=match.entry, score=match.score) for match in matches]
        if kind_filter != "all":
            results = [item for item in results if item.entry.kind == kind_filter]
        return results[:limit]

    # ========================================================================
    # CLASS AND METHOD LOOKUP
    # ========================================================================

    async def get_class_details(self, name: str, include_members: bool = True) -> Optional[ApiRecord]:
        """
        Resolve a class name to its best record.

        Args:
            name: Class name ("Beam", "Beam Class" or "Tekla.Structures.Model.Beam")
            include_members: Attach DetailedInfo and related member records

        Returns:
            Record (local or remote), or None when nothing matches anywhere
        """
        try:
            query = (name or "").strip()
            if not query:
                return None

            candidates = self._find_class_candidates(query.lower())
            if not candidates:
                remote = await self.fallback.get_class_details_online(query)
                return remote_to_api_record(remote) if remote is not None else None

            record = self._disambiguate(candidates)

            members: List[ApiRecord] = []
            if include_members:
                members = self._related_members(record)
                await self._attach_details(record)

            result = record.model_copy(update={"members": members})

            if is_low_quality(record):
                logger.info(f"Local record for '{query}' is low quality, consulting remote fallback")
                remote = await self.fallback.get_class_details_online(query)
                if remote is not None:
                    result = result.model_copy(update={
                        "summary": remote.description,
                        "description": remote.description,
                        "namespace": remote.namespace,
                        "normalized_namespace": canonical_namespace(remote.namespace),
                    })
            return result
        except Exception as e:
            logger.error(f"get_class_details failed (name={name!r}, include_members={include_members}): {e}",
                         exc_info=True)
            return None

    def _class_pools(self) -> List[Sequence[ApiRecord]]:
        pools: List[Sequence[ApiRecord]] = []
        partition = self.store.partition("class")
        if partition:
            pools.append(partition)
        # The combined collection is the ground truth when the partition misses a class
        pools.append([record for record in self.store.records if record.kind == "class"])
        return pools

    def _find_class_candidates(self, query: str) -> List[ApiRecord]:
        """First matching pass wins; within a pass the partition is consulted first."""
        pools = self._class_pools()
        for predicate in CLASS_MATCH_PASSES:
            for pool in pools:
                candidates = [record for record in pool if predicate(record, query)]
                if candidates:
                    return candidates
        return []

    def _disambiguate(self, candidates: List[ApiRecord]) -> ApiRecord:
        """Prefer the modeling namespace over the drawing one; else keep store order."""
        namespaces = {record.namespace for record in candidates}
        preferred = self.settings.modeling_namespace
        if len(namespaces) == 2 and namespaces == {preferred, self.settings.drawing_namespace}:
            for record in candidates:
                if record.namespace == preferred:
                    return record
        return candidates[0]

    def _related_members(self, record: ApiRecord) -> List[ApiRecord]:
        """Method and property records of the class's namespace that carry the class name."""
        class_name = record.identifier.lower()
        if not class_name:
            return []
        return [
            item for item in self.store.records
            if item.namespace == record.namespace
            and item.kind in ("method", "property")
            and class_name in item.title.lower()
        ]

    async def _attach_details(self, record: ApiRecord) -> None:
        """Parse and attach DetailedInfo once; failures only reach the log."""
        if record.detailed_info is not None or not record.source_page:
            return
        try:
            info = await asyncio.to_thread(self.detail_extractor.extract_page, record.source_page)
        except Exception as e:
            logger.warning(f"Detail extraction failed for '{record.title}' ({record.source_page}): {e}")
            return
        if info is not None:
            self.store.attach_detailed_info(record, info)

    async def get_method_details(self, name: str, class_name: Optional[str] = None) -> Optional[ApiRecord]:
        """
        Find the first method whose title contains the name (and the class name, if given).

        The method partition is searched first, then method records of the
        combined collection. The remote source is only consulted when no local
        data was loaded at all.
        """
        try:
            query = (name or "").strip().lower()
            if not query:
                return None
            scope = (class_name or "").strip().lower()

            def predicate(record: ApiRecord) -> bool:
                title = record.title.lower()
                return query in title and (not scope or scope in title)

            for record in self.store.partition("method"):
                if predicate(record):
                    return record
            for record in self.store.records:
                if record.kind == "method" and predicate(record):
                    return record

            if not self.store.has_local_data:
                remote = await self.fallback.get_method_details_online(name.strip(), class_name)
                return remote_to_api_record(remote) if remote is not None else None
            return None
        except Exception as e:
            logger.error(f"get_method_details failed (name={name!r}, class_name={class_name!r}): {e}",
                         exc_info=True)
            return None

    # ========================================================================
    # BROWSING
    # ========================================================================

    async def browse_namespace(self, prefix: str, include_members: bool = False) -> List[ApiRecord]:
        """
        Records whose namespace starts with a prefix (case-insensitive).

        Without members only classes, interfaces, enums and delegates are listed.
        """
        try:
            needle = (prefix or "").strip().lower()
            records = [
                record for record in self.store.records
                if record.namespace and record.namespace.lower().startswith(needle)
            ]
            if not include_members:
                records = [record for record in records if record.kind in TOP_LEVEL_KINDS]
            return records
        except Exception as e:
            logger.error(f"browse_namespace failed (prefix={prefix!r}, include_members={include_members}): {e}",
                         exc_info=True)
            return []

    async def get_namespaces(self) -> List[str]:
        """Sorted distinct namespaces under the root token."""
        try:
            root = f"{self.settings.root_token}."
            return sorted({
                record.namespace for record in self.store.records
                if record.namespace and record.namespace.startswith(root)
            })
        except Exception as e:
            logger.error(f"get_namespaces failed: {e}", exc_info=True)
            return []

    async def get_statistics(self) -> Statistics:
        try:
            return self.store.statistics()
        except Exception as e:
            logger.error(f"get_statistics failed: {e}", exc_info=True)
            return Statistics()

    # ========================================================================
    # CODE EXAMPLES
    # ========================================================================

    async def get_code_examples(self, element_name: str, language: str = DEFAULT_LANGUAGE) -> List[CodeExampleResult]:
        """
        Overviews and snippets of examples mentioning an API element.

        Args:
            element_name: Matched against example names, API elements and descriptions
            language: Snippet language, or "all"

        Returns:
            For at most five examples: one overview entry plus up to three snippets
        """
        try:
            needle = (element_name or "").strip().lower()
            if not needle:
                return []
            language = (language or DEFAULT_LANGUAGE).lower()

            matching = [
                example for example in self.store.examples
                if needle in example.name.lower()
                or any(needle in element.lower() for element in example.api_elements)
                or needle in example.description.lower()
            ]

            results: List[CodeExampleResult] = []
            for example in matching[:MAX_EXAMPLES]:
                results.append(CodeExampleResult(
                    title=f"{example.name} Example",
                    description=(
                        f"{example.description}\n\n"
                        f"Category: {example.category}\n"
                        f"API Elements: {', '.join(example.api_elements)}"
                    ),
                    code="",
                    language="text",
                    entry_type="overview",
                    example=example.name,
                ))
                snippets = [
                    snippet for snippet in example.code_snippets
                    if language == "all" or snippet.language.lower() == language
                ]
                for snippet in snippets[:MAX_SNIPPETS_PER_EXAMPLE]:
                    results.append(CodeExampleResult(
                        title=snippet.title,
                        description=snippet.description,
                        code=snippet.code,
                        language=snippet.language,
                        entry_type="snippet",
                        example=example.name,
                    ))
            return results
        except Exception as e:
            logger.error(f"get_code_examples failed (element_name={element_name!r}, language={language!r}): {e}",
                         exc_info=True)
            return []

    async def search_examples(self, query: str, limit: int = 10) -> List[CodeExample]:
        """Examples whose name, description, category or API elements mention the query."""
        try:
            needle = (query or "").strip().lower()
            if not needle:
                return []
            matching = [
                example for example in self.store.examples
                if needle in example.name.lower()
                or needle in example.description.lower()
                or needle in example.category.lower()
                or any(needle in element.lower() for element in example.api_elements)
            ]
            return matching[:max(limit, 0)]
        except Exception as e:
            logger.error(f"search_examples failed (query={query!r}, limit={limit}): {e}", exc_info=True)
            return []

    async def get_examples_by_category(self, category: Optional[str] = None) -> List[CodeExample]:
        """All examples, or those whose category contains the given text."""
        try:
            if not category:
                return list(self.store.examples)
            needle = category.lower()
            return [example for example in self.store.examples if needle in example.category.lower()]
        except Exception as e:
            logger.error(f"get_examples_by_category failed (category={category!r}): {e}", exc_info=True)
            return []

    async def get_example_details(self, name: str) -> Optional[CodeExample]:
        try:
            wanted = (name or "").strip().lower()
            for example in self.store.examples:
                if example.name.lower() == wanted:
                    return example
            return None
        except Exception as e:
            logger.error(f"get_example_details failed (name={name!r}): {e}", exc_info=True)
            return None

    async def get_example_categories(self) -> List[str]:
        try:
            return sorted({example.category for example in self.store.examples})
        except Exception as e:
            logger.error(f"get_example_categories failed: {e}", exc_info=True)
            return []
