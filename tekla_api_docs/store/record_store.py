"""
In-memory record store over a persisted parsed-api dataset.

Dataset layout:
parsed-api/
├── full-api.json          # Combined records (ground truth)
├── search-index.json      # SearchIndexEntry projection
├── namespaces.json        # One partition file per kind
├── classes.json
├── interfaces.json
├── enums.json
├── methods.json
├── properties.json
├── delegates.json
├── examples.json          # CodeExample records
├── toc-structure.json     # Written by the builder, not loaded
└── stats.json             # Written by the builder, not loaded

Loading is fault-tolerant per file: a missing or corrupt file yields an empty
collection and a warning. Partitions are conveniences; queries that need
completeness consult the combined collection.
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from tekla_api_docs.schemas import (
    ApiRecord,
    CodeExample,
    DetailedInfo,
    SearchIndexEntry,
    Statistics,
)

logger = logging.getLogger(__name__)

COMBINED_FILE = "full-api.json"
SEARCH_INDEX_FILE = "search-index.json"
EXAMPLES_FILE = "examples.json"
TOC_FILE = "toc-structure.json"
STATS_FILE = "stats.json"

# kind -> partition file
PARTITION_FILES: Dict[str, str] = {
    "namespace": "namespaces.json",
    "class": "classes.json",
    "interface": "interfaces.json",
    "enum": "enums.json",
    "method": "methods.json",
    "property": "properties.json",
    "delegate": "delegates.json",
}

M = TypeVar("M", bound=BaseModel)


def normalize_api_elements(elements: Iterable[str], root_token: str = "Tekla") -> List[str]:
    """
    Deduplicate API element names, keeping only symbols under the root token.

    Example:
        >>> normalize_api_elements(["Tekla.Structures.Model.Beam", "System.Linq", "Tekla.Structures.Model.Beam"])
        ['Tekla.Structures.Model.Beam']
    """
    symbol = re.compile(r"^" + re.escape(root_token) + r"(\.[A-Za-z_][A-Za-z0-9_]*)+$")
    seen = set()
    result = []
    for element in elements:
        name = (element or "").strip()
        if name and symbol.match(name) and name not in seen:
            seen.add(name)
            result.append(name)
    return result


def _read_json_list(path: Path) -> Optional[list]:
    if not path.exists():
        logger.warning(f"Dataset file not found: {path}")
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Could not load {path}: {e}")
        return None
    if not isinstance(data, list):
        logger.warning(f"Expected a list in {path}, got {type(data).__name__}")
        return None
    return data


def parse_items(items: Optional[list], model: Type[M], source: str) -> List[M]:
    parsed: List[M] = []
    for position, item in enumerate(items or []):
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping invalid entry #{position} in {source}: {e.error_count()} error(s)")
    return parsed


class RecordStore:
    """
    Partitioned, read-only collections of API records and code examples.

    The only mutation is attaching DetailedInfo to a record, which overwrites
    any previous value.

    Example:
        >>> store = RecordStore.load(Path("parsed-api"))
        >>> len(store.partition("class"))
        1234
    """

    def __init__(
        self,
        records: Sequence[ApiRecord] = (),
        partitions: Optional[Dict[str, Sequence[ApiRecord]]] = None,
        search_entries: Optional[Sequence[SearchIndexEntry]] = None,
        examples: Sequence[CodeExample] = (),
        root_token: str = "Tekla",
    ):
        """
        Initialize a store from already-parsed collections.

        Args:
            records: Combined collection
            partitions: kind -> records; derived from ``records`` when omitted
            search_entries: Index projection; derived from ``records`` when omitted
            examples: Code examples
            root_token: First namespace segment used to filter example API elements
        """
        self.root_token = root_token
        self._records: Tuple[ApiRecord, ...] = tuple(records)

        if partitions is None:
            partitions = {
                kind: [record for record in self._records if record.kind == kind]
                for kind in PARTITION_FILES
            }
        self._partitions: Dict[str, Tuple[ApiRecord, ...]] = {
            kind: tuple(partitions.get(kind, ())) for kind in PARTITION_FILES
        }

        if not search_entries:
            search_entries = [record.to_search_entry() for record in self._records]
        self._search_entries: Tuple[SearchIndexEntry, ...] = tuple(search_entries)

        normalized = []
        for example in examples:
            elements = normalize_api_elements(example.api_elements, root_token)
            if elements != example.api_elements:
                example = example.model_copy(update={"api_elements": elements})
            normalized.append(example)
        self._examples: Tuple[CodeExample, ...] = tuple(normalized)

    @classmethod
    def load(cls, dataset_dir: Path, root_token: str = "Tekla") -> "RecordStore":
        """
        Load a persisted dataset directory.

        Args:
            dataset_dir: Directory containing full-api.json and friends
            root_token: First namespace segment of product symbols

        Returns:
            RecordStore (possibly empty, never raises for missing data)
        """
        dataset_dir = Path(dataset_dir)
        logger.info(f"Loading dataset from: {dataset_dir}")

        records = parse_items(_read_json_list(dataset_dir / COMBINED_FILE), ApiRecord, COMBINED_FILE)

        partitions = {}
        for kind, file_name in PARTITION_FILES.items():
            partitions[kind] = parse_items(_read_json_list(dataset_dir / file_name), ApiRecord, file_name)

        search_entries = parse_items(
            _read_json_list(dataset_dir / SEARCH_INDEX_FILE), SearchIndexEntry, SEARCH_INDEX_FILE
        )
        examples = parse_items(_read_json_list(dataset_dir / EXAMPLES_FILE), CodeExample, EXAMPLES_FILE)

        store = cls(
            records=records,
            partitions=partitions,
            search_entries=search_entries,
            examples=examples,
            root_token=root_token,
        )
        logger.info(f"Loaded {len(store.records)} API records and {len(store.examples)} code examples")
        return store

    @property
    def records(self) -> Tuple[ApiRecord, ...]:
        """Combined collection, in persisted order."""
        return self._records

    @property
    def search_entries(self) -> Tuple[SearchIndexEntry, ...]:
        return self._search_entries

    @property
    def examples(self) -> Tuple[CodeExample, ...]:
        return self._examples

    @property
    def has_local_data(self) -> bool:
        return bool(self._records) or any(self._partitions.values())

    def partition(self, kind: str) -> Tuple[ApiRecord, ...]:
        """Records of one kind as loaded from its partition file (empty for unpartitioned kinds)."""
        return self._partitions.get(kind, ())

    def attach_detailed_info(self, record: ApiRecord, info: DetailedInfo) -> ApiRecord:
        """
        Attach parsed details to a stored record.

        Re-attaching replaces the previous value; lists are never merged.
        """
        record.detailed_info = info
        return record

    def statistics(self) -> Statistics:
        return Statistics(
            total_items=len(self._records),
            namespaces=len(self.partition("namespace")),
            classes=len(self.partition("class")),
            interfaces=len(self.partition("interface")),
            enums=len(self.partition("enum")),
            methods=len(self.partition("method")),
            properties=len(self.partition("property")),
            delegates=len(self.partition("delegate")),
            examples=len(self._examples),
            code_snippets=sum(len(example.code_snippets) for example in self._examples),
        )


def load_store(dataset_dir: Path, root_token: str = "Tekla") -> RecordStore:
    """Convenience function to load a record store."""
    return RecordStore.load(dataset_dir, root_token)
