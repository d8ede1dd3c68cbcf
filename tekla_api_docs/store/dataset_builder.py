"""
Offline dataset builder.

Walks the help table of contents, normalizes every referenced page and writes
the parsed-api dataset read by RecordStore.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from tekla_api_docs.config import Settings
from tekla_api_docs.errors import DatasetBuildError
from tekla_api_docs.parsing.markup_normalizer import MarkupNormalizer
from tekla_api_docs.parsing.toc_walker import TocWalker
from tekla_api_docs.schemas import ApiRecord, CodeExample, Statistics, TocEntry
from tekla_api_docs.store.record_store import (
    COMBINED_FILE,
    EXAMPLES_FILE,
    PARTITION_FILES,
    SEARCH_INDEX_FILE,
    STATS_FILE,
    TOC_FILE,
    RecordStore,
    parse_items,
)

logger = logging.getLogger(__name__)


class DatasetBuilder:
    """
    Build the persisted dataset from an extracted help archive.

    Example:
        >>> builder = DatasetBuilder(Path("parsed-api"), settings)
        >>> stats = builder.build(Path("extracted-docs/TeklaOpenAPI_Reference.hhc"))
        >>> stats.classes
        1234
    """

    def __init__(self, output_dir: Path, settings: Optional[Settings] = None):
        """
        Initialize dataset builder.

        Args:
            output_dir: Directory the dataset files are written to
            settings: Page directory and naming conventions
        """
        self.output_dir = Path(output_dir)
        self.settings = settings or Settings()
        self.walker = TocWalker(self.settings)
        self.normalizer = MarkupNormalizer(self.settings.html_dir, self.settings)

    def build(
        self,
        toc_path: Path,
        max_items: Optional[int] = None,
        examples_path: Optional[Path] = None,
    ) -> Statistics:
        """
        Build the complete dataset.

        Args:
            toc_path: Navigation (.hhc) document
            max_items: Stop after this many TOC entries (all when None)
            examples_path: Optional JSON list of CodeExample records to include

        Returns:
            Statistics of the written dataset
        """
        toc_path = Path(toc_path)
        if not toc_path.is_file():
            raise DatasetBuildError(f"Table of contents not found: {toc_path}")

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DatasetBuildError(f"Cannot create output directory {self.output_dir}: {e}") from e

        logger.info(f"Building dataset at: {self.output_dir}")

        toc_entries = self.walker.parse_file(toc_path)
        self._write(TOC_FILE, [entry.model_dump(by_alias=True) for entry in toc_entries])

        records = self.normalize_entries(toc_entries, max_items)
        examples = self._load_examples(examples_path) if examples_path else []

        store = RecordStore(records=records, examples=examples, root_token=self.settings.root_token)

        self._write(COMBINED_FILE, [self._dump(record) for record in store.records])
        for kind, file_name in PARTITION_FILES.items():
            self._write(file_name, [self._dump(record) for record in store.partition(kind)])
        self._write(SEARCH_INDEX_FILE, [entry.model_dump(by_alias=True) for entry in store.search_entries])
        if examples_path:
            self._write(EXAMPLES_FILE, [example.model_dump(by_alias=True) for example in store.examples])

        stats = store.statistics()
        self._write(STATS_FILE, stats.model_dump(by_alias=True))

        logger.info(
            f"Dataset complete: {stats.total_items} records "
            f"({stats.classes} classes, {stats.methods} methods, {stats.properties} properties)"
        )
        return stats

    def normalize_entries(self, toc_entries: List[TocEntry], max_items: Optional[int] = None) -> List[ApiRecord]:
        """
        Normalize the pages referenced by TOC entries, in TOC order.

        Entries without a page, pages seen before and unreadable pages are skipped.
        """
        selected = toc_entries if max_items is None else toc_entries[:max_items]
        seen_pages = set()
        records: List[ApiRecord] = []
        skipped = 0

        for position, entry in enumerate(selected, start=1):
            if not entry.target_page or entry.target_page in seen_pages:
                continue
            seen_pages.add(entry.target_page)

            record = self.normalizer.normalize_page(entry)
            if record is None:
                skipped += 1
                continue
            records.append(record)

            if position % 500 == 0:
                logger.info(f"Normalized {position}/{len(selected)} entries")

        if skipped:
            logger.warning(f"Skipped {skipped} unreadable pages")
        return records

    def _load_examples(self, examples_path: Path) -> List[CodeExample]:
        examples_path = Path(examples_path)
        try:
            data = json.loads(examples_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise DatasetBuildError(f"Cannot read examples from {examples_path}: {e}") from e
        if not isinstance(data, list):
            raise DatasetBuildError(f"Expected a list of examples in {examples_path}")
        return parse_items(data, CodeExample, examples_path.name)

    @staticmethod
    def _dump(record: ApiRecord) -> Dict:
        return record.model_dump(by_alias=True, exclude={"detailed_info"}, exclude_none=True)

    def _write(self, file_name: str, payload) -> None:
        path = self.output_dir / file_name
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.debug(f"Wrote {path}")


def build_dataset(
    toc_path: Path,
    output_dir: Path,
    settings: Optional[Settings] = None,
    max_items: Optional[int] = None,
    examples_path: Optional[Path] = None,
) -> Statistics:
    """
    Convenience function to build a dataset.

    Args:
        toc_path: Navigation (.hhc) document
        output_dir: Dataset output directory
        settings: Page directory and naming conventions
        max_items: Optional cap on TOC entries
        examples_path: Optional examples JSON to include

    Returns:
        Statistics of the written dataset
    """
    builder = DatasetBuilder(output_dir, settings)
    return builder.build(toc_path, max_items=max_items, examples_path=examples_path)
