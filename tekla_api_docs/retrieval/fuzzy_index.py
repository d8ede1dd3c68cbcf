"""
Weighted fuzzy search over the SearchIndexEntry projection.

Each entry is scored on four fields (title 0.4, namespace 0.3, summary 0.2,
identifier 0.1). A field matches when its similarity to the query reaches
``1 - threshold``:
- a case-insensitive substring hit scores 1.0, decaying with the position of
  the hit down to the threshold floor
- otherwise each query token takes its best SequenceMatcher ratio against the
  field's tokens, averaged over the query tokens

Each matched field contributes ``weight * similarity / sqrt(field tokens)``
so short fields rank above long ones for the same hit. Scores are only
comparable within one query.
"""

import logging
import math
import re
from difflib import SequenceMatcher
from typing import Dict, List, NamedTuple, Sequence, Tuple

from tekla_api_docs.schemas import SearchIndexEntry
from tekla_api_docs.utils.naming import symbol_name

logger = logging.getLogger(__name__)

FIELD_WEIGHTS: Tuple[Tuple[str, float], ...] = (
    ("title", 0.4),
    ("namespace", 0.3),
    ("summary", 0.2),
    ("identifier", 0.1),
)

# Hit position at which a substring match reaches the similarity floor
LOCATION_DISTANCE = 250

_TOKEN = re.compile(r"[a-z0-9_]+")


def tokenize(text: str) -> List[str]:
    return _TOKEN.findall(text.lower()) if text else []


class IndexMatch(NamedTuple):
    """One ranked hit: the projected entry and its relevance (0..1, higher is better)."""
    entry: SearchIndexEntry
    score: float


class _IndexedField(NamedTuple):
    text: str
    tokens: Tuple[str, ...]
    norm: float


class FuzzySearchIndex:
    """
    Immutable fuzzy index built once from the store's search projection.

    Example:
        >>> index = FuzzySearchIndex(store.search_entries)
        >>> [m.entry.title for m in index.search("Beam")][:2]
        ['Beam Class', 'Beam.Insert Method']
    """

    def __init__(
        self,
        entries: Sequence[SearchIndexEntry],
        threshold: float = 0.4,
        min_match_length: int = 2,
    ):
        """
        Build the index.

        Args:
            entries: Denormalized records to index
            threshold: 0.0 requires exact matches, 1.0 matches anything
            min_match_length: Queries shorter than this return nothing
        """
        self._entries: Tuple[SearchIndexEntry, ...] = tuple(entries)
        self._min_similarity = 1.0 - threshold
        self._min_match_length = min_match_length
        self._fields: Tuple[Dict[str, _IndexedField], ...] = tuple(
            self._index_entry(entry) for entry in self._entries
        )
        logger.info(f"Built fuzzy index over {len(self._entries)} entries")

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def _index_entry(entry: SearchIndexEntry) -> Dict[str, _IndexedField]:
        values = {
            "title": entry.title,
            "namespace": entry.namespace,
            "summary": entry.summary,
            "identifier": symbol_name(entry.title),
        }
        fields = {}
        for name, value in values.items():
            tokens = tuple(tokenize(value))
            norm = 1.0 / math.sqrt(len(tokens)) if tokens else 0.0
            fields[name] = _IndexedField(value.lower(), tokens, norm)
        return fields

    def search(self, query: str) -> List[IndexMatch]:
        """
        Rank all entries against a free-text query.

        Args:
            query: Free text (class name, member name, keywords)

        Returns:
            Matches sorted by descending score; ties keep index order
        """
        query = (query or "").strip()
        if len(query) < self._min_match_length:
            return []

        scorer = _QueryScorer(query, self._min_similarity)

        matches: List[IndexMatch] = []
        for entry, fields in zip(self._entries, self._fields):
            score = 0.0
            matched = False
            for name, weight in FIELD_WEIGHTS:
                field = fields[name]
                similarity = scorer.similarity(field)
                if similarity >= self._min_similarity and similarity > 0.0:
                    matched = True
                    score += weight * similarity * field.norm
            if matched:
                matches.append(IndexMatch(entry, round(score, 6)))

        matches.sort(key=lambda match: -match.score)
        logger.debug(f"'{query}' matched {len(matches)} entries ({scorer.vocabulary_size} distinct tokens compared)")
        return matches


class _QueryScorer:
    """
    Field similarity for one query.

    Each query token gets one SequenceMatcher holding it as the second
    sequence, so its lookup table is built once. Ratios are memoized per
    distinct field token and similarities per distinct field text.
    """

    def __init__(self, query: str, min_similarity: float):
        self.query_lower = query.lower()
        self.min_similarity = min_similarity
        self.matchers: List[SequenceMatcher] = []
        for query_token in tokenize(query):
            matcher = SequenceMatcher(None)
            matcher.set_seq2(query_token)
            self.matchers.append(matcher)
        self._token_ratios: Dict[str, Tuple[float, ...]] = {}
        self._field_scores: Dict[Tuple[str, Tuple[str, ...]], float] = {}

    @property
    def vocabulary_size(self) -> int:
        return len(self._token_ratios)

    def similarity(self, field: _IndexedField) -> float:
        if not field.text:
            return 0.0
        key = (field.text, field.tokens)
        if key not in self._field_scores:
            self._field_scores[key] = self._score(field)
        return self._field_scores[key]

    def _score(self, field: _IndexedField) -> float:
        position = field.text.find(self.query_lower)
        if position >= 0:
            decay = min(position / LOCATION_DISTANCE, 1.0)
            return 1.0 - (1.0 - self.min_similarity) * decay

        if not self.matchers or not field.tokens:
            return 0.0

        best = [0.0] * len(self.matchers)
        for token in field.tokens:
            for i, ratio in enumerate(self._ratios(token)):
                if ratio > best[i]:
                    best[i] = ratio
        return sum(best) / len(best)

    def _ratios(self, token: str) -> Tuple[float, ...]:
        ratios = self._token_ratios.get(token)
        if ratios is None:
            values = []
            for matcher in self.matchers:
                matcher.set_seq1(token)
                values.append(matcher.ratio() if matcher.quick_ratio() > 0.0 else 0.0)
            ratios = tuple(values)
            self._token_ratios[token] = ratios
        return ratios
