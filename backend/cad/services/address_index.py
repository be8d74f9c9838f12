from __future__ import annotations

import logging
import unicodedata
from collections.abc import Iterable
from difflib import SequenceMatcher

from cad.data.gazetteer import GAZETTEER
from cad.models.navigation import Location

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3


def _fold(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(char for char in decomposed if not unicodedata.combining(char)).lower()


def _squash(value: str) -> str:
    return " ".join(value.split())


def _similarity(query: str, field: str) -> float:
    """Best ratio of the query against the whole field or any equally long word window."""
    if not field:
        return 0.0
    if query in field:
        return 1.0

    best = SequenceMatcher(None, query, field).ratio()
    words = field.replace(",", " ").split()
    width = max(1, len(query.split()))
    for start in range(len(words)):
        window = " ".join(words[start : start + width])
        ratio = SequenceMatcher(None, query, window).ratio()
        if ratio > best:
            best = ratio
    return best


class AddressIndex:
    def __init__(self, entries: Iterable[Location] = GAZETTEER, threshold: float = 0.6, limit: int | None = None) -> None:
        self.entries: tuple[Location, ...] = tuple(entries)
        self.threshold = threshold
        self.limit = limit
        self._by_id = {entry.id: entry for entry in self.entries}
        self._folded: list[tuple[Location, str, str, str, str]] = []
        for entry in self.entries:
            name = _fold(entry.name)
            address = _fold(entry.address or "")
            self._folded.append((entry, name, address, _squash(name), _squash(address)))

    def get(self, location_id: str) -> Location | None:
        return self._by_id.get(location_id)

    def search(self, query: str, threshold: float | None = None) -> list[Location]:
        if len(query) < MIN_QUERY_LENGTH:
            return []
        raw = _fold(query)
        normalized = _squash(raw)
        # Edge spaces matter for substring hits; fuzzy scoring needs three real characters.
        fuzzy = len(normalized) >= MIN_QUERY_LENGTH

        cutoff = self.threshold if threshold is None else threshold
        scored: list[tuple[float, float, int, Location]] = []
        for position, (entry, name, address, name_words, address_words) in enumerate(self._folded):
            name_score = 1.0 if raw in name else (_similarity(normalized, name_words) if fuzzy else 0.0)
            address_score = 1.0 if raw in address else (_similarity(normalized, address_words) if fuzzy else 0.0)
            score = max(name_score, address_score)
            if score < cutoff:
                continue
            scored.append((score, name_score, position, entry))

        # Name hits rank above address-only hits of the same score.
        scored.sort(key=lambda item: (-item[0], -item[1], item[2]))
        results = [entry for _, _, _, entry in scored]
        if self.limit is not None:
            results = results[: self.limit]
        logger.debug("Address search", extra={"query": normalized, "threshold": cutoff, "matches": len(results)})
        return results
