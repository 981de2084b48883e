"""
Drug selection lists.

A selection is an ordered list of drugs keyed by ``rxcui``: adding is
idempotent, removing drops exactly the matching entry and keeps the relative
order of the rest. Selections optionally persist to ``JsonStorage`` and feed
a popularity counter used to rank search results.
"""

import logging

from oncosaferx.constants import POPULARITY_KEY, SELECTED_DRUGS_KEY
from oncosaferx.models.drug import Drug
from oncosaferx.utils.storage import JsonStorage

logger = logging.getLogger(__name__)


class SelectionError(ValueError):
    """Raised for operations on a drug that is not in the selection."""


class PopularityCounter:
    """Per-rxcui selection counts, stored as one JSON object."""

    def __init__(self, storage: JsonStorage, key: str = POPULARITY_KEY):
        self.storage = storage
        self.key = key

    def counts(self) -> dict[str, int]:
        data = self.storage.get(self.key, {})
        return data if isinstance(data, dict) else {}

    def increment(self, rxcui: str) -> int:
        counts = self.counts()
        counts[rxcui] = counts.get(rxcui, 0) + 1
        self.storage.set(self.key, counts)
        return counts[rxcui]

    def get(self, rxcui: str) -> int:
        return self.counts().get(rxcui, 0)

    def rank(self, drugs: list[Drug]) -> list[Drug]:
        """Most-selected first; ties keep their input order."""
        counts = self.counts()
        return sorted(drugs, key=lambda d: -counts.get(d.rxcui, 0))


class DrugSelection:
    """An ordered, rxcui-unique list of selected drugs.

    Args:
        capacity: Maximum number of drugs; None means unbounded.
        storage: When given, the selection is loaded from and saved to it.
        popularity: When given, each successful add is counted.
    """

    def __init__(
        self,
        capacity: int | None = None,
        storage: JsonStorage | None = None,
        popularity: PopularityCounter | None = None,
        storage_key: str = SELECTED_DRUGS_KEY,
    ):
        self.capacity = capacity
        self.storage = storage
        self.popularity = popularity
        self.storage_key = storage_key
        self._drugs: list[Drug] = []
        if storage is not None:
            self._load()

    @property
    def drugs(self) -> list[Drug]:
        return list(self._drugs)

    def __len__(self) -> int:
        return len(self._drugs)

    def __contains__(self, rxcui: str) -> bool:
        return any(d.rxcui == rxcui for d in self._drugs)

    def rxcuis(self) -> list[str]:
        return [d.rxcui for d in self._drugs]

    def is_full(self) -> bool:
        return self.capacity is not None and len(self._drugs) >= self.capacity

    def add(self, drug: Drug) -> bool:
        """Append ``drug`` unless already present or at capacity. Returns whether it was added."""
        if drug.rxcui in self or self.is_full():
            return False
        self._drugs.append(drug)
        if self.popularity is not None:
            self.popularity.increment(drug.rxcui)
        self._save()
        return True

    def remove(self, rxcui: str) -> bool:
        """Remove the drug with ``rxcui``; unknown ids are a no-op returning False."""
        remaining = [d for d in self._drugs if d.rxcui != rxcui]
        if len(remaining) == len(self._drugs):
            return False
        self._drugs = remaining
        self._save()
        return True

    def move(self, rxcui: str, new_index: int) -> None:
        """Move a selected drug to ``new_index`` (clamped to the list bounds)."""
        for i, drug in enumerate(self._drugs):
            if drug.rxcui == rxcui:
                break
        else:
            raise SelectionError(f"Drug {rxcui} is not selected")

        self._drugs.pop(i)
        new_index = max(0, min(new_index, len(self._drugs)))
        self._drugs.insert(new_index, drug)
        self._save()

    def clear(self) -> None:
        self._drugs = []
        self._save()

    # -- Persistence ------------------------------------------------------------

    def _load(self) -> None:
        raw = self.storage.get(self.storage_key, [])
        if not isinstance(raw, list):
            return
        for item in raw:
            try:
                drug = Drug.model_validate(item)
            except ValueError:
                logger.warning("Skipping unreadable stored drug: %r", item)
                continue
            if drug.rxcui not in self and not self.is_full():
                self._drugs.append(drug)

    def _save(self) -> None:
        if self.storage is None:
            return
        self.storage.set(
            self.storage_key, [d.model_dump(mode="json") for d in self._drugs]
        )
