# botanai/services/history.py
import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Protocol

from pydantic import TypeAdapter, ValidationError

from botanai.models.plant_analysis import HistoryItem, PlantAnalysis

logger = logging.getLogger(__name__)

HISTORY_KEY = "botanai_history"

_HISTORY_ADAPTER = TypeAdapter(List[PlantAnalysis])


class HistoryStoreError(RuntimeError):
    pass


class HistoryBackend(Protocol):
    """Storage slot holding the serialized history."""

    def read(self) -> Optional[str]:
        ...

    def write(self, data: str) -> None:
        ...


class InMemoryBackend:
    def __init__(self, data: Optional[str] = None):
        self.data = data

    def read(self) -> Optional[str]:
        return self.data

    def write(self, data: str) -> None:
        self.data = data


class JsonFileBackend:
    """Keeps the history in a single JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def in_directory(cls, directory: Path, key: str = HISTORY_KEY) -> "JsonFileBackend":
        return cls(Path(directory) / f"{key}.json")

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise HistoryStoreError(f"Failed to read history file {self.path}: {e}") from e

    def write(self, data: str) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(data, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise HistoryStoreError(f"Failed to persist history to {self.path}: {e}") from e


class HistoryStore:
    """
    Newest-first list of past analyses.

    Every mutation rewrites the whole list through the backend. There is no
    deduplication and no eviction.
    """

    def __init__(self, backend: HistoryBackend):
        self.backend = backend
        self._records: List[PlantAnalysis] = []

    def load(self) -> List[PlantAnalysis]:
        """Restore the list from the backend.

        A missing slot starts an empty history. An unreadable or corrupt one is
        logged and also starts an empty history.
        """
        try:
            raw = self.backend.read()
        except HistoryStoreError as e:
            logger.error(f"Could not read history, starting empty: {e}")
            raw = None

        if not raw:
            self._records = []
            return self.items()

        try:
            self._records = _HISTORY_ADAPTER.validate_json(raw)
        except ValidationError as e:
            logger.error(f"Failed to parse history, starting empty: {e}", exc_info=True)
            self._records = []
        logger.info(f"Loaded {len(self._records)} history entries")
        return self.items()

    def append(self, record: PlantAnalysis) -> None:
        self._replace([record] + self._records)

    def clear(self) -> None:
        self._replace([])

    def items(self) -> List[PlantAnalysis]:
        return list(self._records)

    def summaries(self) -> List[HistoryItem]:
        return [HistoryItem.from_analysis(record) for record in self._records]

    def get(self, record_id: str) -> Optional[PlantAnalysis]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def __len__(self) -> int:
        return len(self._records)

    def _replace(self, records: List[PlantAnalysis]) -> None:
        # In-memory list only changes once the backend accepted the write
        data = json.dumps([record.model_dump(mode="json", by_alias=True) for record in records])
        self.backend.write(data)
        self._records = records
