"""
Simple JSON document storage

- One JSON file per logical document (patients, deliveries, reports, ...)
- Whole documents are loaded and saved per request, no partial updates
- Missing documents are created with their default content on first load
- No locking: concurrent writers to the same document race, last save wins
- Easy to migrate to a transactional key-value store by implementing DocumentStore
"""
import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Protocol

from app.core.config import DATA_DIR

logger = logging.getLogger(__name__)

# Logical document names
PATIENTS = "patients"
QUOTA_HISTORY = "quota_history"
GLOBAL_QUOTA = "global_quota"
DRUG_DELIVERIES = "drug_deliveries"
MONTHLY_REPORTS = "monthly_reports"
NOTIFICATIONS = "notifications"


class DocumentStore(Protocol):
    def load(self, name: str, default: Any) -> Any:
        ...

    def save(self, name: str, document: Any) -> None:
        ...


def read_json(filepath: Path) -> Any:
    """
    Read and parse a JSON file

    Raises FileNotFoundError if absent so the caller can create defaults
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(filepath: Path, data: Any):
    """
    Write data to JSON file
    """
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


class JsonFileStore:
    """
    Document store backed by <data_dir>/<name>.json files
    """
    def __init__(self, data_dir: str = DATA_DIR):
        self.data_dir = Path(data_dir)

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def load(self, name: str, default: Any) -> Any:
        """
        Load a document, creating it with `default` if the file does not exist
        """
        path = self.path_for(name)
        try:
            return read_json(path)
        except FileNotFoundError:
            document = copy.deepcopy(default)
            self.save(name, document)
            return copy.deepcopy(default)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading document {path.name}: {e}")
            raise

    def save(self, name: str, document: Any) -> None:
        path = self.path_for(name)
        try:
            write_json(path, document)
        except OSError as e:
            logger.error(f"Error saving document {path.name}: {e}")
            raise
        logger.debug(f"Data saved to {path.name}")


class MemoryStore:
    """
    In-memory document store with the same semantics as JsonFileStore

    Documents are deep-copied on the way in and out, so callers never share
    state with the store except through save().
    """
    def __init__(self, documents: Dict[str, Any] = None):
        self._documents: Dict[str, Any] = copy.deepcopy(documents or {})

    def load(self, name: str, default: Any) -> Any:
        if name not in self._documents:
            self._documents[name] = copy.deepcopy(default)
        return copy.deepcopy(self._documents[name])

    def save(self, name: str, document: Any) -> None:
        self._documents[name] = copy.deepcopy(document)

    def snapshot(self, name: str) -> Any:
        """Raw stored document, or None if it was never created"""
        return copy.deepcopy(self._documents.get(name))
