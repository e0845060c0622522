# small JSON file backed key-value store for client side state
import json
import os
import tempfile
from typing import Any, Dict, Optional

from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)


class KeyValueStore:
    """
    Persistent string-keyed store of JSON values, kept in a single file.

    Every write rewrites the file atomically (temp file + os.replace), so a
    crash never leaves half a document behind. A file that cannot be parsed
    is logged and treated as empty.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or config.STORE_PATH
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            _logger.error(f"Could not read local store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            _logger.error(f"Local store {self.path} is not a JSON object, ignoring it")
            return {}
        return data

    def _flush(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()

    def __contains__(self, key: str) -> bool:
        return key in self._data
