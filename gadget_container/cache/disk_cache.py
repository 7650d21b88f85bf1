"""
Disk Cache

File-backed cache that survives process restarts. Each key is stored as a
JSON document named by the sha1 of the key.
"""

import hashlib
import json
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Optional, Union
import logging

from gadget_container.logging_config import get_logger


class DiskCache:
    """JSON-per-key cache rooted in a directory."""

    def __init__(self, directory: Union[str, Path], logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or get_logger(__name__)
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode('utf-8')).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, key: str, max_age: Optional[float] = None) -> Optional[Any]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                record = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning("Discarding unreadable cache entry %s: %s", path.name, e)
            return None
        if max_age is not None and time.time() - record.get('timestamp', 0) > max_age:
            return None
        return record.get('data')

    def set(self, key: str, value: Any) -> None:
        path = self._path_for(key)
        record = {'key': key, 'timestamp': time.time(), 'data': value}
        with self._lock:
            # Write to a temp file and rename so readers never see a partial document
            fd, tmp_name = tempfile.mkstemp(dir=str(self.directory), suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(record, f)
                os.replace(tmp_name, path)
            except Exception:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise

    def add(self, key: str, value: Any) -> Any:
        with self._lock:
            existing = self.get(key)
            if existing is not None:
                return existing
            self.set(key, value)
            return value

    def clear(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is not None:
                path = self._path_for(key)
                if path.exists():
                    path.unlink()
                return
            for path in self.directory.glob('*.json'):
                path.unlink()
