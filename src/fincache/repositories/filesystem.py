"""File-backed key-value store for the local cache tier."""

from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote

_SUFFIX = ".json"


class JsonFileKeyValueStore:
    """KeyValueStore keeping one file per key under a directory."""

    def __init__(self, directory: Path):
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        return [unquote(p.name[: -len(_SUFFIX)]) for p in self._directory.glob(f"*{_SUFFIX}")]

    def _path(self, key: str) -> Path:
        return self._directory / f"{quote(key, safe='')}{_SUFFIX}"
