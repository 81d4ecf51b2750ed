import json
import os
from pathlib import Path
from typing import Any, Dict
from uuid import uuid4

from kitchen_core.config.settings import settings
from kitchen_core.domain.exceptions import StoreError
from kitchen_core.infrastructure.logging.logger import logger


class JsonKeyValueStore:
    """单文件 JSON 键值存储，对应浏览器端的 localStorage。

    每次 set 都整体重写文件（临时文件 + os.replace），文件损坏时按空存储处理。
    """

    def __init__(self, root: str | Path | None = None, filename: str = "local_storage.json"):
        self._root = Path(root or settings.storage_root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._path = self._root / filename

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def _read(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(
                "Unreadable key-value store, treating as empty",
                extra={"extra": {"path": str(self._path), "error": str(e)}},
            )
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        tmp_path = self._root / f"{self._path.stem}.{uuid4().hex}.json.tmp"
        try:
            tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StoreError(code="STORE_WRITE_ERROR", message=str(e))
