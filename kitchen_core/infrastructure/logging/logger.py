import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from kitchen_core.config.settings import settings

LOGGER_NAME = "kitchen_core"
LOG_FILENAME = "kitchen.log"


class KitchenJsonFormatter(logging.Formatter):
    """一行一个 JSON 对象；调用方通过 extra={"extra": {...}} 附加的字段并入顶层。"""

    def __init__(self, redact: bool = False):
        super().__init__()
        self._redact = redact

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage() or ""
        if self._redact:
            message = message[:64]
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "msg": message,
        }
        context = getattr(record, "extra", None)
        if isinstance(context, dict):
            entry.update(context)
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logger(log_dir: str | Path | None = None) -> logging.Logger:
    """配置 kitchen_core 根 logger，写入 <log_dir>/kitchen.log；重复调用不会叠加 handler。"""

    kitchen_logger = logging.getLogger(LOGGER_NAME)
    kitchen_logger.setLevel(getattr(logging, str(settings.log_level).upper(), logging.INFO))
    target = Path(log_dir or settings.log_dir) / LOG_FILENAME
    for handler in kitchen_logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == target.resolve():
            return kitchen_logger
    target.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(target, encoding="utf-8")
    handler.setFormatter(KitchenJsonFormatter(redact=settings.log_redact_content))
    kitchen_logger.addHandler(handler)
    return kitchen_logger


logger = setup_logger()
