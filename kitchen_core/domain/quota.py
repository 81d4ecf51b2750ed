"""Chef Eva 消息额度。

额度只减不增：每次发送前乐观扣减，调用失败或返回格式错误时退还；
成功发送不退还。额度为 0 时拒绝发送，且不再扣减。
额度在本地键值存储中持久化，会话重置不影响额度。
"""

from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional, Protocol

from kitchen_core.infrastructure.logging.logger import logger

from .exceptions import QuotaExhaustedError, StoreError


class QuotaState(str, Enum):
    AVAILABLE = "available"
    EXHAUSTED = "exhausted"


class QuotaStore(Protocol):
    """额度持久化所需的最小键值接口。"""

    def get(self, key: str) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


def try_consume(counter: int) -> int:
    """扣减一次额度；counter 为 0 时抛出 QuotaExhaustedError 且不修改额度。"""

    if counter <= 0:
        raise QuotaExhaustedError()
    return counter - 1


def refund(counter: int, maximum: Optional[int] = None) -> int:
    """退还一次乐观扣减的额度。"""

    restored = counter + 1
    if maximum is not None:
        restored = min(restored, maximum)
    return restored


def parse_stored_counter(raw: Any, maximum: int) -> Optional[int]:
    """解析存储中的原始值；缺失、非数字或负数返回 None。"""

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().isdigit():
        value = int(raw.strip())
    else:
        return None
    if value < 0:
        return None
    return min(value, maximum)


class QuotaTracker:
    """绑定到存储的额度计数器。

    实例化时读取一次存储（无效值视为满额并回写），之后每次变化都立即写回。
    """

    def __init__(self, store: QuotaStore, key: str, maximum: int):
        self._store = store
        self._key = key
        self._maximum = maximum
        self._counter = self._load()

    @property
    def remaining(self) -> int:
        return self._counter

    @property
    def maximum(self) -> int:
        return self._maximum

    @property
    def state(self) -> QuotaState:
        return QuotaState.AVAILABLE if self._counter > 0 else QuotaState.EXHAUSTED

    def consume(self) -> int:
        return self._commit(try_consume(self._counter))

    def refund(self) -> int:
        return self._commit(refund(self._counter, self._maximum))

    @contextmanager
    def reserve(self) -> Iterator[int]:
        """乐观扣减一次额度，代码块异常退出（含取消）时自动退还。

        额度不足时在进入代码块之前抛出 QuotaExhaustedError；扣减写入存储失败时
        抛出 StoreError，额度保持不变。退还写入失败只记录日志，原异常照常抛出。
        """

        remaining = self.consume()
        try:
            yield remaining
        except BaseException:
            try:
                self.refund()
            except StoreError:
                logger.error(
                    "Quota refund could not be persisted",
                    exc_info=True,
                    extra={"extra": {"quota_key": self._key, "remaining_quota": self._counter}},
                )
            raise

    def _load(self) -> int:
        raw = self._store.get(self._key)
        value = parse_stored_counter(raw, self._maximum)
        if value is None or value != raw:
            value = self._maximum if value is None else value
            self._store.set(self._key, value)
        return value

    def _commit(self, counter: int) -> int:
        # 先写存储，成功后才更新内存，两者始终一致
        self._store.set(self._key, counter)
        self._counter = counter
        return counter
