import pytest

from kitchen_core.domain.exceptions import QuotaExhaustedError, StoreError
from kitchen_core.domain.quota import (
    QuotaState,
    QuotaTracker,
    parse_stored_counter,
    refund,
    try_consume,
)

KEY = "chef_eva_messages_left"


class DictStore:
    def __init__(self, data=None):
        self.data = dict(data or {})
        self.writes = 0

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value
        self.writes += 1


def test_try_consume_and_refund():
    assert try_consume(5) == 4
    assert refund(try_consume(5)) == 5
    assert refund(30, maximum=30) == 30


def test_try_consume_zero_is_denied():
    with pytest.raises(QuotaExhaustedError) as exc:
        try_consume(0)
    assert exc.value.code == "QUOTA_EXHAUSTED"


@pytest.mark.parametrize(
    "raw, expected",
    [(-5, None), ("abc", None), (None, None), (True, None), ("7", 7), (12, 12), (45, 30), (0, 0)],
)
def test_parse_stored_counter(raw, expected):
    assert parse_stored_counter(raw, maximum=30) == expected


@pytest.mark.parametrize("raw", [-5, "abc", None, 3.5])
def test_invalid_stored_value_resets_to_maximum(raw):
    store = DictStore({KEY: raw} if raw is not None else {})
    tracker = QuotaTracker(store, KEY, maximum=30)
    assert tracker.remaining == 30
    assert store.data[KEY] == 30


def test_valid_stored_value_is_not_rewritten():
    store = DictStore({KEY: 12})
    tracker = QuotaTracker(store, KEY, maximum=30)
    assert tracker.remaining == 12
    assert store.writes == 0


def test_consume_persists_every_change():
    store = DictStore({KEY: 2})
    tracker = QuotaTracker(store, KEY, maximum=30)
    assert tracker.consume() == 1
    assert store.data[KEY] == 1
    assert tracker.consume() == 0
    assert tracker.state is QuotaState.EXHAUSTED
    with pytest.raises(QuotaExhaustedError):
        tracker.consume()
    assert tracker.remaining == 0
    assert store.data[KEY] == 0


def test_reserve_commits_on_success():
    store = DictStore({KEY: 30})
    tracker = QuotaTracker(store, KEY, maximum=30)
    with tracker.reserve() as left:
        assert left == 29
    assert tracker.remaining == 29
    assert store.data[KEY] == 29


def test_reserve_refunds_on_failure():
    store = DictStore({KEY: 1})
    tracker = QuotaTracker(store, KEY, maximum=30)
    with pytest.raises(RuntimeError):
        with tracker.reserve():
            assert tracker.remaining == 0
            raise RuntimeError("503 overloaded")
    assert tracker.remaining == 1
    assert store.data[KEY] == 1
    assert tracker.state is QuotaState.AVAILABLE


def test_reserve_when_exhausted_never_enters_block():
    store = DictStore({KEY: 0})
    tracker = QuotaTracker(store, KEY, maximum=30)
    entered = []
    with pytest.raises(QuotaExhaustedError):
        with tracker.reserve():
            entered.append(True)
    assert entered == []
    assert tracker.remaining == 0


class FailingStore(DictStore):
    def __init__(self, data=None):
        super().__init__(data)
        self.fail = False

    def set(self, key, value):
        if self.fail:
            raise StoreError(code="STORE_WRITE_ERROR", message="disk full")
        super().set(key, value)


def test_consume_write_failure_leaves_counter_unchanged():
    store = FailingStore({KEY: 5})
    tracker = QuotaTracker(store, KEY, maximum=30)
    store.fail = True
    with pytest.raises(StoreError):
        with tracker.reserve():
            pytest.fail("block must not run when the debit cannot be stored")
    assert tracker.remaining == 5
    assert store.data[KEY] == 5


def test_failed_refund_write_keeps_original_error():
    store = FailingStore({KEY: 5})
    tracker = QuotaTracker(store, KEY, maximum=30)
    with pytest.raises(RuntimeError, match="503 overloaded"):
        with tracker.reserve():
            store.fail = True
            raise RuntimeError("503 overloaded")
    # 退还未能写入：内存与存储保持一致
    assert tracker.remaining == 4
    assert store.data[KEY] == 4
