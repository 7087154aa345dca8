import threading
from decimal import Decimal

from spendwatch.dedup import STATE_KEY, DeduplicationGate
from spendwatch.models import DedupState, ParsedTransaction, TransactionType
from spendwatch.store import SqlKeyValueStore
from tests.helpers.stores import FlakyStore

T0 = 1_700_000_000_000


def _txn(amount: str, ts: int, *, merchant: str = "Swiggy", id: str = "t") -> ParsedTransaction:
    return ParsedTransaction(
        id=id,
        amount=Decimal(amount),
        merchant=merchant,
        type=TransactionType.EXPENSE,
        timestamp=ts,
    )


def test_same_amount_within_window_is_duplicate(memory_store):
    gate = DeduplicationGate(memory_store)
    assert not gate.is_duplicate(_txn("500", T0))
    assert gate.is_duplicate(_txn("500", T0 + 2_000, merchant="Unknown"))


def test_same_amount_after_window_is_accepted(memory_store):
    gate = DeduplicationGate(memory_store)
    assert not gate.is_duplicate(_txn("500", T0))
    assert not gate.is_duplicate(_txn("500", T0 + 6_000))


def test_window_boundary_is_exclusive(memory_store):
    gate = DeduplicationGate(memory_store, window_ms=5_000)
    assert not gate.is_duplicate(_txn("500", T0))
    assert gate.is_duplicate(_txn("500", T0 + 4_999))
    assert not gate.is_duplicate(_txn("500", T0 + 5_000))


def test_different_amount_is_accepted_and_becomes_last_seen(memory_store):
    gate = DeduplicationGate(memory_store)
    assert not gate.is_duplicate(_txn("500", T0))
    assert not gate.is_duplicate(_txn("501", T0 + 100))
    assert gate.state.last_amount == Decimal("501")
    assert gate.state.last_timestamp == T0 + 100
    # 500 is no longer the last accepted amount
    assert not gate.is_duplicate(_txn("500", T0 + 200))


def test_amount_compared_numerically(memory_store):
    gate = DeduplicationGate(memory_store)
    assert not gate.is_duplicate(_txn("500", T0))
    assert gate.is_duplicate(_txn("500.00", T0 + 1))


def test_duplicate_does_not_refresh_state(memory_store):
    gate = DeduplicationGate(memory_store)
    gate.is_duplicate(_txn("500", T0))
    assert gate.is_duplicate(_txn("500", T0 + 4_000))
    # Measured from the accepted detection, not from the suppressed one
    assert not gate.is_duplicate(_txn("500", T0 + 8_000))


def test_state_survives_restart(sql_store):
    assert not DeduplicationGate(sql_store).is_duplicate(_txn("250", T0))

    restarted = DeduplicationGate(SqlKeyValueStore(sql_store.database_url))
    assert restarted.is_duplicate(_txn("250", T0 + 1_000))
    assert restarted.state.last_timestamp == T0


def test_corrupt_state_starts_empty(memory_store):
    memory_store.set(STATE_KEY, "not json")
    gate = DeduplicationGate(memory_store)
    assert gate.state.last_amount is None
    assert not gate.is_duplicate(_txn("1", T0))
    memory_store.set(STATE_KEY, '{"amount": "abc", "timestamp": 1}')
    assert gate.state == DedupState()


def test_unreadable_store_accepts_candidate():
    gate = DeduplicationGate(FlakyStore(fail_get=True))
    assert not gate.is_duplicate(_txn("99", T0))
    # The in-process state still suppresses the burst
    assert gate.is_duplicate(_txn("99", T0 + 10))


def test_persist_failure_still_accepts_candidate(caplog):
    store = FlakyStore(fail_set=lambda key, value: True)
    gate = DeduplicationGate(store)
    with caplog.at_level("ERROR", logger="spendwatch.dedup"):
        assert not gate.is_duplicate(_txn("42", T0))
    assert "dedup:persist_failed" in caplog.text
    assert store.get(STATE_KEY) is None


def test_gates_sharing_a_store_see_each_other(sql_store):
    first = DeduplicationGate(sql_store)
    second = DeduplicationGate(SqlKeyValueStore(sql_store.database_url))
    assert second.state == DedupState()
    assert not first.is_duplicate(_txn("300", T0))
    assert second.is_duplicate(_txn("300", T0 + 500))


def test_simultaneous_identical_candidates_pass_once(sql_store):
    n = 8
    gates = [DeduplicationGate(SqlKeyValueStore(sql_store.database_url)) for _ in range(n)]
    barrier = threading.Barrier(n)
    verdicts: list[bool] = []
    lock = threading.Lock()

    def submit(i: int) -> None:
        barrier.wait(timeout=5)
        dup = gates[i].is_duplicate(_txn("777", T0 + i, id=f"t{i}"))
        with lock:
            verdicts.append(dup)

    threads = [threading.Thread(target=submit, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert len(verdicts) == n
    assert verdicts.count(False) == 1


def test_simultaneous_candidates_on_one_gate_pass_once(memory_store):
    gate = DeduplicationGate(memory_store)
    barrier = threading.Barrier(6)
    verdicts: list[bool] = []

    def submit() -> None:
        barrier.wait(timeout=5)
        verdicts.append(gate.is_duplicate(_txn("5", T0)))

    threads = [threading.Thread(target=submit) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    assert sorted(verdicts) == [False] + [True] * 5
