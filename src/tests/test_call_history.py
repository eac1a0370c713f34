import pytest

from promptable.call_history import CallHandle, CallHistory, CallHistoryError
from promptable.models import CallRecord


def test_append_returns_handle_in_insertion_order() -> None:
    history = CallHistory("step")

    first = history.append({"inputs": {"a": 1}})
    second = history.append({"inputs": {"a": 2}})

    assert first == CallHandle(0)
    assert second == CallHandle(1)
    assert [record.inputs for record in history] == [{"a": 1}, {"a": 2}]


def test_update_without_records_raises() -> None:
    history = CallHistory("step")

    with pytest.raises(CallHistoryError, match="no calls recorded"):
        history.update({"outputs": {}})


def test_update_defaults_to_last_record() -> None:
    history = CallHistory("step")
    history.append({"inputs": {"a": 1}})
    history.append({"inputs": {"a": 2}})

    updated = history.update({"outputs": {"b": 2}})

    assert updated is history.last
    assert history[0].outputs is None
    assert history[1].outputs == {"b": 2}


def test_update_overwrites_same_named_fields() -> None:
    history = CallHistory("step")
    handle = history.append({"inputs": {"a": 1}, "attempt": 1})

    history.update({"inputs": {"a": 9}, "attempt": 2}, handle)

    assert history[0].snapshot() == {"inputs": {"a": 9}, "attempt": 2}


def test_update_rejects_out_of_range_handle() -> None:
    history = CallHistory("step")
    history.append({"inputs": {}})

    with pytest.raises(CallHistoryError):
        history.update({"outputs": {}}, CallHandle(-1))


def test_snapshot_lists_every_record() -> None:
    history = CallHistory("step")
    history.append({"inputs": {"a": 1}})
    history.update({"outputs": {"b": 1}})
    history.append({"inputs": {"a": 2}})

    assert history.snapshot() == [
        {"inputs": {"a": 1}, "outputs": {"b": 1}},
        {"inputs": {"a": 2}},
    ]


def test_last_is_none_when_empty() -> None:
    history = CallHistory()

    assert history.last is None
    assert len(history) == 0


def test_call_record_snapshot_omits_unset_outputs() -> None:
    record = CallRecord(inputs={"a": 1}, source="cli")

    assert record.snapshot() == {"inputs": {"a": 1}, "source": "cli"}
    assert record.outputs is None
