"""Tests for sovereign.kernel — session record, bounded log, counters."""

from __future__ import annotations

import threading

from sovereign.config import KernelConfig
from sovereign.kernel import Kernel


# ---------------------------------------------------------------------------
# Log
# ---------------------------------------------------------------------------


class TestAppendLog:
    def test_entries_are_kept_in_order(self) -> None:
        kernel = Kernel()
        kernel.log_info("a", "first")
        kernel.log_warn("b", "second")
        kernel.log_error("c", "third", {"x": 1})
        log = kernel.get_state().log
        assert [e.message for e in log] == ["first", "second", "third"]
        assert [e.level for e in log] == ["info", "warn", "error"]
        assert log[2].data == {"x": 1}

    def test_data_is_frozen_at_append(self) -> None:
        kernel = Kernel()
        record = {"status": "pending", "tasks": []}
        kernel.log_info("test", "created", {"record": record})
        record["status"] = "active"
        record["tasks"].append("task-1")
        data = kernel.get_state().log[0].data
        assert data == {"record": {"status": "pending", "tasks": []}}

    def test_unserializable_data_kept_as_repr(self) -> None:
        kernel = Kernel()
        lock = threading.Lock()
        kernel.log_info("test", "holding", {"lock": lock})
        log = kernel.get_state().log
        assert log[0].data == {"lock": repr(lock)}

    def test_log_never_exceeds_default_cap(self) -> None:
        kernel = Kernel()
        for i in range(250):
            kernel.log_debug("test", f"entry {i}")
        log = kernel.get_state().log
        assert len(log) == 200
        assert log[0].message == "entry 50"
        assert log[-1].message == "entry 249"

    def test_cap_follows_config(self) -> None:
        kernel = Kernel(KernelConfig(max_log_entries=3))
        for i in range(5):
            kernel.log_info("test", str(i))
        assert [e.message for e in kernel.get_state().log] == ["2", "3", "4"]
        assert kernel.capacity == 3

    def test_recent_entries_oldest_first(self) -> None:
        kernel = Kernel()
        for i in range(5):
            kernel.log_info("test", str(i))
        assert [e.message for e in kernel.recent_entries(2)] == ["3", "4"]
        assert kernel.recent_entries(0) == []


# ---------------------------------------------------------------------------
# Command bookkeeping
# ---------------------------------------------------------------------------


class TestRecordCommandExecution:
    def test_increments_counter_and_sets_last_command(self) -> None:
        kernel = Kernel()
        kernel.record_command_execution("ping", "ok", 1.4)
        state = kernel.get_state()
        assert state.command_count == 1
        assert state.last_command is not None
        assert state.last_command.id == "ping"

    def test_ok_logs_info(self) -> None:
        kernel = Kernel()
        kernel.record_command_execution("ping", "ok", 12.6)
        entry = kernel.get_state().log[-1]
        assert entry.level == "info"
        assert entry.source == "command.ping"
        assert entry.message == "executed (status=ok, durationMs=13)"

    def test_error_logs_error(self) -> None:
        kernel = Kernel()
        kernel.record_command_execution("broken", "error", 0.2)
        entry = kernel.get_state().log[-1]
        assert entry.level == "error"
        assert entry.source == "command.broken"


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


class TestGetState:
    def test_consecutive_snapshots_equal_but_not_identical(self) -> None:
        kernel = Kernel()
        kernel.log_info("test", "hello", {"nested": [1, 2]})
        first = kernel.get_state()
        second = kernel.get_state()
        assert first == second
        assert first is not second
        assert first.log is not second.log

    def test_mutating_snapshot_does_not_touch_kernel(self) -> None:
        kernel = Kernel()
        kernel.log_info("test", "hello", {"nested": [1, 2]})
        snapshot = kernel.get_state()
        snapshot.log.clear()
        snapshot.command_count = 99
        assert kernel.log_size == 1
        assert kernel.command_count == 0

    def test_session_id_is_stable(self) -> None:
        kernel = Kernel()
        assert kernel.get_state().session_id == kernel.session_id
        assert kernel.session_id != Kernel().session_id

    def test_uptime_is_non_negative(self) -> None:
        assert Kernel().uptime_seconds >= 0.0
