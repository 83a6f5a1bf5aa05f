"""Unit tests for LogStream."""

import pytest

from swarmAgent.runtime import LogStream
from swarmAgent.utils import ExecutionStateError


class TestLogStream:

    def test_records_are_timestamped_and_drop_none(self):
        stream = LogStream()
        seen = []
        stream.subscribe(seen.append)

        record = stream.emit(type="tool_call", agent="lead", tool=None)

        assert seen == [record]
        assert "timestamp" in record
        assert "tool" not in record

    def test_observers_run_in_registration_order(self):
        stream = LogStream()
        order = []
        stream.subscribe(lambda r: order.append("first"))
        stream.subscribe(lambda r: order.append("second"))

        stream.emit(type="x")

        assert order == ["first", "second"]

    def test_failing_observer_does_not_block_others(self):
        stream = LogStream()
        seen = []

        def broken(record):
            raise ValueError("observer bug")

        stream.subscribe(broken)
        stream.subscribe(seen.append)

        stream.emit(type="x")

        assert len(seen) == 1

    def test_subscribe_after_freeze_raises(self):
        stream = LogStream()
        stream.freeze()

        with pytest.raises(ExecutionStateError):
            stream.subscribe(print)

        stream.reset()
        assert not stream.frozen
        stream.subscribe(print)
