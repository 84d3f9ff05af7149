"""Tests for cooperative start/stop bookkeeping."""
from __future__ import annotations

from jobscout.process_control import ProcessControl
from jobscout.sink import STATUS_EVENT, CollectingSink


class TestLifecycle:
    def test_start_returns_named_id(self):
        control = ProcessControl()
        pid = control.start("jobs")
        assert pid.startswith("jobs-")
        assert pid.split("-", 1)[1].isdigit()
        assert control.is_running("jobs")
        assert not control.should_stop("jobs")

    def test_complete_discards_state(self):
        control = ProcessControl()
        control.start("jobs")
        control.complete("jobs")
        assert not control.is_running("jobs")
        assert control.state("jobs") is None
        assert control.states() == {}

    def test_restart_clears_previous_stop_request(self):
        control = ProcessControl()
        control.start("jobs")
        control.request_stop("jobs")
        control.complete("jobs", was_stopped=True)
        control.start("jobs")
        assert not control.should_stop("jobs")


class TestStopRequests:
    def test_stop_sets_flag_for_running_process(self):
        control = ProcessControl()
        control.start("jobs")
        assert control.request_stop("jobs", requested_by="tests") is True
        assert control.should_stop("jobs")
        assert control.is_running("jobs")

    def test_stop_without_running_process_is_noop(self):
        control = ProcessControl()
        assert control.request_stop("jobs") is False
        assert not control.should_stop("jobs")

    def test_names_are_independent(self):
        control = ProcessControl()
        control.start("jobs")
        control.start("travel")
        control.request_stop("travel")
        assert not control.should_stop("jobs")
        assert control.should_stop("travel")


class TestStatusEvents:
    def test_emits_started_stopping_stopped(self):
        sink = CollectingSink()
        control = ProcessControl(sink)
        control.start("jobs")
        control.request_stop("jobs")
        control.complete("jobs", was_stopped=True)
        statuses = [p["status"] for p in sink.of(STATUS_EVENT)]
        assert statuses == ["started", "stopping", "stopped"]
        assert any("Stop requested" in m for m in sink.messages)

    def test_emits_completed(self):
        sink = CollectingSink()
        control = ProcessControl(sink)
        control.start("jobs")
        control.complete("jobs")
        assert sink.of(STATUS_EVENT)[-1] == {"agent": "jobs", "status": "completed"}

    def test_broken_sink_does_not_break_control(self):
        class Broken(CollectingSink):
            def emit(self, event, payload):
                raise RuntimeError("socket closed")

        control = ProcessControl(Broken())
        control.start("jobs")
        assert control.request_stop("jobs")
        control.complete("jobs", was_stopped=True)
