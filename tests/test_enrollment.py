"""Tests for the EnrollmentFlow state machine."""

import numpy as np
import pytest

from conftest import MockExtractor
from studyfocus.services.enrollment import EnrollmentFlow, EnrollmentState

FRAME = np.zeros((480, 640, 3), dtype=np.uint8)


def _descriptor(i):
    return np.full(128, i, dtype=np.float32)


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, descriptors):
        self.calls.append(descriptors)


@pytest.fixture
def done():
    return Recorder()


class TestHappyPath:
    def test_completes_after_five_captures(self, done, clock):
        extractor = MockExtractor([_descriptor(i) for i in range(5)])
        flow = EnrollmentFlow(extractor, on_complete=done, clock=clock)

        for i in range(4):
            status = flow.capture(FRAME)
            assert status.state == EnrollmentState.IDLE
            assert status.count == i + 1
            assert status.message.startswith(f"Captured {i + 1}/5")
            assert done.calls == []

        status = flow.capture(FRAME)
        assert status.state == EnrollmentState.SUCCESS
        assert len(done.calls) == 1
        assert len(done.calls[0]) == 5
        for i, d in enumerate(done.calls[0]):
            np.testing.assert_array_equal(d, _descriptor(i))

    def test_capture_after_success_is_ignored(self, done, clock):
        extractor = MockExtractor([_descriptor(i) for i in range(7)])
        flow = EnrollmentFlow(extractor, on_complete=done, clock=clock)
        for _ in range(5):
            flow.capture(FRAME)

        status = flow.capture(FRAME)
        assert status.state == EnrollmentState.SUCCESS
        assert status.count == 5
        assert extractor.calls == 5
        assert len(done.calls) == 1

    def test_custom_capture_count(self, done, clock):
        flow = EnrollmentFlow(MockExtractor([_descriptor(1), _descriptor(2)]),
                              on_complete=done, required_captures=2, clock=clock)
        flow.capture(FRAME)
        assert flow.capture(FRAME).state == EnrollmentState.SUCCESS
        assert len(done.calls[0]) == 2

    def test_progress(self, clock):
        flow = EnrollmentFlow(MockExtractor([_descriptor(0)]), clock=clock)
        assert flow.capture(FRAME).progress == pytest.approx(20.0)


class TestFailedCapture:
    def test_failure_does_not_count(self, done, clock):
        extractor = MockExtractor([None, _descriptor(0)])
        flow = EnrollmentFlow(extractor, on_complete=done, clock=clock)

        status = flow.capture(FRAME)
        assert status.state == EnrollmentState.ERROR
        assert status.count == 0
        assert "Face not detected" in status.message

    def test_error_reverts_after_delay(self, clock):
        flow = EnrollmentFlow(MockExtractor([None]), clock=clock)
        flow.capture(FRAME)

        clock.advance(1.9)
        assert flow.state == EnrollmentState.ERROR
        clock.advance(0.1)
        assert flow.state == EnrollmentState.IDLE
        assert flow.status.count == 0

    def test_capture_allowed_during_error(self, clock):
        flow = EnrollmentFlow(MockExtractor([None, _descriptor(0)]), clock=clock)
        flow.capture(FRAME)
        status = flow.capture(FRAME)
        assert status.state == EnrollmentState.IDLE
        assert status.count == 1

    def test_only_successful_captures_count(self, done, clock):
        results = [None, _descriptor(0), None, None, _descriptor(1), _descriptor(2),
                   None, _descriptor(3), _descriptor(4)]
        flow = EnrollmentFlow(MockExtractor(results), on_complete=done, clock=clock)

        for _ in results:
            flow.capture(FRAME)
            clock.advance(2.0)

        assert flow.state == EnrollmentState.SUCCESS
        assert len(done.calls) == 1
        assert len(done.calls[0]) == 5

    def test_extractor_exception_propagates_and_returns_to_idle(self, clock):
        class Broken:
            def extract(self, frame):
                raise RuntimeError("model crashed")

        flow = EnrollmentFlow(Broken(), clock=clock)
        with pytest.raises(RuntimeError):
            flow.capture(FRAME)
        assert flow.state == EnrollmentState.IDLE


class TestResetAndCancel:
    def test_reset_clears_progress(self, clock):
        flow = EnrollmentFlow(MockExtractor([_descriptor(0), _descriptor(1)]), clock=clock)
        flow.capture(FRAME)
        flow.capture(FRAME)

        assert flow.reset()
        assert flow.count == 0
        assert flow.state == EnrollmentState.IDLE

    def test_reset_refused_after_success(self, clock):
        flow = EnrollmentFlow(MockExtractor([_descriptor(0)]), required_captures=1, clock=clock)
        flow.capture(FRAME)
        assert not flow.reset()
        assert flow.count == 1

    def test_cancel_prevents_completion(self, done, clock):
        extractor = MockExtractor([_descriptor(i) for i in range(5)])
        flow = EnrollmentFlow(extractor, on_complete=done, clock=clock)
        for _ in range(4):
            flow.capture(FRAME)

        flow.cancel()
        status = flow.capture(FRAME)

        assert status.state == EnrollmentState.CANCELLED
        assert done.calls == []
        assert not flow.reset()

    def test_cancel_during_capture_discards_result(self, done, clock):
        class CancellingExtractor:
            def __init__(self):
                self.flow = None

            def extract(self, frame):
                self.flow.cancel()
                return _descriptor(0)

        extractor = CancellingExtractor()
        flow = EnrollmentFlow(extractor, on_complete=done, required_captures=1, clock=clock)
        extractor.flow = flow

        status = flow.capture(FRAME)
        assert status.state == EnrollmentState.CANCELLED
        assert status.count == 0
        assert done.calls == []


class TestReentrancy:
    def test_nested_capture_is_ignored(self, clock):
        class NestedExtractor:
            def __init__(self):
                self.flow = None
                self.nested_status = None

            def extract(self, frame):
                self.nested_status = self.flow.capture(frame)
                return _descriptor(0)

        extractor = NestedExtractor()
        flow = EnrollmentFlow(extractor, clock=clock)
        extractor.flow = flow

        status = flow.capture(FRAME)
        assert extractor.nested_status.state == EnrollmentState.CAPTURING
        assert status.count == 1


class TestConfig:
    def test_invalid_capture_count(self):
        with pytest.raises(ValueError):
            EnrollmentFlow(MockExtractor(), required_captures=0)

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "focus.yaml"
        path.write_text("enrollment:\n  required_captures: 3\n  error_revert_sec: 0.5\n")
        flow = EnrollmentFlow(MockExtractor(), config_path=str(path))
        assert flow.required == 3
        assert flow.error_revert_sec == 0.5
