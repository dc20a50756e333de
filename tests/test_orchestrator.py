"""Tests for FocusSystem configuration (no hardware is opened)."""

from studyfocus.core.orchestrator import FocusSystem


def _write(tmp_path, text):
    path = tmp_path / "focus.yaml"
    path.write_text(text)
    return str(path)


class TestCameraSource:
    def test_config_value_wins_over_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv('SF_CAMERA', '/videos/lecture.mp4')
        system = FocusSystem(_write(tmp_path, "system:\n  camera_source: 2\n"))
        assert system.camera_source == 2

    def test_numeric_env_is_device_index(self, tmp_path, monkeypatch):
        monkeypatch.setenv('SF_CAMERA', '1')
        system = FocusSystem(_write(tmp_path, "system:\n  log_level: debug\n"))
        assert system.camera_source == 1
        assert system.log_level == 'DEBUG'

    def test_path_env_kept_as_string(self, tmp_path, monkeypatch):
        monkeypatch.setenv('SF_CAMERA', '/videos/lecture.mp4')
        system = FocusSystem(_write(tmp_path, "gaze:\n  prior_weight: 0.5\n"))
        assert system.camera_source == '/videos/lecture.mp4'

    def test_defaults_without_config(self, tmp_path, monkeypatch):
        monkeypatch.delenv('SF_CAMERA', raising=False)
        system = FocusSystem(str(tmp_path / "absent.yaml"))
        assert system.camera_source == 0
        assert system.resolution == (640, 480)
