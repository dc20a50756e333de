"""Tests for the YAML config layer."""

import logging
from pathlib import Path

from studyfocus.utils.config import configure_logging, load_config, load_section

DEFAULTS = {'window': 5, 'threshold': 0.5}


class TestLoadSection:
    def test_no_path_gives_defaults(self):
        assert load_section(None, 'smoothing', DEFAULTS) == DEFAULTS

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_section(str(tmp_path / "absent.yaml"), 'smoothing', DEFAULTS) == DEFAULTS

    def test_malformed_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("smoothing: [window: 3\n")
        assert load_section(str(path), 'smoothing', DEFAULTS) == DEFAULTS

    def test_override_known_keys_only(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("smoothing:\n  window: 9\n  colour: blue\n")
        cfg = load_section(str(path), 'smoothing', DEFAULTS)
        assert cfg == {'window': 9, 'threshold': 0.5}

    def test_non_mapping_section(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("smoothing: 7\n")
        assert load_section(str(path), 'smoothing', DEFAULTS) == DEFAULTS

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("- 1\n- 2\n")
        assert load_section(str(path), 'smoothing', DEFAULTS) == DEFAULTS

    def test_defaults_not_mutated(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("smoothing:\n  window: 2\n")
        load_section(str(path), 'smoothing', DEFAULTS)
        assert DEFAULTS['window'] == 5


class TestLoadConfig:
    def test_absent(self, tmp_path):
        assert load_config(str(tmp_path / "none.yaml")) == {}

    def test_shipped_config_has_all_sections(self):
        cfg = load_config(str(Path(__file__).resolve().parent.parent / "config" / "focus_config.yaml"))
        for section in ('system', 'gaze', 'focus', 'smoothing', 'matching', 'enrollment'):
            assert section in cfg


def test_configure_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "focus.log"
    configure_logging(logging.INFO, str(log_file))
    logging.getLogger("studyfocus.test").info("hello")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello" in log_file.read_text()
    configure_logging(logging.WARNING)
