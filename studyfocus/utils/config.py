import logging
import yaml
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def load_section(path: Optional[str], section: str, defaults: dict) -> dict:
    """
    Read one section of the YAML config and merge it over `defaults`.

    Unknown keys in the file are ignored. A missing or unreadable file gives
    back the defaults with a warning; values are validated by the caller.
    """
    cfg = dict(defaults)
    if path is None:
        return cfg
    try:
        with open(path, 'r') as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        log.warning(f"Failed to load {section} config from {path}: {e}, using defaults")
        return cfg

    part = raw.get(section) if isinstance(raw, dict) else None
    part = part or {}
    if not isinstance(part, dict):
        log.warning(f"Config section '{section}' is not a mapping, using defaults")
        return cfg

    for key in defaults:
        if key in part:
            cfg[key] = part[key]
    return cfg


def load_config(path: str) -> dict:
    """Whole config file as a dict ({} when absent)."""
    if Path(path).exists():
        with open(path) as f:
            return yaml.safe_load(f) or {}
    return {}


def configure_logging(level=logging.INFO, log_file: Optional[str] = None):
    handlers = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
