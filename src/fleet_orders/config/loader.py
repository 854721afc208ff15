import json
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path(__file__).parent / "pipeline_config.json"


def _read_json(path: Path) -> dict[str, Any]:
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise TypeError(f"Expected dict from {path}, got {type(data)}")
    return data


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_pipeline_config(config_path: str | None = None) -> dict[str, Any]:
    """
    Loads the timeline and fleet analytics configuration.

    The bundled pipeline_config.json supplies every default. A file passed by
    path only needs the keys it changes; it is merged over the defaults
    section by section.
    """
    config = _read_json(DEFAULT_CONFIG_PATH)
    if config_path is not None:
        config = _merge(config, _read_json(Path(config_path)))
    return config
