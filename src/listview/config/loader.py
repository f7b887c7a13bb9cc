from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List

import yaml

from listview.query.view_state import DEFAULT_COLUMNS, ColumnDef
from listview.retrieval.client import DEFAULT_ENDPOINT_URL, DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT

DEFAULT_CONFIG_PATH = Path("listview.config.yaml")

DEFAULT_DEBOUNCE_MS = 250
DEFAULT_PAGE_SIZE = 10

BASE_CONFIG: Dict[str, Any] = {
    "version": 1,
    "endpoint": {
        "url": DEFAULT_ENDPOINT_URL,
        "timeout_seconds": DEFAULT_TIMEOUT_SECONDS,
        "user_agent": DEFAULT_USER_AGENT,
    },
    "view": {
        "debounce_ms": DEFAULT_DEBOUNCE_MS,
        "page_size": DEFAULT_PAGE_SIZE,
    },
    "columns": [column.model_dump() for column in DEFAULT_COLUMNS],
}


def default_config() -> Dict[str, Any]:
    """Built-in configuration, used for sections a config file leaves out."""
    return deepcopy(BASE_CONFIG)


def _require_positive(section: Dict[str, Any], key: str, section_name: str) -> None:
    value = section.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"Config '{section_name}.{key}' must be a positive number, got {value!r}")


def _normalize_columns(raw_columns: Any) -> List[Dict[str, Any]]:
    """
    Normalize column entries so the controller always sees the same schema.
    """
    if not isinstance(raw_columns, list) or not raw_columns:
        raise ValueError("Config 'columns' must be a non-empty list")

    normalized: List[Dict[str, Any]] = []
    seen = set()
    for entry in raw_columns:
        if isinstance(entry, str):
            entry = {"id": entry}
        if not isinstance(entry, dict):
            raise ValueError("Each column entry must be a string or dictionary")
        column_id = entry.get("id")
        if not column_id or not isinstance(column_id, str):
            raise ValueError("Column entry missing 'id'")
        if column_id in seen:
            raise ValueError(f"Duplicate column id: {column_id}")
        seen.add(column_id)
        normalized.append(
            {
                "id": column_id,
                "header": entry.get("header") or column_id,
                "sortable": bool(entry.get("sortable", True)),
                "sort_desc_first": bool(entry.get("sort_desc_first", False)),
            }
        )
    return normalized


def normalize_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a config dict and fill missing sections from the defaults.

    Raises:
        ValueError: If config structure is invalid
    """
    if not isinstance(config, dict):
        raise ValueError("Config must be a dictionary")
    if "version" not in config:
        raise ValueError("Config must have 'version' field")

    merged = default_config()
    merged["version"] = config["version"]
    for section in ("endpoint", "view"):
        user_section = config.get(section) or {}
        if not isinstance(user_section, dict):
            raise ValueError(f"Config '{section}' must be a dictionary if provided")
        merged[section].update(user_section)

    endpoint = merged["endpoint"]
    if not endpoint.get("url") or not isinstance(endpoint["url"], str):
        raise ValueError("Config 'endpoint.url' must be a non-empty string")
    _require_positive(endpoint, "timeout_seconds", "endpoint")

    view = merged["view"]
    _require_positive(view, "debounce_ms", "view")
    _require_positive(view, "page_size", "view")
    if not isinstance(view["page_size"], int):
        raise ValueError("Config 'view.page_size' must be an integer")

    if "columns" in config:
        merged["columns"] = _normalize_columns(config["columns"])
    return merged


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """
    Load listview configuration from YAML file.

    Args:
        path: Optional path to the config file. Defaults to listview.config.yaml

    Returns:
        Normalized configuration dictionary

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If config structure is invalid
    """
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f)
    return normalize_config(config)


def get_columns(config: Dict[str, Any] | None = None) -> List[ColumnDef]:
    if config is None:
        config = default_config()
    return [ColumnDef(**column) for column in config.get("columns", [])]
