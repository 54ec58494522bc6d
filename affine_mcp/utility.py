import os
import re
import sys
import uuid
from datetime import datetime
from typing import Any

from loguru import logger

LOG_FORMAT: str = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[correlation_id]} | {message}"

ENV_VAR_PATTERN: re.Pattern[str] = re.compile(r"^\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>.*))?\}$")


def dget(data: dict, *path: str, default: Any = None) -> Any:
    if path is None or not data:
        return default

    d = None

    for p in path:
        d = dotget(data, p)

        if d is not None:
            return d

    return d or default


def dotexists(data: dict, *paths: str) -> bool:
    for path in paths:
        if dotget(data, path, default="@@") != "@@":
            return True
    return False


def dotexpand(paths: str | list[str]) -> list[str]:
    """Expands paths with ',' and ':'."""
    if not paths:
        return []
    if not isinstance(paths, (str, list)):
        raise ValueError("dot path must be a string or list of strings")
    paths = paths if isinstance(paths, list) else [paths]
    expanded_paths: list[str] = []
    for p in paths:
        for q in p.replace(" ", "").split(","):
            if not q:
                continue
            if ":" in q:
                expanded_paths.extend([q.replace(":", "."), q.replace(":", "_")])
            else:
                expanded_paths.append(q)
    return expanded_paths


def dotget(data: dict, path: str, default: Any = None) -> Any:
    """Gets element from dict. Path can be x.y.y or x_y_y or x:y:y.
    if path is x:y:y then element is search using both x.y.y or x_y_y."""

    for key in dotexpand(path):
        d: dict | None = data
        for attr in key.split("."):
            d = d.get(attr) if isinstance(d, dict) else None
            if d is None:
                break
        if d is not None:
            return d
    return default


def dotset(data: dict, path: str, value: Any) -> dict:
    """Sets element in dict using dot notation x.y.z or x:y:z"""

    d: dict = data
    attrs: list[str] = path.replace(":", ".").split(".")
    for attr in attrs[:-1]:
        if not attr:
            continue
        d = d.setdefault(attr, {})
    d[attrs[-1]] = value

    return data


def env2dict(prefix: str, data: dict[str, Any] | None = None, lower_key: bool = True) -> dict[str, Any]:
    """Loads environment variables starting with prefix into data.

    Nesting is expressed with a double underscore, so that keys may contain
    single underscores: AFFINE_MCP_AFFINE__ACCESS_TOKEN sets affine.access_token.
    """
    if data is None:
        data = {}
    if not prefix:
        return data
    if lower_key:
        prefix = prefix.lower()
    for key, value in os.environ.items():
        if lower_key:
            key = key.lower()
        if key.startswith(f"{prefix}_"):
            dotset(data, key[len(prefix) + 1 :].replace("__", "."), value)
    return data


def replace_env_vars(data: dict[str, Any] | list[Any] | str) -> dict[str, Any] | list[Any] | str:
    """Recursively replaces string values of the form ${ENV_VAR} or ${ENV_VAR:-default} with the environment value"""
    if isinstance(data, dict):
        return {k: replace_env_vars(v) for k, v in data.items()}
    if isinstance(data, list):
        return [replace_env_vars(i) for i in data]
    if isinstance(data, str):
        match: re.Match[str] | None = ENV_VAR_PATTERN.match(data)
        if match:
            return os.getenv(match["name"]) or (match["default"] or "")
    return data


def configure_logging(opts: dict[str, Any] | None = None) -> None:
    """Route loguru output to stderr (stdout carries the MCP stdio stream), plus any configured handlers."""

    opts = opts or {}

    handlers: list[dict[str, Any]] = [{"sink": sys.stderr, "level": opts.get("level", "INFO"), "format": LOG_FORMAT}]

    for handler in opts.get("handlers") or []:

        if not handler.get("sink"):
            continue

        handler = dict(handler)

        if handler["sink"] == "sys.stderr":
            handler["sink"] = sys.stderr

        elif isinstance(handler["sink"], str) and handler["sink"].endswith(".log"):
            handler["sink"] = os.path.join(
                opts.get("folder", "logs"),
                f"{datetime.now().strftime('%Y%m%d')}_{handler['sink']}",
            )

        handler.setdefault("format", LOG_FORMAT)
        handlers.append(handler)

    logger.configure(handlers=handlers, extra={"correlation_id": "-"})


def new_correlation_id() -> str:
    """Short random token used only to correlate log lines of one call"""
    return uuid.uuid4().hex[:8]


def resource_path(filename: str) -> str:
    return os.path.join(os.path.dirname(__file__), "resources", filename)

