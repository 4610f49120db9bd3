"""Configuration loading for tagforge (.tagforge.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .discovery import RESERVED_NAMESPACE
from .errors import ConfigError

CONFIG_FILENAME = ".tagforge.yml"


@dataclass
class WriteOutConfig:
    """Where transformed sources are written."""

    path: Path
    suffix: str = ""


@dataclass
class HandlerConfig:
    """One handler registration from the ``handlers`` list."""

    tag: str
    kind: str
    template: Optional[Path] = None
    output: Optional[Path] = None
    name_format: str = "{snake}.py"
    defer: bool = False
    arguments: List[str] = field(default_factory=list)
    cwd: Optional[Path] = None
    field_name: Optional[str] = None
    field_type: Optional[str] = None
    import_path: str = ""
    field_tag: str = ""
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TagforgeConfig:
    """Represents the settings defined in .tagforge.yml."""

    root: Path
    input: Optional[Path] = None
    namespace: str = RESERVED_NAMESPACE
    package: Optional[str] = None
    exclude_paths: List[str] = field(default_factory=list)
    write_out: Optional[WriteOutConfig] = None
    handlers: List[HandlerConfig] = field(default_factory=list)


_HANDLER_KEYS = {
    "tag",
    "kind",
    "template",
    "output",
    "name_format",
    "defer",
    "arguments",
    "cwd",
    "field_name",
    "field_type",
    "import_path",
    "field_tag",
}


def load_config(config_path: Path) -> TagforgeConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return TagforgeConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    input_str = _as_str(data.get("input"))
    namespace = _as_str(data.get("namespace")) or RESERVED_NAMESPACE

    write_out = None
    write_out_data = _as_dict(data.get("write_out"))
    if write_out_data:
        out_path = _as_str(write_out_data.get("path"))
        if not out_path:
            raise ConfigError("write_out requires a path")
        write_out = WriteOutConfig(
            path=root / out_path,
            suffix=_as_str(write_out_data.get("suffix")) or "",
        )

    handlers_data = data.get("handlers")
    if handlers_data is not None and not isinstance(handlers_data, list):
        raise ConfigError("handlers must be a list")
    handlers = [_parse_handler(item, root, index) for index, item in enumerate(handlers_data or [])]

    return TagforgeConfig(
        root=root,
        input=root / input_str if input_str else None,
        namespace=namespace,
        package=_as_str(data.get("package")),
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        write_out=write_out,
        handlers=handlers,
    )


def _parse_handler(item: Any, root: Path, index: int) -> HandlerConfig:
    if not isinstance(item, dict):
        raise ConfigError(f"handlers[{index}] must be a mapping")
    tag = _as_str(item.get("tag"))
    kind = _as_str(item.get("kind"))
    if not tag or not kind:
        raise ConfigError(f"handlers[{index}] requires both 'tag' and 'kind'")

    template = _as_str(item.get("template"))
    output = _as_str(item.get("output"))
    cwd = _as_str(item.get("cwd"))
    return HandlerConfig(
        tag=tag,
        kind=kind.lower(),
        template=root / template if template else None,
        output=root / output if output else None,
        name_format=_as_str(item.get("name_format")) or "{snake}.py",
        defer=_as_bool(item.get("defer")) or False,
        arguments=_as_str_list(item.get("arguments")),
        cwd=root / cwd if cwd else None,
        field_name=_as_str(item.get("field_name")),
        field_type=_as_str(item.get("field_type")),
        import_path=_as_str(item.get("import_path")) or "",
        field_tag=_as_str(item.get("field_tag")) or "",
        options={key: value for key, value in item.items() if key not in _HANDLER_KEYS},
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["CONFIG_FILENAME", "HandlerConfig", "TagforgeConfig", "WriteOutConfig", "load_config"]
