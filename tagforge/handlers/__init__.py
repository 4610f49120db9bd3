"""Stock tag handlers and their construction from configuration."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable

from ..config import HandlerConfig
from ..errors import ConfigError
from ..processor import TagHandler
from .collection import TemplateCollection, TemplateEntry, make_template_entry, snake_case
from .collection_templater import CollectionTemplater
from .field_injector import FieldInjector
from .inception import InceptionTemplater
from .templater import Templater

_ENTRY_POINT_GROUP = "tagforge.handlers"

HandlerFactory = Callable[[HandlerConfig], TagHandler]


def _require(config: HandlerConfig, *names: str) -> None:
    missing = [name for name in names if not getattr(config, name)]
    if missing:
        raise ConfigError(f"Handler '{config.kind}' for {config.tag} requires: {', '.join(missing)}")


def make_namer(name_format: str) -> Callable[[str], str]:
    """Turn a format such as ``{snake}_gen.py`` into a file naming function."""

    def _name(name: str) -> str:
        return name_format.format(name=name, snake=snake_case(name), lower=name.lower())

    return _name


def _field_injector(config: HandlerConfig) -> TagHandler:
    _require(config, "field_name", "field_type")
    return FieldInjector(
        config.field_name or "",
        config.field_type or "",
        import_path=config.import_path,
        tag=config.field_tag,
    )


def _templater(config: HandlerConfig) -> TagHandler:
    _require(config, "template", "output")
    return Templater(config.output, config.template, make_namer(config.name_format))


def _collection(config: HandlerConfig) -> TagHandler:
    _require(config, "template", "output")
    return CollectionTemplater(config.output, config.template, defer=config.defer)


def _inception(config: HandlerConfig) -> TagHandler:
    _require(config, "template", "output")
    return InceptionTemplater(
        config.output,
        config.template,
        config.arguments,
        defer=config.defer,
        cwd=config.cwd,
    )


_BUILTIN_FACTORIES: Dict[str, HandlerFactory] = {
    "field": _field_injector,
    "templater": _templater,
    "collection": _collection,
    "inception": _inception,
}


def discover_handler_factories() -> Dict[str, HandlerFactory]:
    """Return builtin handler factories plus those registered as entry points."""
    factories = dict(_BUILTIN_FACTORIES)
    for entry in _iter_entry_points():
        name = entry.name.lower()
        if name in factories:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:
            raise ConfigError(f"Failed to load handler entry point '{entry.name}': {exc}") from exc
        if not callable(loaded):
            raise ConfigError(f"Handler entry point '{entry.name}' is not callable")
        factories[name] = loaded
    return factories


def build_handler(config: HandlerConfig, factories: Dict[str, HandlerFactory] | None = None) -> TagHandler:
    """Instantiate the handler described by ``config``."""
    factories = factories if factories is not None else discover_handler_factories()
    factory = factories.get(config.kind)
    if factory is None:
        known = ", ".join(sorted(factories))
        raise ConfigError(f"Unknown handler kind '{config.kind}' for {config.tag} (known: {known})")
    handler = factory(config)
    if not isinstance(handler, TagHandler):
        raise ConfigError(f"Handler factory for '{config.kind}' did not return a TagHandler instance")
    return handler


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "CollectionTemplater",
    "FieldInjector",
    "HandlerFactory",
    "InceptionTemplater",
    "TemplateCollection",
    "TemplateEntry",
    "Templater",
    "build_handler",
    "discover_handler_factories",
    "make_namer",
    "make_template_entry",
]
