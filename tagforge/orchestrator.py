"""Pipeline orchestration for configured generation runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .collector import collect_files
from .config import TagforgeConfig, WriteOutConfig, load_config
from .discovery import find_tagged_declarations, import_map
from .handlers import CollectionTemplater, HandlerFactory, build_handler, discover_handler_factories
from .logging import get_logger
from .processor import TagProcessor
from .transforms import FileTransformation, apply_transformations
from .writer import WriteOut


@dataclass
class DiscoveredTag:
    """A marker found by :meth:`Orchestrator.discover`."""

    tag_type: str
    declaration: str
    literal_tag: str
    path: str


@dataclass
class RunResult:
    """Summary of a generation run."""

    files: List[str]
    handlers: int
    deferred: int = 0
    output: Optional[Path] = None
    tags: Dict[str, int] = field(default_factory=dict)


class Orchestrator:
    """Builds the tag processor from configuration and runs it over a tree."""

    def __init__(self, factories: Dict[str, HandlerFactory] | None = None) -> None:
        self._factories = factories
        self.logger = get_logger("orchestrator")

    def load(self, path: str | Path, config_path: str | Path | None = None) -> TagforgeConfig:
        target = Path(config_path) if config_path is not None else Path(path)
        return load_config(target)

    def build_processor(self, config: TagforgeConfig) -> tuple[TagProcessor, List[CollectionTemplater]]:
        """Return the processor and, in configuration order, its deferred templaters."""
        factories = self._factories if self._factories is not None else discover_handler_factories()
        processor = TagProcessor(namespace=config.namespace)
        deferred: List[CollectionTemplater] = []
        for handler_config in config.handlers:
            handler = build_handler(handler_config, factories)
            processor.add_handler(handler_config.tag, handler)
            if isinstance(handler, CollectionTemplater) and handler.defer:
                deferred.append(handler)
        return processor, deferred

    def run(
        self,
        path: str | Path,
        *,
        config: TagforgeConfig | None = None,
        output: str | Path | None = None,
        suffix: str | None = None,
    ) -> RunResult:
        """Process every file under ``path`` and write all generated output."""
        config = config or self.load(path)
        input_path = config.input or Path(path).expanduser().resolve()
        self.logger.info("Starting run for %s", input_path)

        files = collect_files(input_path, exclude=config.exclude_paths, package=config.package)
        self.logger.debug("Collected %d files", len(files))

        processor, deferred = self.build_processor(config)
        transformations: List[FileTransformation] = [processor]

        write_out = _resolve_write_out(config.write_out, output, suffix)
        if write_out is not None:
            transformations.append(WriteOut(write_out.path, write_out.suffix))

        apply_transformations(files, transformations)

        # deferred templaters run after every regular finalize, in config order
        for handler in deferred:
            try:
                handler.write_templates()
            except Exception as exc:
                exc.add_note(f"deferred write of {handler.output_path}")
                raise

        handler_count = sum(1 for _ in processor.handlers())
        self.logger.info(
            "Processed %d files with %d handler(s)", len(files), handler_count
        )
        return RunResult(
            files=[source.relative_path for source in files],
            handlers=handler_count,
            deferred=len(deferred),
            output=write_out.path if write_out is not None else None,
            tags=dict(processor.found),
        )

    def discover(self, path: str | Path, *, config: TagforgeConfig | None = None) -> List[DiscoveredTag]:
        """List every marker under ``path`` without running handlers or writing."""
        config = config or self.load(path)
        input_path = config.input or Path(path).expanduser().resolve()
        discovered: List[DiscoveredTag] = []
        for source in collect_files(input_path, exclude=config.exclude_paths, package=config.package):
            for match in find_tagged_declarations(source, import_map(source), config.namespace):
                discovered.append(
                    DiscoveredTag(
                        tag_type=match.tag_type,
                        declaration=f"{source.module_name}.{match.declaration.name}".lstrip("."),
                        literal_tag=match.literal_tag,
                        path=source.relative_path,
                    )
                )
        return discovered


def _resolve_write_out(
    configured: WriteOutConfig | None, output: str | Path | None, suffix: str | None
) -> WriteOutConfig | None:
    if output is not None:
        return WriteOutConfig(path=Path(output).expanduser().resolve(), suffix=suffix or "")
    if configured is not None and suffix is not None:
        return WriteOutConfig(path=configured.path, suffix=suffix)
    return configured


__all__ = ["DiscoveredTag", "Orchestrator", "RunResult"]
