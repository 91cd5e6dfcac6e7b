"""
Generation orchestrator.

Drives one generation request: validates the schema, resolves relationships
once for the whole schema, then renders every (table, target) pair and
collects the files. Nothing is written to disk.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..logging_config import get_logger
from .core.config import get_config_manager, load_config
from .core.generator import CodeGenerator, EntityContext, GeneratedFile, GenerationResult
from .core.relationships import ResolvedSchema, relationship_summary, resolve_relationships
from .core.schema import Schema
from .registry import GeneratorRegistry, get_registry

logger = get_logger(__name__)


class OrchestrationError(Exception):
    """Exception raised when generated output paths collide."""

    pass


@dataclass(frozen=True)
class GenerationRequest:
    """One generation request; never mutated once built."""

    schema: Schema
    targets: Tuple[str, ...]
    options: Dict[str, Any] = field(default_factory=dict)
    config_file: Optional[Path] = None
    workers: int = 1


# A unit of work: the target it belongs to and a callable rendering its files
Job = Tuple[str, Callable[[], List[GeneratedFile]]]


class GenerationOrchestrator:
    """Turns a GenerationRequest into a GenerationResult."""

    def __init__(self, registry: Optional[GeneratorRegistry] = None):
        self.registry = registry or get_registry()

    def run(self, request: GenerationRequest) -> GenerationResult:
        """
        Execute a generation request.

        Args:
            request: Schema, targets and options

        Returns:
            GenerationResult with every generated file, keyed by
            ``<target>/<relative path>``

        Raises:
            SchemaError: If the schema is invalid
            RelationshipError: If a foreign key names a missing column
            RegistryError: If a target is unknown
            OrchestrationError: If two artifacts map to the same path
        """
        schema = request.schema
        schema.validate()

        shared = load_config("", request.options, request.config_file)
        audit = shared.audit_fields
        resolved = resolve_relationships(schema, audit)

        targets = self._resolve_targets(request.targets)
        logger.info(
            f"Generating {len(resolved.entity_tables)} entities and "
            f"{len(resolved.junction_tables)} join tables for: {', '.join(targets)}"
        )

        warnings: List[str] = []
        generators: Dict[str, CodeGenerator] = {}
        for target in targets:
            config = load_config(target, request.options, request.config_file)
            if config.audit_fields != audit:
                warnings.append(
                    f"{target}: audit_fields override ignored; "
                    "the audit set must match the one used to resolve relationships"
                )
                config = replace(config, audit_fields=audit)
            generators[target] = self.registry.create_generator(target, config)
            warnings.extend(
                f"{target}: {w}" for w in get_config_manager().validate_config(config, target)
            )
            warnings.extend(generators[target].validate_schema(resolved))

        versions = {table.name: i for i, table in enumerate(resolved.creation_order, start=1)}
        jobs: List[Job] = []
        for target, generator in generators.items():
            jobs.extend(self._jobs_for(target, generator, resolved, versions))

        outputs = self._execute(jobs, request.workers)
        files = self._collect(jobs, outputs)

        for warning in warnings:
            logger.warning(warning)
        logger.info(f"Generated {len(files)} files")

        metadata = {
            "targets": list(targets),
            "table_count": len(schema.tables),
            "entity_tables": [t.name for t in resolved.entity_tables],
            "junction_tables": sorted(resolved.junction_tables),
            "migration_order": [t.name for t in resolved.creation_order],
            "relationships": relationship_summary(resolved),
            "file_count": len(files),
        }
        return GenerationResult(files, warnings, metadata)

    def _resolve_targets(self, targets: Sequence[str]) -> List[str]:
        resolved: List[str] = []
        for target in targets:
            name = self.registry.resolve(target)
            if name not in resolved:
                resolved.append(name)
        return resolved

    def _jobs_for(
        self,
        target: str,
        generator: CodeGenerator,
        resolved: ResolvedSchema,
        versions: Dict[str, int],
    ) -> List[Job]:
        jobs: List[Job] = [(target, lambda: generator.base_files(resolved))]
        for table in resolved.creation_order:
            version = versions[table.name]
            if resolved.is_junction(table.name):
                jobs.append(
                    (
                        target,
                        lambda t=table, v=version: [generator.generate_join_table(t, resolved, v)],
                    )
                )
            else:
                entity = EntityContext(
                    table=table,
                    relations=resolved.relations_for(table.name),
                    resolved=resolved,
                    migration_version=version,
                )
                jobs.append((target, lambda e=entity: generator.generate_entity_files(e)))
        return jobs

    def _execute(self, jobs: List[Job], workers: int) -> List[List[GeneratedFile]]:
        """Run jobs, keeping their order whatever the number of workers."""
        if workers <= 1:
            return [render() for _, render in jobs]

        logger.debug(f"Rendering {len(jobs)} jobs on {workers} workers")
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(lambda job: job[1](), jobs))

    def _collect(
        self, jobs: List[Job], outputs: List[List[GeneratedFile]]
    ) -> Dict[str, str]:
        files: Dict[str, str] = {}
        for (target, _), generated in zip(jobs, outputs):
            for generated_file in generated:
                path = f"{target}/{generated_file.path}"
                if path in files:
                    raise OrchestrationError(f"Duplicate output path: {path}")
                files[path] = generated_file.content
                logger.debug(f"Rendered {path}")
        return files


def generate(
    schema: Schema,
    targets: Union[str, Sequence[str]],
    options: Optional[Dict[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
    workers: int = 1,
) -> GenerationResult:
    """
    Generate backend source trees for one schema.

    Args:
        schema: Schema to generate from
        targets: Target name or names; aliases such as ``ts`` are accepted
        options: GeneratorConfig overrides, optionally with a ``targets`` section
        config_file: JSON configuration file merged under ``options``
        workers: Number of threads rendering (table, target) pairs

    Returns:
        GenerationResult with files keyed by ``<target>/<relative path>``

    Example:
        >>> result = generate(schema, ["java", "ts"], {"project_name": "shop"})
        >>> sorted(result.metadata["targets"])
        ['java', 'typescript']
    """
    if isinstance(targets, str):
        targets = [targets]
    request = GenerationRequest(
        schema=schema,
        targets=tuple(targets),
        options=dict(options or {}),
        config_file=Path(config_file) if config_file else None,
        workers=workers,
    )
    return GenerationOrchestrator().run(request)
