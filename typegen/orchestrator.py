# typegen/orchestrator.py
from __future__ import annotations
import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from typegen.config_models import TranslationPolicy, TypeGenConfig
from typegen.db_enums import DbEnumGenerator
from typegen.descriptors import TypeDescriptor, TypeKind
from typegen.errors import GenerationError, TypeGenError
from typegen.ports import ArtifactSink, MetadataProvider
from typegen.renderer import FILE_EXTENSION, file_stem, render_artifact, render_index
from typegen.translator import TypeTranslator
from typegen.writer import FileArtifactWriter

logger = logging.getLogger(__name__)

INDEX_FILE = f"index{FILE_EXTENSION}"


@dataclass
class GenerationResult:
    interface_files: List[Path] = field(default_factory=list)
    enum_files: List[Path] = field(default_factory=list)
    index_files: List[Path] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.interface_files) + len(self.enum_files)


@dataclass
class RunSummary:
    python_enum_files: List[Path] = field(default_factory=list)
    discovered: int = 0
    generation: GenerationResult = field(default_factory=GenerationResult)

    def format(self) -> str:
        g = self.generation
        return (
            f"database enums: {len(self.python_enum_files)}, "
            f"discovered types: {self.discovered}, "
            f"interfaces: {len(g.interface_files)}, enums: {len(g.enum_files)}, "
            f"index files: {len(g.index_files)}"
        )


class TypeScriptGenerator:
    """
    Fans out one task per root type, joins, then writes the optional index manifests.
    The first failing task aborts the phase; files already written are kept.
    """

    def __init__(
        self,
        policy: TranslationPolicy,
        interfaces_dir: Path,
        enums_dir: Path,
        writer: Optional[ArtifactSink] = None,
        max_workers: Optional[int] = None,
    ):
        self.policy = policy
        self.interfaces_dir = Path(interfaces_dir)
        self.enums_dir = Path(enums_dir)
        self.writer = writer or FileArtifactWriter()
        self.max_workers = max_workers
        self.translator = TypeTranslator(policy)

    def render(self, root: TypeDescriptor) -> str:
        return render_artifact(self.translator.translate(root), self.policy)

    def _output_dir(self, root: TypeDescriptor) -> Path:
        return self.enums_dir if root.kind is TypeKind.ENUM else self.interfaces_dir

    def _generate_one(self, root: TypeDescriptor) -> Path:
        label = "enum" if root.kind is TypeKind.ENUM else "interface"
        try:
            text = self.render(root)
            path = self._output_dir(root) / f"{file_stem(root.target_name)}{FILE_EXTENSION}"
            self.writer.write_text(path, text)
        except Exception as exc:
            logger.error("Failed to generate %s for type %s: %s", label, root.qualified_name, exc)
            raise GenerationError(root.qualified_name, f"Failed to generate {label}") from exc
        logger.debug("Generated %s: %s", label, root.simple_name)
        return path

    def generate(self, roots: Sequence[TypeDescriptor]) -> GenerationResult:
        result = GenerationResult()
        if not roots:
            logger.info("No types to generate TypeScript for")
            return result

        interfaces = [r for r in roots if r.kind in (TypeKind.CLASS, TypeKind.INTERFACE)]
        enums = [r for r in roots if r.kind is TypeKind.ENUM]
        logger.info("Generating TypeScript for %d interfaces and %d enums", len(interfaces), len(enums))
        _warn_on_name_clashes(interfaces)
        _warn_on_name_clashes(enums)

        if interfaces:
            self.writer.ensure_dir(self.interfaces_dir)
        if enums:
            self.writer.ensure_dir(self.enums_dir)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures: Dict[Future, TypeDescriptor] = {
                executor.submit(self._generate_one, root): root for root in interfaces + enums
            }
            try:
                for future in as_completed(futures):
                    path = future.result()
                    if futures[future].kind is TypeKind.ENUM:
                        result.enum_files.append(path)
                    else:
                        result.interface_files.append(path)
            except TypeGenError:
                for pending in futures:
                    pending.cancel()
                raise

        result.interface_files.sort()
        result.enum_files.sort()

        if self.policy.emit_index_manifests:
            result.index_files = self.write_indexes(interfaces, enums)
        return result

    def write_indexes(self, interfaces: Sequence[TypeDescriptor], enums: Sequence[TypeDescriptor]) -> List[Path]:
        written: List[Path] = []
        if interfaces:
            written.append(self.writer.write_text(
                self.interfaces_dir / INDEX_FILE, render_index(r.target_name for r in interfaces)
            ))
        if enums:
            written.append(self.writer.write_text(
                self.enums_dir / INDEX_FILE, render_index(r.target_name for r in enums)
            ))
        return written


def _warn_on_name_clashes(roots: Sequence[TypeDescriptor]) -> None:
    by_file: Dict[str, List[str]] = {}
    for r in roots:
        by_file.setdefault(file_stem(r.target_name), []).append(r.qualified_name)
    for stem, owners in sorted(by_file.items()):
        if len(owners) > 1:
            logger.warning("Types %s all write %s%s; the last one written wins",
                           ", ".join(sorted(owners)), stem, FILE_EXTENSION)


def _default_provider_factory(max_workers: Optional[int]) -> MetadataProvider:
    from adapters.pyreflect.discovery import PythonMetadataProvider

    return PythonMetadataProvider(max_workers=max_workers)


class TypeGenOrchestrator:
    """
    Complete workflow: database enums -> discovery -> TypeScript generation.
    A fresh metadata provider (module cache, available-types index) is created per run.
    """

    def __init__(
        self,
        provider_factory: Callable[[Optional[int]], MetadataProvider] = _default_provider_factory,
        db_enum_generator: Optional[DbEnumGenerator] = None,
        writer: Optional[ArtifactSink] = None,
        max_workers: Optional[int] = None,
    ):
        self.provider_factory = provider_factory
        self.writer = writer or FileArtifactWriter()
        self.db_enum_generator = db_enum_generator or DbEnumGenerator(writer=self.writer)
        self.max_workers = max_workers

    def run(self, config: TypeGenConfig) -> RunSummary:
        logger.info("Starting complete TypeGen workflow...")
        summary = RunSummary()
        try:
            if config.databaseEnums:
                logger.info("Step 1: Generating Python enums from database...")
                summary.python_enum_files = self.db_enum_generator.generate(config)
                logger.info("Database enums generated: %d", len(summary.python_enum_files))
            else:
                logger.info("Step 1: Skipped - No database enums configured")

            if config.modulesToScan:
                logger.info("Step 2: Discovering types marked with @export_to_ts...")
                provider = self.provider_factory(self.max_workers)
                roots = provider.discover_export_roots(config.modulesToScan)
                summary.discovered = len(roots)
                logger.info("Found %d types to export", len(roots))

                if roots:
                    logger.info("Step 3: Generating TypeScript interfaces and enums...")
                    available = provider.collect_available_types(config.modulesToScan)
                    logger.info("Types available for inline generation: %d",
                                len({d.qualified_name for d in available.values()}))
                    generator = TypeScriptGenerator(
                        config.policy(),
                        Path(config.typeScriptInterfacesOutputPath),
                        Path(config.typeScriptEnumsOutputPath),
                        writer=self.writer,
                        max_workers=self.max_workers,
                    )
                    summary.generation = generator.generate(roots)
                    logger.info("TypeScript files generated: %d", summary.generation.total)
                else:
                    logger.warning("No types found with @export_to_ts in the configured modules")
            else:
                logger.info("Steps 2-3: Skipped - No modules configured to scan")
        except Exception as exc:
            logger.error("TypeGen workflow failed: %s", exc)
            raise

        logger.info("TypeGen workflow completed successfully: %s", summary.format())
        return summary
