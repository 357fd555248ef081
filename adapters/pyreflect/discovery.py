# adapters/pyreflect/discovery.py
from __future__ import annotations
import hashlib
import importlib
import importlib.util
import inspect
import logging
import pkgutil
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Dict, List, Optional, Sequence, Tuple

from adapters.pyreflect.describe import (
    DescriptorFactory,
    index_by_name,
    is_generic_definition,
    is_protocol,
)
from typegen.descriptors import TypeDescriptor, TypeKind
from typegen.errors import ModuleLoadError
from typegen.markers import export_marker_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedTarget:
    target: str
    kind: str  # "file" | "dir" | "module"
    key: str   # resolved path; cache key


@dataclass
class LoadedModule:
    target: ResolvedTarget
    modules: List[ModuleType] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)


# ---- target resolution -------------------------------------------------------

def _looks_like_path(target: str) -> bool:
    return target.endswith(".py") or "/" in target or "\\" in target or Path(target).is_dir()


def resolve_target(target: str) -> ResolvedTarget:
    """
    A target is a .py file, a directory of .py files, or an importable dotted module name.
    Raises ModuleLoadError when it can't be found.
    """
    target = target.strip()
    if _looks_like_path(target):
        path = Path(target).expanduser().resolve()
        if path.is_file():
            return ResolvedTarget(target, "file", str(path))
        if path.is_dir():
            return ResolvedTarget(target, "dir", str(path))
        raise ModuleLoadError(target, "Module path not found")

    try:
        spec = importlib.util.find_spec(target)
    except (ImportError, ValueError) as exc:
        raise ModuleLoadError(target, "Module not found") from exc
    if spec is None:
        raise ModuleLoadError(target, "Module not found")
    location = spec.origin or next(iter(spec.submodule_search_locations or []), None) or target
    if location not in ("built-in", "frozen", target):
        location = str(Path(location).resolve())
    return ResolvedTarget(target, "module", location)


# ---- loading -----------------------------------------------------------------

def _module_name_for(path: Path) -> str:
    name = path.stem
    existing = sys.modules.get(name)
    existing_file = getattr(existing, "__file__", None)
    if existing is None or (existing_file and Path(existing_file).resolve() == path):
        return name
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:8]
    return f"{name}_{digest}"


def load_module_from_file(path: Path) -> ModuleType:
    name = _module_name_for(path)
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot create an import spec for {path}")
    module = importlib.util.module_from_spec(spec)
    # registered before exec so dataclasses / get_type_hints can find the module
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(name, None)
        raise
    return module


def _load_directory(resolved: ResolvedTarget) -> LoadedModule:
    loaded = LoadedModule(resolved)
    files = sorted(p for p in Path(resolved.key).glob("*.py") if not p.name.startswith("_"))
    if not files:
        logger.warning("No Python modules found in directory %s", resolved.key)
    for path in files:
        try:
            loaded.modules.append(load_module_from_file(path))
        except Exception as exc:
            logger.warning("Partial load of %s: skipping %s (%s: %s)",
                           resolved.target, path.name, type(exc).__name__, exc)
            loaded.failures.append(str(path))
    return loaded


def _load_package(resolved: ResolvedTarget) -> LoadedModule:
    loaded = LoadedModule(resolved)
    try:
        root = importlib.import_module(resolved.target)
    except Exception as exc:
        raise ModuleLoadError(resolved.target, "Failed to import module") from exc
    loaded.modules.append(root)

    if not hasattr(root, "__path__"):
        return loaded

    def _on_error(name: str) -> None:
        logger.warning("Partial load of %s: skipping package %s", resolved.target, name)
        loaded.failures.append(name)

    for info in pkgutil.walk_packages(root.__path__, prefix=f"{root.__name__}.", onerror=_on_error):
        try:
            loaded.modules.append(importlib.import_module(info.name))
        except Exception as exc:
            logger.warning("Partial load of %s: skipping %s (%s: %s)",
                           resolved.target, info.name, type(exc).__name__, exc)
            loaded.failures.append(info.name)
    return loaded


def load_target(resolved: ResolvedTarget) -> LoadedModule:
    if resolved.kind == "dir":
        return _load_directory(resolved)
    if resolved.kind == "module":
        return _load_package(resolved)
    try:
        return LoadedModule(resolved, [load_module_from_file(Path(resolved.key))])
    except Exception as exc:
        raise ModuleLoadError(resolved.target, "Failed to load module from file") from exc


class ModuleCatalog:
    """
    Loads scan targets for one run. Targets are loaded concurrently; results are
    merged into the cache (keyed by resolved path) only after every load has joined.
    """

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers
        self._cache: Dict[str, LoadedModule] = {}

    def load(self, targets: Sequence[str]) -> List[LoadedModule]:
        resolved = [resolve_target(t) for t in dict.fromkeys(targets) if t and t.strip()]

        pending: Dict[str, ResolvedTarget] = {}
        for r in resolved:
            if r.key not in self._cache:
                pending.setdefault(r.key, r)

        if pending:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(load_target, pending.values()))
            for result in results:
                self._cache[result.target.key] = result
                logger.debug("Loaded %d module(s) from %s", len(result.modules), result.target.target)

        ordered: List[LoadedModule] = []
        seen_keys = set()
        for r in resolved:
            if r.key not in seen_keys:
                seen_keys.add(r.key)
                ordered.append(self._cache[r.key])
        return ordered

    def modules(self, targets: Sequence[str]) -> List[ModuleType]:
        found: List[ModuleType] = []
        seen = set()
        for loaded in self.load(targets):
            for module in loaded.modules:
                if module.__name__ not in seen:
                    seen.add(module.__name__)
                    found.append(module)
        return found


# ---- type enumeration -----------------------------------------------------------

def classes_defined_in(module: ModuleType) -> List[type]:
    return [
        obj for obj in vars(module).values()
        if inspect.isclass(obj) and obj.__module__ == module.__name__
    ]


def is_available_type(cls: type) -> bool:
    """Public, concrete, non-generic-definition class or enum."""
    return (
        not cls.__name__.startswith("_")
        and not inspect.isabstract(cls)
        and not is_generic_definition(cls)
        and not is_protocol(cls)
    )


class PythonMetadataProvider:
    """
    MetadataProvider over Python modules. One instance per run: it owns the module
    cache and the available-types index.
    """

    def __init__(self, catalog: Optional[ModuleCatalog] = None, max_workers: Optional[int] = None):
        self.catalog = catalog or ModuleCatalog(max_workers=max_workers)
        self._factories: Dict[Tuple[str, ...], DescriptorFactory] = {}

    def _available_classes(self, modules: Sequence[str]) -> List[type]:
        return [
            cls
            for module in self.catalog.modules(modules)
            for cls in classes_defined_in(module)
            if is_available_type(cls)
        ]

    def factory(self, modules: Sequence[str]) -> DescriptorFactory:
        key = tuple(modules)
        if key not in self._factories:
            self._factories[key] = DescriptorFactory(index_by_name(self._available_classes(modules)))
        return self._factories[key]

    def collect_available_types(self, modules: Sequence[str]) -> Dict[str, TypeDescriptor]:
        factory = self.factory(modules)
        available: Dict[str, TypeDescriptor] = {}
        for cls in self._available_classes(modules):
            descriptor = factory.describe(cls)
            available[descriptor.qualified_name] = descriptor
            available[descriptor.simple_name] = descriptor
        logger.info("Collected %d types for inline generation", len({d.qualified_name for d in available.values()}))
        return available

    def discover_export_roots(self, modules: Sequence[str]) -> List[TypeDescriptor]:
        factory = self.factory(modules)
        roots: List[TypeDescriptor] = []
        seen = set()
        for loaded in self.catalog.load(modules):
            found = 0
            for module in loaded.modules:
                for cls in classes_defined_in(module):
                    if export_marker_of(cls) is None:
                        continue
                    descriptor = factory.describe(cls)
                    if descriptor.qualified_name in seen:
                        continue
                    seen.add(descriptor.qualified_name)
                    roots.append(descriptor)
                    found += 1
            logger.info("Found %d types with @export_to_ts in %s", found, loaded.target.target)

        logger.info(
            "Total discovered types: %d (Classes: %d, Enums: %d)",
            len(roots),
            sum(1 for r in roots if r.kind in (TypeKind.CLASS, TypeKind.INTERFACE)),
            sum(1 for r in roots if r.kind is TypeKind.ENUM),
        )
        return roots
