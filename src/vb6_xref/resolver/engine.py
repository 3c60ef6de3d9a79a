# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Cross-file resolution engine (Phase B).

Phase A (manifest.load_project) must have parsed every module before the
engine runs: resolving a call in one module queries the declarations of
the others. Within Phase B the per-module work only reads other modules'
declarations, so modules can be processed in any order.

Pass order per module and procedure:
1. Type environment (module alias pre-scan, globals, params/locals,
   procedure alias re-scan)
2. Parse-time calls
3. Body token pass (members, With blocks, locals, controls, bare calls)

Then project-wide:
4. Declared types, New/Implements/TypeOf targets
5. Enum values
6. Events
7. Module-level variable and constant usage
8. Derived views (module used flags, referencing modules)
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from vb6_xref.models import VbModule, VbProject
from vb6_xref.progress import NullProgressReporter, ProgressReporter
from vb6_xref.resolver.calls import CallResolver
from vb6_xref.resolver.environment import EnvironmentBuilder, ScopeContext
from vb6_xref.resolver.indexes import ProjectIndex, declaration_sites
from vb6_xref.resolver.members import BodyResolver
from vb6_xref.resolver.tokens import ScannedLine, scan_lines
from vb6_xref.resolver.types import EnumValueResolver, EventResolver, TypeUsageResolver
from vb6_xref.resolver.usage import DerivedViews, GlobalUsageResolver
from vb6_xref.source_io import SourceCache

logger = logging.getLogger(__name__)


@dataclass
class ResolutionStats:
    """Counters reported after a resolution run."""

    modules: int = 0
    procedures: int = 0
    calls_total: int = 0
    calls_resolved: int = 0
    body_references: int = 0
    type_references: int = 0
    enum_references: int = 0
    event_references: int = 0
    global_references: int = 0
    dependencies: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ResolutionEngine:
    """Resolves calls, member accesses, type uses and global usage.

    Mutates the project in place: used flags, inbound references, call
    resolution fields, dependency edges and module_references.

    Design Notes:
    - Indexes are built once and never mutated during resolution
    - Every cross-module update looks the owning module up by name and
      mutates the symbol stored there
    - File reads go through the shared SourceCache; an unreadable file
      resolves as no lines
    """

    def __init__(
        self,
        project: VbProject,
        source_cache: Optional[SourceCache] = None,
        progress: Optional[ProgressReporter] = None,
    ):
        self.project = project
        self.source_cache = source_cache or SourceCache()
        self.progress = progress or NullProgressReporter()
        self._scanned: Dict[str, List[ScannedLine]] = {}

    def resolve(self) -> ResolutionStats:
        """Run every resolution pass over the project."""
        project = self.project
        stats = ResolutionStats(modules=len(project.modules))

        index = ProjectIndex(project)
        views = DerivedViews(project)
        env_builder = EnvironmentBuilder(index)
        call_resolver = CallResolver(index, views.record_edge)
        sites: Dict[str, Set[Tuple[int, str, int]]] = {
            module.name.lower(): declaration_sites(module) for module in project.modules
        }

        total = len(project.modules)
        self.progress.start("Resolving modules", total)
        for position, module in enumerate(project.modules, start=1):
            self.progress.advance("Resolving modules", position, total, module.name)
            self._resolve_module(
                module, index, env_builder, call_resolver, views, sites[module.name.lower()], stats
            )
        self.progress.finish("Resolving modules")

        type_resolver = TypeUsageResolver(index)
        enum_resolver = EnumValueResolver(index)
        event_resolver = EventResolver(index)
        usage_resolver = GlobalUsageResolver(index)

        stats.type_references = type_resolver.resolve_declared_types(project)
        for module in project.modules:
            scanned = self._scanned_lines(module)
            module_sites = sites[module.name.lower()]
            stats.type_references += type_resolver.resolve_type_keywords(module, scanned)
            stats.enum_references += enum_resolver.resolve_module(module, scanned, sites)
            stats.event_references += event_resolver.resolve_module(module, scanned)
            stats.global_references += usage_resolver.resolve_module(module, scanned, module_sites)

        views.finalize()
        stats.dependencies = len(project.dependencies)
        logger.info(
            f"Resolved {stats.calls_resolved}/{stats.calls_total} calls in "
            f"{stats.procedures} procedures across {stats.modules} modules"
        )
        return stats

    def _resolve_module(
        self,
        module: VbModule,
        index: ProjectIndex,
        env_builder: EnvironmentBuilder,
        call_resolver: CallResolver,
        views: DerivedViews,
        module_sites: Set[Tuple[int, str, int]],
        stats: ResolutionStats,
    ) -> None:
        lines = self.source_cache.get_lines(module.path)
        scanned = self._scanned_lines(module)
        module_env = env_builder.module_environment(module, lines)
        body_resolver = BodyResolver(index, views.record_edge, module_sites)

        for proc in module.all_procedures():
            if proc.is_external:
                continue
            stats.procedures += 1
            env = env_builder.procedure_environment(module_env, module, proc, lines)
            scope = ScopeContext(index, module, env, proc)

            stats.calls_total += len(proc.calls)
            stats.calls_resolved += call_resolver.resolve_calls(scope, proc)
            stats.body_references += body_resolver.resolve(scope, proc, scanned, lines)

        logger.debug(f"Resolved {module.name}: {len(module.all_procedures())} procedures")

    def _scanned_lines(self, module: VbModule) -> List[ScannedLine]:
        scanned = self._scanned.get(module.path)
        if scanned is None:
            scanned = scan_lines(self.source_cache.get_lines(module.path))
            self._scanned[module.path] = scanned
        return scanned


def resolve_project(
    project: VbProject,
    source_cache: Optional[SourceCache] = None,
    progress: Optional[ProgressReporter] = None,
) -> ResolutionStats:
    """Convenience wrapper: run a ResolutionEngine over project."""
    return ResolutionEngine(project, source_cache, progress).resolve()
