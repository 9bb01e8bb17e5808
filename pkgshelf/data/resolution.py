from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from pkgshelf.domain.models import Dependency, PackageSpec, current_platform_tags

logger = logging.getLogger(__name__)


class Resolution:
    """
    The resolved specification set together with the manifest dependencies.

    Produced by the resolver; every pkgshelf operation only reads it.
    """

    def __init__(
        self,
        specs: Iterable[PackageSpec],
        dependencies: Optional[Iterable[Dependency]] = None,
        without: Optional[Iterable[str]] = None,
    ):
        self.specs: List[PackageSpec] = list(specs)
        self.dependencies: List[Dependency] = list(dependencies or [])
        self.without: List[str] = list(without or [])

    def __iter__(self):
        return iter(self.specs)

    def __len__(self) -> int:
        return len(self.specs)

    def groups(self) -> List[str]:
        """Every group named by a dependency, in declaration order."""
        groups: List[str] = []
        for dep in self.dependencies:
            for g in dep.groups:
                if g not in groups:
                    groups.append(g)
        return groups

    def dependencies_for(self, groups: Iterable[str]) -> List[Dependency]:
        groups = list(groups)
        if not groups:
            return list(self.dependencies)
        return [d for d in self.dependencies if d.in_groups(groups)]

    def specs_for(self, groups: Iterable[str]) -> List[PackageSpec]:
        """
        Specs needed by the dependencies of the given groups, including the
        runtime dependencies of those specs, in resolution order.
        """
        by_name: Dict[str, PackageSpec] = {s.name: s for s in self.specs}
        tags = current_platform_tags()

        groups = list(groups)
        pending = [
            d.name for d in self.dependencies if d.in_groups(groups) and d.current_platform(tags)
        ]
        needed = set()
        while pending:
            name = pending.pop()
            if name in needed:
                continue
            spec = by_name.get(name)
            if spec is None:
                logger.debug(f"No resolved spec for {name}, skipping")
                continue
            needed.add(name)
            pending.extend(spec.dependencies)

        return [s for s in self.specs if s.name in needed]

    def requested_specs(self, without: Optional[Iterable[str]] = None) -> List[PackageSpec]:
        """Specs of every group except the excluded ones (`self.without` unless given)."""
        excluded = set(self.without if without is None else without)
        groups = [g for g in self.groups() if g not in excluded]
        return self.specs_for(groups)
