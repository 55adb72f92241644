"""Lazy dependency injection from plain dictionaries of factories.

Modules are nested mappings whose leaves are factories: callables taking the
container as their only argument. `inject` merges modules into a container
that builds each value on first access and caches it. Factories read their
dependencies off the container they receive, so wiring is just attribute
access.

Exports:
- `inject`: merge modules and build the container, resolving eager factories.
- `eager`: mark a factory for resolution during `inject`.
- `merge`: the module merge used by `inject`, available on its own.
- `Container`: the lazy, memoizing container (and nested groups).
- `CacheState`: per-key resolution state reported by `Container.state`.
- `Factory`: the wrapper carrying the eager flag.
- `ContainerError`, `CyclicDependency`, `ConstructionFailure`,
  `MergeConflictError`: errors raised while merging or resolving.
"""

from ._container import CacheState, Container
from ._errors import ConstructionFailure, ContainerError, CyclicDependency, MergeConflictError
from ._inject import inject
from ._module import Factory, eager, merge


__all__ = [
    "CacheState",
    "ConstructionFailure",
    "Container",
    "ContainerError",
    "CyclicDependency",
    "Factory",
    "MergeConflictError",
    "eager",
    "inject",
    "merge",
]
