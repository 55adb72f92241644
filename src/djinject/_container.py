from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ._errors import ConstructionFailure, CyclicDependency
from ._module import is_group, join_path


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ._module import Module


class CacheState(Enum):
    EMPTY = "empty"
    RESOLVING = "resolving"
    VALUE = "value"
    FAILED = "failed"


@dataclass
class CacheEntry:
    state: CacheState = CacheState.EMPTY
    value: object | None = None
    error: BaseException | None = None
    owner: int | None = None  # ident of the thread running the factory
    settled: threading.Event = field(default_factory=threading.Event, repr=False, compare=False)


class Container(Mapping[Any, Any]):
    """Lazy, memoizing view over a merged module tree.

    - `container[key]` / `container.key` build the value on first access
    - every factory receives the root container as its context
    - groups resolve to nested containers sharing the same root
    - undefined keys may be added unless the container is sealed;
      defined keys are read-only.

    An undefined key is not an error: `get` and `resolve` return the default
    (None). `container[key]` and `container.key` raise `KeyError` and
    `AttributeError` instead, so `in`, `hasattr` and `getattr(c, key, default)`
    behave as for any mapping or object.

    Keys that clash with method names (`get`, `keys`, `seal`, ...) are only
    reachable through `container[key]`.

    First access to a key is serialized across threads. Factories run outside
    the lock, and other threads reading a key that is being built wait for
    its outcome.
    """

    __slots__ = ("_entries", "_extensions", "_lock", "_module", "_path", "_root", "_sealed")

    def __init__(self, module: Module, root: Container | None = None, path: str = "") -> None:
        # Attribute assignment is reserved for extensions, see __setattr__.
        object.__setattr__(self, "_module", module)
        object.__setattr__(self, "_root", self if root is None else root)
        object.__setattr__(self, "_path", path)
        object.__setattr__(self, "_lock", threading.RLock() if root is None else root._lock)  # noqa: SLF001
        object.__setattr__(self, "_entries", {})
        object.__setattr__(self, "_extensions", {})
        object.__setattr__(self, "_sealed", False)

    def resolve(self, key: Any, default: Any = None) -> Any:
        """Return the value for `key`, building it on first access.

        Resolution:
        1. cached value: returned as is
        2. cached failure: `ConstructionFailure` wrapping the original error
        3. key being built by the calling thread: `CyclicDependency`
        4. key being built by another thread: wait for it, then 1. or 2.
        5. otherwise run the factory (or build the nested group container),
           cache the outcome and return it or re-raise.

        The lock only guards state transitions; factories run without it.
        A key the module does not define yields `default`.
        """
        if key in self._extensions:
            return self._extensions[key]
        if key not in self._module:
            return default

        path = join_path(self._path, key)

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = CacheEntry()

            building = entry.state is CacheState.EMPTY
            if entry.state is CacheState.RESOLVING and entry.owner == threading.get_ident():
                raise CyclicDependency(path)
            if building:
                entry.state = CacheState.RESOLVING
                entry.owner = threading.get_ident()

        if not building:
            entry.settled.wait()
            return self._settled_value(entry, path)

        try:
            value = self._produce(key, path)
        except BaseException as e:
            with self._lock:
                entry.state = CacheState.FAILED
                entry.error = e
                entry.owner = None
            entry.settled.set()
            logger.debug("Construction of '%s' failed: %r", path, e)
            raise

        with self._lock:
            entry.state = CacheState.VALUE
            entry.value = value
            entry.owner = None
        entry.settled.set()
        return value

    @staticmethod
    def _settled_value(entry: CacheEntry, path: str) -> Any:
        if entry.state is CacheState.FAILED:
            raise ConstructionFailure(path, entry.error) from entry.error  # type: ignore[arg-type]
        return entry.value

    def _produce(self, key: Any, path: str) -> Any:
        definition = self._module[key]
        if is_group(definition):
            return Container(definition, self._root, path)

        logger.debug("Constructing '%s'", path)
        return definition(self._root)

    def state(self, key: Any) -> CacheState | None:
        """Report the cache state of `key` without resolving it."""
        if key in self._extensions:
            return CacheState.VALUE
        if key not in self._module:
            return None

        entry = self._entries.get(key)
        return CacheState.EMPTY if entry is None else entry.state

    def get(self, key: Any, default: Any = None) -> Any:
        return self.resolve(key, default)

    def seal(self) -> Container:
        """Forbid adding new keys to this container node."""
        object.__setattr__(self, "_sealed", True)
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _extend(self, key: Any, value: Any, error: type[Exception]) -> None:
        path = join_path(self._path, key)
        if key in self._module:
            msg = f"Cannot assign to {path!r}: keys defined by the module are read-only"
            raise error(msg)
        if self._sealed and key not in self._extensions:
            msg = f"Cannot add {path!r}: container is sealed"
            raise error(msg)

        logger.debug("Extending container with '%s'", path)
        self._extensions[key] = value

    def _refuse_delete(self, key: Any, error: type[Exception]) -> None:
        if key not in self:
            raise error(key)
        msg = f"Cannot delete {join_path(self._path, key)!r}: container keys are permanent"
        raise error(msg)

    def __getitem__(self, key: Any) -> Any:
        if key not in self:
            raise KeyError(key)
        return self.resolve(key)

    def __getattr__(self, name: str) -> Any:
        # Slots are unset while unpickling or copying; never treat them as keys.
        if name in Container.__slots__ or (name.startswith("__") and name.endswith("__")):
            raise AttributeError(name)
        if name not in self:
            msg = f"{type(self).__name__} {self._path or '<root>'!r} has no key {name!r}"
            raise AttributeError(msg)
        return self.resolve(name)

    def __setitem__(self, key: Any, value: Any) -> None:
        self._extend(key, value, TypeError)

    def __setattr__(self, name: str, value: Any) -> None:
        self._extend(name, value, AttributeError)

    def __delitem__(self, key: Any) -> None:
        self._refuse_delete(key, TypeError if key in self else KeyError)

    def __delattr__(self, name: str) -> None:
        self._refuse_delete(name, AttributeError)

    def __iter__(self) -> Iterator[Any]:
        yield from self._module
        yield from self._extensions

    def __len__(self) -> int:
        return len(self._module) + len(self._extensions)

    def __contains__(self, key: object) -> bool:
        return key in self._module or key in self._extensions

    def __eq__(self, other: object) -> bool:
        return self is other

    __hash__ = object.__hash__

    def __dir__(self) -> list[str]:
        return [*super().__dir__(), *(key for key in self if isinstance(key, str) and key.isidentifier())]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._path or '<root>'}: {list(self)!r})"
