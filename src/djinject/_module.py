from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from ._errors import MergeConflictError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Iterator

    Module = Mapping[Any, "Module | Callable[[Any], Any]"]


@dataclass(frozen=True)
class Factory:
    """A factory with an explicit eager flag.

    Plain callables work as factories too; wrap one in `Factory` (usually via
    `eager`) only to attach the flag.
    """

    func: Callable[[Any], Any]
    eager: bool = False

    def __call__(self, context: Any) -> Any:
        return self.func(context)


def eager(factory: Callable[[Any], Any]) -> Factory:
    """Tag a factory so `inject` resolves it before returning.

    Tagging twice returns the already tagged factory.

    Example:
      @eager
      def scheduler(ctx):
          return Scheduler(ctx.clock)

    """
    if isinstance(factory, Factory):
        return factory if factory.eager else replace(factory, eager=True)
    return Factory(factory, eager=True)


def is_group(value: object) -> bool:
    return isinstance(value, Mapping)


def is_eager(value: object) -> bool:
    return isinstance(value, Factory) and value.eager


def join_path(prefix: str, key: object) -> str:
    return f"{prefix}.{key}" if prefix else str(key)


def validate_module(module: object, path: str = "") -> None:
    """Check that every value in the tree is either a group or a factory."""
    if not is_group(module):
        msg = f"Module {path or '<root>'} must be a mapping, got {type(module).__name__}"
        raise TypeError(msg)

    for key, value in module.items():  # type: ignore[attr-defined]
        key_path = join_path(path, key)
        if is_group(value):
            validate_module(value, key_path)
        elif not callable(value):
            msg = f"Value at {key_path!r} is neither a factory nor a group: {value!r}"
            raise TypeError(msg)


def merge(*modules: Module, strict: bool = False) -> dict[Any, Any]:
    """Merge modules left to right into a new module tree.

    - later modules win at leaf keys
    - groups present in both sides are merged recursively
    - with `strict`, replacing a group by a factory (or the reverse) raises
      `MergeConflictError`.

    The arguments are never mutated.
    """
    merged: dict[Any, Any] = {}
    for module in modules:
        merged = _merge_pair(merged, module, strict=strict, path="")
    return merged


def _merge_pair(target: Module, source: Module, *, strict: bool, path: str) -> dict[Any, Any]:
    merged = dict(target)

    for key, value in source.items():
        key_path = join_path(path, key)
        if key not in merged:
            merged[key] = _copy_definition(value, strict=strict, path=key_path)
            continue

        current = merged[key]

        if is_group(current) and is_group(value):
            merged[key] = _merge_pair(current, value, strict=strict, path=key_path)
            continue

        if is_group(current) != is_group(value):
            replaced, replacing = ("group", "factory") if is_group(current) else ("factory", "group")
            if strict:
                msg = f"Cannot replace {replaced} at {key_path!r} with a {replacing} in strict mode"
                raise MergeConflictError(key_path, msg)
            logger.debug("Replacing %s at '%s' with a %s", replaced, key_path, replacing)

        merged[key] = _copy_definition(value, strict=strict, path=key_path)

    return merged


def _copy_definition(value: Any, *, strict: bool, path: str) -> Any:
    # Groups are copied so the merged tree shares no mapping with its inputs.
    if is_group(value):
        return _merge_pair({}, value, strict=strict, path=path)
    return value


def eager_paths(module: Module, prefix: tuple[Any, ...] = ()) -> Iterator[tuple[Any, ...]]:
    """Yield the key path of every eager factory, depth first in key order."""
    for key, value in module.items():
        if is_group(value):
            yield from eager_paths(value, (*prefix, key))
        elif is_eager(value):
            yield (*prefix, key)
