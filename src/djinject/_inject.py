from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._container import Container
from ._module import eager_paths, merge, validate_module


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ._module import Module


def inject(*modules: Module, strict: bool = False) -> Container:
    """Merge `modules` into a lazily resolved container.

    Later modules override earlier ones; groups present in several modules are
    merged key by key. Factories marked with `eager` are built before this
    function returns and their errors propagate from here. Every other factory
    runs on first access.

    Example:
      container = inject(
          {"greeting": lambda ctx: "Hi!", "greet": lambda ctx: lambda: ctx.greeting},
          {"greeting": lambda ctx: "Hola!"},
      )
      container.greet()  # "Hola!"

    Pass `strict=True` to reject a factory replacing a group (or the reverse).
    """
    for module in modules:
        validate_module(module)

    merged = merge(*modules, strict=strict)
    container = Container(merged)
    force_eager(merged, container)
    return container


def force_eager(module: Module, root: Container) -> None:
    """Resolve every eager factory of `module` on the node that owns it."""
    for key_path in eager_paths(module):
        *group_keys, key = key_path
        node = root
        for group_key in group_keys:
            node = node.resolve(group_key)

        logger.debug("Eagerly resolving '%s'", ".".join(str(k) for k in key_path))
        node.resolve(key)
