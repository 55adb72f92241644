from __future__ import annotations


class ContainerError(RuntimeError):
    """Base class for errors raised while merging modules or resolving keys."""


class CyclicDependency(ContainerError):
    """Raised when a key is accessed again while its factory is still running."""

    def __init__(self, path: str) -> None:
        msg = (
            f"Cycle detected. Please make {path!r} lazy: inject a provider "
            f"(e.g. `lambda: ctx.{path}`) instead of the value itself."
        )
        super().__init__(msg)
        self.path = path


class ConstructionFailure(ContainerError):
    """Replayed on every access to a key whose factory has already failed."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"Construction failure: {path} ({type(cause).__name__}: {cause})")
        self.path = path
        self.cause = cause


class MergeConflictError(ContainerError):
    def __init__(self, path: str, msg: str) -> None:
        super().__init__(msg)
        self.path = path
