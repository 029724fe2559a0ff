"""Error taxonomy for policy chains."""

from __future__ import annotations


class PolicyChainError(Exception):
    """Base class for errors raised by this package."""


class InvalidConfigurationError(PolicyChainError, ValueError):
    """Raised while building a chain that cannot be built."""


class DomainError(PolicyChainError):
    """The one failure kind callers of a composed chain ever observe.

    The original failure is kept as ``cause`` (and ``__cause__``), so the
    causal chain survives for diagnostics.  Subclasses raised by policies are
    already domain errors and pass through every layer untouched.
    """

    def __init__(
        self,
        cause: BaseException,
        *,
        layer: str | None = None,
        execution_id: str | None = None,
    ) -> None:
        super().__init__(f"{type(cause).__name__}: {cause}")
        self.cause = cause
        self.layer = layer
        self.execution_id = execution_id
        self.__cause__ = cause

    @property
    def root_cause(self) -> BaseException:
        """Follow nested domain errors down to the first foreign failure."""
        current: BaseException = self
        seen: set[int] = set()
        while isinstance(current, DomainError) and id(current) not in seen:
            seen.add(id(current))
            current = current.cause
        return current

    def __repr__(self) -> str:
        return (
            f"DomainError(cause={self.cause!r}, layer={self.layer!r}, "
            f"execution_id={self.execution_id!r})"
        )


def normalize_failure(
    exc: Exception,
    *,
    layer: str | None = None,
    execution_id: str | None = None,
) -> DomainError:
    """Return ``exc`` if it is already a domain error, else wrap it once."""
    if isinstance(exc, DomainError):
        return exc
    return DomainError(exc, layer=layer, execution_id=execution_id)
