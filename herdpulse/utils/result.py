"""
Tagged success/failure result used at every engine and service boundary.

Calculation code returns ``Ok(value)`` or ``Err(error)`` instead of raising,
so every failure path is visible in the function signature. Callers branch
on the ``ok`` discriminator:

    >>> result = create_conception_rate(62.5)
    >>> if not result.ok:
    ...     return result
    >>> rate = result.value
"""

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a payload."""

    value: T
    ok: Literal[True] = True


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying a closed-set error model."""

    error: E
    ok: Literal[False] = False


Result = Union[Ok[T], Err[E]]
