"""Transaction boundary shared by the auth use-cases."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Self

if TYPE_CHECKING:
    from postboard.repositories import UserRepository


class UnitOfWork(ABC):
    """
    One transaction around a use-case, exposing the repositories it may touch.

    ``with uow:`` yields the unit itself; subclasses decide what leaving the
    block means (commit, or always roll back for readers).
    """

    users: UserRepository

    def __enter__(self) -> Self:
        return self

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
