"""
Ownership contract for resources guarded by check_ownership.

A resource is Ownable when it can name the user that owns it. Each model
states which column that is, so the guard never has to guess between
author_id and user_id.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Ownable(Protocol):
    def owner_id(self) -> str:
        ...


def is_ownable_model(cls) -> bool:
    return isinstance(cls, type) and issubclass(cls, Ownable)
