"""
PostDesk Backend — Password Hashing
=====================================

What:  Hasher interface plus the Argon2id implementation.
Why:   Services treat hashing as an opaque collaborator (hash in, digest out);
       tests pass a trivial fake instead of paying Argon2's cost.

Design Decision:
    Argon2 is CPU-bound and blocking. UserService calls it through
    starlette's run_in_threadpool so the event loop keeps serving requests.
"""

from abc import ABC, abstractmethod

from argon2 import PasswordHasher


class Hasher(ABC):
    @abstractmethod
    def hash(self, plaintext: str) -> str:
        ...


class Argon2Hasher(Hasher):
    """Argon2id via argon2-cffi; parameters come from settings."""

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536, parallelism: int = 4):
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )

    def hash(self, plaintext: str) -> str:
        return self._hasher.hash(plaintext)
