"""
BaseService -- common constructor for the kernel's lifecycle services.

Responsibility:
    Every public service operation is one unit of work: it opens its own
    transaction, does its reads and writes, and commits or rolls back
    before returning.  BaseService holds what those operations share: the
    session factory, the clock, and the random source used by ID
    generation.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Services return DTOs (``inventory_kernel.domain.dtos``), never ORM
      rows, so nothing leaks out of a closed session.
    - No transaction is held open across a return to the caller.
"""

import random
from abc import ABC
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.db.engine import get_session_factory
from inventory_kernel.domain.clock import Clock, SystemClock

# Actor recorded when the caller does not identify one.
SYSTEM_ACTOR_ID = UUID(int=0)


class BaseService(ABC):
    """
    Abstract base class for the kernel services.

    Contract:
        ``session_factory`` defaults to the module-level factory from
        ``inventory_kernel.db.engine``; the engine must be initialized
        before the first operation in that case.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._rng = rng

    @property
    def session_factory(self) -> sessionmaker[Session]:
        return self._session_factory or get_session_factory()


def as_uuid(value: UUID | str) -> UUID:
    """Accept UUIDs or their string form at the service boundary."""
    return value if isinstance(value, UUID) else UUID(str(value))
