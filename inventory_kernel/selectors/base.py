"""
Module: inventory_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
    Selectors are the read side of the persistence collaborator used by the
    lifecycle services.
Architecture position: Kernel > Selectors.  May import from db/ and models/.
    MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: Selectors accept a Session from the caller but MUST NOT
      call session.add(), session.delete(), session.commit(), or session.flush().
    - Session ownership: Selectors do NOT create or manage their own sessions;
      the caller owns the session and its transaction scope, so reads happen
      under whatever isolation level the caller opened.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller and perform read-only
        queries.  They MUST NOT mutate any data.
    """

    def __init__(self, session: Session):
        self.session = session
