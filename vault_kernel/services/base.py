"""
BaseService -- abstract base for kernel services.

Services receive a SQLAlchemy ``Session`` from the caller and persist with
``session.flush()``; they never commit or roll back.  The caller (the import
orchestrator, ``session_scope()`` or a test) owns the transaction, so several
service calls can form one atomic unit.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """Holds the caller's session; flush-only contract."""

    def __init__(self, session: Session):
        self.session = session
