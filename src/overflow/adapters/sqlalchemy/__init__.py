"""SQLAlchemy adapter – aggregate store, outbox and projector bookkeeping."""
from overflow.adapters.sqlalchemy.models import Base, create_all
from overflow.adapters.sqlalchemy.outbox import SqlAlchemyOutboxRepository
from overflow.adapters.sqlalchemy.projection_state import (
    SqlAlchemyDeadLetterStore,
    SqlAlchemyProjectionStateStore,
)
from overflow.adapters.sqlalchemy.repository import SqlAlchemyQuestionRepository
from overflow.adapters.sqlalchemy.session import SqlAlchemySessionFactory
from overflow.adapters.sqlalchemy.uow import SqlAlchemyUnitOfWork

__all__ = [
    "Base",
    "SqlAlchemyDeadLetterStore",
    "SqlAlchemyOutboxRepository",
    "SqlAlchemyProjectionStateStore",
    "SqlAlchemyQuestionRepository",
    "SqlAlchemySessionFactory",
    "SqlAlchemyUnitOfWork",
    "create_all",
]
