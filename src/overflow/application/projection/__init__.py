"""Index projection – keeps the search collection convergent with the store."""
from overflow.application.projection.consumer import ProjectionConsumer
from overflow.application.projection.document import (
    QUESTIONS_SCHEMA,
    FieldGroup,
    ProjectionDocument,
    document_from_question,
)
from overflow.application.projection.ports import SearchProjection
from overflow.application.projection.projector import IndexProjector, ProjectionOutcome
from overflow.application.projection.state import ProjectionState, ProjectionStateStore

__all__ = [
    "QUESTIONS_SCHEMA",
    "FieldGroup",
    "IndexProjector",
    "ProjectionConsumer",
    "ProjectionDocument",
    "ProjectionOutcome",
    "ProjectionState",
    "ProjectionStateStore",
    "SearchProjection",
    "document_from_question",
]
