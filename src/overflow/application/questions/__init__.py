"""Question use cases – the aggregate store's operation contracts."""
from overflow.application.questions.results import Committed
from overflow.application.questions.service import QuestionService

__all__ = ["Committed", "QuestionService"]
