"""
overflow – questions, answers and their search projection.

Import path convention::

    from overflow.kernel.errors import ConflictError
    from overflow.domain import Question, QuestionCreated
    from overflow.application.questions import QuestionService
    from overflow.application.projection import IndexProjector
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
