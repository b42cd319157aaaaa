"""Expose the ORM models at package level.

Importing this package registers every table on ``Base.metadata``, which
``create_all`` relies on.
"""

from .base import Base  # noqa: F401
from .fact_checks import FactCheckCitation, FactCheckRecord  # noqa: F401
from .search_results import SearchRecord, SearchResultRow  # noqa: F401
from .sessions import SESSION_TYPES, Session  # noqa: F401
