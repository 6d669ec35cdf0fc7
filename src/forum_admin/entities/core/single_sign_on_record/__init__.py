"""Single sign-on record entity module.

- SingleSignOnRecord: Domain entity linking an external identity to a user
- SingleSignOnRecordTable: Database persistence model
- SingleSignOnRecordRepository: Data access layer
"""

from .entity import SingleSignOnRecord
from .repository import SingleSignOnRecordRepository
from .table import SingleSignOnRecordTable

__all__ = [
    "SingleSignOnRecord",
    "SingleSignOnRecordTable",
    "SingleSignOnRecordRepository",
]
