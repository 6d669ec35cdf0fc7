"""Core services exports."""

# Database Services
from .database.db_manage import DbManageService
from .database.db_session import DbSessionService

# Background Jobs
from .jobs import InMemoryJobQueue, JobQueue, TemporalClientService, TemporalJobQueue

# Network
from .network import IpInfoClient

# Single Sign-On
from .sso import OverridePolicy, ReconciliationEngine, SSOSyncService

# User Services
from .user import Guardian, UserAdminService

__all__ = [
    # Database Services
    "DbManageService",
    "DbSessionService",
    # Background Jobs
    "InMemoryJobQueue",
    "JobQueue",
    "TemporalClientService",
    "TemporalJobQueue",
    # Network
    "IpInfoClient",
    # Single Sign-On
    "OverridePolicy",
    "ReconciliationEngine",
    "SSOSyncService",
    # User Services
    "Guardian",
    "UserAdminService",
]
