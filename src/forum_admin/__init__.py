"""Forum administration service.

Staff-facing HTTP API for user lifecycle management (approval, suspension,
silencing, privilege grants, deletion) and single sign-on account
reconciliation.
"""

__version__ = "0.1.0"
