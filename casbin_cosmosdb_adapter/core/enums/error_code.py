"""Adapter error codes (machine-readable).

Error codes follow ENTITY_ACTION_REASON naming convention.

Categories:
- Provisioning errors (DATABASE_*)
- Policy state errors (POLICY_*)
- Input errors (FILTER_*)
"""

from enum import Enum


class ErrorCode(Enum):
    """Adapter error codes (machine-readable).

    Error codes follow ENTITY_ACTION_REASON naming convention.
    """

    # Provisioning errors
    DATABASE_CONNECTION_FAILED = "database_connection_failed"
    DATABASE_PROVISIONING_FAILED = "database_provisioning_failed"

    # Policy state errors
    POLICY_SAVE_FILTERED = "policy_save_filtered"

    # Input errors
    FILTER_TYPE_UNSUPPORTED = "filter_type_unsupported"
