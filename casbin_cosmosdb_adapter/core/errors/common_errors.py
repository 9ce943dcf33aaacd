"""Concrete error classes raised by the adapter.

Error Types:
- ProvisioningError: Client creation or database/container provisioning failed
- FilteredPolicyError: Full save attempted while holding a filtered policy
- InvalidFilterError: load_filtered_policy() received an unsupported filter

Usage:
    from casbin_cosmosdb_adapter.core.errors import FilteredPolicyError

    try:
        enforcer.save_policy()
    except FilteredPolicyError:
        ...
"""

from typing import Any

from casbin_cosmosdb_adapter.core.enums import ErrorCode
from casbin_cosmosdb_adapter.core.errors.adapter_error import AdapterError


class ProvisioningError(AdapterError):
    """Adapter could not connect or provision its database/container.

    Raised only during construction. The adapter is never returned in a
    partially provisioned state.

    Attributes:
        code: DATABASE_CONNECTION_FAILED or DATABASE_PROVISIONING_FAILED.
        message: Human-readable message.
        resource_type: "client", "database" or "container".
        resource_id: Name of the resource being provisioned ("" for the client).
        details: Additional context.
    """

    def __init__(
        self,
        *,
        code: ErrorCode,
        message: str,
        resource_type: str,
        resource_id: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code=code, message=message, details=details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class FilteredPolicyError(AdapterError):
    """Full save rejected because the loaded policy is a filtered subset."""

    def __init__(self, message: str = "cannot save a filtered policy") -> None:
        super().__init__(code=ErrorCode.POLICY_SAVE_FILTERED, message=message)


class InvalidFilterError(AdapterError, TypeError):
    """Filter passed to load_filtered_policy() is of an unsupported type.

    Attributes:
        filter_type: Name of the rejected type.
    """

    def __init__(self, filter_type: str) -> None:
        super().__init__(
            code=ErrorCode.FILTER_TYPE_UNSUPPORTED,
            message=f"unsupported filter type '{filter_type}', "
            "expected Filter or QuerySpec",
            details={"filter_type": filter_type},
        )
        self.filter_type = filter_type
