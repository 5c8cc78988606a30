from enum import Enum
from typing import Dict, FrozenSet

from fastapi import Depends, status

from shared.core.auth import validate_current_token
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole


class Operation(str, Enum):
    property_create = "property.create"
    property_update = "property.update"
    property_delete = "property.delete"
    property_assign_manager = "property.assign_manager"
    property_list_by_owner = "property.list_by_owner"

    application_submit = "application.submit"
    application_review = "application.review"
    application_cancel = "application.cancel"
    application_list_by_property = "application.list_by_property"
    application_list_by_tenant = "application.list_by_tenant"
    application_read = "application.read"

    lease_create = "lease.create"
    lease_update = "lease.update"
    lease_read = "lease.read"
    lease_terminate = "lease.terminate"
    lease_approve_termination = "lease.approve_termination"
    lease_offer_renewal = "lease.offer_renewal"
    lease_respond_renewal = "lease.respond_renewal"
    lease_list_by_property = "lease.list_by_property"
    lease_list_by_tenant = "lease.list_by_tenant"


_ALL = frozenset(UserRole)
_LANDLORD = frozenset({UserRole.OWNER, UserRole.MANAGER})
_OWNER = frozenset({UserRole.OWNER})
_TENANT = frozenset({UserRole.TENANT})

# role x operation -> allowed. Anything not listed is denied.
CAPABILITIES: Dict[Operation, FrozenSet[UserRole]] = {
    Operation.property_create: _OWNER,
    Operation.property_update: _LANDLORD,
    Operation.property_delete: _OWNER,
    Operation.property_assign_manager: _OWNER,
    Operation.property_list_by_owner: _LANDLORD,

    Operation.application_submit: _TENANT,
    Operation.application_review: _LANDLORD,
    Operation.application_cancel: _TENANT,
    Operation.application_list_by_property: _LANDLORD,
    Operation.application_list_by_tenant: _ALL,
    Operation.application_read: _ALL,

    Operation.lease_create: _LANDLORD,
    Operation.lease_update: _LANDLORD,
    Operation.lease_read: _ALL,
    Operation.lease_terminate: _ALL,
    Operation.lease_approve_termination: _LANDLORD,
    Operation.lease_offer_renewal: _LANDLORD,
    Operation.lease_respond_renewal: _TENANT,
    Operation.lease_list_by_property: _LANDLORD,
    Operation.lease_list_by_tenant: _ALL,
}


def is_allowed(role: UserRole, operation: Operation) -> bool:
    return role in CAPABILITIES.get(operation, frozenset())


def check_capability(current_user: UserToken, operation: Operation) -> UserToken:
    if not is_allowed(current_user.role, operation):
        return error_response(
            message=f"Access denied. Role {current_user.role.value} is not authorized to perform {operation.value}",
            status_code=AppStatusCode.UNAUTHORIZED_ACTION,
            http_status=status.HTTP_403_FORBIDDEN
        )
    return current_user


def require_capability(operation: Operation):
    """Route dependency: resolve the caller, then check the capability table."""
    def dependency(current_user: UserToken = Depends(validate_current_token)) -> UserToken:
        return check_capability(current_user, operation)

    return dependency


def forbidden(message: str):
    return error_response(
        message=message,
        status_code=AppStatusCode.UNAUTHORIZED_ACTION,
        http_status=status.HTTP_403_FORBIDDEN
    )
