from enum import Enum


class PropertyType(str, Enum):
    apartment = "apartment"
    house = "house"
    condo = "condo"
    townhouse = "townhouse"
    commercial = "commercial"


class ApplicationStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    canceled = "canceled"


class ReviewDecision(str, Enum):
    approved = "approved"
    rejected = "rejected"


class TerminationRequester(str, Enum):
    tenant = "tenant"
    owner = "owner"
    manager = "manager"


class RenewalStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"
    expired = "expired"


class RenewalResponse(str, Enum):
    accepted = "accepted"
    rejected = "rejected"


class SagaType(str, Enum):
    approve_application = "approve_application"
    terminate_lease = "terminate_lease"
    approve_termination = "approve_termination"
    create_lease = "create_lease"


class SagaStatus(str, Enum):
    running = "running"
    completed = "completed"
    compensated = "compensated"
    compensation_failed = "compensation_failed"


class SagaStepStatus(str, Enum):
    completed = "completed"
    compensated = "compensated"
    compensation_failed = "compensation_failed"


ANOTHER_APPLICATION_APPROVED = "another application approved"
