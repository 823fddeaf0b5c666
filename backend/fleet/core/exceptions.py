"""
Request-rejection errors.

None of these is fatal to the process. Handlers in fleet.main turn them
into HTTP responses.
"""
from typing import Dict


class FleetError(Exception):
    """Base class for every domain error"""
    status_code = 400
    error_type = "Request error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FieldValidationError(FleetError):
    """A field-level constraint was violated; carries a field -> message mapping"""
    error_type = "Validation error"

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        message = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(message)


class AdmissionError(FleetError):
    """A business rule rejected a delivery"""
    error_type = "Business rule error"


class CapacityExceeded(AdmissionError):
    """A truck or driver already has its monthly quota of deliveries"""

    def __init__(self, kind: str, entity_id: int, limit: int):
        self.kind = kind
        self.entity_id = entity_id
        self.limit = limit
        label = "Truck" if kind == "truck" else "Driver"
        super().__init__(f"{label} {entity_id} already reached the limit of {limit} deliveries this month")


class RestrictedDestinationExceeded(AdmissionError):
    """The driver already served the restricted region once"""

    def __init__(self, driver_id: int, region: str):
        self.driver_id = driver_id
        self.region = region
        super().__init__(f"Driver {driver_id} already made a delivery to {region}")


class NotFound(FleetError):
    status_code = 404
    error_type = "Not found"

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found with id {entity_id}")


class UnexpectedFailure(FleetError):
    """Collaborator failure; the message is for logs, callers get a generic text"""
    status_code = 500
    error_type = "Internal server error"
    public_message = "An unexpected error occurred. Please try again later."
