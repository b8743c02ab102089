"""Domain-specific exceptions."""


class ServiceError(Exception):
    pass


class OrderError(ServiceError):
    pass


class InvalidPlan(OrderError):
    """Referenced plan is missing or no longer active."""


class InvalidTransition(OrderError):
    """Order is not in a state eligible for the requested move."""


class Unauthorized(OrderError):
    """A non-admin identity attempted an admin-only action."""


class NoEligibleOrder(OrderError):
    pass


class TransportFailure(ServiceError):
    pass


class PersistenceFailure(ServiceError):
    pass


class RateLimitExceeded(ServiceError):
    pass


__all__ = [
    "InvalidPlan",
    "InvalidTransition",
    "NoEligibleOrder",
    "OrderError",
    "PersistenceFailure",
    "RateLimitExceeded",
    "ServiceError",
    "TransportFailure",
    "Unauthorized",
]
