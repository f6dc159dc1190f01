class SchedulingError(RuntimeError):
    """Base class for errors raised by the availability engine."""
    pass


class ValidationError(SchedulingError, ValueError):
    """Raised when a rule or call argument is malformed (bad duration, start >= end, missing field)."""
    pass


class ConfigurationError(SchedulingError):
    """Raised when a host has no availability configured at all."""
    pass


class IntegrationError(SchedulingError):
    """Raised when one calendar integration fails (decrypt, timeout, HTTP or payload errors)."""
    pass
