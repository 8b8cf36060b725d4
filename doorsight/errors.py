"""Exception types shared across the DoorSight pipeline."""


class DoorSightError(Exception):
    """Base class for DoorSight errors."""
    pass


class InvalidImageError(DoorSightError):
    """Raised when a captured image is empty, zero-sized or undecodable."""
    pass


class InferenceError(DoorSightError):
    """Raised when an inference engine fails or returns a malformed tensor."""
    pass


class ConfigurationError(DoorSightError):
    """Raised when configuration cannot be loaded or fails validation."""
    pass
