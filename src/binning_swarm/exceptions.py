"""Custom exception classes for binning-swarm."""


class BinningSwarmError(Exception):
    """Base exception for all binning-swarm errors."""
    pass


class ConfigurationError(BinningSwarmError):
    """Raised for missing inputs, empty inventories or a bad config file."""
    pass


class InvalidSampleName(ConfigurationError):
    """Raised when a path does not follow the expected sample naming convention."""
    pass


class ValidationError(BinningSwarmError):
    """Raised when pre-flight validation of the run inputs fails."""
    pass


class GenerationFailure(BinningSwarmError):
    """Raised when an assembler ends up with an empty job list."""
    pass


class SubmissionFailure(BinningSwarmError):
    """Raised when the scheduler does not return a batch identifier."""
    pass


class SchedulerNotFound(BinningSwarmError):
    """Raised when a scheduler backend cannot be found or loaded."""
    pass


class FileOperationError(BinningSwarmError):
    """Raised for file reading or writing errors."""
    pass
