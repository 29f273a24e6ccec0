"""Errors raised while finding fuzz targets."""


class FuzzTargetError(Exception):
    """Base class for fatal errors."""

    def __init__(self, message: str, phase: str):
        super().__init__(message)
        self.phase = phase


class ExtractionError(FuzzTargetError):
    """Functions could not be extracted from the codebase."""

    def __init__(self, message: str, phase: str = "parsing"):
        super().__init__(message, phase)


class GenerationNotImplementedError(FuzzTargetError):
    """Fuzz test generation was requested but is not implemented."""

    def __init__(self, message: str = "fuzz test generation is not implemented"):
        super().__init__(message, phase="generation")
