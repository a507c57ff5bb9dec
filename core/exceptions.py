"""
Core Exceptions

Custom exceptions for bot lifecycle control and error handling.

Capture and input failures are recoverable: the fishing cycle counts them,
backs off and retries until the consecutive-error ceiling is reached.
OCR failures never leave the hunger reader.
"""


class EngineException(Exception):
    """Base exception for FishingEngine errors"""
    pass


class CaptureError(EngineException):
    """Raised when a screen region cannot be captured (no display, bad region)"""
    pass


class OcrFailure(EngineException):
    """
    Raised inside the OCR pipeline when the engine or the parser fails.

    Always recoverable - the hunger reader converts it to a None reading.
    """
    pass


class InputError(EngineException):
    """Raised when a synthetic mouse/keyboard event could not be sent"""
    pass


class FailsafeTriggered(InputError):
    """
    Raised when the operator abort condition is active.

    The cursor parked in the top-left corner of the screen suppresses all
    further synthetic input until it is moved away.
    """
    pass


class QueueOverflow(EngineException):
    """A notification was dropped because its queue was full (logged, not raised)"""
    pass
