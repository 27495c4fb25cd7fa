from __future__ import annotations


class PipelineError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class ResourceUnavailableError(PipelineError):
    def __init__(self, message: str = "Pipeline resource unavailable."):
        super().__init__(message, status_code=503)


class FrameProcessingError(PipelineError):
    def __init__(self, message: str = "Frame processing failed.", status_code: int = 500):
        super().__init__(message, status_code=status_code)


class InvariantViolationError(FrameProcessingError):
    def __init__(self, message: str = "Frame invariant violated."):
        super().__init__(message, status_code=422)
