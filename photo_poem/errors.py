"""
Exception classes raised by the poem generation flow
"""
from typing import Any, Dict, List, Optional


class PoemFlowError(Exception):
    """Base exception class for poem generation errors"""
    def __init__(self, message: str, code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}
        # Set by the flow to the state it was in when the error surfaced
        self.state: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to standard error format"""
        return {
            "code": self.code,
            "message": str(self),
            "details": self.details
        }


class ValidationError(PoemFlowError):
    """Raised when flow input or backend output fails schema checks"""
    def __init__(self, message: str, fields: Optional[List[str]] = None, details: Optional[Dict[str, Any]] = None):
        self.fields = list(fields or [])
        details = dict(details or {})
        details.setdefault("fields", self.fields)
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class GenerationError(PoemFlowError):
    """Raised when the generative backend is unreachable, errors or times out"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="GENERATION_ERROR", details=details)


class EmptyOutputError(PoemFlowError):
    """Raised when the backend answers but returns no structured payload"""
    def __init__(self, message: str = "Poem generation failed to produce output.", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="EMPTY_OUTPUT", details=details)
