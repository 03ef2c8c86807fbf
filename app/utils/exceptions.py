from typing import Any, Optional


class AppException(Exception):
    """Base exception for all application-specific errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Any] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundException(AppException):
    """Exception raised when a resource is not found."""

    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
            details=details,
        )


class ValidationException(AppException):
    """Exception raised when validation fails."""

    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[Any] = None,
        code: str = "VALIDATION_ERROR",
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details=details,
        )


class InsufficientInput(ValidationException):
    """Input text is too short to be split into scenes."""

    def __init__(self, min_length: int):
        super().__init__(
            message=f"Text must contain at least {min_length} characters",
            details={"minLength": min_length},
            code="INSUFFICIENT_INPUT",
        )


class ConflictException(AppException):
    """Exception raised when a request conflicts with the resource's current state."""

    def __init__(self, message: str = "Conflict", details: Optional[Any] = None):
        super().__init__(
            code="CONFLICT",
            message=message,
            status_code=409,
            details=details,
        )


class UnauthorizedException(AppException):
    """Exception raised when authentication or authorization fails."""

    def __init__(self, message: str = "Unauthorized access", details: Optional[Any] = None):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
            details=details,
        )


class ForbiddenException(AppException):
    """Exception raised when an authenticated user may not touch a resource."""

    def __init__(self, message: str = "Forbidden", details: Optional[Any] = None):
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=403,
            details=details,
        )


class EntitlementDenied(AppException):
    """A subscription plan does not permit the requested video.

    Carries the limiting value in ``details`` so the UI can offer an upgrade path.
    """

    def __init__(self, code: str, message: str, details: Optional[Any] = None):
        super().__init__(code=code, message=message, status_code=403, details=details)


class DailyLimitExceeded(EntitlementDenied):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            code="DAILY_LIMIT_EXCEEDED",
            message=f"Daily video limit reached ({limit} videos per day)",
            details={"limit": limit},
        )


class DurationExceeded(EntitlementDenied):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            code="DURATION_EXCEEDED",
            message=f"Requested duration exceeds your plan limit of {limit} seconds",
            details={"limit": limit},
        )


class ResolutionNotAllowed(EntitlementDenied):
    def __init__(self, allowed: str):
        self.allowed = allowed
        super().__init__(
            code="RESOLUTION_NOT_ALLOWED",
            message=f"Your plan allows resolutions up to {allowed}",
            details={"allowed": allowed},
        )


class FeatureRequiresUpgrade(EntitlementDenied):
    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(
            code="FEATURE_REQUIRES_UPGRADE",
            message=f"'{feature}' requires a higher subscription plan",
            details={"feature": feature},
        )


class ExternalServiceError(AppException):
    """An AI backend timed out, returned 5xx, or produced an unusable response."""

    def __init__(
        self,
        message: str = "External service error",
        details: Optional[Any] = None,
        code: str = "EXTERNAL_SERVICE_ERROR",
        transient: bool = False,
    ):
        self.transient = transient
        super().__init__(code=code, message=message, status_code=502, details=details)


class SceneGenerationFailed(ExternalServiceError):
    def __init__(self, message: str = "Scene generation failed", details: Optional[Any] = None):
        super().__init__(message=message, details=details, code="SCENE_GENERATION_FAILED")


class ImageSynthesisFailed(ExternalServiceError):
    def __init__(self, scene_index: Optional[int] = None, message: str = "Image synthesis failed"):
        self.scene_index = scene_index
        super().__init__(
            message=message,
            details={"sceneIndex": scene_index},
            code="IMAGE_SYNTHESIS_FAILED",
        )


class ConfigurationError(AppException):
    """A backend is disabled or has no credential configured."""

    def __init__(self, message: str = "Backend is not configured", details: Optional[Any] = None):
        super().__init__(
            code="CONFIGURATION_ERROR",
            message=message,
            status_code=503,
            details=details,
        )
