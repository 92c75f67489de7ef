class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)

class PolicyViolation(AppError):
    """Raised when an action is refused by a grid policy before any state changes."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class MergedLessonEditError(PolicyViolation):
    """Raised when editing a lesson that was produced by a group merge."""
    def __init__(self, schedule_id: int, parent_group: int):
        super().__init__(
            "Merged lessons cannot be edited from a member group",
            details={"schedule_id": schedule_id, "parent_group": parent_group},
        )

class GridInvariantError(AppError):
    """Raised when the in-memory grid breaks one of its structural invariants."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)

class DuplicateIdentityError(GridInvariantError):
    """Raised when two lessons in one hour slot share an identity."""
    def __init__(self, identity: tuple):
        super().__init__(
            "Duplicate lesson identity inside one hour slot",
            details={"identity": list(identity)},
        )

class RemoteOperationError(AppError):
    """Raised when the remote schedule service rejects or fails a request."""
    def __init__(self, operation: str, message: str, status_code: int = 502, details: dict = None):
        self.operation = operation
        super().__init__(message, status_code=status_code, details=details)
