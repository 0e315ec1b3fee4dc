class IncorrectCredentials(Exception):
    pass


class UserAlreadyExists(Exception):
    pass


class AssistError(Exception):
    kind = "Error"
    status_code = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class InvalidInput(AssistError):
    kind = "ValidationError"
    status_code = 400


class Unauthenticated(AssistError):
    kind = "Unauthenticated"
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class Forbidden(AssistError):
    kind = "Forbidden"
    status_code = 403


class NotFoundException(AssistError):
    kind = "NotFound"
    status_code = 404

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} '{identifier}' not found")


class InvalidTransition(AssistError):
    kind = "InvalidTransition"
    status_code = 409

    def __init__(self, current: str, requested: str, reason: str = None):
        self.current = current
        self.requested = requested
        message = f"Cannot transition from {current} to {requested}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ServiceUnavailable(AssistError):
    kind = "ServiceUnavailable"
    status_code = 422


class StorageUnavailable(AssistError):
    kind = "StorageUnavailable"
    status_code = 503
    retryable = True
