"""Domain errors raised by services and translated to HTTP by routers."""


class ServiceError(Exception):
    """Base class for expected service-level failures."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class PermissionDeniedError(ServiceError):
    status_code = 403


class AuthenticationError(ServiceError):
    status_code = 401


class ValidationFailedError(ServiceError):
    status_code = 400


class PayloadTooLargeError(ServiceError):
    status_code = 413


class UnsupportedMediaTypeError(ServiceError):
    status_code = 415
