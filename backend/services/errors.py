# backend/services/errors.py
"""
Error taxonomy shared by the service layer and the routes.

Services raise these; routes and the app-level handler turn them into
JSON responses with the matching HTTP status.
"""


class ServiceError(Exception):
    status_code = 500
    code = 'INTERNAL_ERROR'

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class ValidationError(ServiceError):
    status_code = 400
    code = 'VALIDATION_ERROR'


class UnauthenticatedError(ServiceError):
    status_code = 401
    code = 'UNAUTHORIZED'


class ForbiddenError(ServiceError):
    status_code = 403
    code = 'FORBIDDEN'


class NotFoundError(ServiceError):
    status_code = 404
    code = 'NOT_FOUND'


class ConflictError(ServiceError):
    status_code = 409
    code = 'CONFLICT'


class AlreadyClosedError(ConflictError):
    code = 'ALREADY_CLOSED'
