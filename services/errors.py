"""Error kinds raised by the service layer and rendered by the HTTP boundary."""


class ServiceError(Exception):
    """Base class for request failures that are reported to the caller."""

    status_code = 500
    error_code = 'service_error'
    default_message = 'Request failed'

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self):
        payload = {'error': self.error_code, 'message': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class InvalidRequestError(ServiceError):
    status_code = 400
    error_code = 'invalid_request'
    default_message = 'Invalid request'


class InvalidCredentialsError(ServiceError):
    status_code = 401
    error_code = 'invalid_credentials'
    default_message = 'Invalid username or password'


class NotAuthenticatedError(ServiceError):
    status_code = 401
    error_code = 'not_authenticated'
    default_message = 'Please log in to access this resource'


class AuthorizationError(ServiceError):
    status_code = 403
    error_code = 'forbidden'
    default_message = 'Access denied'


class NotFoundError(ServiceError):
    status_code = 404
    error_code = 'not_found'
    default_message = 'Resource not found'


class DuplicateNameError(ServiceError):
    status_code = 409
    error_code = 'duplicate_name'
    default_message = 'Username already taken'


class UnsupportedTypeError(ServiceError):
    status_code = 415
    error_code = 'unsupported_type'
    default_message = 'File type not allowed'


class UnknownRecipientError(ServiceError):
    status_code = 422
    error_code = 'unknown_recipient'
    default_message = 'Recipient does not exist'


class StorageFault(ServiceError):
    """The request was valid but the system could not persist or read it."""

    status_code = 500
    error_code = 'storage_fault'
    default_message = 'Storage failure. Please try again later.'
