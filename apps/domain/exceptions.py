class SignFlowError(Exception):
    status_code = 400
    default_message = 'Request failed'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(SignFlowError):
    status_code = 400
    default_message = 'Invalid payload'


class Unauthenticated(SignFlowError):
    status_code = 401
    default_message = 'Unauthorized'


class InvalidSignToken(Unauthenticated):
    default_message = 'Invalid token'


class Forbidden(SignFlowError):
    status_code = 403
    default_message = 'Forbidden'


class NotFound(SignFlowError):
    status_code = 404
    default_message = 'Not found'


class Conflict(SignFlowError):
    status_code = 409
    default_message = 'Document was modified concurrently'


class DocumentAlreadySigned(Conflict):
    default_message = 'Document is already signed'


class CollaboratorError(SignFlowError):
    status_code = 500
    default_message = 'Internal error'


class PdfRenderError(CollaboratorError):
    default_message = 'Failed to generate PDF'


class IdentityProviderError(CollaboratorError):
    default_message = 'Identity verification failed'
