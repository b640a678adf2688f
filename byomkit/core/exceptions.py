"""
BYOMKit Errors
==============

Error taxonomy shared by the engine, the backend routes and the API client.
Routes map these onto JSON error responses via ``http_status``.
"""


class BYOMError(Exception):
    """Base class for all BYOMKit errors"""
    http_status = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self):
        return {'success': False, 'error': self.message}


class ValidationError(BYOMError):
    """Input rejected before anything was attempted or mutated"""
    http_status = 400


class NotFoundError(BYOMError):
    http_status = 404


class ConflictError(BYOMError):
    """Operation not allowed in the current state"""
    http_status = 409


class AlreadySubmitted(ConflictError):
    def __init__(self, design_id=None, status=None):
        super().__init__(
            'This design has already been submitted for approval.',
            {'design_id': design_id, 'status': status}
        )


class InvalidTransition(ConflictError):
    def __init__(self, current, target):
        super().__init__(
            f"Cannot move design from '{current}' to '{target}'",
            {'current': current, 'target': target}
        )


class BackendError(BYOMError):
    """Non-success response (or no response) from the BYOM backend"""
    http_status = 502

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message, {'status_code': status_code})
        self.status_code = status_code
        self.payload = payload


class PipelineError(BYOMError):
    """A submission pipeline stage failed; later stages were not attempted"""

    def __init__(self, stage, cause):
        super().__init__(f"Submission failed during {stage}: {cause}", {'stage': stage})
        self.stage = stage
        self.cause = cause
