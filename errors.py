from fastapi import HTTPException


class AuthorizationDenied(HTTPException):
    """A policy predicate rejected the operation. Nothing was written."""

    def __init__(self, detail: str = "Operation not permitted"):
        super().__init__(status_code=403, detail=detail)


class ConstraintViolation(HTTPException):
    """Uniqueness, check or foreign key violation."""

    def __init__(self, detail: str = "Constraint violated"):
        super().__init__(status_code=409, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=404, detail=detail)


class ExternalServiceError(HTTPException):
    """Third-party API unavailable or returned something unusable."""

    def __init__(self, detail: str = "External service unavailable"):
        super().__init__(status_code=502, detail=detail)


class UploadError(HTTPException):
    def __init__(self, detail: str = "Upload failed"):
        super().__init__(status_code=400, detail=detail)
