from fastapi import HTTPException
from typing import Any, Dict, Optional

class LabelHubException(HTTPException):
    """Base exception for the LabelHub engine"""
    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def __str__(self) -> str:
        return self.detail

class ValidationError(LabelHubException):
    """Malformed input: wrong file type, missing note, cap exceeded, illegal transition"""
    def __init__(self, message: str):
        super().__init__(status_code=422, detail=message)

class AuthorizationError(LabelHubException):
    """Actor lacks the role, permission or scope for the operation"""
    def __init__(self, message: str = "Not authorized to perform this action"):
        super().__init__(status_code=403, detail=message)

class IntegrityLockError(LabelHubException):
    """Mutation blocked because an active release still references the entity"""
    def __init__(self, subject: str, release_title: str, status: str):
        self.release_title = release_title
        self.status = status
        super().__init__(
            status_code=409,
            detail=f"{subject} is locked by release '{release_title}' ({status})"
        )

class NotFoundError(LabelHubException):
    """Resource not found"""
    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            status_code=404,
            detail=f"{resource} with id {resource_id} not found"
        )

class UpstreamError(LabelHubException):
    """Storage or store collaborator failure"""
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(status_code=502, detail=message)

class DuplicateError(LabelHubException):
    """Resource already exists"""
    def __init__(self, field: str, value: str):
        super().__init__(
            status_code=400,
            detail=f"{field} '{value}' already exists"
        )

class UnauthorizedError(LabelHubException):
    """Caller did not identify itself"""
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            status_code=401,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"}
        )
