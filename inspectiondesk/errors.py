from __future__ import annotations

from typing import Any, Optional

from fastapi import HTTPException


class DomainError(HTTPException):
    """
    HTTPException with a fixed status code and an optional `details` payload.

    Raised from services and pure transition functions alike; main.py renders
    every HTTPException as {"error": ..., "details": ...}.
    """

    status_code_default = 500

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(status_code=self.status_code_default, detail=message)
        self.details = details

    @property
    def message(self) -> str:
        return str(self.detail)


class BadRequest(DomainError):
    status_code_default = 400


class NotFound(DomainError):
    status_code_default = 404


class Conflict(DomainError):
    status_code_default = 409


class NotificationFailed(DomainError):
    status_code_default = 502
