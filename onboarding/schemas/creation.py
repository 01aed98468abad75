"""Outcome of creating a sports center from a conversation."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class CreatedSportsCenter(BaseModel):
    id: Optional[int] = None
    external_id: int
    name: str
    admin_email: str
    admin_login: Optional[str] = None
    admin_password: Optional[str] = None


class CreationError(BaseModel):
    code: str
    message: str
    retryable: bool


class CreationResult(BaseModel):
    success: bool
    sports_center: Optional[CreatedSportsCenter] = None
    error: Optional[CreationError] = None

    @classmethod
    def succeeded(cls, sports_center: CreatedSportsCenter) -> "CreationResult":
        return cls(success=True, sports_center=sports_center)

    @classmethod
    def failed(cls, code: str, message: str, *, retryable: bool = False) -> "CreationResult":
        return cls(success=False, error=CreationError(code=code, message=message, retryable=retryable))


__all__ = ["CreatedSportsCenter", "CreationError", "CreationResult"]
