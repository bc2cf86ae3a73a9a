"""User accounts and one-time authentication codes.

A user repository provides ``find_user_by_id(user_id)``,
``find_user_by_email(email)``, ``create_user(name=..., email=..., role=...,
register_channel=...)`` and ``patch_user(user_id, name=...)``. A preset
repository provides ``update_user_name(user_id, name)``. An authentication
data repository provides ``create_authentication_data(channel=..., email=...,
code=...)``, ``partial_search_auth_data(code=...)``,
``delete_authentication_data_by_id(data_id)`` and
``delete_authentication_data_by_email(email)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

__all__ = [
    "ROLE_USER",
    "ROLE_ADMIN",
    "EmailAlreadyRegisteredError",
    "CreateUserRequest",
    "PatchUserRequest",
    "UserService",
    "AuthenticationDataRequest",
    "AuthenticationDataService",
]

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class EmailAlreadyRegisteredError(Exception):
    """An account with this e-mail address already exists."""

    def __init__(self, message: str = "email already registered") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class CreateUserRequest:
    name: str
    email: str
    channel: str


@dataclass(frozen=True)
class PatchUserRequest:
    id: str
    name: str


class UserService:
    """Registers users and changes their display names."""

    def __init__(self, user_repo: Any, preset_repo: Any) -> None:
        self.user_repo = user_repo
        self.preset_repo = preset_repo

    def create_user(self, request: CreateUserRequest) -> Any:
        """Register a new user with the ordinary role; the e-mail must be unused."""
        try:
            existing = self.user_repo.find_user_by_email(request.email)
        except Exception:
            existing = None
        if existing is not None:
            raise EmailAlreadyRegisteredError()

        return self.user_repo.create_user(
            name=request.name,
            email=request.email,
            role=ROLE_USER,
            register_channel=request.channel,
        )

    def patch_user(self, request: PatchUserRequest) -> Any:
        """Rename a user, also on their presets, and return the updated user."""
        self.user_repo.patch_user(request.id, name=request.name)
        try:
            self.preset_repo.update_user_name(request.id, request.name)
        except Exception:
            logger.warning(
                "could not rename presets of user %s", request.id, exc_info=True
            )
        return self.user_repo.find_user_by_id(request.id)

    def find_user_by_id(self, user_id: str) -> Any:
        """Return the user with this id."""
        return self.user_repo.find_user_by_id(user_id)

    def find_user_by_email(self, email: str) -> Any:
        """Return the user with this e-mail address."""
        return self.user_repo.find_user_by_email(email)


@dataclass(frozen=True)
class AuthenticationDataRequest:
    channel: str
    email: str
    code: str


class AuthenticationDataService:
    """Stores and looks up one-time authentication codes."""

    def __init__(self, repo: Any) -> None:
        self.repo = repo

    def create_authentication_data(self, request: AuthenticationDataRequest) -> Any:
        """Store a code for an e-mail address and return the stored record."""
        self.repo.create_authentication_data(
            channel=request.channel, email=request.email, code=request.code
        )
        return self.repo.partial_search_auth_data(code=request.code)

    def find_authentication_data_by_code(self, code: str) -> Any:
        """Return the record holding this code."""
        return self.repo.partial_search_auth_data(code=code)

    def delete_authentication_data(self, data_id: str) -> None:
        """Delete one record by its id."""
        self.repo.delete_authentication_data_by_id(data_id)

    def delete_authentication_data_by_email(self, email: str) -> None:
        """Delete every record of an e-mail address."""
        self.repo.delete_authentication_data_by_email(email)