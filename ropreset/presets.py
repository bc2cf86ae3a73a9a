"""Ownership checks and life-cycle operations for stored build presets.

Repositories are duck-typed. A preset repository provides
``find_preset_by_id(preset_id, include_model=...)``,
``partial_search_presets(**query)``, ``create_preset(data)``,
``create_presets(data)``, ``update_preset(preset_id, **changes)``,
``unpublish_preset(preset_id)`` and ``delete_preset_by_id(preset_id)``.
A tag repository provides ``create_tags(publisher_id=..., class_id=...,
preset_id=..., tags=...)`` and ``delete_tags_by_preset_id(preset_id)``.
Presets and inputs may be mappings or objects with attributes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

__all__ = [
    "PresetServiceError",
    "NotMyPresetError",
    "CannotUpdatePublishedPresetError",
    "CannotTagUnpublishedError",
    "CheckPresetOwnerRequest",
    "FindPresetsByTagsRequest",
    "RoPresetService",
    "validate_preset_owner",
]

logger = logging.getLogger(__name__)

DEFAULT_TAG = "no_tag"


class PresetServiceError(Exception):
    """Base class for refusals of preset operations."""


class NotMyPresetError(PresetServiceError):
    """The preset belongs to another user."""

    def __init__(self, message: str = "not my preset") -> None:
        super().__init__(message)


class CannotUpdatePublishedPresetError(PresetServiceError):
    """A published preset cannot be changed."""

    def __init__(self, message: str = "cannot update published preset") -> None:
        super().__init__(message)


class CannotTagUnpublishedError(PresetServiceError):
    """Only published presets can carry tags."""

    def __init__(self, message: str = "cannot tag unpublished preset") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class CheckPresetOwnerRequest:
    """A preset id together with the user who claims to own it."""

    id: str
    user_id: str


@dataclass(frozen=True)
class FindPresetsByTagsRequest:
    """Paging of presets of one class."""

    class_id: int
    skip: int = 0
    take: int = 0


def _field(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def validate_preset_owner(preset_repo: Any, request: CheckPresetOwnerRequest) -> Any:
    """Return the preset if ``request.user_id`` owns it, else raise NotMyPresetError."""
    preset = preset_repo.find_preset_by_id(request.id, include_model=False)
    if _field(preset, "user_id") != request.user_id:
        raise NotMyPresetError()
    return preset


class RoPresetService:
    """Creates, edits, publishes and removes presets on behalf of their owners."""

    def __init__(self, preset_repo: Any, tag_repo: Any) -> None:
        self.preset_repo = preset_repo
        self.tag_repo = tag_repo

    def validate_preset_owner(self, request: CheckPresetOwnerRequest) -> Any:
        """Return the preset if the requesting user owns it."""
        return validate_preset_owner(self.preset_repo, request)

    def _owned(self, preset_id: str, data: Any) -> Any:
        return self.validate_preset_owner(
            CheckPresetOwnerRequest(id=preset_id, user_id=_field(data, "user_id"))
        )

    def _reload(self, preset_id: str) -> Any:
        return self.preset_repo.find_preset_by_id(preset_id, include_model=False)

    def find_preset_by_id(self, request: CheckPresetOwnerRequest) -> Any:
        """Return an owned preset including its model."""
        self.validate_preset_owner(request)
        return self.preset_repo.find_preset_by_id(request.id, include_model=True)

    def find_presets_by_user_id(self, user_id: str, include_model: bool) -> list[Any]:
        """Return every preset of a user."""
        result = self.preset_repo.partial_search_presets(
            user_id=user_id, include_model=include_model
        )
        return list(_field(result, "items") or [])

    def create_preset(self, data: Any) -> Any:
        """Store a new preset and return it."""
        return self.preset_repo.create_preset(data)

    def bulk_create_presets(self, data: Any) -> list[Any]:
        """Store several presets at once and return them."""
        return self.preset_repo.create_presets(data)

    def update_preset(self, preset_id: str, data: Any) -> Any:
        """Change the label and model of an owned, unpublished preset."""
        preset = self._owned(preset_id, data)
        if _field(preset, "is_published"):
            raise CannotUpdatePublishedPresetError()

        self.preset_repo.update_preset(
            preset_id, label=_field(data, "label"), model=_field(data, "model")
        )
        return self._reload(preset_id)

    def publish_preset(self, preset_id: str, data: Any) -> Any:
        """Publish an owned preset under a name and give it the default tag."""
        preset = self._owned(preset_id, data)
        if _field(preset, "is_published"):
            raise CannotUpdatePublishedPresetError()

        self.preset_repo.update_preset(
            preset_id,
            publish_name=_field(data, "publish_name"),
            is_published=True,
            published_at=datetime.now(timezone.utc),
        )

        try:
            self.tag_repo.create_tags(
                publisher_id=_field(data, "user_id"),
                class_id=_field(preset, "class_id"),
                preset_id=_field(preset, "id"),
                tags=[DEFAULT_TAG],
            )
        except Exception:
            logger.warning("could not tag published preset %s", preset_id, exc_info=True)

        return self._reload(preset_id)

    def unpublish_preset(self, preset_id: str, data: Any) -> Any:
        """Withdraw an owned preset from publication, dropping its tags."""
        preset = self._owned(preset_id, data)
        if not _field(preset, "is_published"):
            return preset

        self.tag_repo.delete_tags_by_preset_id(_field(preset, "id"))
        self.preset_repo.unpublish_preset(preset_id)
        return self._reload(preset_id)

    def delete_preset_by_id(self, request: CheckPresetOwnerRequest) -> Any:
        """Delete an owned preset and its tags; return the repository's count."""
        self.validate_preset_owner(request)
        try:
            self.tag_repo.delete_tags_by_preset_id(request.id)
        except Exception:
            logger.warning("could not delete tags of preset %s", request.id, exc_info=True)
        return self.preset_repo.delete_preset_by_id(request.id)