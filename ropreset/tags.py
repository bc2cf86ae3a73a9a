"""Tagging of published presets and likes on those tags.

A tag repository provides ``find_by_preset_ids(ids)``,
``find_tags_by_preset_id(preset_id)``, ``find_tag_by_id(tag_id)``,
``create_tags(publisher_id=..., class_id=..., preset_id=..., tags=...)``,
``bulk_operation_tags(publisher_id=..., class_id=..., preset_id=..., tags=...,
delete_tag_ids=...)``, ``delete_tag(tag_id)``,
``like_tag(tag_id=..., user_id=..., total_like=...)``, ``unlike_tag(...)`` with
the same keywords, and ``partial_search_tags(query, skip, limit)``. A preset
repository additionally provides ``find_preset_by_ids(ids)``. Tags carry
``id``, ``preset_id``, ``tag``, ``likes`` and ``total_like``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ropreset.presets import (
    CannotTagUnpublishedError,
    CheckPresetOwnerRequest,
    validate_preset_owner,
)

__all__ = [
    "DeleteTagInput",
    "BulkOperationInput",
    "PartialSearchMetaInput",
    "TagWithLiked",
    "PresetWithTags",
    "PresetTagView",
    "PartialSearchTagsResult",
    "PresetTagService",
]


@dataclass(frozen=True)
class DeleteTagInput:
    tag_id: str
    user_id: str
    preset_id: str


@dataclass
class BulkOperationInput:
    publisher_id: str
    preset_id: str
    class_id: int = 0
    create_tags: list[str] = field(default_factory=list)
    delete_tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PartialSearchMetaInput:
    user_id: str = ""
    skip: int = 0
    limit: int = 0


@dataclass
class TagWithLiked:
    """A tag and whether the viewing user likes it."""

    tag: Any
    liked: bool


@dataclass
class PresetWithTags:
    """A preset together with its tags."""

    preset: Any
    tags: list[TagWithLiked] = field(default_factory=list)


@dataclass
class PresetTagView:
    """A tag search hit: the preset, the matching tag and like counts of all its tags."""

    preset: Any
    tag_id: str
    tags: dict[str, int] | None
    liked: bool


@dataclass
class PartialSearchTagsResult:
    items: list[PresetTagView]
    total: int


def _field(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def _set(target: Any, name: str, value: Any) -> None:
    if isinstance(target, dict):
        target[name] = value
    else:
        setattr(target, name, value)


def _likes(tag: Any) -> list[str]:
    return list(_field(tag, "likes") or [])


def _is_liked_by(tag: Any, user_id: str) -> bool:
    return user_id in _likes(tag)


class PresetTagService:
    """Manages tags of published presets and users' likes of them."""

    def __init__(self, tag_repo: Any, preset_repo: Any, user_repo: Any) -> None:
        self.tag_repo = tag_repo
        self.preset_repo = preset_repo
        self.user_repo = user_repo

    def validate_preset_owner(self, request: CheckPresetOwnerRequest) -> Any:
        """Return the preset if the requesting user owns it."""
        return validate_preset_owner(self.preset_repo, request)

    def _published_owned(self, preset_id: str, user_id: str) -> Any:
        preset = self.validate_preset_owner(
            CheckPresetOwnerRequest(id=preset_id, user_id=user_id)
        )
        if not _field(preset, "is_published"):
            raise CannotTagUnpublishedError()
        return preset

    def attach_tags(self, user_id: str, presets: list[Any]) -> list[PresetWithTags]:
        """Pair each preset with its tags, marking those ``user_id`` likes."""
        preset_ids = [_field(p, "id") for p in presets]
        grouped: dict[str, list[TagWithLiked]] = {}
        for tag in self.tag_repo.find_by_preset_ids(preset_ids):
            grouped.setdefault(_field(tag, "preset_id"), []).append(
                TagWithLiked(tag=tag, liked=_is_liked_by(tag, user_id))
            )
        return [
            PresetWithTags(preset=p, tags=grouped.get(_field(p, "id"), []))
            for p in presets
        ]

    def _with_tags(self, user_id: str, preset: Any) -> PresetWithTags:
        return self.attach_tags(user_id, [preset])[0]

    def create_tags(self, data: Any) -> PresetWithTags:
        """Add tags to an owned, published preset."""
        publisher_id = _field(data, "publisher_id")
        preset = self._published_owned(_field(data, "preset_id"), publisher_id)
        self.tag_repo.create_tags(
            publisher_id=publisher_id,
            class_id=_field(preset, "class_id"),
            preset_id=_field(data, "preset_id"),
            tags=list(_field(data, "tags") or []),
        )
        return self._with_tags(publisher_id, preset)

    def bulk_operation_tags(self, data: BulkOperationInput) -> PresetWithTags:
        """Add the missing requested tags and remove the present ones listed for deletion."""
        preset = self._published_owned(data.preset_id, data.publisher_id)
        preset_id = _field(preset, "id")

        existing = {
            _field(tag, "tag"): tag
            for tag in self.tag_repo.find_tags_by_preset_id(preset_id)
        }
        to_create = [name for name in data.create_tags if name not in existing]
        delete_ids = [
            _field(existing[name], "id") for name in data.delete_tags if name in existing
        ]

        data.class_id = _field(preset, "class_id")
        self.tag_repo.bulk_operation_tags(
            publisher_id=data.publisher_id,
            class_id=data.class_id,
            preset_id=preset_id,
            tags=to_create,
            delete_tag_ids=delete_ids,
        )
        return self._with_tags(data.publisher_id, preset)

    def delete_tag(self, data: DeleteTagInput) -> PresetWithTags:
        """Remove one tag from an owned, published preset."""
        preset = self._published_owned(data.preset_id, data.user_id)
        self.tag_repo.delete_tag(data.tag_id)
        return self._with_tags(data.user_id, preset)

    def like_tag(self, data: Any) -> Any:
        """Record that a user likes a tag; liking twice changes nothing."""
        user_id = _field(data, "user_id")
        tag = self.tag_repo.find_tag_by_id(_field(data, "id"))
        if _is_liked_by(tag, user_id):
            return tag

        total = (_field(tag, "total_like") or 0) + 1
        _set(tag, "total_like", total)
        self.tag_repo.like_tag(tag_id=_field(data, "id"), user_id=user_id, total_like=total)
        return tag

    def unlike_tag(self, data: Any) -> Any:
        """Withdraw a user's like of a tag; does nothing if it was not liked."""
        user_id = _field(data, "user_id")
        tag = self.tag_repo.find_tag_by_id(_field(data, "id"))
        if not _is_liked_by(tag, user_id):
            return tag

        total = (_field(tag, "total_like") or 0) - 1
        _set(tag, "total_like", total)
        self.tag_repo.unlike_tag(tag_id=_field(data, "id"), user_id=user_id, total_like=total)
        return tag

    def partial_search_tags(
        self, query: Any, meta: PartialSearchMetaInput
    ) -> PartialSearchTagsResult:
        """Find tags matching ``query`` and return their presets with like counts."""
        found = self.tag_repo.partial_search_tags(query, meta.skip, meta.limit)
        hits = list(_field(found, "items") or [])
        preset_ids = [_field(tag, "preset_id") for tag in hits]

        presets = {
            _field(p, "id"): p for p in self.preset_repo.find_preset_by_ids(preset_ids)
        }

        like_counts: dict[str, dict[str, int]] = {}
        for tag in self.tag_repo.find_by_preset_ids(preset_ids):
            like_counts.setdefault(_field(tag, "preset_id"), {})[_field(tag, "tag")] = len(
                _likes(tag)
            )

        items = [
            PresetTagView(
                preset=presets.get(_field(tag, "preset_id")),
                tag_id=_field(tag, "id"),
                tags=like_counts.get(_field(tag, "preset_id")),
                liked=_is_liked_by(tag, meta.user_id),
            )
            for tag in hits
        ]
        return PartialSearchTagsResult(items=items, total=int(_field(found, "total", 0) or 0))