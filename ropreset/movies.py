"""Access to subtitle translations of a television series by episode."""

from __future__ import annotations

from typing import Any

__all__ = ["MovieTranslatorService"]


class MovieTranslatorService:
    """Reads episodes and edits their translated sentences through a repository."""

    def __init__(self, repo: Any) -> None:
        self.repo = repo

    def get_all_episodes(self) -> list[Any]:
        """Return information about every stored episode."""
        return self.repo.get_all_episodes()

    def get_episode(self, season: float, episode: float) -> Any:
        """Return the translation of one episode."""
        return self.repo.get_episode(season, episode)

    def patch_sentence(self, season: float, episode: float, sentence: Any) -> Any:
        """Update one sentence of an episode and return the updated episode."""
        return self.repo.patch_sentence(season, episode, sentence)