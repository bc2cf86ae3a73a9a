"""Usage rankings of equipment across all published build presets."""

from __future__ import annotations

import contextlib
import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ropreset.accumulate import ItemSummary, accumulate_presets

__all__ = [
    "RankingSummary",
    "PresetSummary",
    "PresetSummaryService",
    "write_json_file",
]

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000
TOTAL_RANKING = 10


@dataclass
class RankingSummary:
    """One ranked item in an equipment position for a class and skill."""

    item_id: int
    using_rate: float = 0.0
    total_preset: int = 0
    total_account: int = 0
    total_enchant: int = 0
    enchants: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ItemId": self.item_id,
            "UsingRate": self.using_rate,
            "TotalPreset": self.total_preset,
            "TotalAccount": self.total_account,
            "TotalEnchant": self.total_enchant,
            "Enchants": self.enchants,
        }


@dataclass
class PresetSummary:
    """The result of a summary run.

    ``summary_class_skill_map`` maps class id -> skill -> number of users.
    ``total_selected_job_map`` maps class id -> number of users, with the
    total number of users under key 0.
    ``job_summary`` maps class id -> skill -> position -> rankings.
    """

    summary_class_skill_map: dict[int, dict[str, int]] = field(default_factory=dict)
    total_selected_job_map: dict[int, int] = field(default_factory=dict)
    job_summary: dict[int, dict[str, dict[str, list[RankingSummary]]]] = field(
        default_factory=dict
    )


@dataclass
class _UsingItemFrequency:
    total_preset: int = 0
    total_account: int = 0
    total_enchant: int = 0
    item_using_rate: float = 0.0
    enchant_using_rate: dict[str, float] = field(default_factory=dict)


def _jsonable(data: Any) -> Any:
    if isinstance(data, (RankingSummary,)):
        return _jsonable(data.to_dict())
    if isinstance(data, ItemSummary):
        return {"Total": data.total, "Enchants": _jsonable(data.enchants)}
    if isinstance(data, Mapping):
        return {str(key): _jsonable(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [_jsonable(value) for value in data]
    return data


def write_json_file(data: Any, filename: str | Path) -> None:
    """Write ``data`` as indented JSON, ignoring failures to write."""
    text = json.dumps(_jsonable(data), indent=1, sort_keys=True)
    with contextlib.suppress(OSError):
        Path(filename).write_text(text, encoding="utf-8")


def _field(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


class PresetSummaryService:
    """Builds equipment usage rankings from every stored preset."""

    def __init__(self, preset_repo: Any, output_dir: str | Path = ".") -> None:
        self.preset_repo = preset_repo
        self.output_dir = Path(output_dir)

    def _page(self, skip: int) -> tuple[list[Any], int]:
        result = self.preset_repo.partial_search_presets(
            include_model=True, skip=skip, take=PAGE_SIZE
        )
        return list(_field(result, "items") or []), int(_field(result, "total", 0) or 0)

    def generate_summary(self) -> PresetSummary:
        """Aggregate all presets, write the JSON reports and return the summary."""
        items, total = self._page(0)
        if not items:
            return PresetSummary()

        user_data: dict[Any, Any] = {}
        preset_summary: dict[Any, dict[str, int]] = {}
        accumulate_presets(user_data, items, preset_summary)

        rounds = math.ceil(total / PAGE_SIZE)
        logger.info("total %s", total)
        for page in range(1, rounds):
            skip = page * PAGE_SIZE
            items, _ = self._page(skip)
            logger.info("Round %s - %s passed", page, skip)
            accumulate_presets(user_data, items, preset_summary)

        all_user_summary, class_skill_map, selected_job_map = self._frequencies(user_data)
        job_summary = self._rankings(all_user_summary)

        write_json_file(preset_summary, self.output_dir / "x_presetSummaryMap.json")
        write_json_file(class_skill_map, self.output_dir / "x_summaryClassSkillMap.json")
        write_json_file(selected_job_map, self.output_dir / "x_totalSelectedJobMap.json")
        write_json_file(job_summary, self.output_dir / "x.json")

        return PresetSummary(
            summary_class_skill_map=class_skill_map,
            total_selected_job_map=selected_job_map,
            job_summary=job_summary,
        )

    @staticmethod
    def _frequencies(user_data: dict[Any, Any]):
        all_user_summary: dict[Any, dict[str, dict[str, dict[int, _UsingItemFrequency]]]] = {}
        class_skill_map: dict[Any, dict[str, int]] = {}
        selected_job_map: dict[Any, int] = {}

        for job_map in user_data.values():
            selected_job_map[0] = selected_job_map.get(0, 0) + 1
            for job_id, skills in job_map.items():
                selected_job_map[job_id] = selected_job_map.get(job_id, 0) + 1
                job_freq = all_user_summary.setdefault(job_id, {})
                job_skills = class_skill_map.setdefault(job_id, {})

                for skill_name, positions in skills.items():
                    job_skills[skill_name] = job_skills.get(skill_name, 0) + 1
                    skill_freq = job_freq.setdefault(skill_name, {})

                    for position, using_items in positions.items():
                        position_freq = skill_freq.setdefault(position, {})
                        total_item = sum(s.total for s in using_items.values())
                        enchant_totals = {
                            item_id: sum(s.enchants.values())
                            for item_id, s in using_items.items()
                        }

                        for item_id, item in using_items.items():
                            freq = position_freq.setdefault(item_id, _UsingItemFrequency())
                            freq.item_using_rate += item.total / total_item
                            freq.total_enchant += enchant_totals[item_id]
                            freq.total_preset += item.total
                            freq.total_account += 1
                            for enchant, count in item.enchants.items():
                                freq.enchant_using_rate[enchant] = (
                                    freq.enchant_using_rate.get(enchant, 0.0)
                                    + count / enchant_totals[item_id]
                                )

        return all_user_summary, class_skill_map, selected_job_map

    @staticmethod
    def _rankings(all_user_summary):
        job_summary: dict[Any, dict[str, dict[str, list[RankingSummary]]]] = {}
        for job_id, skills in all_user_summary.items():
            job_rankings = job_summary.setdefault(job_id, {})
            for skill_name, positions in skills.items():
                skill_rankings = job_rankings.setdefault(skill_name, {})
                for position, using_items in positions.items():
                    rankings = sorted(
                        (
                            RankingSummary(
                                item_id=item_id,
                                using_rate=freq.item_using_rate,
                                total_preset=freq.total_preset,
                                total_account=freq.total_account,
                                total_enchant=freq.total_enchant,
                                enchants=freq.enchant_using_rate,
                            )
                            for item_id, freq in using_items.items()
                        ),
                        key=lambda r: r.using_rate,
                        reverse=True,
                    )
                    skill_rankings[position] = rankings[:TOTAL_RANKING]
        return job_summary