import json

import pytest

from ropreset.summary import (
    PresetSummary,
    PresetSummaryService,
    RankingSummary,
    write_json_file,
)

SKILL = "Sonic Blow"
CLASS_ID = 4


def _preset(user_id, weapon, enchants=(0, 0, 0), class_id=CLASS_ID, skill=SKILL):
    e1, e2, e3 = enchants
    return {
        "user_id": user_id,
        "class_id": class_id,
        "model": {
            "selected_atk_skill": skill,
            "weapon": weapon,
            "weapon_enchant1": e1,
            "weapon_enchant2": e2,
            "weapon_enchant3": e3,
        },
    }


class FakeRepo:
    def __init__(self, presets, total=None):
        self.presets = presets
        self.total = len(presets) if total is None else total
        self.calls = []

    def partial_search_presets(self, *, include_model, skip, take):
        self.calls.append((include_model, skip, take))
        return {"items": self.presets[skip : skip + take], "total": self.total}


@pytest.fixture
def presets():
    return [
        _preset("u1", 100, (3, 1, 2)),
        _preset("u1", 200),
        _preset("u2", 100, (1, 2, 3)),
    ]


def test_empty_repository_gives_empty_summary(tmp_path):
    service = PresetSummaryService(FakeRepo([]), tmp_path)
    assert service.generate_summary() == PresetSummary()
    assert list(tmp_path.iterdir()) == []


def test_selected_job_and_skill_counts(tmp_path, presets):
    result = PresetSummaryService(FakeRepo(presets), tmp_path).generate_summary()
    assert result.total_selected_job_map == {0: 2, CLASS_ID: 2}
    assert result.summary_class_skill_map == {CLASS_ID: {SKILL: 2}}


def test_weapon_rankings_ordered_and_consistent(tmp_path, presets):
    result = PresetSummaryService(FakeRepo(presets), tmp_path).generate_summary()
    weapons = result.job_summary[CLASS_ID][SKILL]["Weapon"]
    assert [r.item_id for r in weapons] == [100, 200]
    assert weapons[0].using_rate >= weapons[1].using_rate
    # Each user's rates within a position add up to one.
    assert sum(r.using_rate for r in weapons) == pytest.approx(2)
    top = weapons[0]
    assert top.total_account == 2
    assert top.total_preset == 2
    assert top.total_enchant == 2
    assert set(top.enchants) == {"1-2-3"}
    assert sum(top.enchants.values()) == pytest.approx(top.total_account)


def test_unused_positions_have_empty_rankings(tmp_path, presets):
    result = PresetSummaryService(FakeRepo(presets), tmp_path).generate_summary()
    positions = result.job_summary[CLASS_ID][SKILL]
    assert positions["Armor"] == []
    assert positions["ShadowPendant"] == []


def test_rankings_truncated_to_ten(tmp_path):
    many = [_preset("u1", item_id) for item_id in range(1, 13)]
    result = PresetSummaryService(FakeRepo(many), tmp_path).generate_summary()
    assert len(result.job_summary[CLASS_ID][SKILL]["Weapon"]) == 10


def test_pages_through_all_presets(tmp_path):
    repo = FakeRepo([_preset("u1", 100)], total=2500)
    PresetSummaryService(repo, tmp_path).generate_summary()
    assert [skip for _, skip, _ in repo.calls] == [0, 1000, 2000]
    assert all(include and take == 1000 for include, _, take in repo.calls)


def test_reports_are_written(tmp_path, presets):
    PresetSummaryService(FakeRepo(presets), tmp_path).generate_summary()
    names = {p.name for p in tmp_path.iterdir()}
    assert names == {
        "x_presetSummaryMap.json",
        "x_summaryClassSkillMap.json",
        "x_totalSelectedJobMap.json",
        "x.json",
    }
    preset_map = json.loads((tmp_path / "x_presetSummaryMap.json").read_text())
    assert preset_map == {str(CLASS_ID): {SKILL: 3}}
    jobs = json.loads((tmp_path / "x.json").read_text())
    assert jobs[str(CLASS_ID)][SKILL]["Weapon"][0]["ItemId"] == 100


def test_write_json_file_round_trip(tmp_path):
    target = tmp_path / "out.json"
    write_json_file({1: [RankingSummary(item_id=7)]}, target)
    loaded = json.loads(target.read_text())
    assert loaded["1"][0]["ItemId"] == 7
    assert loaded["1"][0]["Enchants"] == {}


def test_write_json_file_ignores_unwritable_path(tmp_path):
    target = tmp_path / "missing" / "out.json"
    write_json_file({"a": 1}, target)
    assert not target.exists()