"""Per-user accumulation of equipment usage across build presets.

Presets and their models may be given as mappings or as objects with
attributes. A preset carries ``user_id``, ``class_id`` and ``model``. A model
carries ``selected_atk_skill`` and snake_case equipment fields such as
``weapon``, ``weapon_enchant1`` and ``weapon_card1``. A missing field counts
as empty (zero).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "ItemSummary",
    "build_enchant_str",
    "get_skill_name",
    "new_position_map",
    "accumulate_presets",
]


@dataclass
class ItemSummary:
    """How often one item was used, and with which enchant combinations."""

    total: int = 0
    enchants: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class _EnchantableSlot:
    position: str
    item_field: str
    card_fields: tuple[str, ...] = ()

    @property
    def enchant_fields(self) -> tuple[str, str, str]:
        return tuple(f"{self.item_field}_enchant{n}" for n in (1, 2, 3))  # type: ignore[return-value]

    @property
    def card_position(self) -> str:
        return f"{self.position}Card"


_ENCHANTABLE_SLOTS = (
    _EnchantableSlot(
        "Weapon", "weapon", tuple(f"weapon_card{n}" for n in range(1, 5))
    ),
    _EnchantableSlot(
        "LeftWeapon", "left_weapon", tuple(f"left_weapon_card{n}" for n in range(1, 5))
    ),
    _EnchantableSlot("Shield", "shield", ("shield_card",)),
    _EnchantableSlot("HeadUpper", "head_upper", ("head_upper_card",)),
    _EnchantableSlot("HeadMiddle", "head_middle", ("head_middle_card",)),
    _EnchantableSlot("HeadLower", "head_lower"),
    _EnchantableSlot("Armor", "armor", ("armor_card",)),
    _EnchantableSlot("Garment", "garment", ("garment_card",)),
    _EnchantableSlot("Boot", "boot", ("boot_card",)),
    _EnchantableSlot("AccLeft", "acc_left", ("acc_left_card",)),
    _EnchantableSlot("AccRight", "acc_right", ("acc_right_card",)),
)

_PLAIN_SLOTS = (
    ("CostumeEnchantUpper", "costume_enchant_upper"),
    ("CostumeEnchantMiddle", "costume_enchant_middle"),
    ("CostumeEnchantLower", "costume_enchant_lower"),
    ("CostumeEnchantGarment", "costume_enchant_garment"),
    ("ShadowWeapon", "shadow_weapon"),
    ("ShadowArmor", "shadow_armor"),
    ("ShadowShield", "shadow_shield"),
    ("ShadowBoot", "shadow_boot"),
    ("ShadowEarring", "shadow_earring"),
    ("ShadowPendant", "shadow_pendant"),
)


def _positions() -> list[str]:
    names: list[str] = []
    for slot in _ENCHANTABLE_SLOTS:
        names.append(slot.position)
        if slot.card_fields:
            names.append(slot.card_position)
    names.extend(position for position, _ in _PLAIN_SLOTS)
    return names


_POSITIONS = tuple(_positions())

_SKILL_ALIASES = {
    "Ignition Break3": "Ignition Break",
    "Ignition Break7": "Ignition Break",
    "Cross Slash(Cross Wound)": "Cross Slash",
    "Silvervine Stem Spear Earth": "Silvervine Stem Spear",
    "Tiger Cannon Combo": "Tiger Cannon",
    "Adoramus Ancilla": "Adoramus",
}

_SKILL_PREFIXES = (
    "[Improved 2nd] ",
    "[Improved 2rd] ",
    "[Improved 1st] ",
    "[Improved 1nd] ",
    "[Improved] ",
)


def _read(source: Any, name: str, default: Any = 0) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def build_enchant_str(e1: int, e2: int, e3: int) -> str:
    """Return the order-independent key for three enchant ids, e.g. ``"1-2-3"``."""
    low, mid, high = sorted((e1, e2, e3))
    return f"{low}-{mid}-{high}"


def get_skill_name(raw_skill_name: str) -> str:
    """Normalise a selected attack skill label to its base skill name."""
    name = raw_skill_name.split("==", 1)[0]
    for prefix in _SKILL_PREFIXES:
        name = name.replace(prefix, "")
    return _SKILL_ALIASES.get(name) or name


def new_position_map() -> dict[str, dict[int, ItemSummary]]:
    """Return an empty item map for every tracked equipment position."""
    return {position: {} for position in _POSITIONS}


def _count(items: dict[int, ItemSummary], item_id: int) -> ItemSummary:
    entry = items.get(item_id)
    if entry is None:
        entry = items[item_id] = ItemSummary()
    entry.total += 1
    return entry


def _record(positions: dict[str, dict[int, ItemSummary]], model: Any) -> None:
    for slot in _ENCHANTABLE_SLOTS:
        item_id = _read(model, slot.item_field)
        if not item_id:
            continue
        entry = _count(positions[slot.position], item_id)
        enchant = build_enchant_str(*(_read(model, f) for f in slot.enchant_fields))
        entry.enchants[enchant] = entry.enchants.get(enchant, 0) + 1
        for card_field in slot.card_fields:
            card_id = _read(model, card_field)
            if card_id:
                _count(positions[slot.card_position], card_id)

    for position, item_field in _PLAIN_SLOTS:
        item_id = _read(model, item_field)
        if item_id:
            _count(positions[position], item_id)


def accumulate_presets(
    summary: MutableMapping[Any, Any],
    presets: Iterable[Any],
    preset_summary: MutableMapping[Any, Any],
) -> None:
    """Fold presets into ``summary`` and count skills per class in ``preset_summary``.

    ``summary`` maps user id -> class id -> skill name -> position -> item id
    -> :class:`ItemSummary`. ``preset_summary`` maps class id -> skill name ->
    number of presets. Both are updated in place.
    """
    for preset in presets:
        user_id = _read(preset, "user_id", None)
        class_id = _read(preset, "class_id", None)
        model = _read(preset, "model", None) or {}
        skill_name = get_skill_name(_read(model, "selected_atk_skill", "") or "")

        per_class = preset_summary.setdefault(class_id, {})
        per_class[skill_name] = per_class.get(skill_name, 0) + 1

        skills = summary.setdefault(user_id, {}).setdefault(class_id, {})
        positions = skills.get(skill_name)
        if positions is None:
            positions = skills[skill_name] = new_position_map()

        _record(positions, model)