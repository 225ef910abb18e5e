# Overview: Role privilege masks and the dominance check used by route guards.

"""
Each role maps to a bitmask. A role dominates another when its mask contains
every bit of the other's mask, so a higher role's mask must be a superset of
the masks of every role below it.

Bit planes:
    0x01        sales (create sales)
    0x0E        store management (stock, products, locations, sales reports)
    0xF0        administration (user accounts)

New roles must take whole bit planes. A mask that only partially overlaps
another role's mask would grant accidental dominance; validate_role_masks()
refuses to start the application in that case.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    BASIC = "basic"
    SELLER = "seller"
    MANAGER = "manager"
    ADMIN = "admin"


ROLE_MASKS: dict[Role, int] = {
    Role.BASIC: 0x00,
    Role.SELLER: 0x01,
    Role.MANAGER: 0x0F,
    Role.ADMIN: 0xFF,
}


def parse_role(value) -> Role | None:
    """Return the Role for a role name, or None for anything unknown."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def has_privilege(actual_role, required_role) -> bool:
    """True iff actual_role's mask contains every bit of required_role's mask."""
    actual = parse_role(actual_role)
    required = parse_role(required_role)
    if actual is None or required is None:
        return False
    required_mask = ROLE_MASKS[required]
    return (ROLE_MASKS[actual] & required_mask) == required_mask


def validate_role_masks(masks: dict | None = None) -> None:
    """
    Every pair of masks must be nested or disjoint.

    Raises RuntimeError naming the offending pair.
    """
    masks = ROLE_MASKS if masks is None else masks
    items = list(masks.items())
    for i, (role_a, mask_a) in enumerate(items):
        for role_b, mask_b in items[i + 1:]:
            overlap = mask_a & mask_b
            if overlap in (0, mask_a, mask_b):
                continue
            raise RuntimeError(
                f"Role masks for {getattr(role_a, 'value', role_a)} ({mask_a:#04x}) and "
                f"{getattr(role_b, 'value', role_b)} ({mask_b:#04x}) partially overlap"
            )


validate_role_masks()
