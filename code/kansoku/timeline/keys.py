"""ActionKey derivation.

Every stage that produces or consumes an ActionKey goes through this module.
A key computed differently on two sides silently drops statistics instead of
failing, so nothing else may rebuild keys by hand.
"""

import re

from kansoku.timeline.models import CanonicalAction, KeyedAction

_MULTI_HIT_SUFFIX = re.compile(r"\s+x(\d+)\s*$", re.IGNORECASE)
_PARENTHETICAL = re.compile(r"\([^)]*\)")
_TRAILING_NUMBER = re.compile(r"\s+\d+\s*$")
_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def multi_hit_count(name: str) -> int | None:
    """Return N for names ending in " xN", else None."""
    match = _MULTI_HIT_SUFFIX.search(name)
    return int(match.group(1)) if match else None


def normalize_base_name(name: str) -> str:
    """Lowercased base ability name without hit-count or numeric qualifiers.

    "Big Bang x3" -> "big bang", "Tidal Roar (Enraged) 2" -> "tidal roar".
    """
    base = _PARENTHETICAL.sub(" ", name.lower())
    base = _MULTI_HIT_SUFFIX.sub("", base)
    base = _TRAILING_NUMBER.sub("", base)
    return _WHITESPACE.sub(" ", base).strip()


def match_name(name: str) -> str:
    """Alphanumeric-only form of the base name, for comparing log ability names."""
    return _NON_ALNUM.sub("", normalize_base_name(name))


def action_key(base_name: str, occurrence: int) -> str:
    return f"{base_name}_{occurrence}"


def assign_action_keys(actions: list[CanonicalAction]) -> list[KeyedAction]:
    """Key every canonical action, counting occurrences in time order.

    Sorting is stable, so actions sharing a timestamp keep their input order.
    """
    counts: dict[str, int] = {}
    keyed: list[KeyedAction] = []
    for action in sorted(actions, key=lambda a: a.time):
        base = normalize_base_name(action.name)
        counts[base] = counts.get(base, 0) + 1
        keyed.append(KeyedAction(
            action=action,
            key=action_key(base, counts[base]),
            base_name=base,
            occurrence=counts[base],
        ))
    return keyed


def slugify(name: str) -> str:
    """Filesystem/URL-safe slug: lowercase alphanumerics joined by underscores."""
    return _NON_ALNUM.sub("_", name.lower()).strip("_") or "action"
