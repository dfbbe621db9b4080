"""Reproducible bonus match selection."""

from typing import Hashable, Sequence

from .errors import PreconditionError


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def string_hash(text: str) -> int:
    """Positive 32-bit rolling hash (h * 31 + c), stable across processes."""
    value = 0
    for char in text:
        value = _to_int32((value << 5) - value + ord(char))
    return abs(value)


def pick_bonus_match(tournament_id: Hashable, matchday: int, match_ids: Sequence[Hashable]):
    """
    Pick the bonus match of a matchday.

    The same tournament, matchday and candidate list always give the same
    match, so the choice can be regenerated instead of stored.
    """
    if not match_ids:
        raise PreconditionError(f"No match available for the bonus of matchday {matchday}")
    seed = string_hash(f"{tournament_id}-{matchday}")
    return match_ids[seed % len(match_ids)]
