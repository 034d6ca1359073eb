"""Fixed bet steps offered to players and helpers to move along them."""
import math

from mystery_slot.exceptions import InvalidBetError

BET_LADDER = (0.1, 0.2, 0.3, 0.5, 0.8, 1, 1.5, 2, 3, 5, 10, 20, 50, 100)

# Bets within this distance of a step count as that step.
_EPSILON = 1e-9


def _ladder_index(bet):
    """Index of the first step >= bet, or the top step when bet is above the ladder."""
    for i, step in enumerate(BET_LADDER):
        if step >= bet - _EPSILON:
            return i
    return len(BET_LADDER) - 1


def next_bet(bet):
    i = _ladder_index(bet)
    if BET_LADDER[i] > bet + _EPSILON:
        # Off-ladder bet: the first step above it is the "next" one.
        return BET_LADDER[i]
    return BET_LADDER[min(i + 1, len(BET_LADDER) - 1)]


def previous_bet(bet):
    i = _ladder_index(bet)
    return BET_LADDER[max(i - 1, 0)]


def is_ladder_bet(bet) -> bool:
    return any(abs(step - bet) <= _EPSILON for step in BET_LADDER)


def validate_bet(bet):
    """
    Rejects bets the engine cannot price.

    Any positive finite amount is accepted; the ladder is a player-facing
    convenience, not a restriction.

    Raises:
        InvalidBetError: For non-numeric, non-positive or non-finite bets.
    """
    if isinstance(bet, bool) or not isinstance(bet, (int, float)):
        raise InvalidBetError(f"Bet must be a number (got {bet!r})", details={'bet': repr(bet)})
    if not math.isfinite(bet) or bet <= 0:
        raise InvalidBetError(f"Bet must be a positive finite amount (got {bet!r})", details={'bet': repr(bet)})
    return float(bet)


def bet_steps(bet):
    """Neighbouring ladder steps of ``bet``, for the client's bet -/+ buttons."""
    return {
        'previous': previous_bet(bet),
        'next': next_bet(bet),
        'on_ladder': is_ladder_bet(bet),
    }
