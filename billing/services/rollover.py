import math
from decimal import Decimal


def max_carry_hours(included_hours, rollover_percent) -> int:
    """Plafond de report: floor(heures incluses * % / 100)."""
    return math.floor(Decimal(str(included_hours or 0)) * Decimal(str(rollover_percent or 0)) / 100)


def compute_rollover(prev_cycle, used_hours_in_prev_cycle) -> float:
    """
    Heures reportables du cycle précédent vers le suivant.
    Pas de cycle précédent => 0.
    """
    if prev_cycle is None:
        return 0.0
    pool_prev = float(prev_cycle.included_hours or 0) + float(prev_cycle.rollover_hours_applied or 0)
    remaining_prev = max(0.0, pool_prev - float(used_hours_in_prev_cycle or 0))
    cap = max_carry_hours(prev_cycle.included_hours, prev_cycle.rollover_percent_snapshot)
    return min(remaining_prev, float(cap))
