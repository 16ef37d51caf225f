from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple, Optional

from django.utils.timezone import now

from tasks.models import TaskWorkLog
from .intervals import accumulate

SECONDS_PER_HOUR = 3600


class WorkEvent(NamedTuple):
    task_id: int
    action: str
    at: datetime


@dataclass
class UsageSummary:
    used_hours: float
    pool_hours: float
    remaining_hours: float
    overage_hours: float
    overage_cost: float

    def rounded(self) -> dict:
        """Valeurs arrondies à 2 décimales, pour affichage uniquement."""
        return {
            "used_hours": round(self.used_hours, 2),
            "pool_hours": round(self.pool_hours, 2),
            "remaining_hours": round(self.remaining_hours, 2),
            "overage_hours": round(self.overage_hours, 2),
            "overage_cost": round(self.overage_cost, 2),
        }


def summarize(used_hours, included_hours, rollover_hours_applied, addl_hourly_rate,
              topup_hours=0) -> UsageSummary:
    """
    pool = heures incluses + report (+ heures achetées en top-up).
    Les champs restent non arrondis; utiliser .rounded() pour l'affichage.
    """
    used = float(used_hours or 0)
    pool = float(included_hours or 0) + float(rollover_hours_applied or 0) + float(topup_hours or 0)
    overage = max(0.0, used - pool)
    return UsageSummary(
        used_hours=used,
        pool_hours=pool,
        remaining_hours=max(0.0, pool - used),
        overage_hours=overage,
        overage_cost=overage * float(addl_hourly_rate or 0),
    )


def cycle_window(cycle, at: Optional[datetime] = None):
    """Fenêtre de mesure d'un cycle: [started_at, min(now, expires_at)]."""
    current = at or now()
    end = min(current, cycle.expires_at) if cycle.expires_at else current
    return cycle.started_at, end


def work_events_in_window(customer_id: int, window_start: datetime, window_end: datetime) -> list[WorkEvent]:
    rows = (TaskWorkLog.objects
            .filter(task__customer_id=customer_id, at__gte=window_start, at__lte=window_end)
            .order_by("task_id", "at", "id")
            .values_list("task_id", "action", "at"))
    return [WorkEvent(*row) for row in rows]


def used_seconds_for_cycle(cycle, at: Optional[datetime] = None) -> float:
    start, end = cycle_window(cycle, at)
    if end <= start:
        return 0.0
    return accumulate(work_events_in_window(cycle.customer_id, start, end), start, end)


def used_hours_for_cycle(cycle, at: Optional[datetime] = None) -> float:
    return used_seconds_for_cycle(cycle, at) / SECONDS_PER_HOUR


def cycle_usage(cycle, at: Optional[datetime] = None) -> UsageSummary:
    return summarize(
        used_hours_for_cycle(cycle, at),
        cycle.included_hours,
        cycle.rollover_hours_applied,
        cycle.addl_hourly_rate_snapshot,
        topup_hours=cycle.topup_hours,
    )
