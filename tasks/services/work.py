from dataclasses import dataclass
from datetime import datetime

from django.db import transaction
from django.utils.timezone import now

from ..models import Task, TaskWorkLog


class InvalidTransition(ValueError):
    pass


@dataclass(frozen=True)
class Transition:
    action: str
    allowed_from: frozenset
    to_status: str


# Une entrée par type d'action; toute action hors table est rejetée.
TRANSITIONS = {
    TaskWorkLog.ACTION_START: Transition(
        TaskWorkLog.ACTION_START, frozenset({Task.STATUS_OPEN}), Task.STATUS_RUNNING),
    TaskWorkLog.ACTION_PAUSE: Transition(
        TaskWorkLog.ACTION_PAUSE, frozenset({Task.STATUS_RUNNING}), Task.STATUS_PAUSED),
    TaskWorkLog.ACTION_RESUME: Transition(
        TaskWorkLog.ACTION_RESUME, frozenset({Task.STATUS_PAUSED}), Task.STATUS_RUNNING),
    TaskWorkLog.ACTION_COMPLETE: Transition(
        TaskWorkLog.ACTION_COMPLETE, frozenset({Task.STATUS_RUNNING, Task.STATUS_PAUSED}), Task.STATUS_COMPLETED),
}


def record_work(task: Task, action: str, at: datetime | None = None) -> TaskWorkLog:
    """
    Applique une action de travail à la tâche et journalise l'événement.
    Le verrou de ligne évite deux "start" concurrents sur la même tâche.
    """
    transition = TRANSITIONS.get(action)
    if transition is None:
        raise InvalidTransition(f"unknown action '{action}'")

    with transaction.atomic():
        locked = Task.objects.select_for_update().get(pk=task.pk)
        if locked.status not in transition.allowed_from:
            raise InvalidTransition(f"cannot {action} a task in status '{locked.status}'")
        locked.status = transition.to_status
        locked.save(update_fields=["status", "updated_at"])
        log = TaskWorkLog.objects.create(task=locked, action=action, at=at or now())

    task.status = locked.status
    return log
