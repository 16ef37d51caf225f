"""
Reconstruction des intervalles de travail à partir du journal des tâches.

Les événements doivent arriver groupés par task_id et triés par `at` croissant
(tri global (task_id, at)). Aucun re-tri n'est fait ici: c'est à la requête
appelante de le garantir (cf. usage.services.quota.work_events_in_window).

    start/resume  -> ouvre un intervalle (si aucun n'est ouvert)
    pause/complete -> ferme l'intervalle ouvert (ignoré sinon)

Chaque intervalle est borné à [window_start, window_end]. Un intervalle resté
ouvert (changement de tâche ou fin du flux) est fermé à window_end.
"""

from datetime import datetime
from typing import Iterable, Optional

OPENING_ACTIONS = frozenset({"start", "resume"})
CLOSING_ACTIONS = frozenset({"pause", "complete"})


def elapsed_seconds(start: datetime, end: datetime) -> float:
    return max(0.0, (end - start).total_seconds())


def accumulate(events: Iterable, window_start: datetime, window_end: datetime) -> float:
    """
    Retourne le nombre de secondes travaillées dans la fenêtre.
    `events`: objets exposant task_id, action, at (TaskWorkLog ou WorkEvent).
    """
    total = 0.0
    current_task = None
    running = False
    run_start: Optional[datetime] = None

    for ev in events:
        if ev.task_id != current_task:
            # Changement de tâche: on ferme l'intervalle laissé ouvert par la précédente
            if running:
                total += elapsed_seconds(run_start, window_end)
            current_task = ev.task_id
            running = False
            run_start = None

        if ev.action in OPENING_ACTIONS and not running:
            opened_at = max(ev.at, window_start)
            if opened_at < window_end:
                running = True
                run_start = opened_at
        elif ev.action in CLOSING_ACTIONS and running:
            closed_at = min(ev.at, window_end)
            if closed_at > run_start:
                total += elapsed_seconds(run_start, closed_at)
            running = False
            run_start = None

    if running:
        total += elapsed_seconds(run_start, window_end)
    return total
