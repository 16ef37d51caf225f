from django.db import models


class Task(models.Model):
    STATUS_OPEN = "open"
    STATUS_RUNNING = "running"
    STATUS_PAUSED = "paused"
    STATUS_COMPLETED = "completed"
    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_RUNNING, "Running"),
        (STATUS_PAUSED, "Paused"),
        (STATUS_COMPLETED, "Completed"),
    ]

    customer = models.ForeignKey("customers.Customer", on_delete=models.CASCADE, related_name="tasks")
    title = models.CharField(max_length=120)
    description = models.TextField(blank=True, default="")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_OPEN)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tasks"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Task#{self.id}({self.status})"


class TaskWorkLog(models.Model):
    """
    Journal immuable des transitions de travail d'une tâche.
    start/resume ouvrent un intervalle, pause/complete le ferment
    (cf. usage.services.intervals).
    """
    ACTION_START = "start"
    ACTION_RESUME = "resume"
    ACTION_PAUSE = "pause"
    ACTION_COMPLETE = "complete"
    ACTION_CHOICES = [
        (ACTION_START, "Start"),
        (ACTION_RESUME, "Resume"),
        (ACTION_PAUSE, "Pause"),
        (ACTION_COMPLETE, "Complete"),
    ]

    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="work_logs")
    action = models.CharField(max_length=16, choices=ACTION_CHOICES)
    at = models.DateTimeField(db_index=True)

    class Meta:
        db_table = "task_work_logs"
        ordering = ["task_id", "at", "id"]
        indexes = [models.Index(fields=["task", "at"])]

    def __str__(self) -> str:
        return f"{self.task_id}:{self.action}@{self.at:%Y-%m-%d %H:%M:%S}"
