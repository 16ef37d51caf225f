from django.test import TestCase

from billing.tests.helpers import make_customer
from tasks.models import Task, TaskWorkLog
from tasks.services.work import InvalidTransition, record_work


class RecordWorkTest(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.task = Task.objects.create(customer=self.customer, title="Travel booking")

    def test_full_lifecycle(self):
        for action in ("start", "pause", "resume", "complete"):
            record_work(self.task, action)
        self.task.refresh_from_db()
        self.assertEqual(self.task.status, Task.STATUS_COMPLETED)
        self.assertEqual(list(self.task.work_logs.values_list("action", flat=True)),
                         ["start", "pause", "resume", "complete"])

    def test_pause_requires_running(self):
        with self.assertRaises(InvalidTransition):
            record_work(self.task, "pause")
        self.assertFalse(TaskWorkLog.objects.exists())

    def test_cannot_restart_completed(self):
        record_work(self.task, "start")
        record_work(self.task, "complete")
        with self.assertRaises(InvalidTransition):
            record_work(self.task, "start")

    def test_unknown_action(self):
        with self.assertRaises(InvalidTransition):
            record_work(self.task, "teleport")


class TaskApiTest(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.client.force_login(self.customer.user)

    def test_create_and_work(self):
        r = self.client.post("/api/v1/tasks/", data={"title": "Inbox triage"}, content_type="application/json")
        self.assertEqual(r.status_code, 201, r.content)
        task_id = r.json()["id"]

        r = self.client.post(f"/api/v1/tasks/{task_id}/work", data={"action": "start"},
                             content_type="application/json")
        self.assertEqual(r.status_code, 201, r.content)
        self.assertEqual(r.json()["action"], "start")

        r = self.client.post(f"/api/v1/tasks/{task_id}/work", data={"action": "resume"},
                             content_type="application/json")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json()["error"]["code"], "INVALID_TRANSITION")

    def test_tasks_are_customer_scoped(self):
        other = make_customer(username="globex", email="ops@globex.test")
        foreign = Task.objects.create(customer=other, title="Not yours")

        self.assertEqual(self.client.get("/api/v1/tasks/").json(), [])
        r = self.client.post(f"/api/v1/tasks/{foreign.id}/work", data={"action": "start"},
                             content_type="application/json")
        self.assertEqual(r.status_code, 404)
