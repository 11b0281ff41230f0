import unittest

from tests.fixtures import api_client, clear_overrides, memory_engine


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        self.engine = memory_engine()
        self.client = api_client(self.engine)

    def tearDown(self):
        clear_overrides()
        self.engine.dispose()

    def _tenant(self, **overrides):
        body = {
            "company_name": "Acme Mills",
            "subdomain": "acme",
            "admin_email": "admin@acme.test",
            "timezone": "Asia/Kolkata",
            "holidays": [{"holiday_date": "2026-01-26", "name": "Republic Day"}],
        }
        body.update(overrides)
        resp = self.client.post("/api/tenants", json=body)
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()

    def _employee(self, tenant_id, name, **extra):
        body = {"name": name, "email": f"{name.lower()}@acme.test"}
        body.update(extra)
        resp = self.client.post(f"/api/tenants/{tenant_id}/employees", json=body)
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()

    def _checklist(self, tenant_id, doer_id, frequency="Daily", start_date="2026-01-01", **extra):
        body = {"task_name": "Boiler pressure check", "doer_id": doer_id, "frequency": frequency, "start_date": start_date}
        body.update(extra)
        resp = self.client.post(f"/api/tenants/{tenant_id}/checklists", json=body)
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()

    def _instances(self, employee_id, today):
        resp = self.client.get(f"/api/employees/{employee_id}/checklist-instances", params={"today": today})
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()

    def _complete(self, task_id, instance_date, **extra):
        body = {"instance_date": instance_date}
        body.update(extra)
        return self.client.post(f"/api/checklists/{task_id}/complete", json=body)


class TestTenantApi(ApiTestCase):

    def test_create_and_get_tenant(self):
        tenant = self._tenant()
        self.assertEqual(tenant["weekends"], [0])
        self.assertEqual(tenant["holidays"][0]["holiday_date"], "2026-01-26")

        resp = self.client.get(f"/api/tenants/{tenant['id']}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["subdomain"], "acme")

    def test_duplicate_subdomain_rejected(self):
        self._tenant()
        resp = self.client.post("/api/tenants", json={
            "company_name": "Other", "subdomain": "ACME", "admin_email": "x@y.test",
        })
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["code"], "SUBDOMAIN_TAKEN")

    def test_unknown_timezone_rejected(self):
        resp = self.client.post("/api/tenants", json={
            "company_name": "Other", "subdomain": "other", "admin_email": "x@y.test", "timezone": "Mars/Olympus",
        })
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["code"], "UNKNOWN_TIMEZONE")

    def test_calendar_update(self):
        tenant = self._tenant()
        resp = self.client.put(f"/api/tenants/{tenant['id']}/calendar", json={"weekends": [0, 6]})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["weekends"], [0, 6])
        self.assertEqual(len(resp.json()["holidays"]), 1)

        resp = self.client.put(f"/api/tenants/{tenant['id']}/calendar", json={"weekends": [0, 1, 2, 3, 4, 5, 6]})
        self.assertEqual(resp.status_code, 422)

        resp = self.client.put("/api/tenants/999/calendar", json={"weekends": [0]})
        self.assertEqual(resp.status_code, 404)

    def test_employees_and_leave(self):
        tenant = self._tenant()
        asha = self._employee(tenant["id"], "Asha")
        ravi = self._employee(tenant["id"], "Ravi")

        resp = self.client.get(f"/api/tenants/{tenant['id']}/employees")
        self.assertEqual(resp.json()["count"], 2)

        resp = self.client.put(f"/api/employees/{asha['id']}/leave", json={
            "on_leave": True, "leave_start": "2026-01-05", "leave_end": "2026-01-09", "buddy_id": ravi["id"],
        })
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["buddy_id"], ravi["id"])

        resp = self.client.put(f"/api/employees/{asha['id']}/leave", json={"on_leave": True, "buddy_id": asha["id"]})
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["code"], "INVALID_BUDDY")

        resp = self.client.put(f"/api/employees/{asha['id']}/leave", json={"on_leave": False})
        self.assertIsNone(resp.json()["buddy_id"])


class TestChecklistApi(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.tenant = self._tenant()
        self.asha = self._employee(self.tenant["id"], "Asha")
        self.ravi = self._employee(self.tenant["id"], "Ravi")
        self.meera = self._employee(self.tenant["id"], "Meera", roles=["Coordinator"])

    def test_create_seeds_first_occurrence(self):
        checklist = self._checklist(self.tenant["id"], self.asha["id"], start_date="2026-01-04")  # Sunday
        self.assertEqual(checklist["next_due_date"], "2026-01-05")
        self.assertEqual(checklist["status"], "Active")

    def test_quarterly_without_day_pins_to_start(self):
        checklist = self._checklist(self.tenant["id"], self.asha["id"], frequency="Quarterly", start_date="2026-02-17")
        self.assertEqual(checklist["frequency_config"], {"day_of_month": 17})
        self.assertEqual(checklist["next_due_date"], "2026-02-17")

    def test_invalid_frequency_rejected(self):
        resp = self.client.post(f"/api/tenants/{self.tenant['id']}/checklists", json={
            "task_name": "x", "doer_id": self.asha["id"], "frequency": "Fortnightly",
        })
        self.assertEqual(resp.status_code, 422)

        resp = self.client.post(f"/api/tenants/{self.tenant['id']}/checklists", json={
            "task_name": "x", "doer_id": self.asha["id"], "frequency": "Interval", "start_date": "2026-01-01",
        })
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["code"], "VALIDATION_FAILED")

    def test_backlog_listing_and_completion(self):
        checklist = self._checklist(self.tenant["id"], self.asha["id"])

        board = self._instances(self.asha["id"], "2026-01-03")
        self.assertEqual(
            [(i["instance_date"], i["is_backlog"]) for i in board["instances"]],
            [("2026-01-01", True), ("2026-01-02", True), ("2026-01-03", False)],
        )

        resp = self._complete(checklist["id"], "2026-01-01")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["outcome"], "advanced")
        self.assertEqual(resp.json()["next_due_date"], "2026-01-02")

        resp = self._complete(checklist["id"], "2026-01-03")
        self.assertEqual(resp.json()["outcome"], "in_place")
        self.assertEqual(resp.json()["next_due_date"], "2026-01-02")

        board = self._instances(self.asha["id"], "2026-01-03")
        self.assertEqual([i["instance_date"] for i in board["instances"]], ["2026-01-02"])

        resp = self._complete(checklist["id"], "2026-01-02")
        # Sunday is skipped and Saturday was done ahead
        self.assertEqual(resp.json()["next_due_date"], "2026-01-05")

    def test_duplicate_completion_conflicts(self):
        checklist = self._checklist(self.tenant["id"], self.asha["id"])
        self.assertEqual(self._complete(checklist["id"], "2026-01-01").status_code, 200)
        resp = self._complete(checklist["id"], "2026-01-01")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["code"], "DUPLICATE_COMPLETION")

    def test_completion_of_a_non_occurrence_rejected(self):
        checklist = self._checklist(self.tenant["id"], self.asha["id"])
        resp = self._complete(checklist["id"], "2026-01-26")  # Republic Day
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["code"], "NOT_AN_OCCURRENCE")
        resp = self._complete(checklist["id"], "2025-12-30")
        self.assertEqual(resp.json()["code"], "INSTANCE_BEFORE_START")

    def test_holiday_skipped(self):
        checklist = self._checklist(self.tenant["id"], self.asha["id"], start_date="2026-01-24")  # Saturday
        resp = self._complete(checklist["id"], "2026-01-24")
        # Sunday 25th and Republic Day 26th are skipped
        self.assertEqual(resp.json()["next_due_date"], "2026-01-27")

    def test_buddy_sees_colleague_checklists(self):
        checklist = self._checklist(self.tenant["id"], self.asha["id"])
        self.client.put(f"/api/employees/{self.asha['id']}/leave", json={
            "on_leave": True, "leave_start": "2026-01-01", "leave_end": "2026-01-09", "buddy_id": self.ravi["id"],
        })

        board = self._instances(self.ravi["id"], "2026-01-02")
        self.assertEqual(board["covering_for"], [self.asha["id"]])
        self.assertEqual(board["count"], 2)
        card = board["instances"][0]
        self.assertEqual(card["task_id"], checklist["id"])
        self.assertTrue(card["is_buddy_task"])
        self.assertEqual(card["original_owner_name"], "Asha")

        self.assertEqual(self._instances(self.asha["id"], "2026-01-02")["count"], 0)
        # leave over: back to the owner
        self.assertEqual(self._instances(self.ravi["id"], "2026-01-12")["count"], 0)
        self.assertGreater(self._instances(self.asha["id"], "2026-01-12")["count"], 0)

    def test_pause_hides_and_blocks_completion(self):
        checklist = self._checklist(self.tenant["id"], self.asha["id"])
        resp = self.client.put(f"/api/checklists/{checklist['id']}", json={"status": "Paused"})
        self.assertEqual(resp.json()["status"], "Paused")

        self.assertEqual(self._instances(self.asha["id"], "2026-01-02")["count"], 0)
        resp = self._complete(checklist["id"], "2026-01-01")
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["code"], "CHECKLIST_PAUSED")

    def test_force_complete_and_history(self):
        checklist = self._checklist(self.tenant["id"], self.asha["id"])
        resp = self.client.post(f"/api/checklists/{checklist['id']}/force-complete", json={
            "coordinator_id": self.meera["id"], "remarks": "Verified on site",
        })
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["instance_date"], "2026-01-01")

        detail = self.client.get(f"/api/checklists/{checklist['id']}").json()
        self.assertEqual([h["action"] for h in detail["history"]], ["Checklist Created", "Administrative Completion"])
        self.assertEqual(detail["history"][-1]["remarks"], "Verified on site")
        self.assertEqual(detail["next_due_date"], "2026-01-02")

    def test_list_and_delete(self):
        checklist = self._checklist(self.tenant["id"], self.asha["id"])
        resp = self.client.get(f"/api/tenants/{self.tenant['id']}/checklists")
        self.assertEqual(resp.json()["count"], 1)

        self.assertEqual(self.client.delete(f"/api/checklists/{checklist['id']}").status_code, 204)
        self.assertEqual(self.client.get(f"/api/checklists/{checklist['id']}").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/checklists/{checklist['id']}").status_code, 404)

    def test_unknown_resources(self):
        self.assertEqual(self._complete(999, "2026-01-01").status_code, 404)
        resp = self.client.get("/api/employees/999/checklist-instances", params={"today": "2026-01-01"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "NOT_FOUND")

    def test_preview(self):
        resp = self.client.post("/api/checklists/preview", json={
            "frequency": "Monthly",
            "frequency_config": {"days_of_month": [31]},
            "start_date": "2026-02-05",
            "tenant_id": self.tenant["id"],
            "count": 3,
        })
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["occurrences"], ["2026-02-28", "2026-03-31", "2026-04-30"])


class TestHealthAndMetrics(ApiTestCase):

    def test_health(self):
        self.assertEqual(self.client.get("/health").json()["status"], "healthy")

    def test_metrics(self):
        body = self.client.get("/metrics").json()
        self.assertIn("checklists_created_total", body["counters"])


if __name__ == "__main__":
    unittest.main()
