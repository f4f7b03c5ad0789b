import os
import sys
import unittest
import uuid
from unittest.mock import Mock, patch

from fastapi.testclient import TestClient

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from rest_api import ZenGymAPI


class APITestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_zengym.db"
        self.yaml_path = "test_settings_api.yaml"
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        if os.path.exists(self.yaml_path):
            os.remove(self.yaml_path)
        self.api = ZenGymAPI(db_path=self.db_path, yaml_path=self.yaml_path)
        self.client = TestClient(self.api.app)

    def tearDown(self) -> None:
        self.api.session.close()
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        if os.path.exists(self.yaml_path):
            os.remove(self.yaml_path)

    def _create_template(self, sets: int = 2, rest_time: int = 0) -> str:
        response = self.client.post(
            "/templates",
            json={
                "name": "Quick Zen",
                "description": "short",
                "difficulty": "Beginner",
                "exercises": [
                    {"name": "Squats", "sets": sets, "reps": 10, "rest_time": rest_time}
                ],
            },
        )
        self.assertEqual(response.status_code, 200)
        return response.json()["id"]

    def test_health(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_templates(self) -> None:
        response = self.client.get("/templates")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 8)

        response = self.client.get("/templates", params={"difficulty": "Advanced"})
        self.assertEqual([t["name"] for t in response.json()], ["Zen Cardio", "Zen HIIT"])

        response = self.client.get("/templates/search", params={"query": "evening"})
        self.assertEqual([t["name"] for t in response.json()], ["Evening Zen"])

        template_id = response.json()[0]["id"]
        response = self.client.get(f"/templates/{template_id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["estimated_duration"], 20)

        response = self.client.get(f"/templates/{uuid.uuid4()}")
        self.assertEqual(response.status_code, 404)

    def test_create_template(self) -> None:
        template_id = self._create_template(sets=3, rest_time=60)
        response = self.client.get(f"/templates/{template_id}")
        self.assertTrue(response.json()["is_custom"])
        self.assertEqual(response.json()["estimated_duration"], 10)
        self.assertEqual(len(self.client.get("/templates").json()), 9)

        response = self.client.post("/templates", json={"name": "Empty", "exercises": []})
        self.assertEqual(response.status_code, 400)
        response = self.client.post(
            "/templates",
            json={"name": "Bad", "exercises": [{"name": "Squats", "sets": 0, "reps": 1}]},
        )
        self.assertEqual(response.status_code, 422)

    def test_session_workflow(self) -> None:
        template_id = self._create_template()

        response = self.client.post("/session/start", params={"template_id": template_id})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["phase"], "active")
        self.assertEqual(response.json()["main_action_title"], "Complete Set")

        response = self.client.post("/session/finish")
        self.assertEqual(response.status_code, 400)

        response = self.client.post("/session/tick", params={"seconds": 5})
        self.assertEqual(response.json()["elapsed_seconds"], 5)

        response = self.client.put("/session/notes", params={"text": "easy"})
        self.assertEqual(response.status_code, 200)

        response = self.client.post("/session/complete_set")
        state = response.json()
        self.assertEqual(state["current_set"], 2)
        self.assertTrue(state["can_finish"])
        self.assertEqual(state["main_action_title"], "Finish Workout")

        response = self.client.post("/session/finish")
        self.assertEqual(response.status_code, 200)
        finished = response.json()
        self.assertTrue(finished["is_completed"])
        self.assertEqual(finished["notes"], "easy")
        self.assertEqual(self.client.get("/session").json()["phase"], "completed")

        history = self.client.get("/history").json()
        self.assertEqual(len(history), 1)
        response = self.client.get(f"/history/{finished['id']}")
        self.assertEqual(response.status_code, 200)

        stats = self.client.get("/stats").json()
        self.assertEqual(stats["total_workouts"], 1)
        self.assertEqual(stats["current_streak"], 1)
        self.assertEqual(self.client.get("/stats/streak").json(), {"current": 1, "longest": 1})
        self.assertEqual(self.client.get("/stats/weekly").json()["workouts_completed"], 1)
        self.assertEqual(self.client.get("/stats/monthly").json()["workouts_completed"], 1)
        self.assertEqual(len(self.client.get("/stats/daily_minutes").json()), 7)
        self.assertEqual(
            len(self.client.get("/stats/weekly_frequency", params={"weeks": 3}).json()), 3
        )

        achievements = self.client.get("/achievements").json()
        unlocked = [a["name"] for a in achievements if a["unlocked"]]
        self.assertEqual(unlocked, ["First Workout"])

        response = self.client.delete(f"/history/{finished['id']}")
        self.assertEqual(response.status_code, 200)
        response = self.client.delete(f"/history/{finished['id']}")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.client.get("/stats").json()["total_workouts"], 0)

    def test_session_navigation(self) -> None:
        template = self.client.get("/templates/search", params={"query": "morning"}).json()[0]
        self.client.post("/session/start", params={"template_id": template["id"]})
        state = self.client.post("/session/previous").json()
        self.assertEqual(state["exercise_index"], 0)
        state = self.client.post("/session/next").json()
        self.assertEqual(state["exercise"], "Jumping Jacks")
        state = self.client.post("/session/complete_set").json()
        self.assertEqual(state["phase"], "resting")
        self.assertEqual(state["time_remaining"], 45)
        state = self.client.post("/session/pause").json()
        self.assertTrue(state["paused"])
        state = self.client.post("/session/tick", params={"seconds": 10}).json()
        self.assertEqual(state["time_remaining"], 45)
        state = self.client.post("/session/resume").json()
        self.assertFalse(state["paused"])

    def test_session_exit(self) -> None:
        template_id = self._create_template()
        self.client.post("/session/start", params={"template_id": template_id})
        response = self.client.post("/session/exit")
        self.assertEqual(response.json()["status"], "discarded")
        self.assertEqual(response.json()["state"]["phase"], "exited")
        self.assertEqual(self.client.get("/history").json(), [])

        self.client.post("/session/start", params={"template_id": template_id})
        response = self.client.post("/session/exit", params={"save": True})
        self.assertEqual(response.json()["status"], "saved")
        history = self.client.get("/history").json()
        self.assertEqual(len(history), 1)
        self.assertFalse(history[0]["is_completed"])
        self.assertEqual(self.client.get("/stats").json()["total_workouts"], 0)

    def test_history_limit(self) -> None:
        template_id = self._create_template()
        for _ in range(3):
            self.client.post("/session/start", params={"template_id": template_id})
            self.client.post("/session/exit", params={"save": True})
        self.assertEqual(len(self.client.get("/history").json()), 3)
        self.assertEqual(len(self.client.get("/history", params={"limit": 2}).json()), 2)
        response = self.client.get("/history", params={"limit": 0})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])
        response = self.client.get("/history", params={"limit": -1})
        self.assertEqual(response.status_code, 422)

    def test_start_unknown_template(self) -> None:
        response = self.client.post("/session/start", params={"template_id": str(uuid.uuid4())})
        self.assertEqual(response.status_code, 404)

    def test_notes(self) -> None:
        response = self.client.get("/notes/2024-05-01")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["mood"], "Neutral")
        self.assertIsNone(response.json()["display_weight"])
        note_id = response.json()["id"]

        response = self.client.put(
            "/notes/2024-05-01",
            json={"mood": "Good", "general_notes": "felt great", "weight": 80},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], note_id)
        self.assertEqual(response.json()["mood"], "Good")
        self.assertEqual(response.json()["sleep_hours"], 8.0)

        response = self.client.put("/notes/2024-05-01", json={"energy_level": 11})
        self.assertEqual(response.status_code, 400)

        self.assertEqual(len(self.client.get("/notes", params={"query": "great"}).json()), 1)
        self.assertEqual(self.client.get("/notes", params={"mood": "Bad"}).json(), [])
        summary = self.client.get("/notes/summary").json()
        self.assertEqual(summary["units"], "metric")

        response = self.client.put("/settings/units", params={"units": "imperial"})
        self.assertEqual(response.json(), {"units": "imperial"})
        response = self.client.get("/notes/2024-05-01")
        self.assertAlmostEqual(response.json()["display_weight"], 176.37)

        response = self.client.delete("/notes/2024-05-01")
        self.assertEqual(response.json(), {"deleted": 1})
        self.assertEqual(self.client.get("/notes").json(), [])

    def test_settings(self) -> None:
        response = self.client.put("/settings/units", params={"units": "stone"})
        self.assertEqual(response.status_code, 400)
        data = self.client.get("/settings").json()
        self.assertEqual(data["units"], "metric")
        self.assertNotIn("api_key", data)

    def test_api_key(self) -> None:
        self.api.settings.set_text("api_key", "s3cret")
        self.assertEqual(self.client.get("/health").status_code, 401)
        response = self.client.get("/health", headers={"X-API-Key": "wrong"})
        self.assertEqual(response.status_code, 401)
        response = self.client.get("/health", headers={"X-API-Key": "s3cret"})
        self.assertEqual(response.status_code, 200)

    @patch("reachability.requests.get")
    def test_gate(self, get) -> None:
        get.return_value = Mock(status_code=200)
        self.assertEqual(self.client.get("/gate").json(), {"gate": "web"})
        get.assert_called_once_with("https://zengym.app/gate", timeout=None)
        get.return_value = Mock(status_code=404)
        self.assertEqual(self.client.get("/gate").json(), {"gate": "native"})

    def test_reset(self) -> None:
        template_id = self._create_template(sets=1)
        self.client.post("/session/start", params={"template_id": template_id})
        self.client.post("/session/finish")
        self.client.get("/notes/2024-05-01")
        self.client.put("/settings/units", params={"units": "imperial"})

        response = self.client.post("/reset")
        self.assertEqual(response.json(), {"status": "reset"})
        self.assertEqual(self.client.get("/history").json(), [])
        self.assertEqual(self.client.get("/notes").json(), [])
        self.assertEqual(len(self.client.get("/templates").json()), 8)
        self.assertEqual(self.client.get("/settings").json()["units"], "metric")
        self.assertEqual(self.client.get("/stats").json()["total_workouts"], 0)
        self.assertEqual(self.client.get("/session").json()["phase"], "not_started")

        reopened = ZenGymAPI(db_path=self.db_path, yaml_path=self.yaml_path)
        self.assertEqual(reopened.workouts.fetch_history(), [])
        self.assertEqual(reopened.notes.fetch_notes(), [])


if __name__ == "__main__":
    unittest.main()
