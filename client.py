import requests
from typing import Optional


class ZenGymClient:
    """Simple REST client for the ZenGym API."""

    def __init__(self, base_url: str = "http://localhost:8000", api_key: str = "") -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = {"X-API-Key": api_key} if api_key else {}

    def _get(self, path: str, **params):
        resp = requests.get(f"{self.base_url}{path}", params=params, headers=self.headers)
        resp.raise_for_status()
        return resp.json()

    def _post(self, path: str, **params):
        resp = requests.post(f"{self.base_url}{path}", params=params, headers=self.headers)
        resp.raise_for_status()
        return resp.json()

    def list_templates(self, difficulty: Optional[str] = None):
        params = {"difficulty": difficulty} if difficulty else {}
        return self._get("/templates", **params)

    def start_session(self, template_id: str) -> dict:
        return self._post("/session/start", template_id=template_id)

    def complete_set(self) -> dict:
        return self._post("/session/complete_set")

    def finish_session(self) -> dict:
        return self._post("/session/finish")

    def exit_session(self, save: bool = False) -> dict:
        return self._post("/session/exit", save=str(save).lower())

    def get_stats(self) -> dict:
        return self._get("/stats")

    def get_note(self, day: str) -> dict:
        return self._get(f"/notes/{day}")

    def update_note(self, day: str, **changes) -> dict:
        resp = requests.put(
            f"{self.base_url}/notes/{day}", json=changes, headers=self.headers
        )
        resp.raise_for_status()
        return resp.json()

    def set_units(self, units: str) -> str:
        resp = requests.put(
            f"{self.base_url}/settings/units", params={"units": units}, headers=self.headers
        )
        resp.raise_for_status()
        return resp.json()["units"]
