import os

import keyring
import yaml
from keyring.errors import PasswordDeleteError
from loguru import logger

APP_NAME = "zengym"
APP_VERSION = "1.0.0"


class YamlConfig:
    """Mirror scalar preferences to a YAML file.

    When ``ENCRYPT_SETTINGS=1`` the values listed in ``SENSITIVE_KEYS`` are
    kept in the system keyring and the YAML only records that they are set.
    """

    SENSITIVE_KEYS = {"api_key"}

    def __init__(self, path: str | None = None) -> None:
        self.path = path or os.environ.get("ZENGYM_SETTINGS", "settings.yaml")
        self.encrypt = os.environ.get("ENCRYPT_SETTINGS") == "1"

    def _reveal(self, data: dict) -> dict:
        for key in self.SENSITIVE_KEYS & set(data):
            secret = keyring.get_password(APP_NAME, key)
            if secret is None:
                data.pop(key)
            else:
                data[key] = secret
        return data

    def _conceal(self, data: dict) -> dict:
        out = dict(data)
        for key in self.SENSITIVE_KEYS & set(out):
            keyring.set_password(APP_NAME, key, str(out[key]))
            out[key] = True
        return out

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return self._reveal(data) if self.encrypt else data

    def save(self, data: dict) -> None:
        out = self._conceal(data) if self.encrypt else dict(data)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(out, f)

    def clear(self) -> None:
        """Delete the YAML file and any secrets stored for it."""
        if os.path.exists(self.path):
            os.remove(self.path)
        if not self.encrypt:
            return
        for key in self.SENSITIVE_KEYS:
            try:
                keyring.delete_password(APP_NAME, key)
            except PasswordDeleteError:
                logger.debug(f"No stored secret for {key}")
