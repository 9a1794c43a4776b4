"""
User preferences and the close-action setting.

The preference file is a small JSON object in the application config
directory. The diagnostics probes never read it.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional, Union

import click

from .models import CloseAction


logger = logging.getLogger(__name__)

APP_NAME = "PulseNet"
PREFERENCES_FILE = "preferences.json"

CLOSE_ACTION_KEY = "closeAction"
AUTO_LAUNCH_KEY = "autoLaunch"


def default_preferences_path() -> Path:
    """Preference file location for the current user."""
    return Path(click.get_app_dir(APP_NAME)) / PREFERENCES_FILE


class PreferenceStore:
    """JSON key-value file. A missing or corrupt file reads as empty."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else default_preferences_path()
        self._lock = threading.Lock()

    def load(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable preferences at %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self.load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self.load()
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)

    def get_auto_launch(self) -> bool:
        return self.get(AUTO_LAUNCH_KEY) is True

    def set_auto_launch(self, enabled: bool) -> bool:
        """Record the opt-in; OS registration happens in the shell."""
        self.set(AUTO_LAUNCH_KEY, bool(enabled))
        return self.get_auto_launch()


class CloseActionState:
    """
    The close-action choice, owned by whoever handles window events.

    Only ``hide``, ``exit`` and ``ask`` are accepted; anything else is
    ignored and the previous value kept.
    """

    def __init__(
        self,
        initial: CloseAction = CloseAction.ASK,
        store: Optional[PreferenceStore] = None,
    ):
        self._lock = threading.Lock()
        self._value = initial
        self._store = store

    @classmethod
    def from_store(cls, store: PreferenceStore) -> "CloseActionState":
        """Seed from a stored value, falling back to ``ask``."""
        try:
            initial = CloseAction(store.get(CLOSE_ACTION_KEY, CloseAction.ASK.value))
        except ValueError:
            initial = CloseAction.ASK
        return cls(initial=initial, store=store)

    def get(self) -> CloseAction:
        with self._lock:
            return self._value

    def set(self, action: Union[str, CloseAction]) -> CloseAction:
        """
        Replace the value if ``action`` is valid.

        Returns:
            The value in effect afterwards
        """
        try:
            new_value = CloseAction(action)
        except ValueError:
            logger.debug("Ignoring invalid close action %r", action)
            return self.get()

        with self._lock:
            self._value = new_value
            if self._store is not None:
                try:
                    self._store.set(CLOSE_ACTION_KEY, new_value.value)
                except OSError as e:
                    logger.warning("Could not persist close action: %s", e)
        return new_value
