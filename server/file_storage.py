"""File-based storage implementation."""

import json
import logging
import os

from core.interfaces import Storage

logger = logging.getLogger(__name__)


class FileStorage(Storage):
    """Keeps every local value in one JSON document."""

    def __init__(self, config_file: str = None, state_dir: str = None):
        self.config_file = config_file or os.path.expanduser('~/.config/studylog/config.json')
        # Project root is one level up from server/
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        self.state_dir = state_dir or project_root

    def _get_state_file(self) -> str:
        return os.path.join(self.state_dir, 'studylog_state.json')

    def load_config(self) -> dict:
        if not os.path.exists(self.config_file):
            raise FileNotFoundError(
                f"Config file not found at {self.config_file}\n"
                f'Please create it with: {{"gemini_api_key": "YOUR_API_KEY_HERE"}}'
            )
        with open(self.config_file, 'r') as f:
            return json.load(f)

    def _load_all(self) -> dict:
        state_file = self._get_state_file()
        if os.path.exists(state_file):
            try:
                with open(state_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning(f"Unreadable state file {state_file}: {e}")
                return {}
            return data if isinstance(data, dict) else {}
        return {}

    def load_value(self, key: str):
        return self._load_all().get(key)

    def save_value(self, key: str, value) -> None:
        data = self._load_all()
        data[key] = value
        os.makedirs(self.state_dir, exist_ok=True)
        state_file = self._get_state_file()
        tmp_file = state_file + '.tmp'
        with open(tmp_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_file, state_file)
