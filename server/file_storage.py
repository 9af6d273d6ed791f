"""File-based storage implementation."""

import json
import logging
import os
import re

from lexadapt.config import RECENT_WORDS_LIMIT, HISTORY_SESSION_LIMIT
from lexadapt.interfaces import Storage
from lexadapt.models import WordPerformanceRecord, SessionSummary

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = '~/.config/lexadapt/config.json'

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9_.-]')


def _safe_name(value: str) -> str:
    """Make a user id or language usable inside a file name."""
    return _UNSAFE_CHARS.sub('_', value or 'default')


class FileStorage(Storage):
    """One JSON file per (user, language) holding words, sessions and recent words."""

    def __init__(self, config_file: str = None, state_dir: str = None):
        self.config_file = config_file or os.path.expanduser(DEFAULT_CONFIG_FILE)
        # Project root is one level up from server/
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        self.state_dir = state_dir or os.environ.get('LEXADAPT_STATE_DIR') or project_root

    def _get_state_file(self, user_id: str, language: str) -> str:
        return os.path.join(self.state_dir, f'lexadapt_{_safe_name(user_id)}_{_safe_name(language)}.json')

    def _load(self, user_id: str, language: str) -> dict:
        state_file = self._get_state_file(user_id, language)
        empty = {'words': {}, 'sessions': [], 'recent_words': []}
        if not os.path.exists(state_file):
            return empty
        try:
            with open(state_file, 'r', encoding='utf-8') as f:
                state = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading state from {state_file}: {e}")
            return empty
        for key, default in empty.items():
            state.setdefault(key, default)
        return state

    def _save(self, user_id: str, language: str, state: dict) -> None:
        os.makedirs(self.state_dir, exist_ok=True)
        state_file = self._get_state_file(user_id, language)
        with open(state_file, 'w', encoding='utf-8') as f:
            json.dump(state, f, indent=2, ensure_ascii=False)

    def load_config(self) -> dict:
        if not os.path.exists(self.config_file):
            raise FileNotFoundError(
                f"Config file not found at {self.config_file}\n"
                f'Create it with e.g.: {{"default_language": "german", "answer_threshold": 0.7}}'
            )
        with open(self.config_file, 'r') as f:
            return json.load(f)

    def get_word_records(self, user_id: str, language: str) -> list[WordPerformanceRecord]:
        records = []
        for data in self._load(user_id, language)['words'].values():
            try:
                records.append(WordPerformanceRecord.from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed word record {data!r}: {e}")
        return records

    def save_word_record(self, user_id: str, language: str, record: WordPerformanceRecord) -> None:
        state = self._load(user_id, language)
        state['words'][record.key] = record.to_dict()
        self._save(user_id, language, state)

    def get_recent_sessions(self, user_id: str, language: str,
                            limit: int = HISTORY_SESSION_LIMIT) -> list[SessionSummary]:
        # Sessions are appended, so the newest are at the end
        stored = self._load(user_id, language)['sessions']
        sessions = []
        for data in reversed(stored[-limit:] if limit > 0 else []):
            try:
                sessions.append(SessionSummary.from_dict(data))
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed session {data!r}: {e}")
        return sessions

    def save_session(self, user_id: str, language: str, summary: SessionSummary) -> None:
        state = self._load(user_id, language)
        state['sessions'].append(summary.to_dict())
        self._save(user_id, language, state)

    def get_recent_words(self, user_id: str, language: str, limit: int = RECENT_WORDS_LIMIT) -> list[str]:
        return self._load(user_id, language)['recent_words'][:limit]

    def add_recent_word(self, user_id: str, language: str, word: str) -> None:
        state = self._load(user_id, language)
        recent = [w for w in state['recent_words'] if w.lower() != word.lower()]
        state['recent_words'] = ([word] + recent)[:RECENT_WORDS_LIMIT]
        self._save(user_id, language, state)
