"""REST API client for the lexadapt server."""

import requests


class LexadaptAPIClient:
    """Client for communicating with the lexadapt REST API."""

    def __init__(self, base_url: str = "http://localhost:8000", user_id: str = "default",
                 language: str | None = None):
        self.base_url = base_url.rstrip('/')
        self.user_id = user_id
        self.language = language
        self.session = requests.Session()

    def _identity(self) -> dict:
        identity = {'user_id': self.user_id}
        if self.language:
            identity['language'] = self.language
        return identity

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make a GET request."""
        if params is None:
            params = {}
        params.update(self._identity())
        response = self.session.get(f"{self.base_url}{endpoint}", params=params)
        response.raise_for_status()
        return response.json()

    def _post(self, endpoint: str, data: dict) -> dict:
        """Make a POST request."""
        data.update(self._identity())
        response = self.session.post(f"{self.base_url}{endpoint}", json=data)
        response.raise_for_status()
        return response.json()

    def health_check(self) -> dict:
        """Check if the server is running."""
        response = self.session.get(f"{self.base_url}/")
        response.raise_for_status()
        return response.json()

    def get_starting_difficulty(self) -> dict:
        return self._get("/api/difficulty/start")

    def get_vocabulary_stats(self) -> dict:
        return self._get("/api/vocabulary/stats")

    def next_word(self, difficulty: str, session_id: str | None = None) -> dict:
        """Get the next target word; the server starts a session when session_id is None."""
        return self._post("/api/words/next", {
            'difficulty': difficulty,
            'session_id': session_id
        })

    def evaluate(self, user_answer: str, correct_answers: list[str], mode: str = 'dictation') -> dict:
        return self._post("/api/evaluate", {
            'user_answer': user_answer,
            'correct_answers': correct_answers,
            'mode': mode
        })

    def observe(self, word: str, is_correct: bool) -> dict:
        """Record an answered exercise for a word."""
        return self._post("/api/words/observe", {
            'word': word,
            'is_correct': is_correct
        })

    def check_mid_session(self, exercises: list[bool], current_level: str) -> dict | None:
        """Returns the proposed adjustment, or None."""
        return self._post("/api/difficulty/mid-session", {
            'exercises': exercises,
            'current_level': current_level
        })['adjustment']

    def save_session(self, difficulty: str, total: int, correct: int, session_id: str | None) -> dict:
        return self._post("/api/sessions", {
            'difficulty_level': difficulty,
            'total_exercises': total,
            'correct_exercises': correct,
            'session_id': session_id
        })
