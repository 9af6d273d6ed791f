"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod

from .models import DifficultyAnalysis, DifficultyLevel, SessionSummary, WordPerformanceRecord


class DifficultyAdvisor(ABC):
    """Abstract base class for difficulty recommendation strategies."""

    @abstractmethod
    def recommend(self, sessions: list[SessionSummary], current_level: DifficultyLevel,
                  struggling_words_count: int = 0) -> DifficultyAnalysis:
        """Recommend a level from session history. Sessions are most recent first."""
        pass


class Storage(ABC):
    """Abstract base class for learner state and config storage."""

    @abstractmethod
    def load_config(self) -> dict:
        """Load configuration. Returns config dict."""
        pass

    @abstractmethod
    def get_word_records(self, user_id: str, language: str) -> list[WordPerformanceRecord]:
        """Snapshot of every word record for a user and language."""
        pass

    @abstractmethod
    def save_word_record(self, user_id: str, language: str, record: WordPerformanceRecord) -> None:
        """Insert or replace the record for record.word (case-insensitive)."""
        pass

    @abstractmethod
    def get_recent_sessions(self, user_id: str, language: str, limit: int = 20) -> list[SessionSummary]:
        """Last `limit` finished sessions, most recent first."""
        pass

    @abstractmethod
    def save_session(self, user_id: str, language: str, summary: SessionSummary) -> None:
        """Append a finished session summary."""
        pass

    @abstractmethod
    def get_recent_words(self, user_id: str, language: str, limit: int = 20) -> list[str]:
        """Words used in recent sessions, most recent first."""
        pass

    @abstractmethod
    def add_recent_word(self, user_id: str, language: str, word: str) -> None:
        """Remember a word as recently used."""
        pass
