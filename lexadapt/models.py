"""Domain models for lexadapt."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

logger = logging.getLogger(__name__)


class DifficultyLevel(str, Enum):
    """Closed, ordered set of exercise difficulty levels."""
    BEGINNER = 'beginner'
    INTERMEDIATE = 'intermediate'
    ADVANCED = 'advanced'

    @classmethod
    def ordered(cls) -> list['DifficultyLevel']:
        return [cls.BEGINNER, cls.INTERMEDIATE, cls.ADVANCED]

    def next(self) -> 'DifficultyLevel':
        """One level harder; advanced stays advanced."""
        levels = self.ordered()
        return levels[min(levels.index(self) + 1, len(levels) - 1)]

    def previous(self) -> 'DifficultyLevel':
        """One level easier; beginner stays beginner."""
        levels = self.ordered()
        return levels[max(levels.index(self) - 1, 0)]

    def __str__(self) -> str:
        return self.value


DEFAULT_DIFFICULTY = DifficultyLevel.INTERMEDIATE

_WRAPPER_KEYS = ('difficulty', 'value', 'level')
_MAX_UNWRAP_DEPTH = 5


@dataclass(frozen=True)
class DifficultyParseResult:
    """Outcome of coercing an external difficulty value.

    Attributes:
        level: The recognized level, or the default when invalid
        valid: Whether the input named one of the three levels
        diagnostic: Why the input was rejected (None when valid)
    """
    level: DifficultyLevel
    valid: bool
    diagnostic: str | None = None


def _unwrap_difficulty(value):
    """Peel {difficulty|value|level} wrappers off dicts and objects."""
    for _ in range(_MAX_UNWRAP_DEPTH):
        if isinstance(value, (str, DifficultyLevel)) or value is None:
            return value
        if isinstance(value, dict):
            inner = next((value[k] for k in _WRAPPER_KEYS if k in value), None)
        else:
            inner = next((getattr(value, k) for k in _WRAPPER_KEYS if hasattr(value, k)), None)
        if inner is None:
            return value
        value = inner
    return value


def parse_difficulty(value, default: DifficultyLevel = DEFAULT_DIFFICULTY) -> DifficultyParseResult:
    """Coerce a loosely-typed difficulty into a DifficultyLevel without logging."""
    raw = _unwrap_difficulty(value)
    if isinstance(raw, DifficultyLevel):
        return DifficultyParseResult(raw, True)
    if isinstance(raw, str):
        cleaned = raw.strip().lower()
        for level in DifficultyLevel:
            if cleaned == level.value:
                return DifficultyParseResult(level, True)
        return DifficultyParseResult(default, False, f"Unrecognized difficulty string {raw!r}")
    return DifficultyParseResult(default, False, f"Unsupported difficulty value of type {type(raw).__name__}: {raw!r}")


def sanitize_difficulty(value, default: DifficultyLevel = DEFAULT_DIFFICULTY) -> DifficultyLevel:
    """Coerce any external difficulty value, warning when it had to fall back."""
    result = parse_difficulty(value, default)
    if not result.valid:
        logger.warning(f"{result.diagnostic}; using {result.level.value}")
    return result.level


def _parse_date(value) -> date | None:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_datetime(value) -> datetime | None:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(str(value))


@dataclass(frozen=True)
class WordPerformanceRecord:
    """Snapshot of one learner's performance on one word."""
    word: str
    mastery_level: int = 0
    review_count: int = 0
    correct_count: int = 0
    next_review_due_at: date | None = None

    @property
    def accuracy(self) -> float:
        if self.review_count <= 0:
            return 0.0
        return self.correct_count / self.review_count

    @property
    def key(self) -> str:
        """Case-insensitive identity of the word."""
        return self.word.lower()

    def to_dict(self) -> dict:
        return {
            'word': self.word,
            'mastery_level': self.mastery_level,
            'review_count': self.review_count,
            'correct_count': self.correct_count,
            'next_review_due_at': self.next_review_due_at.isoformat() if self.next_review_due_at else None
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WordPerformanceRecord':
        review_count = max(int(data.get('review_count') or 0), 0)
        # correct_count can never exceed review_count
        correct_count = min(max(int(data.get('correct_count') or 0), 0), review_count)
        return cls(
            word=str(data['word']),
            mastery_level=max(int(data.get('mastery_level') or 0), 0),
            review_count=review_count,
            correct_count=correct_count,
            next_review_due_at=_parse_date(data.get('next_review_due_at', data.get('next_review_date')))
        )


@dataclass
class MasteryDistribution:
    beginner: int = 0
    intermediate: int = 0
    advanced: int = 0
    mastered: int = 0

    def to_dict(self) -> dict:
        return {
            'beginner': self.beginner,
            'intermediate': self.intermediate,
            'advanced': self.advanced,
            'mastered': self.mastered
        }


@dataclass
class VocabularyClassification:
    """Aggregate view over a learner's word records."""
    passive_vocabulary: int = 0
    active_vocabulary: int = 0
    struggling_words: int = 0
    mastered_words: int = 0
    total_words_encountered: int = 0
    mastery_distribution: MasteryDistribution = field(default_factory=MasteryDistribution)

    def to_dict(self) -> dict:
        return {
            'passive_vocabulary': self.passive_vocabulary,
            'active_vocabulary': self.active_vocabulary,
            'struggling_words': self.struggling_words,
            'mastered_words': self.mastered_words,
            'total_words_encountered': self.total_words_encountered,
            'mastery_distribution': self.mastery_distribution.to_dict()
        }


@dataclass
class SelectionContext:
    """Everything the word selector needs for one exercise.

    Built fresh per call from store snapshots; the caller owns the cooldown
    sets and updates them after a word is committed.
    """
    difficulty: DifficultyLevel = DEFAULT_DIFFICULTY
    language: str = 'english'
    struggling_words: list[str] = field(default_factory=list)
    review_words: list[str] = field(default_factory=list)
    mastered_words: list[str] = field(default_factory=list)
    session_words: set[str] = field(default_factory=set)
    recent_words: set[str] = field(default_factory=set)
    known_words: set[str] = field(default_factory=set)
    fallback_words: dict[DifficultyLevel, list[str]] | None = None
    emergency_words: list[str] | None = None
    count: int = 1

    def __post_init__(self):
        self.difficulty = sanitize_difficulty(self.difficulty)

    def cooldown(self) -> set[str]:
        """Lower-cased words that must not be picked again right now."""
        return {w.lower() for w in self.session_words} | {w.lower() for w in self.recent_words}


@dataclass
class SessionSummary:
    """One finished practice session, as supplied by the history source."""
    difficulty_level: DifficultyLevel
    total_exercises: int
    correct_exercises: int
    created_at: datetime | None = None

    def __post_init__(self):
        self.difficulty_level = sanitize_difficulty(self.difficulty_level)

    @property
    def accuracy(self) -> float:
        """Accuracy as a percentage (0-100)."""
        if self.total_exercises <= 0:
            return 0.0
        return self.correct_exercises / self.total_exercises * 100

    def to_dict(self) -> dict:
        return {
            'difficulty_level': self.difficulty_level.value,
            'total_exercises': self.total_exercises,
            'correct_exercises': self.correct_exercises,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SessionSummary':
        total = max(int(data.get('total_exercises') or 0), 0)
        return cls(
            difficulty_level=data.get('difficulty_level'),
            total_exercises=total,
            correct_exercises=min(max(int(data.get('correct_exercises') or 0), 0), total),
            created_at=_parse_datetime(data.get('created_at'))
        )


@dataclass(frozen=True)
class ExerciseOutcome:
    is_correct: bool
    created_at: datetime | None = None

    @classmethod
    def from_value(cls, value) -> 'ExerciseOutcome':
        """Accept an ExerciseOutcome, a bool or a {is_correct, created_at} dict."""
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            try:
                created_at = _parse_datetime(value.get('created_at'))
            except (TypeError, ValueError):
                logger.warning(f"Ignoring unparseable exercise timestamp {value.get('created_at')!r}")
                created_at = None
            return cls(value.get('is_correct') is True, created_at)
        return cls(value is True)


@dataclass
class DifficultyAnalysis:
    current_level: DifficultyLevel
    suggested_level: DifficultyLevel
    should_adjust: bool = False
    confidence: float = 0.0
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'current_level': self.current_level.value,
            'suggested_level': self.suggested_level.value,
            'should_adjust': self.should_adjust,
            'confidence': round(self.confidence, 2),
            'reasons': list(self.reasons)
        }


@dataclass
class StartingDifficulty:
    """Session-start recommendation."""
    suggested_difficulty: DifficultyLevel
    confidence: float
    reasoning: list[str] = field(default_factory=list)
    fallback_difficulty: DifficultyLevel = DEFAULT_DIFFICULTY

    def to_analysis(self, current_level: DifficultyLevel) -> DifficultyAnalysis:
        return DifficultyAnalysis(
            current_level=current_level,
            suggested_level=self.suggested_difficulty,
            should_adjust=self.suggested_difficulty != current_level,
            confidence=self.confidence,
            reasons=list(self.reasoning)
        )

    def to_dict(self) -> dict:
        return {
            'suggested_difficulty': self.suggested_difficulty.value,
            'confidence': round(self.confidence, 2),
            'reasoning': list(self.reasoning),
            'fallback_difficulty': self.fallback_difficulty.value
        }


@dataclass(frozen=True)
class EvaluationResult:
    """Result of scoring one learner answer.

    Attributes:
        is_correct: Whether the answer clears the threshold
        accuracy: Score from 0 to 100
        feedback: Short message for the category
        similarity_score: Best similarity from 0.0 to 1.0
        category: perfect, excellent, good, fair or poor
    """
    is_correct: bool
    accuracy: int
    feedback: str
    similarity_score: float
    category: str

    def to_dict(self) -> dict:
        return {
            'is_correct': self.is_correct,
            'accuracy': self.accuracy,
            'feedback': self.feedback,
            'similarity_score': round(self.similarity_score, 4),
            'category': self.category
        }
