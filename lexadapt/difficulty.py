"""Difficulty adaptation.

Three entry points, all pure over caller-supplied history:
- recommend_starting_difficulty(): level to open a new session with
- evaluate_mid_session(): conservative drift check inside a running session
- analyze_performance(): general analysis where weak signals can combine

Sessions and exercises are expected most recent first. When every item
carries a created_at timestamp they are re-sorted to guarantee that.
"""

import logging
from dataclasses import dataclass, field

from .config import (
    NEW_USER_SESSION_THRESHOLD, WEIGHTED_SESSION_WINDOW, SESSION_RECENCY_DECAY,
    START_HIGH_ACCURACY, START_LOW_ACCURACY,
    START_HIGH_CONFIDENCE, START_LOW_CONFIDENCE, START_STEADY_CONFIDENCE,
    NEW_USER_CONFIDENCE, FALLBACK_CONFIDENCE,
    STRUGGLING_WORDS_STEP_DOWN, STRUGGLING_CONFIDENCE_BONUS,
    MID_SESSION_MIN_EXERCISES, MID_SESSION_WINDOW, MID_SESSION_MIN_WINDOW,
    MID_SESSION_HIGH_ACCURACY, MID_SESSION_LOW_ACCURACY,
    MID_SESSION_UP_CONFIDENCE, MID_SESSION_DOWN_CONFIDENCE,
    ADJUSTMENT_THRESHOLD, ANALYSIS_HIGH_ACCURACY, ANALYSIS_LOW_ACCURACY,
    ANALYSIS_UP_CONFIDENCE, ANALYSIS_DOWN_CONFIDENCE,
    ANALYSIS_STREAK_LENGTH, ANALYSIS_STREAK_CONFIDENCE,
    ANALYSIS_SESSION_LIMIT, STREAK_SESSION_ACCURACY
)
from .interfaces import DifficultyAdvisor
from .models import (
    DifficultyLevel, DifficultyAnalysis, StartingDifficulty, SessionSummary, ExerciseOutcome,
    DEFAULT_DIFFICULTY, sanitize_difficulty
)

logger = logging.getLogger(__name__)


@dataclass
class PerformanceHistory:
    """Input to the session-start recommendation.

    Attributes:
        sessions: Recent session summaries, most recent first
        struggling_words_count: Current number of struggling words
    """
    sessions: list[SessionSummary] = field(default_factory=list)
    struggling_words_count: int = 0

    def __post_init__(self):
        self.sessions = _most_recent_first([_as_session(s) for s in self.sessions or []])


@dataclass
class LevelStats:
    attempts: int = 0
    correct: int = 0

    @property
    def accuracy(self) -> float:
        if self.attempts <= 0:
            return 0.0
        return self.correct / self.attempts * 100

    def to_dict(self) -> dict:
        return {'attempts': self.attempts, 'accuracy': round(self.accuracy, 1)}


@dataclass
class PerformanceMetrics:
    recent_accuracy: int = 0
    streak_length: int = 0
    difficulty_distribution: dict[DifficultyLevel, LevelStats] = field(
        default_factory=lambda: {level: LevelStats() for level in DifficultyLevel.ordered()}
    )

    def to_dict(self) -> dict:
        return {
            'recent_accuracy': self.recent_accuracy,
            'streak_length': self.streak_length,
            'difficulty_distribution': {
                level.value: stats.to_dict() for level, stats in self.difficulty_distribution.items()
            }
        }


def _as_session(value) -> SessionSummary:
    if isinstance(value, SessionSummary):
        return value
    return SessionSummary.from_dict(value)


def _most_recent_first(items: list) -> list:
    """Sort by created_at descending if every item has one, else keep order."""
    if items and all(getattr(item, 'created_at', None) is not None for item in items):
        try:
            return sorted(items, key=lambda item: item.created_at, reverse=True)
        except TypeError as e:
            # Mixed naive and timezone-aware timestamps
            logger.warning(f"Timestamps not comparable, keeping given order: {e}")
    return list(items)


# ==================== SESSION START ====================

def weighted_accuracy(sessions: list[SessionSummary]) -> float:
    """Recency-weighted accuracy over the most recent sessions.

    Session i (0 = most recent) has weight DECAY ** i; the result is
    normalized by the sum of weights.
    """
    window = sessions[:WEIGHTED_SESSION_WINDOW]
    total_weight = 0.0
    weighted = 0.0
    for i, session in enumerate(window):
        weight = SESSION_RECENCY_DECAY ** i
        weighted += session.accuracy * weight
        total_weight += weight
    return weighted / total_weight if total_weight > 0 else 0.0


def recommend_starting_difficulty(history: PerformanceHistory | list) -> StartingDifficulty:
    """Recommend the level a new session should start at.

    Never raises: any failure falls back to intermediate with low confidence.
    """
    try:
        if not isinstance(history, PerformanceHistory):
            history = PerformanceHistory(sessions=list(history or []))
        if len(history.sessions) < NEW_USER_SESSION_THRESHOLD:
            return _new_user_recommendation()
        return _experienced_user_recommendation(history)
    except Exception as e:
        logger.error(f"Error determining starting difficulty: {e}")
        return StartingDifficulty(
            suggested_difficulty=DEFAULT_DIFFICULTY,
            confidence=FALLBACK_CONFIDENCE,
            reasoning=['Using default difficulty - analysis temporarily unavailable'],
            fallback_difficulty=DEFAULT_DIFFICULTY
        )


def _new_user_recommendation() -> StartingDifficulty:
    return StartingDifficulty(
        suggested_difficulty=DifficultyLevel.BEGINNER,
        confidence=NEW_USER_CONFIDENCE,
        reasoning=[
            'New user detected - starting with beginner level',
            'System will adapt quickly based on initial performance'
        ],
        fallback_difficulty=DifficultyLevel.BEGINNER
    )


def _experienced_user_recommendation(history: PerformanceHistory) -> StartingDifficulty:
    accuracy = weighted_accuracy(history.sessions)
    last_level = history.sessions[0].difficulty_level
    reasoning = []

    if accuracy >= START_HIGH_ACCURACY:
        suggested = last_level.next()
        confidence = START_HIGH_CONFIDENCE
        reasoning.append(f"High recent accuracy ({round(accuracy)}%) suggests readiness for {suggested}")
    elif accuracy <= START_LOW_ACCURACY:
        suggested = last_level.previous()
        confidence = START_LOW_CONFIDENCE
        reasoning.append(f"Lower recent accuracy ({round(accuracy)}%) suggests {suggested} level")
    else:
        suggested = last_level
        confidence = START_STEADY_CONFIDENCE
        reasoning.append(f"Moderate performance suggests maintaining {suggested} level")

    if history.struggling_words_count > STRUGGLING_WORDS_STEP_DOWN:
        suggested = suggested.previous()
        confidence += STRUGGLING_CONFIDENCE_BONUS
        reasoning.append(
            f"High number of struggling words ({history.struggling_words_count}) "
            f"suggests focusing on {suggested}"
        )

    logger.info(f"Starting difficulty {suggested} (weighted accuracy {accuracy:.1f}%, last {last_level})")
    return StartingDifficulty(
        suggested_difficulty=suggested,
        confidence=min(confidence, 1.0),
        reasoning=reasoning,
        fallback_difficulty=DEFAULT_DIFFICULTY
    )


# ==================== MID SESSION ====================

def evaluate_mid_session(exercises: list, current_level) -> DifficultyAnalysis | None:
    """Propose a level change only on a strong, well-sampled signal.

    Args:
        exercises: Outcomes in this session (ExerciseOutcome, bool or dict),
            most recent first
        current_level: Level the session is running at

    Returns:
        A DifficultyAnalysis with should_adjust=True, or None for no opinion
    """
    try:
        return _mid_session_analysis(exercises, sanitize_difficulty(current_level))
    except Exception as e:
        logger.error(f"Error evaluating mid-session difficulty: {e}")
        return None


def _mid_session_analysis(exercises: list, current_level: DifficultyLevel) -> DifficultyAnalysis | None:
    outcomes = _most_recent_first([ExerciseOutcome.from_value(e) for e in exercises or []])
    if len(outcomes) < MID_SESSION_MIN_EXERCISES:
        return None

    window = outcomes[:MID_SESSION_WINDOW]
    correct = sum(1 for outcome in window if outcome.is_correct)
    accuracy = correct / len(window) * 100
    if len(window) < MID_SESSION_MIN_WINDOW:
        return None

    if accuracy >= MID_SESSION_HIGH_ACCURACY:
        suggested = current_level.next()
        confidence = MID_SESSION_UP_CONFIDENCE
        reason = f"Strong performance ({accuracy:.0f}%) in current session suggests {suggested} difficulty"
    elif accuracy <= MID_SESSION_LOW_ACCURACY:
        suggested = current_level.previous()
        confidence = MID_SESSION_DOWN_CONFIDENCE
        reason = f"Low performance ({accuracy:.0f}%) in current session suggests {suggested} difficulty"
    else:
        return None

    if suggested == current_level:
        return None

    logger.info(f"Mid-session adjustment {current_level} -> {suggested} ({accuracy:.0f}%)")
    return DifficultyAnalysis(
        current_level=current_level,
        suggested_level=suggested,
        should_adjust=True,
        confidence=confidence,
        reasons=[reason]
    )


# ==================== GENERAL ANALYSIS ====================

def compute_performance_metrics(sessions: list) -> PerformanceMetrics:
    """Accuracy, streak and per-level totals over the last sessions."""
    recent = _most_recent_first([_as_session(s) for s in sessions or []])[:ANALYSIS_SESSION_LIMIT]
    metrics = PerformanceMetrics()
    if not recent:
        return metrics

    total = sum(s.total_exercises for s in recent)
    correct = sum(s.correct_exercises for s in recent)
    metrics.recent_accuracy = round(correct / total * 100) if total > 0 else 0

    for session in recent:
        if session.accuracy < STREAK_SESSION_ACCURACY:
            break
        metrics.streak_length += 1

    for session in recent:
        stats = metrics.difficulty_distribution[session.difficulty_level]
        stats.attempts += session.total_exercises
        stats.correct += session.correct_exercises
    return metrics


def analyze_performance(metrics: PerformanceMetrics, current_level) -> DifficultyAnalysis:
    """Combine accuracy and streak signals into a recommendation.

    should_adjust is only set when a level change was proposed and the
    accumulated confidence reaches ADJUSTMENT_THRESHOLD.
    """
    current_level = sanitize_difficulty(current_level)
    analysis = DifficultyAnalysis(current_level=current_level, suggested_level=current_level)
    proposed = False

    if metrics.recent_accuracy >= ANALYSIS_HIGH_ACCURACY:
        next_level = current_level.next()
        if next_level != current_level:
            analysis.suggested_level = next_level
            analysis.confidence += ANALYSIS_UP_CONFIDENCE
            analysis.reasons.append(
                f"High accuracy ({metrics.recent_accuracy}%) suggests readiness for {next_level}")
            proposed = True

    if metrics.recent_accuracy <= ANALYSIS_LOW_ACCURACY:
        prev_level = current_level.previous()
        if prev_level != current_level:
            analysis.suggested_level = prev_level
            analysis.confidence += ANALYSIS_DOWN_CONFIDENCE
            analysis.reasons.append(
                f"Low accuracy ({metrics.recent_accuracy}%) suggests {prev_level} would be more appropriate")
            proposed = True

    if metrics.streak_length >= ANALYSIS_STREAK_LENGTH:
        analysis.confidence += ANALYSIS_STREAK_CONFIDENCE
        analysis.reasons.append(f"Strong streak of {metrics.streak_length} suggests good mastery")

    analysis.confidence = min(analysis.confidence, 1.0)
    analysis.should_adjust = proposed and analysis.confidence >= ADJUSTMENT_THRESHOLD
    return analysis


def log_difficulty_adjustment(user_id: str, language: str, from_level, to_level, reason: str) -> None:
    from_level = sanitize_difficulty(from_level)
    to_level = sanitize_difficulty(to_level)
    logger.info(f"Difficulty adjusted for user {user_id} ({language}): {from_level} -> {to_level}. Reason: {reason}")


# ==================== ADVISORS ====================

class BasicDifficultyAdvisor(DifficultyAdvisor):
    """General analysis over the last sessions."""

    def recommend(self, sessions, current_level, struggling_words_count=0):
        return analyze_performance(compute_performance_metrics(sessions), current_level)


class EnhancedDifficultyAdvisor(DifficultyAdvisor):
    """Session-start heuristic plus the mid-session drift check."""

    def recommend(self, sessions, current_level, struggling_words_count=0):
        history = PerformanceHistory(sessions=list(sessions or []),
                                     struggling_words_count=struggling_words_count)
        start = recommend_starting_difficulty(history)
        return start.to_analysis(sanitize_difficulty(current_level))

    def check_mid_session(self, exercises, current_level):
        return evaluate_mid_session(exercises, current_level)


ADVISORS = {
    'basic': BasicDifficultyAdvisor,
    'enhanced': EnhancedDifficultyAdvisor,
}


def get_difficulty_advisor(kind: str = 'enhanced') -> DifficultyAdvisor:
    """Return a new advisor of the given kind ('basic' or 'enhanced')."""
    advisor_cls = ADVISORS.get((kind or '').strip().lower())
    if advisor_cls is None:
        raise ValueError(f"Unknown difficulty advisor: {kind!r}")
    return advisor_cls()
