"""Vocabulary classification over word performance snapshots."""

from datetime import date

from .config import (
    PASSIVE_MASTERY_LEVEL, ACTIVE_MASTERY_LEVEL, ACTIVE_MIN_ACCURACY,
    STRUGGLING_MIN_REVIEWS, STRUGGLING_MAX_ACCURACY,
    MASTERED_MIN_CORRECT, MASTERED_MIN_ACCURACY, MAX_MASTERY_LEVEL
)
from .models import WordPerformanceRecord, VocabularyClassification


def is_struggling(record: WordPerformanceRecord) -> bool:
    """Enough attempts to be meaningful, and low accuracy."""
    return record.review_count >= STRUGGLING_MIN_REVIEWS and record.accuracy < STRUGGLING_MAX_ACCURACY


def is_mastered(record: WordPerformanceRecord) -> bool:
    return record.correct_count >= MASTERED_MIN_CORRECT and record.accuracy >= MASTERED_MIN_ACCURACY


def is_active(record: WordPerformanceRecord) -> bool:
    return record.mastery_level >= ACTIVE_MASTERY_LEVEL and record.accuracy >= ACTIVE_MIN_ACCURACY


def is_due(record: WordPerformanceRecord, today: date) -> bool:
    return record.next_review_due_at is not None and record.next_review_due_at <= today


def classify_vocabulary(records: list[WordPerformanceRecord]) -> VocabularyClassification:
    """Aggregate counts over all records in a single pass.

    Passive/active/struggling/mastered are independent views; the mastery
    distribution is a partition (every record lands in exactly one bucket).
    Mastered words always count as active.
    """
    stats = VocabularyClassification()
    for record in records or []:
        stats.total_words_encountered += 1
        level = record.mastery_level

        if level <= 1:
            stats.mastery_distribution.beginner += 1
        elif level <= 3:
            stats.mastery_distribution.intermediate += 1
        elif level <= 5:
            stats.mastery_distribution.advanced += 1
        else:
            stats.mastery_distribution.mastered += 1

        mastered = is_mastered(record)
        if level >= PASSIVE_MASTERY_LEVEL:
            stats.passive_vocabulary += 1
        if is_active(record) or mastered:
            stats.active_vocabulary += 1
        if is_struggling(record):
            stats.struggling_words += 1
        if mastered:
            stats.mastered_words += 1
    return stats


def get_struggling_words(records: list[WordPerformanceRecord], limit: int = 5) -> list[str]:
    """Struggling words, weakest first (more attempts first on ties)."""
    struggling = [r for r in records or [] if is_struggling(r)]
    struggling.sort(key=lambda r: (r.accuracy, -r.review_count))
    return [r.word for r in struggling[:limit]]


def get_words_for_review(records: list[WordPerformanceRecord], limit: int = 10,
                         today: date | None = None) -> list[str]:
    """Words whose review date has arrived, most overdue first."""
    today = today or date.today()
    due = [r for r in records or [] if is_due(r, today)]
    due.sort(key=lambda r: r.next_review_due_at)
    return [r.word for r in due[:limit]]


def get_mastered_words(records: list[WordPerformanceRecord]) -> list[str]:
    return [r.word for r in records or [] if is_mastered(r)]


def calculate_vocabulary_growth(current: VocabularyClassification,
                                previous: VocabularyClassification | None = None) -> dict:
    """Passive, active and total vocabulary change since a previous snapshot."""
    if previous is None:
        return {'passive_growth': 0, 'active_growth': 0, 'total_growth': 0}
    return {
        'passive_growth': current.passive_vocabulary - previous.passive_vocabulary,
        'active_growth': current.active_vocabulary - previous.active_vocabulary,
        'total_growth': current.total_words_encountered - previous.total_words_encountered
    }


def recommend_record_update(record: WordPerformanceRecord | None, word: str,
                            is_correct: bool) -> WordPerformanceRecord:
    """Recommend the record the store should hold after one more answer.

    Counters are incremented and the mastery level nudged; the review date
    is carried over unchanged since scheduling belongs to the store.
    """
    if record is None:
        return WordPerformanceRecord(
            word=word,
            mastery_level=1,
            review_count=1,
            correct_count=1 if is_correct else 0
        )

    review_count = record.review_count + 1
    correct_count = record.correct_count + (1 if is_correct else 0)
    accuracy = correct_count / review_count
    level = record.mastery_level

    if accuracy >= MASTERED_MIN_ACCURACY and correct_count >= level * 2:
        level = min(level + 1, MAX_MASTERY_LEVEL)
    elif accuracy < STRUGGLING_MAX_ACCURACY and review_count >= 5:
        level = max(level - 1, 1)

    return WordPerformanceRecord(
        word=record.word,
        mastery_level=level,
        review_count=review_count,
        correct_count=correct_count,
        next_review_due_at=record.next_review_due_at
    )
