"""Free-text answer evaluation.

Supports four exercise modes:
- CLOZE / TRANSLATION / DICTATION: fuzzy scoring (exact match, edit-distance
  similarity and positional token alignment, best candidate wins)
- MULTIPLE_CHOICE: exact match after normalization

Vocabulary marking ("click the words you want to learn") is scored
separately by evaluate_vocabulary_marking().
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from .config import (
    DEFAULT_ANSWER_THRESHOLD, ALMOST_TOKEN_SIMILARITY, ALMOST_TOKEN_MAX_EDITS,
    ALMOST_TOKEN_MIN_LENGTH, CATEGORY_THRESHOLDS, VOCAB_MARKING_PASS_ACCURACY, VOCAB_MARKING_EXTRA_PENALTY
)
from .models import EvaluationResult
from .utils import normalize_text, tokenize, levenshtein_distance, similarity

logger = logging.getLogger(__name__)


class EvaluationMode(Enum):
    """Exercise type being scored."""
    CLOZE = "cloze"
    TRANSLATION = "translation"
    DICTATION = "dictation"
    MULTIPLE_CHOICE = "multiple_choice"

    @classmethod
    def parse(cls, value) -> 'EvaluationMode':
        """Coerce a mode name, defaulting to CLOZE for unknown values."""
        if isinstance(value, cls):
            return value
        cleaned = str(value or '').strip().lower().replace('-', '_')
        for mode in cls:
            if mode.value == cleaned:
                return mode
        logger.warning(f"Unknown evaluation mode {value!r}; using {cls.CLOZE.value}")
        return cls.CLOZE


FEEDBACK = {
    'perfect': 'Perfect!',
    'excellent': 'Excellent, almost exactly right.',
    'good': 'Good, close enough.',
    'fair': 'Not quite right, keep practising.',
    'poor': 'Incorrect.',
}
EMPTY_ANSWER_FEEDBACK = 'No answer provided'


def categorize(accuracy: float) -> str:
    """Map an accuracy percentage to its category name."""
    for minimum, category in CATEGORY_THRESHOLDS:
        if accuracy >= minimum:
            return category
    return 'poor'


def _result(is_correct: bool, accuracy: int, similarity_score: float) -> EvaluationResult:
    category = categorize(accuracy)
    return EvaluationResult(
        is_correct=is_correct,
        accuracy=accuracy,
        feedback=FEEDBACK[category],
        similarity_score=similarity_score,
        category=category
    )


# ==================== TOKEN ALIGNMENT ====================

TOKEN_CORRECT = 'correct'
TOKEN_ALMOST = 'almost'
TOKEN_INCORRECT = 'incorrect'
TOKEN_MISSING = 'missing'
TOKEN_EXTRA = 'extra'


@dataclass
class TokenComparison:
    """Positional token-by-token comparison of an expected and a user text.

    Attributes:
        tokens: (expected_token, user_token, status) per position; the
            missing side is None
        accuracy: round(100 * (correct + 0.5 * almost) / expected count)
    """
    tokens: list[tuple[str | None, str | None, str]] = field(default_factory=list)
    correct: int = 0
    almost: int = 0
    incorrect: int = 0
    missing: int = 0
    extra: int = 0
    accuracy: int = 0

    def to_dict(self) -> dict:
        return {
            'tokens': [
                {'expected': e, 'actual': a, 'status': s} for e, a, s in self.tokens
            ],
            'correct': self.correct,
            'almost': self.almost,
            'incorrect': self.incorrect,
            'missing': self.missing,
            'extra': self.extra,
            'accuracy': self.accuracy
        }


def _classify_token(expected: str, actual: str) -> str:
    if expected == actual:
        return TOKEN_CORRECT
    if similarity(expected, actual) >= ALMOST_TOKEN_SIMILARITY:
        return TOKEN_ALMOST
    # Deviates from the similarity threshold alone: a single edit in a token
    # of 3+ chars is also almost (sat/sit, cat/cut score only 0.67)
    if (min(len(expected), len(actual)) >= ALMOST_TOKEN_MIN_LENGTH
            and levenshtein_distance(expected, actual) <= ALMOST_TOKEN_MAX_EDITS):
        return TOKEN_ALMOST
    return TOKEN_INCORRECT


def compare_tokens(original: str, user_text: str) -> TokenComparison:
    """Compare two texts position by position, ignoring punctuation.

    Tokens are paired by index only; an inserted or dropped word shifts every
    later pair.
    """
    expected = tokenize(original)
    actual = tokenize(user_text)
    comparison = TokenComparison()

    for i in range(max(len(expected), len(actual))):
        exp = expected[i] if i < len(expected) else None
        act = actual[i] if i < len(actual) else None
        if exp is None:
            status = TOKEN_EXTRA
            comparison.extra += 1
        elif act is None:
            status = TOKEN_MISSING
            comparison.missing += 1
        else:
            status = _classify_token(exp, act)
            if status == TOKEN_CORRECT:
                comparison.correct += 1
            elif status == TOKEN_ALMOST:
                comparison.almost += 1
            else:
                comparison.incorrect += 1
        comparison.tokens.append((exp, act, status))

    if expected:
        comparison.accuracy = round(100 * (comparison.correct + 0.5 * comparison.almost) / len(expected))
    else:
        comparison.accuracy = 100 if not actual else 0
    return comparison


# ==================== ANSWER EVALUATION ====================

def _as_candidates(correct_answers) -> list[str]:
    if correct_answers is None:
        return []
    if isinstance(correct_answers, str):
        return [correct_answers]
    return [str(answer) for answer in correct_answers if answer is not None]


def evaluate_answer(
    user_answer: str,
    correct_answers: str | list[str],
    mode: EvaluationMode | str = EvaluationMode.CLOZE,
    threshold: float = DEFAULT_ANSWER_THRESHOLD,
) -> EvaluationResult:
    """Score a free-text answer against one or more acceptable answers.

    Args:
        user_answer: The learner's raw response
        correct_answers: One acceptable answer or a list of phrasings
        mode: Exercise mode; MULTIPLE_CHOICE only accepts exact matches
        threshold: Fraction (0-1) of 100 needed for is_correct

    Returns:
        EvaluationResult for the best-scoring candidate
    """
    mode = EvaluationMode.parse(mode)
    if mode == EvaluationMode.MULTIPLE_CHOICE:
        return evaluate_multiple_choice(user_answer, correct_answers)

    normalized_user = normalize_text(user_answer or '')
    if not normalized_user:
        return EvaluationResult(
            is_correct=False,
            accuracy=0,
            feedback=EMPTY_ANSWER_FEEDBACK,
            similarity_score=0.0,
            category='poor'
        )

    candidates = [normalize_text(c) for c in _as_candidates(correct_answers)]

    # Exact matches always win
    if normalized_user in candidates:
        return _result(True, 100, 1.0)

    best_accuracy = 0
    best_similarity = 0.0
    for candidate in candidates:
        score = similarity(normalized_user, candidate)
        token_accuracy = compare_tokens(candidate, normalized_user).accuracy
        accuracy = max(round(score * 100), token_accuracy)
        if accuracy > best_accuracy or (accuracy == best_accuracy and score > best_similarity):
            best_accuracy = accuracy
            best_similarity = score

    return _result(best_accuracy >= threshold * 100, best_accuracy, best_similarity)


def evaluate_multiple_choice(user_answer: str, correct_answers: str | list[str]) -> EvaluationResult:
    """Exact match after normalization; accuracy is 100 or 0."""
    normalized_user = normalize_text(user_answer or '')
    candidates = {normalize_text(c) for c in _as_candidates(correct_answers)}
    if normalized_user and normalized_user in candidates:
        return _result(True, 100, 1.0)
    if not normalized_user:
        return EvaluationResult(False, 0, EMPTY_ANSWER_FEEDBACK, 0.0, 'poor')
    return _result(False, 0, 0.0)


def evaluate_vocabulary_marking(
    selected_words: list[str],
    target_words: list[str],
    allow_partial: bool = True,
) -> EvaluationResult:
    """Score a learner's selection of words to learn against the target set.

    accuracy = 100 * correct / target_count - 10 * extra, floored at 0.
    """
    selected = {normalize_text(w) for w in selected_words or [] if normalize_text(w)}
    target = {normalize_text(w) for w in target_words or [] if normalize_text(w)}

    correct = len(selected & target)
    extra = len(selected - target)
    base = 100 * correct / len(target) if target else 100
    accuracy = max(0, round(base - VOCAB_MARKING_EXTRA_PENALTY * extra))

    if allow_partial:
        is_correct = accuracy >= VOCAB_MARKING_PASS_ACCURACY
    else:
        is_correct = selected == target
    similarity_score = correct / len(target) if target else float(not selected)
    return _result(is_correct, accuracy, similarity_score)
