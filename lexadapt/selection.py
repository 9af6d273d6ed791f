"""Adaptive target-word selection.

The selector is stateless: it reads a SelectionContext built by the caller
and returns words. Recording the chosen word in the session and recent-word
cooldown sets is the caller's job.
"""

import logging
import math
import random
from dataclasses import dataclass, field, asdict
from datetime import date

from .config import (
    STRUGGLING_STAGE_PROBABILITY, REVIEW_STAGE_PROBABILITY,
    CONTEXT_STRUGGLING_LIMIT, CONTEXT_REVIEW_LIMIT,
    STRUGGLING_SHARE, MASTERED_SHARE
)
from .classifier import get_struggling_words, get_words_for_review, get_mastered_words
from .models import DifficultyLevel, SelectionContext, WordPerformanceRecord, sanitize_difficulty
from .word_lists import get_fallback_words, get_emergency_words

logger = logging.getLogger(__name__)

WORD_TYPE_NEW = 'new'
WORD_TYPE_REVIEW = 'review'
WORD_TYPE_STRUGGLING = 'struggling'
WORD_TYPE_MASTERED = 'mastered'

LAST_RESORT_WORD = 'word'


@dataclass
class WordSelectionConfig:
    new_word_ratio: float = 0.6
    review_word_ratio: float = 0.3
    struggling_word_boost: float = 2.0
    mastered_word_penalty: float = 0.2
    n_plus_one_mode: bool = True

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class WordDistribution:
    new_words: int = 0
    review_words: int = 0
    struggling_words: int = 0
    mastered_words: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class WordSelectionResult:
    """Outcome of a vocabulary-aware multi-word selection.

    Attributes:
        selected_words: Chosen words, at most the requested count
        word_types: word -> new/review/struggling/mastered
        selection_reason: Human-readable summary of the mix
        distribution: How many words of each type were actually picked
    """
    selected_words: list[str] = field(default_factory=list)
    word_types: dict[str, str] = field(default_factory=dict)
    selection_reason: str = ''
    distribution: WordDistribution = field(default_factory=WordDistribution)

    def to_dict(self) -> dict:
        return {
            'selected_words': list(self.selected_words),
            'word_types': dict(self.word_types),
            'selection_reason': self.selection_reason,
            'distribution': self.distribution.to_dict()
        }


def _words_only(words) -> list[str]:
    """Non-blank strings from a word list; anything else yields []."""
    if not isinstance(words, (list, tuple, set, frozenset)):
        return []
    return [w for w in words if isinstance(w, str) and w.strip()]


def _available(words: list[str], excluded: set[str]) -> list[str]:
    """Words not in the (lower-cased) excluded set, order preserved."""
    return [w for w in words or [] if w and w.lower() not in excluded]


class WordSelector:
    """Picks target words from a SelectionContext.

    Randomness comes from an injected random.Random-compatible object so
    callers and tests can make the cascade deterministic.
    """

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    # ==================== SINGLE WORD ====================

    def select_next_word(self, context: SelectionContext) -> str:
        """Return the next target word; never raises, never returns ''."""
        try:
            return self._cascade(context)
        except Exception as e:
            logger.error(f"Word selection failed, using emergency word: {e}")
            return self._emergency_words(context)[0]

    def _cascade(self, context: SelectionContext) -> str:
        cooldown = context.cooldown()

        if context.struggling_words and self.rng.random() < STRUGGLING_STAGE_PROBABILITY:
            candidates = _available(context.struggling_words, cooldown)
            if candidates:
                word = self.rng.choice(candidates)
                logger.info(f"Selected struggling word: {word}")
                return word

        if context.review_words and self.rng.random() < REVIEW_STAGE_PROBABILITY:
            candidates = _available(context.review_words, cooldown)
            if candidates:
                word = self.rng.choice(candidates)
                logger.info(f"Selected review word: {word}")
                return word

        new_words = self.new_words(context, max(context.count, 1), cooldown)
        if new_words:
            logger.info(f"Selected frequency word: {new_words[0]} ({context.difficulty.value})")
            return new_words[0]

        emergency = self._emergency_words(context)
        candidates = _available(emergency, cooldown)
        if candidates:
            word = self.rng.choice(candidates)
            logger.info(f"Selected emergency word: {word}")
            return word
        logger.warning(f"Every emergency word is on cooldown, reusing {emergency[0]}")
        return emergency[0]

    def new_words(self, context: SelectionContext, count: int, exclude: set[str] | None = None) -> list[str]:
        """Shuffled unseen words from the difficulty's frequency tier."""
        fallback = context.fallback_words
        if fallback is None:
            fallback = get_fallback_words(context.language)
        pool = fallback.get(context.difficulty) or []
        if not pool:
            logger.warning(f"No frequency words for {context.language} ({context.difficulty.value})")
            return []

        excluded = {w.lower() for w in exclude or set()} | {w.lower() for w in context.known_words}
        candidates = _available(pool, excluded)
        self.rng.shuffle(candidates)
        return candidates[:count]

    def _emergency_words(self, context: SelectionContext) -> list[str]:
        """Non-empty emergency words; always at least LAST_RESORT_WORD."""
        words = _words_only(getattr(context, 'emergency_words', None))
        if not words:
            try:
                words = _words_only(get_emergency_words(getattr(context, 'language', None)))
            except Exception as e:
                logger.error(f"Could not load emergency words: {e}")
        return words or [LAST_RESORT_WORD]

    # ==================== MULTI WORD ====================

    def select_vocabulary_aware_words(
        self,
        context: SelectionContext,
        word_count: int = 1,
        config: WordSelectionConfig | None = None,
    ) -> WordSelectionResult:
        """Pick a mix of struggling, review, mastered and new words.

        Buckets are filled in that priority order, each from its own pool
        and without duplicates; any shortfall is back-filled with new words.
        """
        config = config or WordSelectionConfig()
        word_count = max(int(word_count), 0)
        has_vocabulary = bool(
            context.known_words or context.struggling_words
            or context.review_words or context.mastered_words
        )
        target = calculate_target_distribution(word_count, config, has_vocabulary)

        cooldown = context.cooldown()
        selected = []
        word_types = {}
        taken = set(cooldown)

        def take(pool: list[str], limit: int, word_type: str) -> int:
            picked = 0
            for word in pool or []:
                if picked >= limit:
                    break
                if not word or word.lower() in taken:
                    continue
                selected.append(word)
                word_types[word] = word_type
                taken.add(word.lower())
                picked += 1
            return picked

        struggling = take(context.struggling_words, target.struggling_words, WORD_TYPE_STRUGGLING)
        review = take(context.review_words, target.review_words, WORD_TYPE_REVIEW)
        mastered = take(context.mastered_words, target.mastered_words, WORD_TYPE_MASTERED)

        remaining = word_count - len(selected)
        if remaining > 0:
            fresh = self.new_words(context, remaining, taken)
            if len(fresh) < remaining:
                fresh += _available(self._emergency_words(context), taken | {w.lower() for w in fresh})
            take(fresh, remaining, WORD_TYPE_NEW)

        distribution = WordDistribution(
            new_words=sum(1 for t in word_types.values() if t == WORD_TYPE_NEW),
            review_words=review,
            struggling_words=struggling,
            mastered_words=mastered
        )
        reason = generate_selection_reason(target, struggling, review, config)
        logger.info(f"Selected {len(selected)} of {word_count} words: {reason}")
        return WordSelectionResult(
            selected_words=selected[:word_count],
            word_types=word_types,
            selection_reason=reason,
            distribution=distribution
        )


def select_next_word(context: SelectionContext, rng: random.Random | None = None) -> str:
    return WordSelector(rng).select_next_word(context)


def select_vocabulary_aware_words(context: SelectionContext, word_count: int = 1,
                                  config: WordSelectionConfig | None = None,
                                  rng: random.Random | None = None) -> WordSelectionResult:
    return WordSelector(rng).select_vocabulary_aware_words(context, word_count, config)


def calculate_target_distribution(word_count: int, config: WordSelectionConfig,
                                  has_vocabulary: bool) -> WordDistribution:
    """How many words of each type a selection of word_count should aim for."""
    if not has_vocabulary:
        return WordDistribution(new_words=word_count)

    # Rounded first so that e.g. 10 * 0.3 gives 3 slots, not 4
    struggling = math.ceil(round(word_count * STRUGGLING_SHARE, 6))
    review = math.ceil(round(word_count * config.review_word_ratio, 6))
    mastered = math.floor(round(word_count * MASTERED_SHARE, 6))
    return WordDistribution(
        new_words=max(0, word_count - struggling - review - mastered),
        review_words=review,
        struggling_words=struggling,
        mastered_words=mastered
    )


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


def generate_selection_reason(target: WordDistribution, struggling: int, review: int,
                              config: WordSelectionConfig) -> str:
    reasons = []
    if struggling > 0:
        reasons.append(f"{_plural(struggling, 'struggling word')} for reinforcement")
    if review > 0:
        reasons.append(f"{_plural(review, 'review word')} for practice")
    if target.new_words > 0:
        reasons.append(f"{_plural(target.new_words, 'new word')} for learning")
    if config.n_plus_one_mode:
        reasons.append('N+1 learning approach')
    return ', '.join(reasons) or 'Vocabulary-optimized selection'


def get_optimal_config(vocabulary_size: int, struggling_words_count: int,
                       preference: str = 'balanced') -> WordSelectionConfig:
    """Tune the new/review mix to the learner's vocabulary size and preference.

    Args:
        vocabulary_size: Words encountered so far
        struggling_words_count: Words currently classified as struggling
        preference: conservative, balanced or aggressive
    """
    config = WordSelectionConfig()

    if vocabulary_size < 50:
        config.new_word_ratio, config.review_word_ratio = 0.8, 0.2
    elif vocabulary_size < 200:
        config.new_word_ratio, config.review_word_ratio = 0.6, 0.4
    else:
        config.new_word_ratio, config.review_word_ratio = 0.4, 0.6

    if struggling_words_count > 10:
        config.struggling_word_boost = 3.0
        config.review_word_ratio += 0.1
        config.new_word_ratio -= 0.1

    if preference == 'conservative':
        config.new_word_ratio *= 0.7
        config.review_word_ratio += 0.2
    elif preference == 'aggressive':
        config.new_word_ratio *= 1.3
        config.review_word_ratio -= 0.1
    elif preference != 'balanced':
        logger.warning(f"Unknown selection preference {preference!r}; using balanced")

    return config


def build_selection_context(
    records: list[WordPerformanceRecord],
    language: str,
    difficulty: DifficultyLevel | str,
    session_words: set[str] | None = None,
    recent_words: set[str] | None = None,
    today: date | None = None,
    count: int = 1,
) -> SelectionContext:
    """Derive a SelectionContext from a learner's word records."""
    records = records or []
    return SelectionContext(
        difficulty=sanitize_difficulty(difficulty),
        language=language,
        struggling_words=get_struggling_words(records, CONTEXT_STRUGGLING_LIMIT),
        review_words=get_words_for_review(records, CONTEXT_REVIEW_LIMIT, today),
        mastered_words=get_mastered_words(records),
        session_words=set(session_words or ()),
        recent_words=set(recent_words or ()),
        known_words={r.key for r in records},
        fallback_words=get_fallback_words(language),
        emergency_words=get_emergency_words(language),
        count=count
    )
