"""Unit tests for the lexadapt engine."""

import random
import unittest
from datetime import date, datetime, timedelta
from unittest.mock import patch

from lexadapt.models import (
    DifficultyLevel, WordPerformanceRecord, SelectionContext, SessionSummary, ExerciseOutcome,
    parse_difficulty, sanitize_difficulty
)
from lexadapt.utils import normalize_text, tokenize, levenshtein_distance, similarity
from lexadapt.evaluation import (
    EvaluationMode, categorize, compare_tokens, evaluate_answer,
    evaluate_multiple_choice, evaluate_vocabulary_marking
)
from lexadapt.classifier import (
    classify_vocabulary, get_struggling_words, get_words_for_review, get_mastered_words,
    calculate_vocabulary_growth, recommend_record_update
)
from lexadapt.word_lists import (
    FREQUENCY_WORDS, get_frequency_tiers, get_fallback_words, get_emergency_words, resolve_language
)
from lexadapt.selection import (
    WordSelector, WordSelectionConfig, select_next_word, calculate_target_distribution,
    get_optimal_config, build_selection_context
)
from lexadapt.difficulty import (
    PerformanceHistory, PerformanceMetrics, weighted_accuracy, recommend_starting_difficulty,
    evaluate_mid_session, analyze_performance, compute_performance_metrics,
    log_difficulty_adjustment, BasicDifficultyAdvisor, EnhancedDifficultyAdvisor,
    get_difficulty_advisor
)
from lexadapt.interfaces import DifficultyAdvisor


# ============================================================================
# Helpers
# ============================================================================

class ScriptedRandom:
    """Deterministic stand-in for random.Random.

    random() pops queued values (0.99 once exhausted, which skips every
    probabilistic stage); choice() takes the first item; shuffle() is a no-op.
    """

    def __init__(self, values=None):
        self.values = list(values or [])
        self.random_calls = 0

    def random(self) -> float:
        self.random_calls += 1
        if self.values:
            return self.values.pop(0)
        return 0.99

    def choice(self, seq):
        return seq[0]

    def shuffle(self, seq):
        pass


class BrokenRandom(ScriptedRandom):
    def random(self) -> float:
        raise RuntimeError("entropy unavailable")


def record(word, mastery=0, reviews=0, correct=0, due=None) -> WordPerformanceRecord:
    return WordPerformanceRecord(word, mastery, reviews, correct, due)


def sessions(count, total, correct, level=DifficultyLevel.INTERMEDIATE) -> list[SessionSummary]:
    return [SessionSummary(level, total, correct) for _ in range(count)]


# ============================================================================
# Text normalization and similarity
# ============================================================================

class TestTextUtils(unittest.TestCase):

    def test_similarity_identity(self):
        for s in ['Haus', 'the cat sat', 'schön', 'x']:
            self.assertEqual(similarity(s, s), 1.0)

    def test_similarity_against_empty(self):
        self.assertEqual(similarity('abc', ''), 0.0)
        self.assertEqual(similarity('', 'abc'), 0.0)
        self.assertEqual(similarity('', ''), 1.0)

    def test_similarity_is_symmetric(self):
        pairs = [('kitten', 'sitting'), ('Haus', 'Maus'), ('flaw', 'lawn'), ('a', 'abc')]
        for a, b in pairs:
            self.assertEqual(similarity(a, b), similarity(b, a))

    def test_levenshtein(self):
        self.assertEqual(levenshtein_distance('kitten', 'sitting'), 3)
        self.assertEqual(levenshtein_distance('', 'abc'), 3)
        self.assertEqual(levenshtein_distance('sat', 'sit'), 1)
        self.assertAlmostEqual(similarity('kitten', 'sitting'), 1 - 3 / 7)

    def test_normalize_text(self):
        self.assertEqual(normalize_text('  Hello   World  '), 'hello world')
        self.assertEqual(normalize_text('“Quote” ‘single’ a–b'), '"quote" \'single\' a-b')
        self.assertEqual(normalize_text('SCHÖN'), 'schön')
        self.assertEqual(normalize_text(''), '')
        self.assertEqual(normalize_text(None), '')

    def test_tokenize_drops_punctuation(self):
        self.assertEqual(tokenize('Hello, world!'), ['hello', 'world'])
        self.assertEqual(tokenize('Grüß Gott.'), ['grüß', 'gott'])
        self.assertEqual(tokenize('  ...  '), [])


# ============================================================================
# Answer evaluation
# ============================================================================

class TestEvaluateAnswer(unittest.TestCase):

    def test_exact_match_is_perfect(self):
        for mode in EvaluationMode:
            result = evaluate_answer('Ball', 'Ball', mode)
            self.assertTrue(result.is_correct)
            self.assertEqual(result.accuracy, 100)
            self.assertEqual(result.category, 'perfect')

    def test_case_insensitive_exact_match(self):
        result = evaluate_answer('ball', 'Ball', EvaluationMode.CLOZE)
        self.assertTrue(result.is_correct)
        self.assertEqual(result.accuracy, 100)
        self.assertEqual(result.similarity_score, 1.0)

    def test_blank_answer_is_poor(self):
        for answer in ['', '   ', None]:
            result = evaluate_answer(answer, 'Ball')
            self.assertFalse(result.is_correct)
            self.assertEqual(result.accuracy, 0)
            self.assertEqual(result.category, 'poor')
            self.assertEqual(result.feedback, 'No answer provided')

    def test_unrelated_word_is_incorrect(self):
        result = evaluate_answer('House', 'Ball')
        self.assertFalse(result.is_correct)
        self.assertEqual(result.category, 'poor')

    def test_best_candidate_wins(self):
        result = evaluate_answer('colour', ['color', 'colour'])
        self.assertEqual(result.accuracy, 100)
        result = evaluate_answer('Hund', ['Katze', 'Hunde'])
        self.assertTrue(result.is_correct)
        self.assertEqual(result.accuracy, 80)

    def test_single_typo_in_sentence(self):
        result = evaluate_answer('the cat sit', 'the cat sat', EvaluationMode.DICTATION)
        self.assertTrue(result.is_correct)
        self.assertEqual(result.accuracy, 91)
        self.assertEqual(result.category, 'excellent')

    def test_threshold_controls_correctness(self):
        result = evaluate_answer('the cat sit', 'the cat sat', threshold=0.95)
        self.assertFalse(result.is_correct)
        self.assertEqual(result.accuracy, 91)

    def test_punctuation_ignored_by_token_alignment(self):
        result = evaluate_answer('Hello, world!', 'hello world', EvaluationMode.TRANSLATION)
        self.assertTrue(result.is_correct)
        self.assertEqual(result.accuracy, 100)

    def test_multiple_choice_requires_exact_match(self):
        self.assertFalse(evaluate_answer('Hause', 'Haus', 'multiple_choice').is_correct)
        self.assertEqual(evaluate_answer('Hause', 'Haus', 'multiple_choice').accuracy, 0)
        self.assertTrue(evaluate_multiple_choice(' haus ', ['Haus', 'Heim']).is_correct)
        self.assertEqual(evaluate_multiple_choice('', 'Haus').feedback, 'No answer provided')

    def test_unknown_mode_falls_back_to_cloze(self):
        with self.assertLogs('lexadapt.evaluation', level='WARNING'):
            self.assertEqual(EvaluationMode.parse('essay'), EvaluationMode.CLOZE)
        self.assertEqual(EvaluationMode.parse('Multiple-Choice'), EvaluationMode.MULTIPLE_CHOICE)

    def test_categories(self):
        expected = {100: 'perfect', 95: 'perfect', 94: 'excellent', 85: 'excellent',
                    84: 'good', 70: 'good', 69: 'fair', 50: 'fair', 49: 'poor', 0: 'poor'}
        for accuracy, category in expected.items():
            self.assertEqual(categorize(accuracy), category)


class TestCompareTokens(unittest.TestCase):

    def test_near_miss_gets_half_credit(self):
        comparison = compare_tokens('the cat sat', 'the cat sit')
        self.assertEqual(comparison.correct, 2)
        self.assertEqual(comparison.almost, 1)
        self.assertEqual(comparison.accuracy, 83)
        self.assertEqual(comparison.tokens[2], ('sat', 'sit', 'almost'))

    def test_missing_and_extra_tokens(self):
        comparison = compare_tokens('ich bin hier', 'ich bin')
        self.assertEqual(comparison.missing, 1)
        self.assertEqual(comparison.accuracy, 67)

        comparison = compare_tokens('ich bin', 'ich bin hier')
        self.assertEqual(comparison.extra, 1)
        self.assertEqual(comparison.accuracy, 100)

    def test_alignment_is_positional(self):
        # An inserted word shifts every later pair
        comparison = compare_tokens('the cat sat', 'the big cat sat')
        self.assertEqual(comparison.correct, 1)
        self.assertEqual(comparison.extra, 1)

    def test_single_edit_in_three_letter_token_is_almost(self):
        self.assertLess(similarity('cat', 'cut'), 0.8)
        self.assertEqual(compare_tokens('cat', 'cut').tokens, [('cat', 'cut', 'almost')])
        self.assertEqual(compare_tokens('cat', 'cot').accuracy, 50)
        self.assertEqual(compare_tokens('cat', 'dog').tokens, [('cat', 'dog', 'incorrect')])

    def test_short_tokens_need_similarity(self):
        comparison = compare_tokens('an', 'in')
        self.assertEqual(comparison.incorrect, 1)
        self.assertEqual(comparison.accuracy, 0)

    def test_empty_texts(self):
        self.assertEqual(compare_tokens('', '').accuracy, 100)
        self.assertEqual(compare_tokens('', 'hallo').accuracy, 0)


class TestVocabularyMarking(unittest.TestCase):

    def test_partial_selection(self):
        result = evaluate_vocabulary_marking(['Haus', 'Katze'], ['haus', 'katze', 'hund'])
        self.assertEqual(result.accuracy, 67)
        self.assertTrue(result.is_correct)
        self.assertAlmostEqual(result.similarity_score, 2 / 3)

    def test_extra_selections_are_penalized(self):
        result = evaluate_vocabulary_marking(['haus', 'katze', 'hund', 'baum'], ['haus', 'katze', 'hund'])
        self.assertEqual(result.accuracy, 90)
        self.assertTrue(result.is_correct)

        strict = evaluate_vocabulary_marking(['haus', 'katze', 'hund', 'baum'], ['haus', 'katze', 'hund'],
                                             allow_partial=False)
        self.assertFalse(strict.is_correct)

    def test_accuracy_never_negative(self):
        result = evaluate_vocabulary_marking(['a', 'b', 'c'], ['x'])
        self.assertEqual(result.accuracy, 0)
        self.assertFalse(result.is_correct)

    def test_empty_target(self):
        result = evaluate_vocabulary_marking([], [])
        self.assertEqual(result.accuracy, 100)
        self.assertEqual(result.similarity_score, 1.0)


# ============================================================================
# Models
# ============================================================================

class TestDifficultyParsing(unittest.TestCase):

    def test_plain_strings(self):
        result = parse_difficulty(' Advanced ')
        self.assertTrue(result.valid)
        self.assertEqual(result.level, DifficultyLevel.ADVANCED)
        self.assertIsNone(result.diagnostic)

    def test_unwraps_nested_shapes(self):
        self.assertEqual(parse_difficulty({'difficulty': {'value': 'beginner'}}).level, DifficultyLevel.BEGINNER)

        class Wrapper:
            level = 'ADVANCED'
        self.assertEqual(parse_difficulty(Wrapper()).level, DifficultyLevel.ADVANCED)
        self.assertEqual(parse_difficulty(DifficultyLevel.BEGINNER).level, DifficultyLevel.BEGINNER)

    def test_invalid_values_default_to_intermediate(self):
        for value in ['expert', None, 3, {'other': 'beginner'}, ['beginner']]:
            result = parse_difficulty(value)
            self.assertFalse(result.valid)
            self.assertEqual(result.level, DifficultyLevel.INTERMEDIATE)
            self.assertIsNotNone(result.diagnostic)

    def test_sanitize_logs_warning(self):
        with self.assertLogs('lexadapt.models', level='WARNING'):
            self.assertEqual(sanitize_difficulty('expert'), DifficultyLevel.INTERMEDIATE)

    def test_level_steps_saturate(self):
        self.assertEqual(DifficultyLevel.BEGINNER.next(), DifficultyLevel.INTERMEDIATE)
        self.assertEqual(DifficultyLevel.ADVANCED.next(), DifficultyLevel.ADVANCED)
        self.assertEqual(DifficultyLevel.INTERMEDIATE.previous(), DifficultyLevel.BEGINNER)
        self.assertEqual(DifficultyLevel.BEGINNER.previous(), DifficultyLevel.BEGINNER)

    def test_selection_context_sanitizes_difficulty(self):
        context = SelectionContext(difficulty={'value': 'ADVANCED '})
        self.assertEqual(context.difficulty, DifficultyLevel.ADVANCED)
        with self.assertLogs('lexadapt.models', level='WARNING'):
            context = SelectionContext(difficulty=42)
        self.assertEqual(context.difficulty, DifficultyLevel.INTERMEDIATE)


class TestWordPerformanceRecord(unittest.TestCase):

    def test_accuracy(self):
        self.assertEqual(record('Haus').accuracy, 0.0)
        self.assertAlmostEqual(record('Haus', reviews=4, correct=3).accuracy, 0.75)

    def test_from_dict_clamps_correct_count(self):
        r = WordPerformanceRecord.from_dict({'word': 'Haus', 'review_count': 2, 'correct_count': 5})
        self.assertEqual(r.correct_count, 2)

    def test_from_dict_accepts_review_date_alias(self):
        r = WordPerformanceRecord.from_dict({'word': 'Haus', 'next_review_date': '2026-03-01T10:00:00'})
        self.assertEqual(r.next_review_due_at, date(2026, 3, 1))

    def test_to_dict(self):
        data = record('Haus', 2, 4, 3, date(2026, 3, 1)).to_dict()
        self.assertEqual(data['next_review_due_at'], '2026-03-01')
        self.assertEqual(WordPerformanceRecord.from_dict(data), record('Haus', 2, 4, 3, date(2026, 3, 1)))


class TestSessionSummary(unittest.TestCase):

    def test_accuracy(self):
        self.assertEqual(SessionSummary(DifficultyLevel.BEGINNER, 0, 0).accuracy, 0.0)
        self.assertEqual(SessionSummary(DifficultyLevel.BEGINNER, 4, 3).accuracy, 75.0)

    def test_from_dict(self):
        summary = SessionSummary.from_dict({
            'difficulty_level': {'level': 'Beginner'},
            'total_exercises': 5,
            'correct_exercises': 9,
            'created_at': '2026-01-02T10:00:00'
        })
        self.assertEqual(summary.difficulty_level, DifficultyLevel.BEGINNER)
        self.assertEqual(summary.correct_exercises, 5)
        self.assertEqual(summary.created_at, datetime(2026, 1, 2, 10, 0))

    def test_exercise_outcome_from_value(self):
        self.assertTrue(ExerciseOutcome.from_value(True).is_correct)
        self.assertFalse(ExerciseOutcome.from_value({'is_correct': 'yes'}).is_correct)
        self.assertTrue(ExerciseOutcome.from_value({'is_correct': True}).is_correct)


# ============================================================================
# Vocabulary classification
# ============================================================================

class TestClassifyVocabulary(unittest.TestCase):

    def test_empty_snapshot(self):
        stats = classify_vocabulary([])
        self.assertEqual(stats.total_words_encountered, 0)
        self.assertEqual(stats.to_dict()['mastery_distribution'],
                         {'beginner': 0, 'intermediate': 0, 'advanced': 0, 'mastered': 0})

    def test_struggling_words_counted(self):
        stats = classify_vocabulary([record('a', 1, 3, 1), record('b', 1, 5, 2), record('c', 1, 2, 0)])
        # 'c' has too few reviews to count
        self.assertEqual(stats.struggling_words, 2)

    def test_mastered_words_count_as_active(self):
        stats = classify_vocabulary([record('a', 0, 5, 5), record('b', 2, 6, 5)])
        self.assertEqual(stats.mastered_words, 2)
        self.assertEqual(stats.active_vocabulary, 2)

    def test_active_by_mastery_level(self):
        stats = classify_vocabulary([record('a', 4, 5, 4), record('b', 4, 5, 3)])
        self.assertEqual(stats.active_vocabulary, 1)
        self.assertEqual(stats.mastered_words, 0)

    def test_distribution_partitions_records(self):
        levels = [0, 1, 2, 3, 4, 5, 6, 9]
        stats = classify_vocabulary([record(f'w{level}', level) for level in levels])
        distribution = stats.mastery_distribution
        self.assertEqual((distribution.beginner, distribution.intermediate,
                          distribution.advanced, distribution.mastered), (2, 2, 2, 2))
        self.assertEqual(stats.passive_vocabulary, 6)
        self.assertEqual(stats.total_words_encountered, 8)


class TestClassifierQueries(unittest.TestCase):

    def test_struggling_words_weakest_first(self):
        records = [record('x', 1, 5, 1), record('y', 1, 10, 2), record('z', 1, 4, 2), record('ok', 1, 5, 5)]
        self.assertEqual(get_struggling_words(records), ['y', 'x', 'z'])
        self.assertEqual(get_struggling_words(records, limit=1), ['y'])

    def test_words_for_review_most_overdue_first(self):
        today = date(2026, 1, 10)
        records = [
            record('later', due=date(2026, 1, 11)),
            record('today', due=date(2026, 1, 10)),
            record('oldest', due=date(2026, 1, 5)),
            record('never'),
            record('yesterday', due=date(2026, 1, 9)),
        ]
        self.assertEqual(get_words_for_review(records, today=today), ['oldest', 'yesterday', 'today'])
        self.assertEqual(get_words_for_review(records, limit=1, today=today), ['oldest'])

    def test_mastered_words(self):
        records = [record('a', 3, 5, 5), record('b', 6, 10, 7), record('c', 1, 6, 5)]
        self.assertEqual(get_mastered_words(records), ['a', 'c'])

    def test_vocabulary_growth(self):
        before = classify_vocabulary([record('a', 2)])
        after = classify_vocabulary([record('a', 2), record('b', 4, 5, 5), record('c', 0)])
        self.assertEqual(calculate_vocabulary_growth(after, before),
                         {'passive_growth': 1, 'active_growth': 1, 'total_growth': 2})
        self.assertEqual(calculate_vocabulary_growth(after)['total_growth'], 0)


class TestRecommendRecordUpdate(unittest.TestCase):

    def test_new_word(self):
        r = recommend_record_update(None, 'Haus', True)
        self.assertEqual((r.word, r.mastery_level, r.review_count, r.correct_count), ('Haus', 1, 1, 1))
        r = recommend_record_update(None, 'Haus', False)
        self.assertEqual(r.correct_count, 0)

    def test_promotion(self):
        r = recommend_record_update(record('Haus', 1, 1, 1), 'Haus', True)
        self.assertEqual(r.mastery_level, 2)
        self.assertEqual((r.review_count, r.correct_count), (2, 2))

    def test_no_promotion_without_enough_correct_answers(self):
        r = recommend_record_update(record('Haus', 3, 4, 4), 'Haus', True)
        self.assertEqual(r.mastery_level, 3)

    def test_demotion_keeps_level_at_least_one(self):
        due = date(2026, 2, 1)
        r = recommend_record_update(record('Haus', 3, 4, 1, due), 'Haus', False)
        self.assertEqual(r.mastery_level, 2)
        self.assertEqual(r.next_review_due_at, due)
        r = recommend_record_update(record('Haus', 1, 9, 1), 'Haus', False)
        self.assertEqual(r.mastery_level, 1)

    def test_mastery_capped(self):
        r = recommend_record_update(record('Haus', 10, 40, 40), 'Haus', True)
        self.assertEqual(r.mastery_level, 10)


# ============================================================================
# Frequency word lists
# ============================================================================

class TestWordLists(unittest.TestCase):

    def test_language_aliases(self):
        self.assertEqual(resolve_language('DE'), 'german')
        self.assertEqual(resolve_language(' français '), 'french')
        self.assertEqual(resolve_language('klingon'), 'klingon')

    def test_tiers_are_cumulative(self):
        tiers = get_frequency_tiers('de')
        german = FREQUENCY_WORDS['german']
        self.assertEqual(tiers['top1k'], german['beginner'])
        self.assertEqual(tiers['top3k'], german['beginner'] + german['intermediate'])
        self.assertEqual(tiers['top5k'][-1], german['advanced'][9])

    def test_fallback_words_keyed_by_difficulty(self):
        fallback = get_fallback_words('english')
        self.assertEqual(fallback[DifficultyLevel.BEGINNER][0], 'the')
        self.assertIn('however', fallback[DifficultyLevel.INTERMEDIATE])
        self.assertEqual(get_fallback_words('klingon'), {})

    def test_emergency_words(self):
        self.assertEqual(get_emergency_words('fr'), ['le', 'la', 'un', 'une', 'et'])
        self.assertEqual(get_emergency_words('klingon'), ['the', 'a', 'an', 'this', 'that'])


# ============================================================================
# Word selection
# ============================================================================

class TestSelectNextWord(unittest.TestCase):

    def test_struggling_stage(self):
        context = SelectionContext(language='german', struggling_words=['Hund'], review_words=['Katze'])
        self.assertEqual(WordSelector(ScriptedRandom([0.1])).select_next_word(context), 'Hund')

    def test_review_stage(self):
        context = SelectionContext(language='german', struggling_words=['Hund'], review_words=['Katze'])
        self.assertEqual(WordSelector(ScriptedRandom([0.5, 0.1])).select_next_word(context), 'Katze')

    def test_struggling_word_on_cooldown_cascades(self):
        context = SelectionContext(language='german', struggling_words=['Hund'],
                                   review_words=['Katze'], session_words={'hund'})
        self.assertEqual(WordSelector(ScriptedRandom([0.1, 0.1])).select_next_word(context), 'Katze')

    def test_empty_pools_skip_random_draws(self):
        rng = ScriptedRandom()
        context = SelectionContext(language='german', difficulty='beginner')
        self.assertEqual(WordSelector(rng).select_next_word(context), 'der')
        self.assertEqual(rng.random_calls, 0)

    def test_frequency_stage_excludes_cooldown_and_known_words(self):
        context = SelectionContext(language='german', difficulty='beginner',
                                   recent_words={'DER'}, known_words={'die'})
        self.assertEqual(select_next_word(context, ScriptedRandom()), 'das')

    def test_unsupported_language_uses_english_emergency_words(self):
        context = SelectionContext(language='klingon', recent_words={'the'})
        self.assertEqual(select_next_word(context, ScriptedRandom()), 'a')

    def test_emergency_stage_ignores_cooldown_when_exhausted(self):
        context = SelectionContext(language='klingon', session_words={'the', 'a', 'an', 'this', 'that'})
        self.assertEqual(select_next_word(context, ScriptedRandom()), 'the')

    def test_explicit_empty_lists(self):
        context = SelectionContext(language='english', fallback_words={}, emergency_words=[])
        self.assertEqual(select_next_word(context, ScriptedRandom()), 'the')

    def test_never_raises(self):
        context = SelectionContext(language='spanish', struggling_words=['perro'])
        with self.assertLogs('lexadapt.selection', level='ERROR'):
            word = WordSelector(BrokenRandom()).select_next_word(context)
        self.assertEqual(word, 'el')

    def test_malformed_emergency_list(self):
        for emergency in (5, [3], [None, '', '  '], 'the'):
            context = SelectionContext(language='english', fallback_words={}, emergency_words=emergency)
            self.assertEqual(select_next_word(context, ScriptedRandom()), 'the')

    def test_malformed_emergency_list_after_failure(self):
        context = SelectionContext(language='english', struggling_words=['dog'], emergency_words=5)
        with self.assertLogs('lexadapt.selection', level='ERROR'):
            word = WordSelector(BrokenRandom()).select_next_word(context)
        self.assertEqual(word, 'the')

    def test_last_resort_word(self):
        context = SelectionContext(language='english', fallback_words={}, emergency_words=[3])
        with patch('lexadapt.selection.get_emergency_words', side_effect=KeyError('english')):
            with self.assertLogs('lexadapt.selection', level='ERROR'):
                self.assertEqual(select_next_word(context, ScriptedRandom()), 'word')

    def test_always_returns_a_word(self):
        rng = random.Random(7)
        contexts = [
            SelectionContext(),
            SelectionContext(language='xx', difficulty='advanced'),
            SelectionContext(language='de', struggling_words=['Hund'], review_words=['Katze'],
                             session_words={'hund', 'katze'}),
        ]
        for context in contexts:
            for _ in range(25):
                word = select_next_word(context, rng)
                self.assertIsInstance(word, str)
                self.assertTrue(word)


class TestVocabularyAwareSelection(unittest.TestCase):

    def test_new_learner_gets_only_new_words(self):
        context = SelectionContext(language='german', difficulty='beginner')
        result = WordSelector(ScriptedRandom()).select_vocabulary_aware_words(context, 3)
        self.assertEqual(result.selected_words, ['der', 'die', 'das'])
        self.assertEqual(set(result.word_types.values()), {'new'})
        self.assertEqual(result.distribution.new_words, 3)
        self.assertEqual(result.selection_reason, '3 new words for learning, N+1 learning approach')

    def test_mixed_distribution(self):
        context = SelectionContext(
            language='german', difficulty='beginner',
            struggling_words=['s1', 's2'], review_words=['r1', 'r2', 'r3', 'r4'], mastered_words=['m1'],
            known_words={'s1', 's2', 'r1', 'r2', 'r3', 'r4', 'm1'}
        )
        result = WordSelector(ScriptedRandom()).select_vocabulary_aware_words(context, 10)
        self.assertEqual(result.selected_words,
                         ['s1', 'r1', 'r2', 'r3', 'm1', 'der', 'die', 'das', 'und', 'ich'])
        self.assertEqual(result.word_types['s1'], 'struggling')
        self.assertEqual(result.word_types['m1'], 'mastered')
        self.assertEqual(result.distribution.to_dict(),
                         {'new_words': 5, 'review_words': 3, 'struggling_words': 1, 'mastered_words': 1})
        self.assertEqual(result.selection_reason,
                         '1 struggling word for reinforcement, 3 review words for practice, '
                         '5 new words for learning, N+1 learning approach')

    def test_no_duplicates_across_pools(self):
        context = SelectionContext(language='german', struggling_words=['Haus'],
                                   review_words=['haus', 'Baum'], known_words={'haus', 'baum'})
        result = WordSelector(ScriptedRandom()).select_vocabulary_aware_words(context, 10)
        lowered = [w.lower() for w in result.selected_words]
        self.assertEqual(len(lowered), len(set(lowered)))
        self.assertEqual(result.word_types['Baum'], 'review')
        self.assertEqual(len(result.selected_words), 10)

    def test_shortfall_backfilled_from_emergency_words(self):
        context = SelectionContext(language='klingon')
        result = WordSelector(ScriptedRandom()).select_vocabulary_aware_words(context, 3)
        self.assertEqual(result.selected_words, ['the', 'a', 'an'])

    def test_reason_without_n_plus_one(self):
        context = SelectionContext(language='german')
        config = WordSelectionConfig(n_plus_one_mode=False)
        result = WordSelector(ScriptedRandom()).select_vocabulary_aware_words(context, 1, config)
        self.assertEqual(result.selection_reason, '1 new word for learning')

    def test_target_distribution(self):
        config = WordSelectionConfig()
        target = calculate_target_distribution(10, config, True)
        self.assertEqual((target.struggling_words, target.review_words, target.mastered_words, target.new_words),
                         (1, 3, 1, 5))
        target = calculate_target_distribution(1, config, True)
        self.assertEqual((target.struggling_words, target.review_words, target.mastered_words, target.new_words),
                         (1, 1, 0, 0))
        self.assertEqual(calculate_target_distribution(4, config, False).new_words, 4)


class TestOptimalConfig(unittest.TestCase):

    def test_vocabulary_size_bands(self):
        small = get_optimal_config(30, 0)
        self.assertAlmostEqual(small.new_word_ratio, 0.8)
        self.assertAlmostEqual(small.review_word_ratio, 0.2)
        medium = get_optimal_config(100, 0)
        self.assertAlmostEqual(medium.review_word_ratio, 0.4)
        large = get_optimal_config(500, 0)
        self.assertAlmostEqual(large.new_word_ratio, 0.4)

    def test_many_struggling_words(self):
        config = get_optimal_config(500, 12)
        self.assertEqual(config.struggling_word_boost, 3.0)
        self.assertAlmostEqual(config.new_word_ratio, 0.3)
        self.assertAlmostEqual(config.review_word_ratio, 0.7)

    def test_preferences(self):
        conservative = get_optimal_config(30, 0, 'conservative')
        self.assertAlmostEqual(conservative.new_word_ratio, 0.56)
        self.assertAlmostEqual(conservative.review_word_ratio, 0.4)
        aggressive = get_optimal_config(100, 0, 'aggressive')
        self.assertAlmostEqual(aggressive.new_word_ratio, 0.78)
        self.assertAlmostEqual(aggressive.review_word_ratio, 0.3)


class TestBuildSelectionContext(unittest.TestCase):

    def test_pools_from_records(self):
        today = date(2026, 1, 10)
        records = [record(f's{i}', 1, 5, 1) for i in range(4)]
        records += [record(f'Due{i}', 2, 2, 2, date(2026, 1, i + 1)) for i in range(6)]
        records.append(record('M', 5, 6, 6))

        context = build_selection_context(records, 'de', 'Advanced', session_words={'x'},
                                          recent_words=['y'], today=today)
        self.assertEqual(len(context.struggling_words), 3)
        self.assertEqual(context.review_words, ['Due0', 'Due1', 'Due2', 'Due3', 'Due4'])
        self.assertEqual(context.mastered_words, ['M'])
        self.assertIn('due0', context.known_words)
        self.assertEqual(context.difficulty, DifficultyLevel.ADVANCED)
        self.assertEqual(context.cooldown(), {'x', 'y'})
        self.assertEqual(context.emergency_words, ['der', 'die', 'das', 'ich', 'und'])

    def test_empty_records(self):
        context = build_selection_context([], 'english', None)
        self.assertEqual(context.difficulty, DifficultyLevel.INTERMEDIATE)
        self.assertEqual(context.struggling_words, [])
        self.assertTrue(select_next_word(context, ScriptedRandom()))


# ============================================================================
# Difficulty adaptation
# ============================================================================

class TestStartingDifficulty(unittest.TestCase):

    def test_cold_start_is_always_beginner(self):
        for history in [[], sessions(4, 10, 10, DifficultyLevel.ADVANCED), sessions(1, 10, 0)]:
            result = recommend_starting_difficulty(PerformanceHistory(history, struggling_words_count=50))
            self.assertEqual(result.suggested_difficulty, DifficultyLevel.BEGINNER)
            self.assertAlmostEqual(result.confidence, 0.8)

    def test_high_accuracy_moves_up(self):
        history = PerformanceHistory(sessions(10, 25, 23))
        self.assertAlmostEqual(weighted_accuracy(history.sessions), 92.0)
        result = recommend_starting_difficulty(history)
        self.assertEqual(result.suggested_difficulty, DifficultyLevel.ADVANCED)
        self.assertAlmostEqual(result.confidence, 0.8)
        self.assertEqual(result.fallback_difficulty, DifficultyLevel.INTERMEDIATE)

    def test_high_accuracy_saturates_at_advanced(self):
        result = recommend_starting_difficulty(sessions(6, 10, 10, DifficultyLevel.ADVANCED))
        self.assertEqual(result.suggested_difficulty, DifficultyLevel.ADVANCED)

    def test_low_accuracy_moves_down(self):
        result = recommend_starting_difficulty(sessions(10, 10, 5))
        self.assertEqual(result.suggested_difficulty, DifficultyLevel.BEGINNER)
        self.assertAlmostEqual(result.confidence, 0.7)

    def test_moderate_accuracy_keeps_level(self):
        result = recommend_starting_difficulty(sessions(10, 4, 3))
        self.assertEqual(result.suggested_difficulty, DifficultyLevel.INTERMEDIATE)
        self.assertAlmostEqual(result.confidence, 0.6)
        self.assertEqual(len(result.reasoning), 1)

    def test_struggling_words_step_down(self):
        result = recommend_starting_difficulty(PerformanceHistory(sessions(10, 4, 3), struggling_words_count=11))
        self.assertEqual(result.suggested_difficulty, DifficultyLevel.BEGINNER)
        self.assertAlmostEqual(result.confidence, 0.7)
        self.assertEqual(len(result.reasoning), 2)

        result = recommend_starting_difficulty(PerformanceHistory(sessions(10, 25, 23), struggling_words_count=11))
        self.assertEqual(result.suggested_difficulty, DifficultyLevel.INTERMEDIATE)
        self.assertAlmostEqual(result.confidence, 0.9)

    def test_recency_weighting_uses_timestamps(self):
        start = datetime(2026, 1, 1)
        old = SessionSummary(DifficultyLevel.BEGINNER, 10, 10, start)
        new = SessionSummary(DifficultyLevel.BEGINNER, 10, 0, start + timedelta(days=1))
        history = PerformanceHistory([old, new])
        self.assertIs(history.sessions[0], new)
        self.assertAlmostEqual(weighted_accuracy(history.sessions), 80 / 1.8)

    def test_accepts_dict_sessions(self):
        raw = [{'difficulty_level': {'value': 'beginner'}, 'total_exercises': 10, 'correct_exercises': 10}] * 5
        result = recommend_starting_difficulty(raw)
        self.assertEqual(result.suggested_difficulty, DifficultyLevel.INTERMEDIATE)

    def test_failure_falls_back_to_intermediate(self):
        with self.assertLogs('lexadapt.difficulty', level='ERROR'):
            result = recommend_starting_difficulty([object()] * 6)
        self.assertEqual(result.suggested_difficulty, DifficultyLevel.INTERMEDIATE)
        self.assertAlmostEqual(result.confidence, 0.5)


class TestMidSession(unittest.TestCase):

    def test_too_few_exercises(self):
        self.assertIsNone(evaluate_mid_session([], 'beginner'))
        self.assertIsNone(evaluate_mid_session([True, True], 'beginner'))
        self.assertIsNone(evaluate_mid_session([False, False], 'advanced'))

    def test_three_exercises_are_not_enough_to_adjust(self):
        self.assertIsNone(evaluate_mid_session([True, True, True], 'beginner'))

    def test_eighty_percent_is_no_adjustment(self):
        self.assertIsNone(evaluate_mid_session([True, True, True, True, False], 'beginner'))

    def test_strong_performance_moves_up(self):
        analysis = evaluate_mid_session([True] * 5, 'beginner')
        self.assertTrue(analysis.should_adjust)
        self.assertEqual(analysis.suggested_level, DifficultyLevel.INTERMEDIATE)
        self.assertAlmostEqual(analysis.confidence, 0.7)

    def test_weak_performance_moves_down(self):
        analysis = evaluate_mid_session([False, False, False, False, True], DifficultyLevel.INTERMEDIATE)
        self.assertEqual(analysis.suggested_level, DifficultyLevel.BEGINNER)
        self.assertAlmostEqual(analysis.confidence, 0.8)

    def test_saturated_level_is_no_adjustment(self):
        self.assertIsNone(evaluate_mid_session([True] * 5, 'advanced'))
        self.assertIsNone(evaluate_mid_session([False] * 5, 'beginner'))

    def test_only_most_recent_window_counts(self):
        analysis = evaluate_mid_session([True] * 5 + [False] * 5, 'beginner')
        self.assertEqual(analysis.suggested_level, DifficultyLevel.INTERMEDIATE)

    def test_timestamped_exercises_sorted(self):
        start = datetime(2026, 1, 1, 12, 0)
        exercises = [{'is_correct': i >= 5, 'created_at': (start + timedelta(minutes=i)).isoformat()}
                     for i in range(10)]
        analysis = evaluate_mid_session(exercises, 'beginner')
        self.assertEqual(analysis.suggested_level, DifficultyLevel.INTERMEDIATE)

    def test_unparseable_timestamps_are_ignored(self):
        exercises = [{'is_correct': True, 'created_at': 'yesterday'}] * 5
        with self.assertLogs('lexadapt.models', level='WARNING'):
            analysis = evaluate_mid_session(exercises, 'beginner')
        self.assertEqual(analysis.suggested_level, DifficultyLevel.INTERMEDIATE)

    def test_mixed_timezones_keep_given_order(self):
        # Most recent first as given; sorting would raise on naive vs aware
        exercises = [{'is_correct': True, 'created_at': '2026-01-01T00:09:00+00:00'}] + \
                    [{'is_correct': True, 'created_at': f'2026-01-01T00:0{8 - i}:00'} for i in range(4)] + \
                    [{'is_correct': False, 'created_at': f'2026-01-01T00:0{4 - i}:00'} for i in range(5)]
        with self.assertLogs('lexadapt.difficulty', level='WARNING'):
            analysis = evaluate_mid_session(exercises, 'beginner')
        self.assertEqual(analysis.suggested_level, DifficultyLevel.INTERMEDIATE)

    def test_malformed_input_gives_no_opinion(self):
        with self.assertLogs('lexadapt.difficulty', level='ERROR'):
            self.assertIsNone(evaluate_mid_session(5, 'beginner'))


class TestPerformanceAnalysis(unittest.TestCase):

    def test_compute_metrics(self):
        history = [
            SessionSummary(DifficultyLevel.INTERMEDIATE, 10, 9),
            SessionSummary(DifficultyLevel.INTERMEDIATE, 10, 8),
            SessionSummary(DifficultyLevel.BEGINNER, 10, 5),
            SessionSummary(DifficultyLevel.BEGINNER, 10, 10),
        ]
        metrics = compute_performance_metrics(history)
        self.assertEqual(metrics.recent_accuracy, 80)
        self.assertEqual(metrics.streak_length, 2)
        self.assertEqual(metrics.difficulty_distribution[DifficultyLevel.INTERMEDIATE].attempts, 20)
        self.assertAlmostEqual(metrics.difficulty_distribution[DifficultyLevel.BEGINNER].accuracy, 75.0)

    def test_metrics_use_last_ten_sessions(self):
        metrics = compute_performance_metrics(sessions(10, 10, 10) + sessions(5, 10, 0))
        self.assertEqual(metrics.recent_accuracy, 100)
        self.assertEqual(metrics.streak_length, 10)

    def test_empty_metrics(self):
        metrics = compute_performance_metrics([])
        self.assertEqual((metrics.recent_accuracy, metrics.streak_length), (0, 0))

    def test_high_accuracy(self):
        analysis = analyze_performance(PerformanceMetrics(recent_accuracy=90), 'intermediate')
        self.assertTrue(analysis.should_adjust)
        self.assertEqual(analysis.suggested_level, DifficultyLevel.ADVANCED)
        self.assertAlmostEqual(analysis.confidence, 0.3)

    def test_low_accuracy(self):
        analysis = analyze_performance(PerformanceMetrics(recent_accuracy=50), 'advanced')
        self.assertTrue(analysis.should_adjust)
        self.assertEqual(analysis.suggested_level, DifficultyLevel.INTERMEDIATE)
        self.assertAlmostEqual(analysis.confidence, 0.4)

    def test_streak_alone_never_adjusts(self):
        analysis = analyze_performance(PerformanceMetrics(recent_accuracy=90, streak_length=6), 'advanced')
        self.assertFalse(analysis.should_adjust)
        self.assertEqual(analysis.suggested_level, DifficultyLevel.ADVANCED)
        self.assertAlmostEqual(analysis.confidence, 0.2)
        self.assertEqual(len(analysis.reasons), 1)

    def test_streak_adds_confidence(self):
        analysis = analyze_performance(PerformanceMetrics(recent_accuracy=90, streak_length=5), 'beginner')
        self.assertAlmostEqual(analysis.confidence, 0.5)
        self.assertEqual(len(analysis.reasons), 2)

    def test_log_adjustment(self):
        with self.assertLogs('lexadapt.difficulty', level='INFO') as logs:
            log_difficulty_adjustment('anna', 'german', 'beginner', {'value': 'intermediate'}, 'streak')
        self.assertIn('beginner -> intermediate', logs.output[0])


class TestDifficultyAdvisors(unittest.TestCase):

    def test_factory(self):
        self.assertIsInstance(get_difficulty_advisor('basic'), BasicDifficultyAdvisor)
        self.assertIsInstance(get_difficulty_advisor(' Enhanced '), EnhancedDifficultyAdvisor)
        with self.assertRaises(ValueError):
            get_difficulty_advisor('psychic')

    def test_advisors_share_interface_only(self):
        self.assertTrue(issubclass(BasicDifficultyAdvisor, DifficultyAdvisor))
        self.assertTrue(issubclass(EnhancedDifficultyAdvisor, DifficultyAdvisor))
        self.assertFalse(issubclass(EnhancedDifficultyAdvisor, BasicDifficultyAdvisor))
        self.assertFalse(issubclass(BasicDifficultyAdvisor, EnhancedDifficultyAdvisor))

    def test_basic_advisor(self):
        analysis = BasicDifficultyAdvisor().recommend(sessions(10, 25, 23), DifficultyLevel.INTERMEDIATE)
        self.assertTrue(analysis.should_adjust)
        self.assertEqual(analysis.suggested_level, DifficultyLevel.ADVANCED)
        self.assertAlmostEqual(analysis.confidence, 0.5)

    def test_enhanced_advisor(self):
        advisor = EnhancedDifficultyAdvisor()
        analysis = advisor.recommend(sessions(10, 25, 23), 'intermediate')
        self.assertTrue(analysis.should_adjust)
        self.assertEqual(analysis.suggested_level, DifficultyLevel.ADVANCED)
        self.assertAlmostEqual(analysis.confidence, 0.8)

        analysis = advisor.recommend(sessions(2, 10, 10), DifficultyLevel.ADVANCED)
        self.assertEqual(analysis.suggested_level, DifficultyLevel.BEGINNER)

        self.assertIsNone(advisor.check_mid_session([True, False], 'beginner'))


if __name__ == '__main__':
    unittest.main()
