from .models import (
    DifficultyLevel, DifficultyParseResult, WordPerformanceRecord, VocabularyClassification,
    SelectionContext, SessionSummary, ExerciseOutcome, DifficultyAnalysis,
    StartingDifficulty, EvaluationResult, parse_difficulty, sanitize_difficulty
)
from .interfaces import DifficultyAdvisor, Storage
from .utils import normalize_text, levenshtein_distance, similarity
from .evaluation import (
    EvaluationMode, evaluate_answer, evaluate_multiple_choice,
    evaluate_vocabulary_marking, compare_tokens
)
from .classifier import (
    classify_vocabulary, get_struggling_words, get_words_for_review, get_mastered_words,
    calculate_vocabulary_growth, recommend_record_update
)
from .selection import (
    WordSelector, WordSelectionConfig, WordSelectionResult,
    select_next_word, select_vocabulary_aware_words, get_optimal_config, build_selection_context
)
from .difficulty import (
    PerformanceHistory, PerformanceMetrics,
    recommend_starting_difficulty, evaluate_mid_session, analyze_performance,
    compute_performance_metrics, log_difficulty_adjustment,
    BasicDifficultyAdvisor, EnhancedDifficultyAdvisor, get_difficulty_advisor
)

__all__ = [
    'DifficultyLevel', 'DifficultyParseResult', 'WordPerformanceRecord', 'VocabularyClassification',
    'SelectionContext', 'SessionSummary', 'ExerciseOutcome', 'DifficultyAnalysis',
    'StartingDifficulty', 'EvaluationResult', 'parse_difficulty', 'sanitize_difficulty',
    'DifficultyAdvisor', 'Storage',
    'normalize_text', 'levenshtein_distance', 'similarity',
    'EvaluationMode', 'evaluate_answer', 'evaluate_multiple_choice',
    'evaluate_vocabulary_marking', 'compare_tokens',
    'classify_vocabulary', 'get_struggling_words', 'get_words_for_review', 'get_mastered_words',
    'calculate_vocabulary_growth', 'recommend_record_update',
    'WordSelector', 'WordSelectionConfig', 'WordSelectionResult',
    'select_next_word', 'select_vocabulary_aware_words', 'get_optimal_config', 'build_selection_context',
    'PerformanceHistory', 'PerformanceMetrics',
    'recommend_starting_difficulty', 'evaluate_mid_session', 'analyze_performance',
    'compute_performance_metrics', 'log_difficulty_adjustment',
    'BasicDifficultyAdvisor', 'EnhancedDifficultyAdvisor', 'get_difficulty_advisor'
]
