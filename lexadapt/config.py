"""Configuration constants for lexadapt."""

DEFAULT_LANGUAGE = 'german'

# Answer evaluation
DEFAULT_ANSWER_THRESHOLD = 0.7   # Fraction of 100 an answer needs to count as correct
ALMOST_TOKEN_SIMILARITY = 0.8    # Token similarity that earns half credit
ALMOST_TOKEN_MAX_EDITS = 1       # A single typo also earns half credit...
ALMOST_TOKEN_MIN_LENGTH = 3      # ...in tokens at least this long
CATEGORY_THRESHOLDS = [          # (minimum accuracy, category), highest first
    (95, 'perfect'),
    (85, 'excellent'),
    (70, 'good'),
    (50, 'fair'),
]
VOCAB_MARKING_PASS_ACCURACY = 60  # Partial-credit pass mark for word marking
VOCAB_MARKING_EXTRA_PENALTY = 10  # Accuracy points lost per extra selection

# Vocabulary classification
PASSIVE_MASTERY_LEVEL = 2         # Recognized words
ACTIVE_MASTERY_LEVEL = 4          # Actively usable words...
ACTIVE_MIN_ACCURACY = 0.8         # ...with good accuracy
STRUGGLING_MIN_REVIEWS = 3        # Attempts needed before a word can be struggling
STRUGGLING_MAX_ACCURACY = 0.6     # Accuracy below this is struggling
MASTERED_MIN_CORRECT = 5
MASTERED_MIN_ACCURACY = 0.8
MAX_MASTERY_LEVEL = 10

# Word selection
STRUGGLING_STAGE_PROBABILITY = 0.3  # 30% chance to reinforce a struggling word
REVIEW_STAGE_PROBABILITY = 0.4      # 40% chance to resurface a due word
CONTEXT_STRUGGLING_LIMIT = 3        # Struggling candidates per context
CONTEXT_REVIEW_LIMIT = 5            # Review candidates per context
STRUGGLING_SHARE = 0.1              # Share of multi-word slots for struggling words
MASTERED_SHARE = 0.1                # Share of multi-word slots for mastered words
RECENT_WORDS_LIMIT = 20             # Cross-session short-term memory size
SESSION_WORD_LIMIT = 15             # Words remembered per session

# Difficulty adaptation
NEW_USER_SESSION_THRESHOLD = 5      # Sessions needed to be considered experienced
WEIGHTED_SESSION_WINDOW = 5         # Sessions in the recency-weighted average
SESSION_RECENCY_DECAY = 0.8         # Weight of session i is DECAY ** i
HISTORY_SESSION_LIMIT = 20          # Sessions fetched for a start recommendation
START_HIGH_ACCURACY = 85
START_LOW_ACCURACY = 60
START_HIGH_CONFIDENCE = 0.8
START_LOW_CONFIDENCE = 0.7
START_STEADY_CONFIDENCE = 0.6
NEW_USER_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.5
STRUGGLING_WORDS_STEP_DOWN = 10     # More struggling words than this lowers the level
STRUGGLING_CONFIDENCE_BONUS = 0.1

MID_SESSION_MIN_EXERCISES = 3       # No opinion below this
MID_SESSION_WINDOW = 5              # Most recent exercises considered
MID_SESSION_MIN_WINDOW = 4          # Exercises needed before adjusting
MID_SESSION_HIGH_ACCURACY = 90
MID_SESSION_LOW_ACCURACY = 40
MID_SESSION_UP_CONFIDENCE = 0.7
MID_SESSION_DOWN_CONFIDENCE = 0.8

ADJUSTMENT_THRESHOLD = 0.15         # Accumulated confidence needed to adjust
ANALYSIS_HIGH_ACCURACY = 85
ANALYSIS_LOW_ACCURACY = 60
ANALYSIS_UP_CONFIDENCE = 0.3
ANALYSIS_DOWN_CONFIDENCE = 0.4
ANALYSIS_STREAK_LENGTH = 5
ANALYSIS_STREAK_CONFIDENCE = 0.2
ANALYSIS_SESSION_LIMIT = 10         # Sessions in the recent-accuracy metric
STREAK_SESSION_ACCURACY = 70        # Session accuracy that extends a streak
