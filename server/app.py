"""FastAPI server for lexadapt."""

import logging
import os
import uuid
from datetime import datetime
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

from lexadapt.config import (
    DEFAULT_LANGUAGE, DEFAULT_ANSWER_THRESHOLD, RECENT_WORDS_LIMIT,
    SESSION_WORD_LIMIT, HISTORY_SESSION_LIMIT
)
from lexadapt.models import SessionSummary, sanitize_difficulty
from lexadapt.evaluation import (
    EvaluationMode, evaluate_answer, evaluate_multiple_choice,
    evaluate_vocabulary_marking, compare_tokens
)
from lexadapt.classifier import (
    classify_vocabulary, get_struggling_words, get_words_for_review, recommend_record_update
)
from lexadapt.selection import (
    WordSelector, WordSelectionConfig, build_selection_context, get_optimal_config
)
from lexadapt.difficulty import (
    PerformanceHistory, recommend_starting_difficulty, evaluate_mid_session,
    get_difficulty_advisor, log_difficulty_adjustment
)

from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage


# Pydantic models for API
class EvaluateRequest(BaseModel):
    user_answer: str = ""
    correct_answers: list[str] | str
    mode: str = EvaluationMode.CLOZE.value
    threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class TokenComparisonRequest(BaseModel):
    original: str
    user_text: str = ""


class VocabularyMarkingRequest(BaseModel):
    selected_words: list[str] = []
    target_words: list[str] = []
    allow_partial: bool = True


class MultipleChoiceRequest(BaseModel):
    user_answer: str = ""
    correct_answers: list[str] | str


class NextWordRequest(BaseModel):
    user_id: str = "default"
    language: Optional[str] = None
    difficulty: Any = None  # Loosely typed; sanitized on entry
    session_id: Optional[str] = None


class SelectWordsRequest(NextWordRequest):
    word_count: int = Field(default=1, ge=1, le=50)
    preference: Optional[str] = None  # conservative / balanced / aggressive


class ObserveRequest(BaseModel):
    user_id: str = "default"
    language: Optional[str] = None
    word: str
    is_correct: bool


class MidSessionRequest(BaseModel):
    user_id: str = "default"
    language: Optional[str] = None
    exercises: list[bool | dict] = []
    current_level: Any = None


class SessionRequest(BaseModel):
    user_id: str = "default"
    language: Optional[str] = None
    difficulty_level: Any = None
    total_exercises: int = Field(ge=0)
    correct_exercises: int = Field(ge=0)
    session_id: Optional[str] = None


# Global state (in production, use proper DI)
storage = None
app_config: dict = {}

# Session cooldown: session_id -> words used in that session, oldest first
session_words: dict[str, list[str]] = {}


def get_language(language: str | None) -> str:
    return (language or app_config.get('default_language') or DEFAULT_LANGUAGE).strip().lower()


def get_session_id(session_id: str | None) -> str:
    """Return the given session id, or start a new session."""
    if session_id:
        return session_id
    session_id = str(uuid.uuid4())[:8]
    session_words[session_id] = []
    return session_id


def remember_word(session_id: str, user_id: str, language: str, word: str) -> None:
    """Put a committed word on session and cross-session cooldown."""
    words = [w for w in session_words.get(session_id, []) if w.lower() != word.lower()]
    words.append(word)
    session_words[session_id] = words[-SESSION_WORD_LIMIT:]
    storage.add_recent_word(user_id, language, word)


def selection_context(user_id: str, language: str, difficulty, session_id: str, count: int = 1):
    records = storage.get_word_records(user_id, language)
    recent_limit = app_config.get('recent_words_limit', RECENT_WORDS_LIMIT)
    return records, build_selection_context(
        records,
        language=language,
        difficulty=difficulty,
        session_words=set(session_words.get(session_id, [])),
        recent_words=set(storage.get_recent_words(user_id, language, recent_limit)),
        count=count
    )


def parse_mode(mode: str) -> EvaluationMode:
    """Strict mode parsing for the HTTP surface."""
    for candidate in EvaluationMode:
        if candidate.value == (mode or '').strip().lower().replace('-', '_'):
            return candidate
    raise HTTPException(status_code=400, detail=f"Unknown evaluation mode: {mode}")


app = FastAPI(title="lexadapt API", description="Adaptive vocabulary practice API")


@app.on_event("startup")
async def startup():
    """Initialize storage and runtime configuration on startup."""
    global storage, app_config

    logging.basicConfig(level=logging.INFO)

    # File storage by default, set LEXADAPT_STORAGE=postgres to use PostgreSQL
    storage_type = os.environ.get('LEXADAPT_STORAGE', 'file')
    if storage_type == 'postgres':
        storage = PostgresStorage()
        logger.info("Using PostgreSQL storage")
    else:
        storage = FileStorage()
        logger.info("Using file storage")

    try:
        app_config = storage.load_config()
    except FileNotFoundError:
        logger.info("No config file found, using defaults")
        app_config = {}


@app.get("/")
async def root():
    """Health check."""
    return {"status": "ok", "service": "lexadapt"}


# Answer evaluation endpoints
@app.post("/api/evaluate")
async def evaluate(request: EvaluateRequest):
    mode = parse_mode(request.mode)
    threshold = request.threshold
    if threshold is None:
        threshold = app_config.get('answer_threshold', DEFAULT_ANSWER_THRESHOLD)
    result = evaluate_answer(request.user_answer, request.correct_answers, mode, threshold)
    return result.to_dict()


@app.post("/api/evaluate/tokens")
async def evaluate_tokens(request: TokenComparisonRequest):
    return compare_tokens(request.original, request.user_text).to_dict()


@app.post("/api/evaluate/vocabulary")
async def evaluate_vocabulary(request: VocabularyMarkingRequest):
    result = evaluate_vocabulary_marking(request.selected_words, request.target_words, request.allow_partial)
    return result.to_dict()


@app.post("/api/evaluate/multiple-choice")
async def evaluate_choice(request: MultipleChoiceRequest):
    return evaluate_multiple_choice(request.user_answer, request.correct_answers).to_dict()


# Word selection endpoints
@app.post("/api/words/next")
async def next_word(request: NextWordRequest):
    """Pick the next target word and put it on cooldown."""
    language = get_language(request.language)
    difficulty = sanitize_difficulty(request.difficulty)
    session_id = get_session_id(request.session_id)

    _, context = selection_context(request.user_id, language, difficulty, session_id)
    word = WordSelector().select_next_word(context)
    remember_word(session_id, request.user_id, language, word)

    return {
        "word": word,
        "session_id": session_id,
        "language": language,
        "difficulty": difficulty.value
    }


@app.post("/api/words/select")
async def select_words(request: SelectWordsRequest):
    """Vocabulary-aware multi-word selection."""
    language = get_language(request.language)
    difficulty = sanitize_difficulty(request.difficulty)
    session_id = get_session_id(request.session_id)

    records, context = selection_context(request.user_id, language, difficulty, session_id,
                                         count=request.word_count)
    if request.preference:
        stats = classify_vocabulary(records)
        config = get_optimal_config(stats.total_words_encountered, stats.struggling_words, request.preference)
    else:
        config = WordSelectionConfig()

    result = WordSelector().select_vocabulary_aware_words(context, request.word_count, config)
    for word in result.selected_words:
        remember_word(session_id, request.user_id, language, word)

    response = result.to_dict()
    response.update({"session_id": session_id, "config": config.to_dict()})
    return response


@app.post("/api/words/observe")
async def observe_word(request: ObserveRequest):
    """Record one answered exercise for a word."""
    word = request.word.strip()
    if not word:
        raise HTTPException(status_code=400, detail="Word must not be empty")
    language = get_language(request.language)

    existing = {r.key: r for r in storage.get_word_records(request.user_id, language)}
    record = recommend_record_update(existing.get(word.lower()), word, request.is_correct)
    storage.save_word_record(request.user_id, language, record)
    logger.info(f"Observed {word} for {request.user_id}: correct={request.is_correct}, "
                f"mastery={record.mastery_level}")
    return record.to_dict()


@app.get("/api/vocabulary/stats")
async def vocabulary_stats(user_id: str = "default", language: Optional[str] = None):
    language = get_language(language)
    records = storage.get_word_records(user_id, language)
    return {
        "language": language,
        "stats": classify_vocabulary(records).to_dict(),
        "struggling_words": get_struggling_words(records),
        "words_for_review": get_words_for_review(records)
    }


# Difficulty endpoints
@app.get("/api/difficulty/start")
async def starting_difficulty(user_id: str = "default", language: Optional[str] = None):
    language = get_language(language)
    sessions = storage.get_recent_sessions(user_id, language, HISTORY_SESSION_LIMIT)
    struggling = classify_vocabulary(storage.get_word_records(user_id, language)).struggling_words
    recommendation = recommend_starting_difficulty(
        PerformanceHistory(sessions=sessions, struggling_words_count=struggling)
    )
    return recommendation.to_dict()


@app.get("/api/difficulty/analysis")
async def difficulty_analysis(user_id: str = "default", language: Optional[str] = None,
                              current_level: Optional[str] = None, advisor: str = "basic"):
    try:
        difficulty_advisor = get_difficulty_advisor(advisor)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    language = get_language(language)
    sessions = storage.get_recent_sessions(user_id, language, HISTORY_SESSION_LIMIT)
    struggling = classify_vocabulary(storage.get_word_records(user_id, language)).struggling_words
    analysis = difficulty_advisor.recommend(sessions, sanitize_difficulty(current_level), struggling)
    return analysis.to_dict()


@app.post("/api/difficulty/mid-session")
async def mid_session(request: MidSessionRequest):
    current_level = sanitize_difficulty(request.current_level)
    analysis = evaluate_mid_session(request.exercises, current_level)
    if analysis is None:
        return {"adjustment": None}
    log_difficulty_adjustment(request.user_id, get_language(request.language),
                              analysis.current_level, analysis.suggested_level,
                              '; '.join(analysis.reasons))
    return {"adjustment": analysis.to_dict()}


@app.post("/api/sessions")
async def save_session(request: SessionRequest):
    """Store a finished session summary and end its cooldown."""
    if request.correct_exercises > request.total_exercises:
        raise HTTPException(status_code=400, detail="correct_exercises cannot exceed total_exercises")
    language = get_language(request.language)
    summary = SessionSummary(
        difficulty_level=sanitize_difficulty(request.difficulty_level),
        total_exercises=request.total_exercises,
        correct_exercises=request.correct_exercises,
        created_at=datetime.now()
    )
    storage.save_session(request.user_id, language, summary)
    if request.session_id:
        session_words.pop(request.session_id, None)
    logger.info(f"Session saved for {request.user_id} ({language}): "
                f"{summary.correct_exercises}/{summary.total_exercises} at {summary.difficulty_level}")
    return {"success": True, "session": summary.to_dict()}
