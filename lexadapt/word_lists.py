"""Static frequency-tiered word lists used as new-word fallback."""

from .models import DifficultyLevel

# Most frequent words per language, split by difficulty
FREQUENCY_WORDS = {
    'german': {
        'beginner': ['der', 'die', 'das', 'und', 'ich', 'bin', 'haben', 'sein', 'gehen', 'gut',
                     'neu', 'groß', 'klein', 'Zeit', 'Jahr', 'Tag', 'Haus', 'Mann', 'Frau', 'Kind'],
        'intermediate': ['jedoch', 'während', 'dadurch', 'trotzdem', 'beispielsweise', 'möglich',
                         'wichtig', 'schwierig', 'einfach', 'bekannt', 'verschieden', 'besonders',
                         'natürlich', 'wahrscheinlich', 'eigentlich'],
        'advanced': ['nichtsdestotrotz', 'diesbezüglich', 'hinsichtlich', 'entsprechend',
                     'ausschließlich', 'gegebenenfalls', 'möglicherweise', 'ausnahmsweise',
                     'selbstverständlich', 'unverzüglich']
    },
    'english': {
        'beginner': ['the', 'be', 'to', 'of', 'and', 'a', 'in', 'that', 'have', 'it',
                     'for', 'not', 'on', 'with', 'he', 'as', 'you', 'do', 'at', 'this'],
        'intermediate': ['however', 'therefore', 'although', 'because', 'through', 'during',
                         'without', 'between', 'among', 'within', 'toward', 'upon', 'beneath',
                         'beyond', 'throughout'],
        'advanced': ['nevertheless', 'consequently', 'furthermore', 'moreover', 'notwithstanding',
                     'inadvertently', 'substantiate', 'corroborate', 'exemplify', 'elucidate']
    },
    'spanish': {
        'beginner': ['el', 'de', 'que', 'y', 'a', 'en', 'un', 'ser', 'se', 'no',
                     'te', 'lo', 'le', 'da', 'su', 'por', 'son', 'con', 'para', 'al'],
        'intermediate': ['aunque', 'mientras', 'durante', 'través', 'además', 'entonces', 'después',
                         'antes', 'siempre', 'nunca', 'todavía', 'también', 'solamente',
                         'especialmente'],
        'advanced': ['consecuentemente', 'principalmente', 'generalmente', 'particularmente',
                     'específicamente', 'constantemente', 'frecuentemente', 'simultáneamente',
                     'excepcionalmente']
    },
    'french': {
        'beginner': ['le', 'de', 'et', 'à', 'un', 'il', 'être', 'en', 'avoir', 'que',
                     'pour', 'dans', 'ce', 'son', 'une', 'sur', 'avec', 'ne', 'se', 'pas'],
        'intermediate': ['cependant', 'néanmoins', 'toutefois', 'pourtant', 'alors', 'ensuite',
                         'puis', 'maintenant', 'toujours', 'jamais', 'souvent', 'parfois',
                         'quelquefois'],
        'advanced': ['conséquemment', 'particulièrement', 'spécifiquement', 'généralement',
                     'habituellement', 'exceptionnellement', 'simultanément', 'consécutivement']
    }
}

# Always-available words when everything else is exhausted
EMERGENCY_WORDS = {
    'german': ['der', 'die', 'das', 'ich', 'und'],
    'english': ['the', 'a', 'an', 'this', 'that'],
    'spanish': ['el', 'la', 'un', 'una', 'y'],
    'french': ['le', 'la', 'un', 'une', 'et']
}

LANGUAGE_ALIASES = {
    'de': 'german', 'deutsch': 'german',
    'en': 'english',
    'es': 'spanish', 'español': 'spanish',
    'fr': 'french', 'français': 'french',
}

# Difficulty -> frequency tier it draws from
DIFFICULTY_TIERS = {
    DifficultyLevel.BEGINNER: 'top1k',
    DifficultyLevel.INTERMEDIATE: 'top3k',
    DifficultyLevel.ADVANCED: 'top5k',
}


def resolve_language(language: str) -> str:
    """Map language codes and native names onto table keys."""
    key = (language or '').strip().lower()
    return LANGUAGE_ALIASES.get(key, key)


def is_supported_language(language: str) -> bool:
    return resolve_language(language) in FREQUENCY_WORDS


def get_frequency_tiers(language: str) -> dict[str, list[str]]:
    """Build the cumulative top1k/top3k/top5k/top10k tiers for a language.

    Returns an empty dict for unsupported languages.
    """
    pools = FREQUENCY_WORDS.get(resolve_language(language))
    if not pools:
        return {}
    beginner = pools['beginner']
    intermediate = pools['intermediate']
    advanced = pools['advanced']
    return {
        'top1k': list(beginner),
        'top3k': (beginner + intermediate)[:50],
        'top5k': (beginner + intermediate + advanced[:10])[:80],
        'top10k': (beginner + intermediate + advanced)[:100]
    }


def get_fallback_words(language: str) -> dict[DifficultyLevel, list[str]]:
    """Frequency-tiered fallback list keyed by difficulty."""
    tiers = get_frequency_tiers(language)
    if not tiers:
        return {}
    return {level: tiers[tier] for level, tier in DIFFICULTY_TIERS.items()}


def get_emergency_words(language: str) -> list[str]:
    """Emergency words for a language; English for unsupported languages."""
    return list(EMERGENCY_WORDS.get(resolve_language(language), EMERGENCY_WORDS['english']))
