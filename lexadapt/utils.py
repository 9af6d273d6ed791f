"""Text normalization and similarity scoring for lexadapt."""

import re

SINGLE_QUOTES = '‘’‚‛′‵´'
DOUBLE_QUOTES = '“”„‟″‶'
DASHES = '–—―'

_QUOTE_TABLE = str.maketrans(
    {**{c: "'" for c in SINGLE_QUOTES},
     **{c: '"' for c in DOUBLE_QUOTES},
     **{c: '-' for c in DASHES}}
)


def normalize_text(text: str) -> str:
    """Lowercase, trim, collapse whitespace and fold quote/dash variants.

    Diacritics are kept: 'schon' and 'schön' are different words.
    """
    if not text:
        return ''
    text = text.translate(_QUOTE_TABLE).lower()
    return re.sub(r'\s+', ' ', text).strip()


def normalize_for_tokens(text: str) -> str:
    """Normalize text and drop punctuation entirely, for whole-sentence scoring."""
    text = normalize_text(text)
    # \w keeps letters with diacritics; apostrophes inside words go too
    text = re.sub(r'[^\w\s]', '', text)
    return re.sub(r'\s+', ' ', text).strip()


def tokenize(text: str) -> list[str]:
    """Split punctuation-free normalized text into tokens."""
    normalized = normalize_for_tokens(text)
    return normalized.split(' ') if normalized else []


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit cost for insertion, deletion and substitution."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Similarity in [0, 1]: 1 - distance / length of the longer string."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest
