"""Content moderation checks for user-submitted text.

Everything here is pure: no database, no I/O. Callers decide what to do with
the result (reject the upload, flag a duplicate, ...).
"""

import re

from resource_hub.services.errors import ValidationError, ValidationKind

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 500

# Titles above this similarity are treated as the same resource
DUPLICATE_THRESHOLD = 0.8

# Basic profanity denylist, matched as whole words
PROFANITY_LIST = frozenset(
    {
        "fuck",
        "shit",
        "bitch",
        "ass",
        "damn",
        "crap",
        "piss",
        "dick",
        "cock",
        "pussy",
        "asshole",
        "bastard",
        "slut",
        "whore",
    }
)

_PROFANITY_PATTERN = re.compile(
    r"\b(" + "|".join(re.escape(word) for word in sorted(PROFANITY_LIST)) + r")\b",
    re.IGNORECASE,
)

SPAM_PATTERNS = (
    re.compile(r"\b(viagra|cialis|pharmacy)\b", re.IGNORECASE),
    re.compile(r"\b(buy now|click here|limited time)\b", re.IGNORECASE),
    re.compile(r"\b(make money fast|work from home)\b", re.IGNORECASE),
)

# Each match stops where the next scheme begins, so joined links count separately
_URL_PATTERN = re.compile(r"https?://(?:(?!https?://)\S)+", re.IGNORECASE)
MAX_URLS = 5

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")


def contains_profanity(text: str) -> bool:
    """Check for a denylisted word appearing as a whole word."""
    return _PROFANITY_PATTERN.search(text) is not None


def is_spam(text: str) -> bool:
    """Check for known spam phrases or a block stuffed with links."""
    if any(pattern.search(text) for pattern in SPAM_PATTERNS):
        return True
    return len(_URL_PATTERN.findall(text)) >= MAX_URLS


def _validate_text(
    text: str | None, field: str, min_length: int, max_length: int
) -> None:
    stripped = (text or "").strip()
    if not stripped:
        raise ValidationError(ValidationKind.EMPTY, f"{field} is required")
    if len(stripped) < min_length:
        raise ValidationError(
            ValidationKind.TOO_SHORT, f"{field} must be at least {min_length} characters"
        )
    if len(stripped) > max_length:
        raise ValidationError(
            ValidationKind.TOO_LONG, f"{field} must be at most {max_length} characters"
        )
    if contains_profanity(stripped):
        raise ValidationError(ValidationKind.PROFANE, f"{field} contains inappropriate language")
    if is_spam(stripped):
        raise ValidationError(ValidationKind.SPAM, f"{field} appears to be spam")


def validate_title(text: str | None) -> None:
    """Validate a resource title, raising ValidationError on failure."""
    _validate_text(text, "Title", TITLE_MIN_LENGTH, TITLE_MAX_LENGTH)


def validate_description(text: str | None) -> None:
    """Validate a resource description, raising ValidationError on failure."""
    _validate_text(text, "Description", DESCRIPTION_MIN_LENGTH, DESCRIPTION_MAX_LENGTH)


def normalize_title(text: str) -> str:
    """Lowercase and strip everything except ASCII letters and digits."""
    return _NON_ALPHANUMERIC.sub("", text.lower())


def levenshtein_distance(a: str, b: str) -> int:
    """Compute the edit distance between two strings."""
    if len(a) < len(b):
        a, b = b, a

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Return how alike two titles are, from 0.0 (unrelated) to 1.0 (identical).

    Both strings are normalized first, so case, spacing and punctuation
    differences do not count.
    """
    left = normalize_title(a)
    right = normalize_title(b)
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(left, right)) / longest


def is_near_duplicate(a: str, b: str) -> bool:
    """Check if two titles are similar enough to be the same resource."""
    return similarity(a, b) > DUPLICATE_THRESHOLD


def find_similar_title(title: str, existing_titles: list[str]) -> str | None:
    """Return the first existing title that near-duplicates ``title``."""
    for existing in existing_titles:
        if is_near_duplicate(title, existing):
            return existing
    return None
