"""Prompt moderation against a fixed denylist."""

MODERATION_KEYWORDS: tuple[str, ...] = (
    "nsfw",
    "nude",
    "explicit",
    "porn",
    "sex",
    "adult",
    "xxx",
    "violence",
    "gore",
    "blood",
    "death",
    "kill",
    "murder",
    "terrorist",
    "hate",
    "racist",
    "discrimination",
    "offensive",
)


def find_blocked_term(prompt: str, keywords: tuple[str, ...] = MODERATION_KEYWORDS) -> str | None:
    """Return the first denylisted term contained in the prompt, if any.

    Matching is a case-insensitive substring test, so "Skilled" matches "kill".
    """
    lowered = prompt.lower()
    for keyword in keywords:
        if keyword in lowered:
            return keyword
    return None


def should_moderate(prompt: str) -> bool:
    return find_blocked_term(prompt) is not None
