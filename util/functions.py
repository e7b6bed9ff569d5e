# util/functions.py
def clip_words(text: str, max_words: int = 100) -> str:
    """
    - Trim 'text' to at most `max_words` tokens separated by whitespace.
    - Adds an ellipsis when trimming occurs.
    """
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + " …"


def clip_chars(text: str, max_chars: int) -> str:
    """Hard cap for prompt payloads; keeps the head of the file."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "\n…"


def escape_underscores(value: str) -> str:
    # "_" separates owner from repo in artifact names
    return value.replace("_", "ZzDasHzZ")
