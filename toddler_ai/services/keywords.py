import string

FALLBACK_KEYWORDS = "learning education"
MAX_KEYWORDS = 4

# Question words, articles, auxiliaries and the pronouns children lead with.
STOP_WORDS = frozenset(
    {
        "what", "whats", "who", "whom", "whose", "which", "how", "why", "where",
        "when", "a", "an", "the", "is", "are", "was", "were", "be", "been",
        "being", "am", "do", "does", "did", "done", "can", "could", "will",
        "would", "shall", "should", "may", "might", "must", "has", "have",
        "had", "not", "and", "but", "for", "with", "you", "your", "they",
        "them", "their", "there", "this", "that", "these", "those", "its",
        "our", "she", "him", "her", "his", "from", "into", "about", "tell",
        "please",
    }
)

_PUNCTUATION = str.maketrans("", "", string.punctuation + "’‘“”")


def extract_keywords(question: str) -> str:
    """Turn a question into a short image-search phrase.

    Heuristic only: no stemming, no part-of-speech tagging. Always returns a
    non-empty string of at most four words.
    """
    words = question.lower().translate(_PUNCTUATION).split()
    keywords = [
        w for w in words
        if len(w) > 2 and w not in STOP_WORDS and not w.isdigit()
    ]
    return " ".join(keywords[:MAX_KEYWORDS]) or FALLBACK_KEYWORDS
