import re

WORD_OVERLAP_THRESHOLD = 0.6
SIMILARITY_THRESHOLD = 0.7

_PARENS = re.compile(r'\(.*?\)')
_FEATURING = re.compile(r'\bfeat\.?\b.*$')
_PUNCTUATION = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')


def normalize(text: str) -> str:
    """Lowercase, drop "(Remix)"-style segments and "feat." credits, flatten punctuation."""
    text = text.lower()
    text = _PARENS.sub('', text)
    text = _FEATURING.sub('', text)
    text = _PUNCTUATION.sub(' ', text)
    text = _WHITESPACE.sub(' ', text)
    return text.strip()


def levenshtein(s1: str, s2: str) -> int:
    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def similarity(s1: str, s2: str) -> float:
    longest = max(len(s1), len(s2))
    if not longest:
        return 0.0
    return 1 - levenshtein(s1, s2) / longest


def matches(guess, actual, word_overlap: float = WORD_OVERLAP_THRESHOLD,
            min_similarity: float = SIMILARITY_THRESHOLD) -> bool:
    """Return True when ``guess`` is close enough to the song title ``actual``.

    Checks run cheapest first and stop at the first hit:
    exact match, containment either way, share of the title's distinct
    words present in the guess, then edit-distance similarity for typos.
    """
    if not guess or not actual:
        return False

    g = normalize(guess)
    a = normalize(actual)
    if not g or not a:
        return False

    if g == a:
        return True
    if g in a or a in g:
        return True

    actual_words = set(a.split(' '))
    guess_words = set(g.split(' '))
    common = actual_words & guess_words
    if actual_words and len(common) / len(actual_words) >= word_overlap:
        return True

    return similarity(g, a) >= min_similarity
