"""
Visual / cognitive similarity between an original domain and a variant.

Scores are in [0, 1] and compare the first labels only ("example" in
"example.com"), since a TLD swap on its own looks identical to a reader.
"""

from dataclasses import dataclass

# Character pairs that are easy to mistake for each other
HOMOGLYPHS = (
    ("a", "α"), ("o", "0"), ("i", "1"), ("l", "1"), ("e", "3"),
    ("s", "$"), ("g", "9"), ("b", "6"), ("z", "2"), ("s", "5"),
    ("o", "ο"), ("a", "а"), ("p", "р"), ("c", "с"), ("e", "е"),
    ("x", "х"), ("y", "у"), ("k", "κ"), ("n", "η"), ("m", "μ"),
)

# Known word-level confusions (misspellings, regional spelling, expansions)
COGNITIVE_PAIRS = (
    ("amazon", "amazom"),
    ("google", "gogle"),
    ("microsoft", "mircosoft"),
    ("facebook", "facbook"),
    ("paypal", "payball"),
    ("secure", "secur"),
    ("support", "suport"),
    ("service", "servic"),
    ("account", "acount"),
    ("login", "loginn"),
    ("portal", "portall"),
    ("center", "centre"),
    ("corp", "corporate"),
    ("inc", "incorporated"),
    ("tech", "technology"),
)

SOUNDEX_CODES = {
    **dict.fromkeys("bfpv", "1"),
    **dict.fromkeys("cgjkqsxz", "2"),
    **dict.fromkeys("dt", "3"),
    "l": "4",
    **dict.fromkeys("mn", "5"),
    "r": "6",
}

VISUAL_TRANSFORMATIONS = {"1337speak", "bitsquatting"}
COGNITIVE_TRANSFORMATIONS = {"word-swap", "combosquatting"}


@dataclass(frozen=True)
class SimilarityScore:
    domain: str
    visual_score: float
    cognitive_score: float
    combined_score: float


def levenshtein_distance(s1: str, s2: str) -> int:
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def _edit_similarity(s1: str, s2: str) -> float:
    max_len = max(len(s1), len(s2))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(s1, s2) / max_len


def homoglyph_similarity(s1: str, s2: str) -> float:
    """Share of aligned positions that are equal or a known homoglyph pair."""
    if len(s1) != len(s2) or not s1:
        return 0.0

    matches = 0
    for c1, c2 in zip(s1, s2):
        if c1 == c2 or (c1, c2) in HOMOGLYPHS or (c2, c1) in HOMOGLYPHS:
            matches += 1
    return matches / len(s1)


def visual_similarity(original: str, variant: str) -> float:
    if not original and not variant:
        return 1.0
    score = _edit_similarity(original, variant) * 0.7 + homoglyph_similarity(original, variant) * 0.3
    return min(max(score, 0.0), 1.0)


def simple_soundex(s: str) -> str:
    """Consonant-class code, collapsing runs of the same class."""
    result = []
    previous = None
    for c in s.lower():
        code = SOUNDEX_CODES.get(c)
        if code is None:
            previous = None
        elif code != previous:
            result.append(code)
            previous = code
    return "".join(result)


def phonetic_similarity(s1: str, s2: str) -> float:
    return _edit_similarity(simple_soundex(s1), simple_soundex(s2))


def semantic_similarity(original: str, variant: str) -> float:
    for word1, word2 in COGNITIVE_PAIRS:
        if (word1 in original and word2 in variant) or (word2 in original and word1 in variant):
            return 0.8
    return _edit_similarity(original, variant)


def cognitive_similarity(original: str, variant: str) -> float:
    max_len = max(len(original), len(variant))
    length_similarity = 1.0 - abs(len(original) - len(variant)) / max_len if max_len else 1.0

    score = (
        phonetic_similarity(original, variant) * 0.4
        + semantic_similarity(original, variant) * 0.3
        + length_similarity * 0.3
    )
    return min(max(score, 0.0), 1.0)


def calculate_similarity(original: str, variant: str, transformation: str = "") -> SimilarityScore:
    """
    Score how confusable `variant` is with `original`.

    Args:
        original: The domain being protected, e.g. "example.com"
        variant: A generated candidate, e.g. "examp1e.com"
        transformation: Tag of the generator; shifts the visual/cognitive weighting
    """
    original_label = original.split(".", 1)[0].lower()
    variant_label = variant.split(".", 1)[0].lower()

    visual = visual_similarity(original_label, variant_label)
    cognitive = cognitive_similarity(original_label, variant_label)

    if transformation in VISUAL_TRANSFORMATIONS:
        combined = visual * 0.8 + cognitive * 0.2
    elif transformation in COGNITIVE_TRANSFORMATIONS:
        combined = cognitive * 0.8 + visual * 0.2
    else:
        combined = visual * 0.5 + cognitive * 0.5

    return SimilarityScore(
        domain=variant,
        visual_score=visual,
        cognitive_score=cognitive,
        combined_score=combined,
    )
