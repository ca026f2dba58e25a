"""English post-processing modifiers.

Article and regular plural forms come from Tracery's ``base_english``
modifier set; this module adds the context around them (which words need
fixing) and the irregular cases Tracery does not cover.
"""

import re

from tracery.modifiers import base_english

from modifiers import Modifier, ModifierContext

POSSESSIVE_MARKER = "POSSESSIVE"

_ARTICLE = re.compile(r"\b([aA])(\s+)([aeiouAEIOU]\w*)")

_PUNCT_SPACING = re.compile(r"\s[,.!?;:]|\s{2,}")
_MULTI_SPACE = re.compile(r"\s{2,}")
_SPACE_BEFORE_PUNCT = re.compile(r"\s([,.!?;:])")
_MISSING_SPACE_AFTER = re.compile(r"([.!?])([A-Z])")

_ORDINAL = re.compile(r"\b(\d+)\b")

_SENTENCE_START = re.compile(r"([.!?]\s+)([a-z])")

_WORD_CHAR = re.compile(r"\w")

_SINGULAR_WITH_ARE = re.compile(r"\b(he|she|it|\w+(?:ing|ed))\s+are\b", re.IGNORECASE)
_PLURAL_WITH_IS = re.compile(r"\b(they|we|you|\w+s)\s+is\b", re.IGNORECASE)
_FIX_ARE = re.compile(r"\b(he|she|it)\s+are\b", re.IGNORECASE)
_FIX_IS = re.compile(r"\b(they|we|you)\s+is\b", re.IGNORECASE)

_QUANTIFIERS = (
    r"many|several|multiple|some|few|all|both|various|numerous|zero|no|"
    r"two|three|four|five|six|seven|eight|nine|ten|eleven|twelve|thirteen|"
    r"fourteen|fifteen|sixteen|seventeen|eighteen|nineteen|twenty|"
    r"\d+"
)
_QUANTIFIED_NOUN = re.compile(rf"\b({_QUANTIFIERS})\s+([a-zA-Z]+)\b", re.IGNORECASE)

IRREGULAR_PLURALS = {
    "addendum": "addenda", "aircraft": "aircraft", "alumna": "alumnae",
    "alumnus": "alumni", "analysis": "analyses", "antenna": "antennae",
    "antithesis": "antitheses", "apex": "apices", "appendix": "appendices",
    "axis": "axes", "bacillus": "bacilli", "bacterium": "bacteria",
    "basis": "bases", "beau": "beaux", "bison": "bison", "bureau": "bureaux",
    "cactus": "cacti", "child": "children", "codex": "codices",
    "concerto": "concerti", "corpus": "corpora", "crisis": "crises",
    "criterion": "criteria", "curriculum": "curricula", "datum": "data",
    "deer": "deer", "diagnosis": "diagnoses", "die": "dice", "dwarf": "dwarves",
    "ellipsis": "ellipses", "erratum": "errata", "fez": "fezzes", "fish": "fish",
    "focus": "foci", "foot": "feet", "formula": "formulae", "fungus": "fungi",
    "genus": "genera", "goose": "geese", "graffito": "graffiti",
    "grouse": "grouse", "half": "halves", "hoof": "hooves",
    "hypothesis": "hypotheses", "index": "indices", "larva": "larvae",
    "libretto": "libretti", "loaf": "loaves", "locus": "loci", "louse": "lice",
    "man": "men", "matrix": "matrices", "medium": "media",
    "memorandum": "memoranda", "minutia": "minutiae", "moose": "moose",
    "mouse": "mice", "nebula": "nebulae", "nucleus": "nuclei", "oasis": "oases",
    "offspring": "offspring", "opus": "opera", "ovum": "ova", "ox": "oxen",
    "parenthesis": "parentheses", "person": "people",
    "phenomenon": "phenomena", "phylum": "phyla", "quiz": "quizzes",
    "radius": "radii", "referendum": "referenda", "salmon": "salmon",
    "scarf": "scarves", "self": "selves", "series": "series", "sheep": "sheep",
    "shrimp": "shrimp", "species": "species", "stimulus": "stimuli",
    "stratum": "strata", "swine": "swine", "syllabus": "syllabi",
    "symposium": "symposia", "synopsis": "synopses", "tableau": "tableaux",
    "thesis": "theses", "thief": "thieves", "tooth": "teeth", "trout": "trout",
    "tuna": "tuna", "vertebra": "vertebrae", "vertex": "vertices",
    "vita": "vitae", "vortex": "vortices", "wharf": "wharves", "wife": "wives",
    "wolf": "wolves", "woman": "women",
}

_F_EXCEPTIONS = {"belief", "chief", "cliff", "proof", "roof", "safe", "chef", "handkerchief"}
_O_EXCEPTIONS = {
    "photo", "piano", "halo", "disco", "studio", "radio", "video", "auto", "memo",
    "pro", "casino", "patio", "portfolio", "logo", "commando", "solo", "soprano",
    "alto", "kimono",
}
# Words a quantifier is commonly followed by that are not nouns
_NOT_NOUNS = {
    "the", "a", "an", "of", "and", "or", "my", "your", "his", "her", "its",
    "our", "their", "these", "those", "this", "that", "more", "other", "such",
    "less", "longer", "one", "is", "are", "was", "were",
}
_IRREGULAR_FORMS = set(IRREGULAR_PLURALS.values())


def _match_case(original: str, word: str) -> str:
    if original.isupper() and len(original) > 1:
        return word.upper()
    if original[0].isupper():
        return word[0].upper() + word[1:]
    return word


def pluralize(noun: str) -> str:
    """Plural form of a singular English noun."""
    lower = noun.lower()
    if len(lower) < 2:
        return noun + "s"
    if lower in IRREGULAR_PLURALS:
        return _match_case(noun, IRREGULAR_PLURALS[lower])

    if lower.endswith("z"):
        return noun + "es"
    if lower.endswith("h") and not lower.endswith(("sh", "ch")):
        return noun + "s"
    if re.search(r"fe?$", lower):
        if lower in _F_EXCEPTIONS or lower.endswith("ff"):
            return noun + "s"
        return re.sub(r"fe?$", "ves", noun, flags=re.IGNORECASE)
    if re.search(r"[^aeiou]o$", lower) and lower not in _O_EXCEPTIONS:
        return noun + "es"
    return base_english["s"](noun)


def _looks_plural(noun: str) -> bool:
    lower = noun.lower()
    if lower in IRREGULAR_PLURALS:
        return False
    if lower in _IRREGULAR_FORMS:
        return True
    return lower.endswith("s") and not lower.endswith(("ss", "us", "is"))


def ordinal(number: str) -> str:
    value = int(number)
    if value % 100 in (11, 12, 13):
        return number + "th"
    return number + {1: "st", 2: "nd", 3: "rd"}.get(value % 10, "th")


def _fix_article(match: re.Match) -> str:
    article, space, word = match.groups()
    fixed = base_english["a"](word).split(" ", 1)[0]
    if article.isupper():
        fixed = fixed.capitalize()
    return f"{fixed}{space}{word}"


def _article_transform(text: str, context: ModifierContext) -> str:
    return _ARTICLE.sub(_fix_article, text)


def _punctuation_transform(text: str, context: ModifierContext) -> str:
    text = _MULTI_SPACE.sub(" ", text)
    text = _SPACE_BEFORE_PUNCT.sub(r"\1", text)
    return _MISSING_SPACE_AFTER.sub(r"\1 \2", text)


def _ordinal_transform(text: str, context: ModifierContext) -> str:
    return _ORDINAL.sub(lambda m: ordinal(m.group(1)), text)


def _capitalization_transform(text: str, context: ModifierContext) -> str:
    return _SENTENCE_START.sub(lambda m: m.group(1) + m.group(2).upper(), text)


def _possessive_transform(text: str, context: ModifierContext) -> str:
    parts = text.split(POSSESSIVE_MARKER)
    result = []
    for part in parts[:-1]:
        start = len(part)
        while start > 0 and _WORD_CHAR.match(part[start - 1]):
            start -= 1
        word = part[start:]
        if word:
            word += "'" if word.endswith("s") else "'s"
        result.append(part[:start] + word)
    result.append(parts[-1])
    return "".join(result)


def _verb_agreement_condition(text: str, context: ModifierContext) -> bool:
    return bool(_SINGULAR_WITH_ARE.search(text) or _PLURAL_WITH_IS.search(text))


def _verb_agreement_transform(text: str, context: ModifierContext) -> str:
    text = _FIX_ARE.sub(r"\1 is", text)
    return _FIX_IS.sub(r"\1 are", text)


def _pluralize_match(match: re.Match) -> str:
    quantifier, noun = match.groups()
    if quantifier.isdigit() and int(quantifier) == 1:
        return match.group(0)
    if noun.lower() in _NOT_NOUNS or _looks_plural(noun):
        return match.group(0)
    return f"{quantifier} {pluralize(noun)}"


def _pluralization_transform(text: str, context: ModifierContext) -> str:
    return _QUANTIFIED_NOUN.sub(_pluralize_match, text)


ARTICLE_MODIFIER = Modifier(
    name="englishArticles",
    condition=lambda text, context: bool(_ARTICLE.search(text)),
    transform=_article_transform,
    priority=10,
)

PUNCTUATION_CLEANUP_MODIFIER = Modifier(
    name="englishPunctuationCleanup",
    condition=lambda text, context: bool(_PUNCT_SPACING.search(text)),
    transform=_punctuation_transform,
    priority=9,
)

ORDINAL_MODIFIER = Modifier(
    name="englishOrdinals",
    condition=lambda text, context: bool(_ORDINAL.search(text)),
    transform=_ordinal_transform,
    priority=8,
)

CAPITALIZATION_MODIFIER = Modifier(
    name="englishCapitalization",
    condition=lambda text, context: bool(_SENTENCE_START.search(text)),
    transform=_capitalization_transform,
    priority=7,
)

POSSESSIVE_MODIFIER = Modifier(
    name="englishPossessive",
    condition=lambda text, context: POSSESSIVE_MARKER in text,
    transform=_possessive_transform,
    priority=6,
)

VERB_AGREEMENT_MODIFIER = Modifier(
    name="englishVerbAgreement",
    condition=_verb_agreement_condition,
    transform=_verb_agreement_transform,
    priority=5,
)

PLURALIZATION_MODIFIER = Modifier(
    name="englishPluralization",
    condition=lambda text, context: bool(_QUANTIFIED_NOUN.search(text)),
    transform=_pluralization_transform,
    priority=4,
)

ALL_ENGLISH_MODIFIERS = [
    ARTICLE_MODIFIER,
    PLURALIZATION_MODIFIER,
    ORDINAL_MODIFIER,
    CAPITALIZATION_MODIFIER,
    POSSESSIVE_MODIFIER,
    VERB_AGREEMENT_MODIFIER,
    PUNCTUATION_CLEANUP_MODIFIER,
]

# Ordinals rewrite every bare number, so they are opt-in
DEFAULT_ENGLISH_MODIFIERS = [m for m in ALL_ENGLISH_MODIFIERS if m is not ORDINAL_MODIFIER]
