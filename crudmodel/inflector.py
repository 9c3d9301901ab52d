"""English noun singularization, used to infer foreign key names from table names."""

import re

_UNCOUNTABLE = frozenset((
    "data", "equipment", "information", "media", "metadata", "money",
    "news", "series", "sheep", "species", "fish", "deer", "rice",
))

_IRREGULAR = {
    "people": "person",
    "men": "man",
    "women": "woman",
    "children": "child",
    "teeth": "tooth",
    "feet": "foot",
    "mice": "mouse",
    "geese": "goose",
    "oxen": "ox",
}

# (pattern, replacement), first match wins
_RULES = (
    (re.compile(r"(quiz)zes$", re.I), r"\1"),
    (re.compile(r"(matr|vert|ind)ices$", re.I), r"\1ix"),
    (re.compile(r"(alias|status|bus|address)es$", re.I), r"\1"),
    (re.compile(r"^(cris|ax|test)es$", re.I), r"\1is"),
    (re.compile(r"(octop|vir)i$", re.I), r"\1us"),
    (re.compile(r"(m)ovies$", re.I), r"\1ovie"),
    (re.compile(r"([^aeiouy]|qu)ies$", re.I), r"\1y"),
    (re.compile(r"(x|ch|ss|sh|zz)es$", re.I), r"\1"),
    (re.compile(r"(hal|shel|wol|lea|loa|thie|sel|cal)ves$", re.I), r"\1f"),
    (re.compile(r"^(wi|kni|li)ves$", re.I), r"\1fe"),
    (re.compile(r"(shoe)s$", re.I), r"\1"),
    (re.compile(r"(her|potat|tomat|ech)oes$", re.I), r"\1o"),
    (re.compile(r"(analy|ba|diagno|parenthe|progno|synop|the)ses$", re.I), r"\1sis"),
    (re.compile(r"(ss|us|is)$", re.I), r"\1"),
    (re.compile(r"s$", re.I), ""),
)


def singular(word: str) -> str:
    """Return the singular form of an English noun.

    Only the last underscore-separated segment is inflected, so
    "order_items" becomes "order_item". Unknown or already singular words come
    back unchanged.
    """
    if not word:
        return word
    head, separator, tail = word.rpartition("_")
    lowered = tail.lower()
    if lowered in _UNCOUNTABLE:
        return word
    if lowered in _IRREGULAR:
        replacement = _IRREGULAR[lowered]
        if tail[:1].isupper():
            replacement = replacement.capitalize()
        return head + separator + replacement
    for pattern, replacement in _RULES:
        if pattern.search(tail):
            return head + separator + pattern.sub(replacement, tail, count=1)
    return word
