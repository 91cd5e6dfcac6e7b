"""
Naming utilities for safe code generation.

Every identifier that appears in generated code is derived here: case
conversions, pluralization, and reserved-word escaping. Generators and
templates never convert case on their own, so a table name turns into the
same set of identifiers in every target language.

Pluralization is heuristic. It applies a short rule table to the last word
of an identifier and falls back to adding "s"; it is not a natural-language
inflector.
"""

import re
from typing import Dict, Iterable, List, Mapping, Optional
from enum import Enum


class NamingCase(Enum):
    """Different naming case styles."""

    SNAKE_CASE = "snake"  # user_name
    CAMEL_CASE = "camel"  # userName
    PASCAL_CASE = "pascal"  # UserName
    KEBAB_CASE = "kebab"  # user-name
    SCREAMING_SNAKE = "screaming_snake"  # USER_NAME
    FLAT_CASE = "flat"  # username


_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")
_WORDS = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+[0-9]*|[A-Z]+[0-9]*|[0-9]+")
_VOWELS = frozenset("aeiou")


def split_words(name: str) -> List[str]:
    """
    Split an identifier into its words.

    Separators (underscore, hyphen, whitespace, punctuation) always split.
    Inside a chunk, camel humps split and acronym runs stay together, so
    ``HTTPServer`` gives ``["HTTP", "Server"]`` and ``userID`` gives
    ``["user", "ID"]``. Digits stay attached to the word they follow.
    """
    words: List[str] = []
    for chunk in _SEPARATORS.split(name):
        if chunk:
            words.extend(_WORDS.findall(chunk))
    return words


def _capitalize(word: str, acronyms: Optional[Mapping[str, str]] = None) -> str:
    if acronyms and word.lower() in acronyms:
        return acronyms[word.lower()]
    return word[:1].upper() + word[1:].lower()


def _identifier(converted: str) -> str:
    if converted[:1].isdigit():
        return f"_{converted}"
    return converted


def to_pascal_case(name: str, acronyms: Optional[Mapping[str, str]] = None) -> str:
    """
    Convert to PascalCase. Words found in ``acronyms`` use its spelling.

    A leading digit gets an ``_`` prefix, so ``3d_model`` gives ``_3DModel``.
    """
    return _identifier("".join(_capitalize(word, acronyms) for word in split_words(name)))


def to_camel_case(name: str, acronyms: Optional[Mapping[str, str]] = None) -> str:
    """Convert to camelCase. A leading digit gets an ``_`` prefix like PascalCase."""
    words = split_words(name)
    if not words:
        return ""
    head = words[0].lower()
    return _identifier(head + "".join(_capitalize(word, acronyms) for word in words[1:]))


def to_snake_case(name: str) -> str:
    """Convert to snake_case."""
    return "_".join(word.lower() for word in split_words(name))


def to_kebab_case(name: str) -> str:
    """Convert to kebab-case."""
    return "-".join(word.lower() for word in split_words(name))


def to_screaming_snake_case(name: str) -> str:
    """Convert to SCREAMING_SNAKE_CASE."""
    return to_snake_case(name).upper()


def to_flat_case(name: str) -> str:
    """Convert to flatcase (lowercase, no separators), e.g. Java packages."""
    return "".join(word.lower() for word in split_words(name))


def _match_case(template: str, word: str) -> str:
    if template.isupper() and len(template) > 1:
        return word.upper()
    return word


def _pluralize_word(word: str) -> str:
    lower = word.lower()
    if len(lower) > 1 and lower.endswith("y") and lower[-2] not in _VOWELS:
        return word[:-1] + _match_case(word, "ies")
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return word + _match_case(word, "es")
    return word + _match_case(word, "s")


def _singularize_word(word: str) -> str:
    lower = word.lower()
    if lower.endswith("ies") and len(lower) > 3:
        return word[:-3] + _match_case(word, "y")
    if lower.endswith("sses"):
        return word[:-2]
    if lower.endswith(("xes", "ches", "shes", "zzes", "uses")):
        return word[:-2]
    if lower.endswith("s") and not lower.endswith(("ss", "us", "is")):
        return word[:-1]
    return word


def _inflect_last_word(name: str, inflect) -> str:
    match = re.search(r"([A-Za-z]+)([0-9]*)$", name)
    if not match:
        return name
    # Only the trailing word of a compound identifier changes.
    words = split_words(match.group(1))
    last = words[-1] if words else match.group(1)
    start = match.end(1) - len(last)
    return name[:start] + inflect(last) + match.group(2)


def pluralize(name: str) -> str:
    """
    Pluralize the last word of an identifier.

    ``category`` -> ``categories``, ``order_item`` -> ``order_items``,
    ``box`` -> ``boxes``, ``user`` -> ``users``.
    """
    if not name:
        return name
    return _inflect_last_word(name, _pluralize_word)


def singularize(name: str) -> str:
    """
    Singularize the last word of an identifier.

    ``categories`` -> ``category``, ``addresses`` -> ``address``,
    ``statuses`` -> ``status``, ``status`` -> ``status``.
    """
    if not name:
        return name
    return _inflect_last_word(name, _singularize_word)


def convert_case(name: str, target_case: NamingCase) -> str:
    """Convert ``name`` to ``target_case``."""
    converters = {
        NamingCase.SNAKE_CASE: to_snake_case,
        NamingCase.CAMEL_CASE: to_camel_case,
        NamingCase.PASCAL_CASE: to_pascal_case,
        NamingCase.KEBAB_CASE: to_kebab_case,
        NamingCase.SCREAMING_SNAKE: to_screaming_snake_case,
        NamingCase.FLAT_CASE: to_flat_case,
    }
    return converters[target_case](name)


class NameSanitizer:
    """Handles case conversion plus reserved word escaping for one language."""

    def __init__(
        self,
        reserved_words: Optional[Iterable[str]] = None,
        builtin_types: Optional[Iterable[str]] = None,
        acronyms: Optional[Mapping[str, str]] = None,
        conflict_suffix: str = "_",
    ):
        """
        Initialize name sanitizer.

        Args:
            reserved_words: Language keywords that cannot be identifiers
            builtin_types: Builtin names that should not be shadowed
            acronyms: Lowercase word -> spelling used in Pascal/camel case
            conflict_suffix: Suffix appended to names that collide
        """
        self.reserved_words = {w.lower() for w in reserved_words or ()}
        self.builtin_types = {w.lower() for w in builtin_types or ()}
        self.acronyms = {k.lower(): v for k, v in (acronyms or {}).items()}
        self.conflict_suffix = conflict_suffix
        self._name_cache: Dict[str, str] = {}

    def sanitize_name(
        self, name: str, target_case: NamingCase = NamingCase.SNAKE_CASE
    ) -> str:
        """
        Sanitize a name for safe use in the target language.

        Args:
            name: Original name to sanitize
            target_case: Desired case style

        Returns:
            Converted name, suffixed when it collides with a reserved word
        """
        cache_key = f"{name}|{target_case.value}"
        if cache_key in self._name_cache:
            return self._name_cache[cache_key]

        if target_case == NamingCase.PASCAL_CASE:
            converted = to_pascal_case(name, self.acronyms)
        elif target_case == NamingCase.CAMEL_CASE:
            converted = to_camel_case(name, self.acronyms)
        else:
            converted = convert_case(name, target_case)

        if not converted:
            converted = "field"
        elif converted[0].isdigit():
            converted = f"_{converted}"

        if converted.lower() in self.reserved_words or converted in self.builtin_types:
            converted = f"{converted}{self.conflict_suffix}"

        self._name_cache[cache_key] = converted
        return converted

    def is_reserved(self, name: str) -> bool:
        """Check whether ``name`` is a keyword or builtin of the language."""
        return name.lower() in self.reserved_words or name in self.builtin_types
