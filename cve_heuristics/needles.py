"""Helpers for building cve-search CPE needles out of component metadata."""

import re
from functools import reduce
from typing import Callable, Optional

from .models import ComponentRecord

CPE_WILDCARD = ".*"
CPE_NEEDLE_PREFIX = "cpe:2.3:.:"

NeedleGenerator = Callable[[ComponentRecord], str]

# Characters with a meaning in cve-search's regex CPE lookup
_UNSAFE_CHARS = re.compile(r"[/\\*+!?^$\[\]]")
_WHITESPACE = re.compile(r"\s+")


def sanitize(text: str) -> str:
    """Turn free text into a lowercase, regex-safe needle fragment."""
    text = _UNSAFE_CHARS.sub(".", text)
    text = _WHITESPACE.sub(CPE_WILDCARD, text)
    return text.lower()


def escape_generator(generator: NeedleGenerator) -> NeedleGenerator:
    """Wrap a generator so that its output is sanitized."""
    return lambda record: sanitize(generator(record))


def compose(primary: NeedleGenerator, *rest: NeedleGenerator) -> NeedleGenerator:
    """
    Join several generators into one, separated by wildcards.

    The primary generator's output is used verbatim, the output of every
    further generator is sanitized. Outputs appear in argument order.
    """
    def join(left: NeedleGenerator, right: NeedleGenerator) -> NeedleGenerator:
        return lambda record: left(record) + CPE_WILDCARD + right(record)

    return reduce(join, (escape_generator(g) for g in rest), primary)


def is_cpe(potential_cpe: Optional[str]) -> bool:
    """Cheap syntactic check whether a string already is a CPE."""
    if not potential_cpe:
        return False
    return potential_cpe.lower().startswith("cpe:") and len(potential_cpe) > 10
