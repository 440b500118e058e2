"""
Macro substitution for page templates.

Templates mark insertion points with HTML comments such as
``<!-- {CONTENT} -->``. Only the members of :class:`Macro` are recognized;
any other comment is ordinary template text and is left alone.
"""

import re
from enum import Enum
from typing import Callable, Mapping, Union


class Macro(Enum):
    CONTENT = 'CONTENT'
    TABLE_OF_CONTENTS = 'TABLE_OF_CONTENTS'

    @property
    def token(self) -> str:
        return f'<!-- {{{self.value}}} -->'


MACRO_PATTERN = re.compile(
    r'<!--\s*\{(' + '|'.join(re.escape(macro.value) for macro in Macro) + r')\}\s*-->'
)

MacroValue = Union[str, Callable[[], str]]


def expand_macros(template: str, values: Mapping[Macro, MacroValue]) -> str:
    """
    Replace every recognized macro in ``template`` with its value.

    Substitution happens in a single pass, so macro-like text inside an
    inserted value is never expanded again. A macro without a value expands to
    an empty string. Callables are evaluated at most once per call.

    Args:
        template: Template HTML
        values: Value (or zero-argument producer) per macro

    Returns:
        The expanded HTML
    """
    cache = {}

    def _value(macro):
        if macro not in cache:
            value = values.get(macro, '')
            cache[macro] = value() if callable(value) else value
        return cache[macro]

    return MACRO_PATTERN.sub(lambda match: _value(Macro(match.group(1))), template)


def find_macros(template: str):
    """Return the recognized macros used by a template, in order of appearance."""
    return [Macro(match.group(1)) for match in MACRO_PATTERN.finditer(template)]
