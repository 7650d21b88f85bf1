"""
Substitutions

Replaces ``__<TYPE>_<name>__`` tokens in gadget strings. Types are applied one
at a time in a fixed order (MSG, BIDI, UP, MODULE), so a message value may
itself contain user pref or bidi tokens. Tokens with no registered value are
left as they are.
"""

from enum import Enum
from typing import Dict, Mapping, Optional
import re


class SubstitutionType(str, Enum):
    MESSAGE = "MSG"
    BIDI = "BIDI"
    USER_PREF = "UP"
    MODULE = "MODULE"


SUBSTITUTION_ORDER = (
    SubstitutionType.MESSAGE,
    SubstitutionType.BIDI,
    SubstitutionType.USER_PREF,
    SubstitutionType.MODULE,
)

_PATTERNS = {
    sub_type: re.compile(r"__" + sub_type.value + r"_(.*?)__")
    for sub_type in SubstitutionType
}

BIDI_LTR = {
    'START_EDGE': 'left',
    'END_EDGE': 'right',
    'DIR': 'ltr',
    'REVERSE_DIR': 'rtl',
}
BIDI_RTL = {
    'START_EDGE': 'right',
    'END_EDGE': 'left',
    'DIR': 'rtl',
    'REVERSE_DIR': 'ltr',
}


class Substitutions:
    """Token values keyed by (type, name)."""

    def __init__(self) -> None:
        self._values: Dict[SubstitutionType, Dict[str, str]] = {t: {} for t in SubstitutionType}

    def add_substitution(self, sub_type: SubstitutionType, name: str, value: str) -> None:
        self._values[SubstitutionType(sub_type)][name] = value

    def add_substitutions(self, sub_type: SubstitutionType, values: Mapping[str, str]) -> None:
        for name, value in values.items():
            self.add_substitution(sub_type, name, value)

    def add_bidi(self, right_to_left: bool) -> None:
        self.add_substitutions(SubstitutionType.BIDI, BIDI_RTL if right_to_left else BIDI_LTR)

    def add_module_id(self, module_id: int) -> None:
        self.add_substitution(SubstitutionType.MODULE, 'ID', str(module_id))

    def get(self, sub_type: SubstitutionType, name: str) -> Optional[str]:
        return self._values[SubstitutionType(sub_type)].get(name)

    def substitute_type(self, sub_type: SubstitutionType, text: str) -> str:
        values = self._values[SubstitutionType(sub_type)]
        if not values or not text:
            return text

        def replace(match: "re.Match[str]") -> str:
            value = values.get(match.group(1))
            return match.group(0) if value is None else value

        return _PATTERNS[SubstitutionType(sub_type)].sub(replace, text)

    def substitute(self, text: str) -> str:
        if not text:
            return text
        for sub_type in SUBSTITUTION_ORDER:
            text = self.substitute_type(sub_type, text)
        return text
