"""
Response matching filters.

A MatchCriteria is built once per fuzzing session from the user's match
arguments and evaluated, read-only, against every response of the run. A
response matches when every configured filter accepts it; filters that were
not configured are ignored. With nothing configured no response matches.
"""
import logging
import re
from typing import Any, Dict, Iterable, Optional, Tuple

from matching.response import ResponseDescriptor

log = logging.getLogger(__name__)

# "2XX" .. "9XX" match every code starting with that digit.
CODE_CLASS_PATTERN = re.compile(r"[2-9][xX]{2}")


def _unique(values: Optional[Iterable], convert) -> Optional[Tuple]:
    if values is None:
        return None
    return tuple(dict.fromkeys(convert(v) for v in values))


def _format_list(values: Iterable) -> str:
    return "[" + ", ".join(str(v) for v in values) + "]"


class MatchCriteria:
    def __init__(self,
                 codes: Optional[Iterable] = None,
                 lines: Optional[Iterable[int]] = None,
                 words: Optional[Iterable[int]] = None,
                 sizes: Optional[Iterable[int]] = None,
                 regex: Optional[str] = None,
                 match_input: bool = False):
        self._codes = _unique(codes, str)
        self._lines = _unique(lines, int)
        self._words = _unique(words, int)
        self._sizes = _unique(sizes, int)
        self._regex = regex
        self._match_input = bool(match_input)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "MatchCriteria":
        from utils.config import match_criteria_from_config
        return match_criteria_from_config(config)

    @property
    def codes(self) -> Optional[Tuple[str, ...]]:
        return self._codes

    @property
    def lines(self) -> Optional[Tuple[int, ...]]:
        return self._lines

    @property
    def words(self) -> Optional[Tuple[int, ...]]:
        return self._words

    @property
    def sizes(self) -> Optional[Tuple[int, ...]]:
        return self._sizes

    @property
    def regex(self) -> Optional[str]:
        return self._regex

    @property
    def match_input(self) -> bool:
        return self._match_input

    def is_any_criterion_configured(self) -> bool:
        """The input reflection flag is not a filter and does not count."""
        return any((self._codes, self._lines, self._words, self._sizes, self._regex))

    def matches_code(self, code) -> bool:
        if code is None or not str(code).strip() or not self._codes:
            return False
        code = str(code).strip()
        for expected in self._codes:
            if expected == code:
                return True
            if CODE_CLASS_PATTERN.fullmatch(expected) and len(code) == 3 and code.isdigit() and expected[0] == code[0]:
                return True
        return False

    def matches_lines(self, lines: int) -> bool:
        return self._lines is not None and lines in self._lines

    def matches_words(self, words: int) -> bool:
        return self._words is not None and words in self._words

    def matches_size(self, size: int) -> bool:
        return self._sizes is not None and size in self._sizes

    def matches_regex(self, text: Optional[str]) -> bool:
        if self._regex is None or text is None:
            return False
        try:
            return re.fullmatch(self._regex, text) is not None
        except re.error as e:
            log.warning("Invalid match regex %r: %s", self._regex, e)
            return False

    def is_input_reflected(self, response: ResponseDescriptor, value: Optional[str]) -> bool:
        if not self._match_input or value is None:
            return False
        return value in (response.body or "")

    def evaluate(self, response: ResponseDescriptor) -> bool:
        """True if every configured filter accepts the response."""
        if not self.is_any_criterion_configured():
            return False

        checks = []
        if self._codes:
            checks.append(self.matches_code(response.code))
        if self._lines:
            checks.append(self.matches_lines(response.lines))
        if self._words:
            checks.append(self.matches_words(response.words))
        if self._sizes:
            checks.append(self.matches_size(response.size))
        if self._regex:
            checks.append(self.matches_regex(response.body))
        return all(checks)

    is_matched_response = evaluate

    def describe(self) -> str:
        clauses = []
        if self._codes:
            clauses.append(f" response codes: {_format_list(self._codes)}")
        if self._regex:
            clauses.append(f" regex: {self._regex}")
        if self._lines:
            clauses.append(f" number of lines: {_format_list(self._lines)}")
        if self._words:
            clauses.append(f" number of words: {_format_list(self._words)}")
        if self._sizes:
            clauses.append(f" response sizes: {_format_list(self._sizes)}")
        return ",".join(clauses)

    def __repr__(self):
        return f"<MatchCriteria{self.describe() or ' (none)'}>"
