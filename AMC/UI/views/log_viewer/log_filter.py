"""
Log Filter Module - Search, level and source filtering over the session buffer

Handles:
- Plain text (case-insensitive substring) and regex search
- Level restriction using the level classifier
- Source prefix restriction
- Incremental extension of a filtered view as new lines arrive
"""
import re
from typing import Callable, Iterable, Iterator, List, Literal, Optional

from pydantic import BaseModel, ConfigDict

from AMC.errors import InvalidPattern
from .log_parser import LogLine

LevelChoice = Literal["all", "debug", "info", "warn", "error"]

ALL_LEVELS = "all"

Matcher = Callable[[LogLine], bool]


class FilterState(BaseModel):
    """User controlled filter settings. Immutable, replaced on every change."""
    model_config = ConfigDict(frozen=True)

    search: str = ""
    use_regex: bool = False
    level: LevelChoice = ALL_LEVELS
    source: str = ""

    @property
    def is_active(self) -> bool:
        return bool(self.search) or self.level != ALL_LEVELS or bool(self.source)


def build_matcher(state: FilterState) -> Optional[Matcher]:
    """
    Compile a filter state into a single line predicate

    Args:
        state: Current filter settings

    Returns:
        A predicate over LogLine, or None when nothing is filtered

    Raises:
        InvalidPattern: regex mode is on and the search text does not compile
    """
    checks: List[Matcher] = []

    if state.search:
        if state.use_regex:
            try:
                pattern = re.compile(state.search, re.IGNORECASE)
            except re.error as e:
                raise InvalidPattern(state.search, e) from e
            checks.append(lambda line: pattern.search(line.raw) is not None)
        else:
            query = state.search.lower()
            checks.append(lambda line: query in line.raw.lower())

    if state.level != ALL_LEVELS:
        level = state.level
        checks.append(lambda line: line.level.value == level)

    if state.source:
        prefix = state.source.lower()
        checks.append(lambda line: line.source.lower().startswith(prefix))

    if not checks:
        return None
    if len(checks) == 1:
        return checks[0]
    return lambda line: all(check(line) for check in checks)


class FilteredView:
    """
    Derived, order preserving selection of buffer lines

    Iterating the view always yields the same lines, so it can be consumed
    more than once. When the filter state has an invalid pattern the view is
    empty and `error` holds the InvalidPattern to display.
    """

    def __init__(self, state: FilterState, matcher: Optional[Matcher] = None,
                 error: Optional[InvalidPattern] = None):
        self.state = state
        self.error = error
        self._matcher = matcher
        self._lines: List[LogLine] = []

    def extend(self, new_lines: Iterable[LogLine]) -> List[LogLine]:
        """
        Filter newly appended buffer lines into the view

        Args:
            new_lines: Lines appended to the buffer since the last call

        Returns:
            The subset of new_lines that entered the view
        """
        if self.error is not None:
            return []

        if self._matcher is None:
            accepted = list(new_lines)
        else:
            accepted = [line for line in new_lines if self._matcher(line)]

        self._lines.extend(accepted)
        return accepted

    def __iter__(self) -> Iterator[LogLine]:
        return iter(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __getitem__(self, index):
        return self._lines[index]

    @property
    def lines(self) -> List[LogLine]:
        return list(self._lines)


def filter_lines(lines: Iterable[LogLine], state: FilterState) -> FilteredView:
    """
    Apply a filter state to a buffer snapshot

    Args:
        lines: Buffer lines in append order
        state: Current filter settings

    Returns:
        FilteredView of the matching lines, or an empty view carrying the
        InvalidPattern error
    """
    try:
        matcher = build_matcher(state)
    except InvalidPattern as e:
        return FilteredView(state, error=e)

    view = FilteredView(state, matcher)
    view.extend(lines)
    return view
