"""
Search over the text of flagged lines.
"""
from typing import Callable, List, Optional, Sequence, Tuple

from audioflags.core.flags.models import Flag
from .models import FlagMatch


class FlagSearchEngine:
    """Finds a query on the lines that hold flags and picks where to jump."""

    def __init__(self):
        self.search_results: List[FlagMatch] = []
        self.current_search_term: str = ""

    def clear_search(self) -> None:
        """Reset all search state."""
        self.search_results = []
        self.current_search_term = ""

    def execute_search(self, search_term: str, flags: Sequence[Flag],
                       line_text: Callable[[int], str]) -> int:
        """
        Search the flagged lines of a file.

        Matching is case-insensitive and every non-overlapping occurrence
        is recorded, in ascending line order.

        Args:
            search_term: Text to search for
            flags: Flags of the file, sorted by line number
            line_text: Returns the text of a 0-based line

        Returns:
            Number of matches found
        """
        if not search_term:
            self.clear_search()
            return 0

        self.current_search_term = search_term
        self.search_results = []

        needle = search_term.lower()
        for flag in flags:
            haystack = line_text(flag.line_num).lower()
            start = haystack.find(needle)
            while start != -1:
                end = start + len(needle)
                self.search_results.append(FlagMatch(flag.line_num, start, end))
                start = haystack.find(needle, end)

        return len(self.search_results)

    def get_result_count(self) -> int:
        """Get total number of search matches."""
        return len(self.search_results)

    def matched_lines(self) -> List[int]:
        """Get the distinct lines that matched, ascending."""
        lines = []
        for match in self.search_results:
            if not lines or lines[-1] != match.line_num:
                lines.append(match.line_num)
        return lines

    def matching_flags(self, flags: Sequence[Flag]) -> List[Flag]:
        """
        Get the navigation candidates for the current search.

        Args:
            flags: All flags of the file

        Returns:
            Flags whose line matched, or all flags if nothing matched
        """
        lines = set(self.matched_lines())
        if not lines:
            return list(flags)
        return [flag for flag in flags if flag.line_num in lines]

    def any_visible(self, visible_range: Tuple[int, int]) -> bool:
        """Check whether any match lies inside the visible viewport."""
        first_line, last_line = visible_range
        return any(m.intersects_lines(first_line, last_line) for m in self.search_results)

    def nearest_result(self, cursor_line: int) -> Optional[FlagMatch]:
        """
        Get the match closest to the cursor line.

        Ties keep the earliest match, since later ones must be strictly
        closer to replace it.

        Args:
            cursor_line: 0-based line of the cursor

        Returns:
            Closest match, or None if there are no matches
        """
        nearest = None
        nearest_distance = None
        for match in self.search_results:
            distance = abs(match.line_num - cursor_line)
            if nearest_distance is None or distance < nearest_distance:
                nearest = match
                nearest_distance = distance
        return nearest

    def status_text(self) -> str:
        """Status line for the search bar."""
        if not self.current_search_term:
            return ""
        count = self.get_result_count()
        if count == 0:
            return "0 matches"
        lines = len(self.matched_lines())
        return f"{count} match{'es' if count != 1 else ''} on {lines} flagged line{'s' if lines != 1 else ''}"
