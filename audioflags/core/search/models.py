from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class FlagMatch:
    """Represents a single search match on a flagged line."""
    line_num: int
    start: int  # column of the first matched character
    end: int  # column after the last matched character

    def to_tuple(self) -> Tuple[int, int, int]:
        return (self.line_num, self.start, self.end)

    def intersects_lines(self, first_line: int, last_line: int) -> bool:
        """Check whether the match lies within an inclusive line range."""
        return first_line <= self.line_num <= last_line
