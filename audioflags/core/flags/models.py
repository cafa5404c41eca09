from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Tone:
    """A sound cue a flag can carry: MIDI program plus pitch."""
    name: str
    instrument: int  # MIDI program 0-127
    note: str  # e.g. "D2"

    def to_dict(self):
        """Convert tone to dictionary for JSON serialization."""
        return {
            'name': self.name,
            'instrument': self.instrument,
            'note': self.note
        }

    @staticmethod
    def from_dict(data):
        """Create tone from dictionary."""
        return Tone(
            name=data['name'],
            instrument=data['instrument'],
            note=data['note']
        )


@dataclass
class Flag:
    """Represents a single flag anchored to a line of a text file."""
    line_num: int  # 0-based line index
    tone: Tone

    def to_dict(self):
        """Convert flag to dictionary for JSON serialization."""
        return {
            'lineNum': self.line_num,
            'tone': self.tone.to_dict()
        }

    @staticmethod
    def from_dict(data):
        """Create flag from dictionary."""
        return Flag(
            line_num=data['lineNum'],
            tone=Tone.from_dict(data['tone'])
        )


@dataclass
class FlagDocument:
    """
    All flags tracked for one file.

    Flags are kept sorted by line number, and no two flags share a line
    or a tone.
    """
    file_id: str  # canonical file path
    line_count: int
    flags: List[Flag] = field(default_factory=list)

    def flag_at(self, line_num: int) -> Optional[Flag]:
        """
        Get the flag on a specific line.

        Args:
            line_num: 0-based line index

        Returns:
            The flag on that line, or None
        """
        for flag in self.flags:
            if flag.line_num == line_num:
                return flag
        return None

    def has_tone(self, tone: Tone) -> bool:
        """Check whether a tone is already used in this document."""
        return any(flag.tone == tone for flag in self.flags)

    def used_tones(self) -> List[Tone]:
        """Get the tones used by this document, in line order."""
        return [flag.tone for flag in self.flags]

    def sort_flags(self) -> None:
        """Restore ascending line order."""
        self.flags.sort(key=lambda f: f.line_num)

    def is_empty(self) -> bool:
        return not self.flags

    def to_dict(self):
        """Convert document to the persisted record format."""
        return {
            'fileId': self.file_id,
            'lineCount': self.line_count,
            'flags': [flag.to_dict() for flag in self.flags]
        }

    @staticmethod
    def from_dict(data):
        """Create document from a persisted record."""
        document = FlagDocument(
            file_id=data['fileId'],
            line_count=data['lineCount'],
            flags=[Flag.from_dict(flag_data) for flag_data in data['flags']]
        )
        document.sort_flags()
        return document
