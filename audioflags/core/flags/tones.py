"""
Fixed catalog of flag tones and the note rules used for sound cues.

The catalog has four instrument families with three octave variants each.
Every tone can be used at most once per document.
"""
from typing import Iterable, List, Optional, Tuple

from .models import Tone


# MIDI program numbers per family, keyed by the note letter each family uses
PIANO = 0
VIOLIN = 40
GUITAR = 24
MARIMBA = 12

_FAMILIES = (
    ("Piano", PIANO, "D"),
    ("Violin", VIOLIN, "E"),
    ("Guitar", GUITAR, "F"),
    ("Marimba", MARIMBA, "G"),
)

_OCTAVES = (2, 4, 6)

TONE_CATALOG: Tuple[Tone, ...] = tuple(
    Tone(name=f"{family}{variant}", instrument=program, note=f"{letter}{octave}")
    for family, program, letter in _FAMILIES
    for variant, octave in enumerate(_OCTAVES, start=1)
)

_INSTRUMENT_BY_LETTER = {letter: program for _, program, letter in _FAMILIES}


def available(used_tones: Iterable[Tone]) -> List[Tone]:
    """
    Get the catalog tones that are still free.

    Args:
        used_tones: Tones already taken in a document

    Returns:
        Remaining tones, in catalog order
    """
    used = set(used_tones)
    return [tone for tone in TONE_CATALOG if tone not in used]


def tone_by_name(name: str) -> Optional[Tone]:
    """Look up a catalog tone by its name."""
    for tone in TONE_CATALOG:
        if tone.name == name:
            return tone
    return None


def instrument_for_note(note: str) -> int:
    """
    Get the MIDI program used to play a note.

    Catalog notes map to their family's instrument; anything else
    (fallback cue notes) plays on piano.
    """
    if len(note) == 2 and note[1] in "246":
        return _INSTRUMENT_BY_LETTER.get(note[0], PIANO)
    return PIANO


def _count_occurrences(text: str, substring: str) -> int:
    # Overlapping matches count separately
    count = 0
    index = text.find(substring)
    while index != -1:
        count += 1
        index = text.find(substring, index + 1)
    return count


def context_note(context: str) -> str:
    """
    Pick a cue note for a line that has no flag.

    Args:
        context: Description of the line produced by the context
            classifier, e.g. "for i in range inside function main"

    Returns:
        Note name such as "b3" or "g#4"
    """
    depth = sum(
        _count_occurrences(context, keyword)
        for keyword in ("for", "while", "if", "else")
    )
    octave = depth + 2

    if context.startswith("for"):
        return f"b{octave}"
    elif context.startswith("while"):
        return f"d{octave}"
    elif context.startswith("if"):
        return f"g#{octave}"
    elif context.startswith("else"):
        return f"a#{octave}"
    elif context.startswith("elif"):
        return f"a{octave}"
    elif context.startswith("async"):
        return "c4"
    elif context.startswith("function"):
        return "c#4"
    elif context.startswith("Comment"):
        return f"f{octave}"
    elif context.startswith("try"):
        return f"eb{octave}"
    elif context.startswith("except"):
        return f"e{octave}"
    elif "BLANK" in context:
        return f"f#{octave}"
    return f"g{octave}"
