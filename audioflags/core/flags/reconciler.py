"""
Keeps flag line numbers in step with edits that add or remove lines.

Only the first change range of an edit batch is consulted: every flag on
or after that range's start line moves by the change in line count. Edits
touching several regions at once (multi-cursor) can therefore shift flags
that sit between the regions by the wrong amount.
"""
import logging
from enum import Enum

from .models import FlagDocument

logger = logging.getLogger(__name__)


class ReconcilePolicy(Enum):
    """What to do when a shift pushes flags out of range or onto each other."""
    REPAIR = "repair"  # clamp into the file, drop colliding flags
    LEGACY = "legacy"  # shift only, no clamping or dedupe


def reconcile(document: FlagDocument, start_line: int, new_line_count: int,
              policy: ReconcilePolicy = ReconcilePolicy.REPAIR) -> bool:
    """
    Shift flags after an edit changed the document's line count.

    Args:
        document: Document to update in place
        start_line: First line of the edit's first change range
        new_line_count: Line count after the edit
        policy: Collision and range handling

    Returns:
        True if the line count changed and flags were repositioned
    """
    old_line_count = document.line_count
    if new_line_count == old_line_count:
        return False

    delta = new_line_count - old_line_count
    for flag in document.flags:
        if flag.line_num >= start_line:
            flag.line_num += delta

    document.line_count = new_line_count

    if policy == ReconcilePolicy.REPAIR:
        _repair(document)

    return True


def _repair(document: FlagDocument) -> None:
    """Clamp flags into the file and keep the first flag of each collision."""
    last_line = max(document.line_count - 1, 0)
    kept = []
    taken = set()

    # Flags are still in pre-shift order, so the first one seen on a line
    # is the lower-numbered original
    for flag in document.flags:
        flag.line_num = min(max(flag.line_num, 0), last_line)
        if flag.line_num in taken:
            logger.info(
                "Dropped flag %s in %s: collided on line %d after edit",
                flag.tone.name, document.file_id, flag.line_num
            )
            continue
        taken.add(flag.line_num)
        kept.append(flag)

    document.flags = kept
    document.sort_flags()
