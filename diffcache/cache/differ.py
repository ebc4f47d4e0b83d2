"""
Line-based unified diffs.

The edit script is computed with Myers' O(ND) difference algorithm in its
linear-space (middle snake) form, so the script is minimal: no other script
turns the old lines into the new ones with fewer inserted plus deleted
lines. The script is then rendered in unified diff format with three lines
of context around each hunk.
"""

import sys
import time
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

CONTEXT_LINES = 3

# Wall-clock budget for one diff. Past it, the unresolved middle of the
# inputs is emitted as a single replace block.
DIFF_TIMEOUT = 2.0

# Number of distinct lines the containment check can encode as characters
MAX_LINE_CODES = sys.maxunicode + 1

EQUAL = 0
DELETE = -1
INSERT = 1

Edit = Tuple[int, List[str]]
Opcode = Tuple[str, int, int, int, int]


@dataclass(frozen=True)
class DiffResult:
    """
    Outcome of comparing two texts.

    Attributes:
        diff: Unified diff text (empty when nothing changed)
        has_changes: True iff at least one line was inserted or deleted
        lines_changed: Number of inserted plus deleted lines
    """
    diff: str
    has_changes: bool
    lines_changed: int


def split_lines(text: str) -> List[str]:
    """
    Split text on "\\n".

    Empty text has no lines. A trailing newline yields a final empty line,
    so adding or removing it is an ordinary one-line change.
    """
    if not text:
        return []
    return text.split("\n")


def compute_diff(
    old_text: str,
    new_text: str,
    label: str,
    timeout: Optional[float] = DIFF_TIMEOUT,
) -> DiffResult:
    """
    Diff two texts line by line.

    Args:
        old_text: Previous content
        new_text: Current content
        label: Name shown as a/<label> and b/<label> in the header lines
        timeout: Seconds before the search gives up on minimality
                (None = no limit)

    Returns:
        DiffResult with the rendered diff and change counts

    Example:
        >>> result = compute_diff("a\\nb\\n", "a\\nc\\n", "notes.txt")
        >>> result.lines_changed
        2
        >>> result.diff.splitlines()[2:5]
        ['@@ -1,3 +1,3 @@', ' a', '-b']
    """
    old_lines = split_lines(old_text)
    new_lines = split_lines(new_text)
    deadline = time.monotonic() + timeout if timeout is not None else None

    edits = _diff(old_lines, new_lines, deadline)
    lines_changed = sum(len(lines) for op, lines in edits if op != EQUAL)
    if not lines_changed:
        return DiffResult(diff="", has_changes=False, lines_changed=0)

    return DiffResult(
        diff=_render(old_lines, new_lines, _to_opcodes(edits), label),
        has_changes=True,
        lines_changed=lines_changed,
    )


def _diff(a: Sequence[str], b: Sequence[str], deadline: Optional[float]) -> List[Edit]:
    if a == b:
        return [(EQUAL, list(a))] if a else []

    prefix = _common_prefix(a, b)
    head = list(a[:prefix])
    a, b = a[prefix:], b[prefix:]

    suffix = _common_suffix(a, b)
    tail: List[str] = []
    if suffix:
        tail = list(a[len(a) - suffix:])
        a, b = a[:len(a) - suffix], b[:len(b) - suffix]

    edits = _diff_middle(a, b, deadline)
    if head:
        edits.insert(0, (EQUAL, head))
    if tail:
        edits.append((EQUAL, tail))
    return _merge(edits)


def _diff_middle(a: Sequence[str], b: Sequence[str], deadline: Optional[float]) -> List[Edit]:
    """Diff inputs that share no common prefix or suffix."""
    if not a:
        return [(INSERT, list(b))]
    if not b:
        return [(DELETE, list(a))]

    a_longer = len(a) > len(b)
    longer, shorter = (a, b) if a_longer else (b, a)
    start = _find_sublist(longer, shorter)
    if start != -1:
        op = DELETE if a_longer else INSERT
        return [
            (op, list(longer[:start])),
            (EQUAL, list(shorter)),
            (op, list(longer[start + len(shorter):])),
        ]

    if len(shorter) == 1:
        # Not contained in the other side, so it cannot be an equality.
        return [(DELETE, list(a)), (INSERT, list(b))]

    return _bisect(a, b, deadline)


def _bisect(a: Sequence[str], b: Sequence[str], deadline: Optional[float]) -> List[Edit]:
    """Find the middle snake of the edit graph and recurse on both halves."""
    a_len, b_len = len(a), len(b)
    max_d = (a_len + b_len + 1) // 2
    v_offset = max_d
    v_length = 2 * max_d
    v1 = [-1] * v_length
    v1[v_offset + 1] = 0
    v2 = [-1] * v_length
    v2[v_offset + 1] = 0
    delta = a_len - b_len
    # With an odd delta the forward path detects the overlap, otherwise the
    # reverse path does.
    front = delta % 2 != 0
    k1start = k1end = k2start = k2end = 0

    for d in range(max_d):
        if deadline is not None and time.monotonic() > deadline:
            break

        for k1 in range(-d + k1start, d + 1 - k1end, 2):
            k1_offset = v_offset + k1
            if k1 == -d or (k1 != d and v1[k1_offset - 1] < v1[k1_offset + 1]):
                x1 = v1[k1_offset + 1]
            else:
                x1 = v1[k1_offset - 1] + 1
            y1 = x1 - k1
            while x1 < a_len and y1 < b_len and a[x1] == b[y1]:
                x1 += 1
                y1 += 1
            v1[k1_offset] = x1
            if x1 > a_len:
                k1end += 2
            elif y1 > b_len:
                k1start += 2
            elif front:
                k2_offset = v_offset + delta - k1
                if 0 <= k2_offset < v_length and v2[k2_offset] != -1:
                    x2 = a_len - v2[k2_offset]
                    if x1 >= x2:
                        return _bisect_split(a, b, x1, y1, deadline)

        for k2 in range(-d + k2start, d + 1 - k2end, 2):
            k2_offset = v_offset + k2
            if k2 == -d or (k2 != d and v2[k2_offset - 1] < v2[k2_offset + 1]):
                x2 = v2[k2_offset + 1]
            else:
                x2 = v2[k2_offset - 1] + 1
            y2 = x2 - k2
            while x2 < a_len and y2 < b_len and a[-x2 - 1] == b[-y2 - 1]:
                x2 += 1
                y2 += 1
            v2[k2_offset] = x2
            if x2 > a_len:
                k2end += 2
            elif y2 > b_len:
                k2start += 2
            elif not front:
                k1_offset = v_offset + delta - k2
                if 0 <= k1_offset < v_length and v1[k1_offset] != -1:
                    x1 = v1[k1_offset]
                    y1 = v_offset + x1 - k1_offset
                    if x1 >= a_len - x2:
                        return _bisect_split(a, b, x1, y1, deadline)

    # Out of time (or no overlap found): treat the whole middle as replaced.
    return [(DELETE, list(a)), (INSERT, list(b))]


def _bisect_split(
    a: Sequence[str],
    b: Sequence[str],
    x: int,
    y: int,
    deadline: Optional[float],
) -> List[Edit]:
    return _diff(a[:x], b[:y], deadline) + _diff(a[x:], b[y:], deadline)


def _common_prefix(a: Sequence[str], b: Sequence[str]) -> int:
    n = min(len(a), len(b))
    for i in range(n):
        if a[i] != b[i]:
            return i
    return n


def _common_suffix(a: Sequence[str], b: Sequence[str]) -> int:
    n = min(len(a), len(b))
    for i in range(1, n + 1):
        if a[-i] != b[-i]:
            return i - 1
    return n


def _find_sublist(longer: Sequence[str], shorter: Sequence[str]) -> int:
    """
    Index where shorter occurs contiguously in longer, or -1.

    Each distinct line is mapped to one character so the search runs as a
    single str.find, which stays linear on repetitive inputs.
    """
    codes: Dict[str, str] = {}

    def encode(lines: Sequence[str]) -> Optional[str]:
        chars = []
        for line in lines:
            char = codes.get(line)
            if char is None:
                if len(codes) >= MAX_LINE_CODES:
                    return None
                char = codes[line] = chr(len(codes))
            chars.append(char)
        return "".join(chars)

    needle = encode(shorter)
    haystack = encode(longer) if needle is not None else None
    if haystack is None:
        # Too many distinct lines to encode, leave it to the bisection.
        return -1
    return haystack.find(needle)


def _merge(edits: List[Edit]) -> List[Edit]:
    """Drop empty runs and join adjacent runs of the same kind."""
    merged: List[Edit] = []
    for op, lines in edits:
        if not lines:
            continue
        if merged and merged[-1][0] == op:
            merged[-1] = (op, merged[-1][1] + lines)
        else:
            merged.append((op, list(lines)))
    return merged


def _to_opcodes(edits: List[Edit]) -> List[Opcode]:
    """Convert runs into (tag, i1, i2, j1, j2) opcodes over the two line lists."""
    opcodes: List[Opcode] = []
    i = j = 0
    deleted = inserted = 0
    for op, lines in edits + [(EQUAL, [])]:
        if op == DELETE:
            deleted += len(lines)
            continue
        if op == INSERT:
            inserted += len(lines)
            continue

        if deleted or inserted:
            if deleted and inserted:
                tag = "replace"
            elif deleted:
                tag = "delete"
            else:
                tag = "insert"
            opcodes.append((tag, i, i + deleted, j, j + inserted))
            i += deleted
            j += inserted
            deleted = inserted = 0

        if lines:
            opcodes.append(("equal", i, i + len(lines), j, j + len(lines)))
            i += len(lines)
            j += len(lines)
    return opcodes


def _group_opcodes(opcodes: List[Opcode], n: int = CONTEXT_LINES) -> Iterator[List[Opcode]]:
    """Split opcodes into hunks with at most n lines of context on each side."""
    codes = list(opcodes)
    if codes[0][0] == "equal":
        tag, i1, i2, j1, j2 = codes[0]
        codes[0] = tag, max(i1, i2 - n), i2, max(j1, j2 - n), j2
    if codes[-1][0] == "equal":
        tag, i1, i2, j1, j2 = codes[-1]
        codes[-1] = tag, i1, min(i2, i1 + n), j1, min(j2, j1 + n)

    nn = n + n
    group: List[Opcode] = []
    for tag, i1, i2, j1, j2 in codes:
        # A long equal run closes the current hunk and opens the next.
        if tag == "equal" and i2 - i1 > nn:
            group.append((tag, i1, min(i2, i1 + n), j1, min(j2, j1 + n)))
            yield group
            group = []
            i1, j1 = max(i1, i2 - n), max(j1, j2 - n)
        group.append((tag, i1, i2, j1, j2))
    if group and not (len(group) == 1 and group[0][0] == "equal"):
        yield group


def _format_range(start: int, stop: int) -> str:
    beginning = start + 1
    length = stop - start
    if length == 1:
        return f"{beginning}"
    if not length:
        beginning -= 1
    return f"{beginning},{length}"


def _render(a: List[str], b: List[str], opcodes: List[Opcode], label: str) -> str:
    out = [f"--- a/{label}\n", f"+++ b/{label}\n"]
    for group in _group_opcodes(opcodes):
        first, last = group[0], group[-1]
        out.append(
            f"@@ -{_format_range(first[1], last[2])} +{_format_range(first[3], last[4])} @@\n"
        )
        for tag, i1, i2, j1, j2 in group:
            if tag == "equal":
                out.extend(f" {line}\n" for line in a[i1:i2])
                continue
            if tag in ("replace", "delete"):
                out.extend(f"-{line}\n" for line in a[i1:i2])
            if tag in ("replace", "insert"):
                out.extend(f"+{line}\n" for line in b[j1:j2])
    return "".join(out)
