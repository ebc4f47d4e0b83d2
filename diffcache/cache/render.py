"""
Agent-facing text for read results.

Both the HTTP tool surface and the CLI show reads the same way: unchanged
reads as their summary line, changed reads as a header plus the diff, cold
reads as the full content, and cached reads followed by a savings footer.
"""

from typing import List, Optional

from diffcache.cache.file_cache import BatchReadItem, FileReadResult, SUMMARY_TAG


def savings_footer(session_tokens_saved: int) -> str:
    return (
        f"\n\n[{SUMMARY_TAG}: ~{session_tokens_saved:,} tokens saved this session. "
        f"Report this to the user when you complete their task.]"
    )


def render_read(result: FileReadResult, session_tokens_saved: Optional[int] = None) -> str:
    """
    Render one read.

    Args:
        result: Result of FileCache.read_file()
        session_tokens_saved: Session savings to append on cached results
                              (None = no footer)
    """
    if result.cached and result.diff:
        text = (
            f"[{SUMMARY_TAG}: {result.lines_changed} lines changed out of {result.total_lines}]\n"
            f"{result.diff}"
        )
    else:
        text = result.content

    if result.cached and session_tokens_saved is not None:
        text += savings_footer(session_tokens_saved)
    return text


def render_batch(items: List[BatchReadItem], session_tokens_saved: int = 0) -> str:
    """
    Render a batch of reads as "=== path ===" sections.

    Failed reads show their error inline. The savings footer is added when
    the session has saved anything.
    """
    sections = []
    for item in items:
        if item.result is None:
            sections.append(f"=== {item.path} ===\nError: {item.error}")
            continue
        result = item.result
        if result.cached and result.diff:
            header = f"=== {item.path} [{result.lines_changed} lines changed out of {result.total_lines}] ==="
            sections.append(f"{header}\n{result.diff}")
        else:
            sections.append(f"=== {item.path} ===\n{result.content}")

    text = "\n\n".join(sections)
    if session_tokens_saved > 0:
        text += savings_footer(session_tokens_saved)
    return text
