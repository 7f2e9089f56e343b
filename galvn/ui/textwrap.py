from __future__ import annotations

from typing import Callable, List


def _is_wide(ch: str) -> bool:
    # CJK ideographs, kana and full-width punctuation break anywhere
    return ("　" <= ch <= "ヿ") or ("一" <= ch <= "鿿") or ("＀" <= ch <= "￯")


def wrap_text(text: str, measure: Callable[[str], int], max_width: int) -> List[str]:
    """Wrap dialogue into lines no wider than max_width.

    Paragraphs containing CJK text wrap per character; others wrap on spaces.
    A single word wider than max_width gets a line of its own. Explicit
    newlines and blank lines are preserved.
    """
    out: List[str] = []
    for para in text.split("\n"):
        if not para:
            out.append("")
            continue
        wide = any(_is_wide(ch) for ch in para)
        units = list(para) if wide else para.split()
        sep = "" if wide else " "
        line = ""
        for unit in units:
            candidate = f"{line}{sep}{unit}" if line else unit
            if measure(candidate) <= max_width or not line:
                line = candidate
            else:
                out.append(line)
                line = unit
        if line:
            out.append(line)
    return out
