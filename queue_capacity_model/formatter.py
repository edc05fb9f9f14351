"""
Plain-text formatting primitives for terminal reports.

Every primitive returns uncoloured text drawn with box characters.
colorize() adds ANSI colour afterwards, keyed on bottleneck and risk words.
"""

import os
import re
import sys
from typing import Any, Optional, Sequence, Tuple


def supports_color() -> bool:
    """Detect whether stdout should receive ANSI colour.

    NO_COLOR (https://no-color.org/) wins over FORCE_COLOR; otherwise a TTY is required.
    """
    if os.environ.get('NO_COLOR') is not None:
        return False
    if os.environ.get('FORCE_COLOR') is not None:
        return True
    isatty = getattr(sys.stdout, 'isatty', None)
    return bool(isatty and isatty())


# ── Box-drawing characters ──────────────────────────────────────────

_HEAVY = '═'
_LIGHT = '─'
_VERT = '│'
_CORNERS = {
    'top': ('┌', '┬', '┐'),
    'mid': ('├', '┼', '┤'),
    'bottom': ('└', '┴', '┘'),
}


# ── Formatting primitives ──────────────────────────────────────────

def title(text: str, width: int = 60) -> str:
    """Title centred between heavy rules.

    Example::

        ═════════════ checkout-api ═════════════
    """
    fill = max(4, width - len(text) - 2)
    left = fill // 2
    return f"{_HEAVY * left} {text} {_HEAVY * (fill - left)}"


def heading(text: str) -> str:
    """Indented section heading underlined with a light rule."""
    return f"  {text}\n  {_LIGHT * len(text)}"


def kv_block(items: Sequence[Tuple[str, Any]], indent: int = 2) -> str:
    """Key/value lines aligned with dot leaders.

    Example::

        Bottleneck ····· healthy
        Queue risk ····· low
    """
    if not items:
        return ""
    width = max(len(k) for k, _ in items)
    pad = ' ' * indent
    return "\n".join(
        f"{pad}{key} {'·' * (width - len(key) + 2)} {value}" for key, value in items
    )


def table(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    aligns: Optional[Sequence[str]] = None,
) -> str:
    """Bordered table; aligns holds 'l', 'r' or 'c' per column (default 'l')."""
    if not headers:
        return ""
    n_cols = len(headers)
    aligns = list(aligns) if aligns else ['l'] * n_cols

    cells = [[str(h) for h in headers]]
    for row in rows:
        cells.append([str(row[i]) if i < len(row) else '' for i in range(n_cols)])
    widths = [max(len(r[i]) for r in cells) for i in range(n_cols)]

    def rule(kind: str) -> str:
        left, mid, right = _CORNERS[kind]
        return left + mid.join(_LIGHT * (w + 2) for w in widths) + right

    def line(values: Sequence[str]) -> str:
        parts = []
        for value, width, align in zip(values, widths, aligns):
            if align == 'r':
                parts.append(value.rjust(width))
            elif align == 'c':
                parts.append(value.center(width))
            else:
                parts.append(value.ljust(width))
        return _VERT + _VERT.join(f" {p} " for p in parts) + _VERT

    out = [rule('top'), line(cells[0]), rule('mid')]
    out.extend(line(r) for r in cells[1:])
    out.append(rule('bottom'))
    return "\n".join(out)


def badge(label: str, value: str, indent: int = 2) -> str:
    """Highlighted result line: ``▸ label: value``."""
    return f"{' ' * indent}▸ {label}: {value}"


def note_block(lines: Sequence[str], indent: int = 2) -> str:
    """Bulleted notes, one per line."""
    pad = ' ' * indent
    return "\n".join(f"{pad}· {line}" for line in lines)


def separator(width: int = 60) -> str:
    """Light horizontal rule."""
    return _LIGHT * width


# ── ANSI colour post-processing ────────────────────────────────────

_RESET = '\033[0m'
_BOLD = '\033[1m'
_DIM = '\033[2m'
_GREEN = '\033[32m'
_RED = '\033[31m'
_YELLOW = '\033[33m'
_CYAN = '\033[36m'

# Longest tokens first so "thread_pool_saturation" is not split by "saturation"
_TOKEN_COLORS = [
    ('thread_pool_saturation', _RED),
    ('queue_saturation', _RED),
    ('system_overload', _RED),
    ('timeout_risk', _YELLOW),
    ('healthy', _GREEN),
    ('high', _RED),
    ('medium', _YELLOW),
    ('low', _GREEN),
]
_TOKEN_RE = re.compile(r'\b(' + '|'.join(t for t, _ in _TOKEN_COLORS) + r')\b')
_TOKEN_MAP = dict(_TOKEN_COLORS)


def colorize(text: str) -> str:
    """Apply ANSI colour to formatted text, line by line.

    - titles (═) bold cyan, rules and table borders dim
    - bottleneck and risk words green / yellow / red by severity
    - ▸ markers yellow, · notes dim
    """
    return "\n".join(_colorize_line(line) for line in text.split("\n"))


def _colorize_line(line: str) -> str:
    stripped = line.strip()
    if not stripped:
        return line
    if _HEAVY in stripped:
        return f"{_BOLD}{_CYAN}{line}{_RESET}"
    if all(c == _LIGHT for c in stripped) or stripped[0] in '┌├└':
        return f"{_DIM}{line}{_RESET}"
    if stripped.startswith('·'):
        return f"{_DIM}{line}{_RESET}"

    line = line.replace('▸', f"{_YELLOW}▸{_RESET}")
    line = line.replace(_VERT, f"{_DIM}{_VERT}{_RESET}")
    return _TOKEN_RE.sub(lambda m: f"{_TOKEN_MAP[m.group(1)]}{m.group(1)}{_RESET}", line)
