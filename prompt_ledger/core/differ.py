"""Text diffing engine for prompt content.

Compares two strings at line, word and character granularity using a
longest-common-subsequence table, groups the line diff into hunks and renders
unified and side-by-side views. Every function here is pure.
"""

from __future__ import annotations

import html
import re
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Hashable, Iterator, Sequence

UNCHANGED = "unchanged"
DELETION = "deletion"
ADDITION = "addition"
MODIFICATION = "modification"  # reserved, the line walk never emits it

_WHITESPACE_RE = re.compile(r"\s+")
_WORD_RE = re.compile(r"\S+|\s+")


@dataclass(frozen=True)
class DiffOptions:
    """Normalization and grouping options."""

    ignore_whitespace: bool = False
    ignore_case: bool = False
    context_lines: int = 3


@dataclass
class LineChange:
    """One entry of the line diff. Line numbers are 1-based, None where the line does not exist."""

    type: str
    line_number1: int | None
    line_number2: int | None
    content: str


@dataclass
class TokenChange:
    """One entry of the word or character diff."""

    type: str
    content: str


@dataclass
class Hunk:
    start_line1: int
    start_line2: int
    lines: list[LineChange] = field(default_factory=list)


@dataclass
class SideBySideRow:
    left_line_number: int | None
    left_content: str
    right_line_number: int | None
    right_content: str
    type: str


@dataclass
class DiffSummary:
    additions: int = 0
    deletions: int = 0
    modifications: int = 0
    unchanged: int = 0
    total_changes: int = 0


@dataclass
class DiffResult:
    """Everything the engine produces for one pair of strings."""

    summary: DiffSummary
    line_diff: list[Hunk]
    word_diff: list[TokenChange]
    char_diff: list[TokenChange]
    unified: str
    side_by_side: list[SideBySideRow]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def longest_common_subsequence(seq1: Sequence[Hashable], seq2: Sequence[Hashable]) -> list:
    """Return the LCS of two token sequences.

    Reconstruction walks back from the bottom-right corner of the table; on a
    tie between moving up and moving left it moves left, which is what makes
    a replaced line come out as deletion followed by addition.

    A shared prefix and suffix are matched up front and only the middle gets
    a table. The backtrack would match them the same way.
    """
    end1, end2 = len(seq1), len(seq2)
    start = 0
    while start < end1 and start < end2 and seq1[start] == seq2[start]:
        start += 1
    while end1 > start and end2 > start and seq1[end1 - 1] == seq2[end2 - 1]:
        end1 -= 1
        end2 -= 1

    mid1, mid2 = seq1[start:end1], seq2[start:end2]
    m, n = len(mid1), len(mid2)
    dp = [[0] * (n + 1) for _ in range(m + 1)]

    for i in range(1, m + 1):
        row, prev = dp[i], dp[i - 1]
        a = mid1[i - 1]
        for j in range(1, n + 1):
            if a == mid2[j - 1]:
                row[j] = prev[j - 1] + 1
            else:
                up, left = prev[j], row[j - 1]
                row[j] = up if up > left else left

    middle = []
    i, j = m, n
    while i > 0 and j > 0:
        if mid1[i - 1] == mid2[j - 1]:
            middle.append(mid1[i - 1])
            i -= 1
            j -= 1
        elif dp[i - 1][j] > dp[i][j - 1]:
            i -= 1
        else:
            j -= 1

    middle.reverse()
    return list(seq1[:start]) + middle + list(seq1[end1:])


def tokenize_words(text: str) -> list[str]:
    """Split text into maximal runs of non-whitespace and of whitespace."""
    return _WORD_RE.findall(text)


def split_lines(text: str) -> list[str]:
    """Split on newlines. Empty content has no lines at all."""
    return text.split("\n") if text else []


def _walk(
    seq1: Sequence[Hashable], seq2: Sequence[Hashable]
) -> Iterator[tuple[str, int | None, int | None, Any]]:
    """Align both sequences against their LCS.

    Yields ``(type, index1, index2, token)`` with 0-based indexes, None on the
    side a token does not come from.
    """
    lcs = longest_common_subsequence(seq1, seq2)
    n1, n2, nl = len(seq1), len(seq2), len(lcs)
    i = j = k = 0

    while i < n1 or j < n2:
        if k < nl and i < n1 and j < n2 and seq1[i] == lcs[k] and seq2[j] == lcs[k]:
            yield UNCHANGED, i, j, seq1[i]
            i += 1
            j += 1
            k += 1
        elif i < n1 and (k >= nl or seq1[i] != lcs[k] or j >= n2):
            yield DELETION, i, None, seq1[i]
            i += 1
        else:
            yield ADDITION, None, j, seq2[j]
            j += 1


class TextDiffer:
    """Computes line, word and character diffs between prompt content versions."""

    def __init__(self, options: DiffOptions | None = None) -> None:
        self.options = options or DiffOptions()

    def generate_diff(
        self,
        content1: str,
        content2: str,
        options: DiffOptions | None = None,
        **overrides: Any,
    ) -> DiffResult:
        """Compare two contents.

        ``options`` replaces the differ's defaults; keyword overrides
        (``ignore_whitespace``, ``ignore_case``, ``context_lines``) are applied
        on top. A ``context_lines`` of None keeps the current value.
        """
        opts = options or self.options
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if overrides:
            opts = replace(opts, **overrides)

        text1 = self.normalize(content1, opts)
        text2 = self.normalize(content2, opts)

        line_diff = self.line_diff(text1, text2, opts.context_lines)
        return DiffResult(
            summary=self.summarize(line_diff),
            line_diff=line_diff,
            word_diff=self.word_diff(text1, text2),
            char_diff=self.char_diff(text1, text2),
            unified=self.unified(line_diff),
            side_by_side=self.side_by_side(line_diff),
        )

    @staticmethod
    def normalize(content: str, options: DiffOptions) -> str:
        """Apply case folding and whitespace collapsing, in that order."""
        normalized = content
        if options.ignore_case:
            normalized = normalized.lower()
        if options.ignore_whitespace:
            normalized = _WHITESPACE_RE.sub(" ", normalized).strip()
        return normalized

    def line_diff(self, content1: str, content2: str, context_lines: int = 3) -> list[Hunk]:
        changes = [
            LineChange(
                type=kind,
                line_number1=None if i is None else i + 1,
                line_number2=None if j is None else j + 1,
                content=line,
            )
            for kind, i, j, line in _walk(split_lines(content1), split_lines(content2))
        ]
        return self.group_hunks(changes, context_lines)

    def word_diff(self, content1: str, content2: str) -> list[TokenChange]:
        """Word-level diff over the whole content; whitespace runs are tokens too."""
        return [
            TokenChange(type=kind, content=token)
            for kind, _, _, token in _walk(tokenize_words(content1), tokenize_words(content2))
        ]

    def char_diff(self, content1: str, content2: str) -> list[TokenChange]:
        return [
            TokenChange(type=kind, content=char)
            for kind, _, _, char in _walk(list(content1), list(content2))
        ]

    @staticmethod
    def group_hunks(changes: list[LineChange], context_lines: int = 3) -> list[Hunk]:
        """Group a flat line diff into hunks with surrounding context.

        A hunk opens at a change, seeded with the unchanged lines among the
        ``context_lines`` entries before it. Changes separated by at most
        ``2 * context_lines`` unchanged lines share a hunk. A longer unchanged
        run (or the end of the diff) closes it right after the run's first
        line. With no context the hunk closes before any unchanged line.
        """
        context = max(0, context_lines)

        if all(change.type == UNCHANGED for change in changes):
            return [Hunk(start_line1=1, start_line2=1, lines=list(changes))]

        hunks: list[Hunk] = []
        current: Hunk | None = None
        last = len(changes) - 1

        for index, change in enumerate(changes):
            if change.type != UNCHANGED:
                if current is None:
                    anchor1 = change.line_number1 or change.line_number2
                    anchor2 = change.line_number2 or change.line_number1
                    current = Hunk(
                        start_line1=max(1, anchor1 - context),
                        start_line2=max(1, anchor2 - context),
                    )
                    current.lines.extend(
                        prior
                        for prior in changes[max(0, index - context):index]
                        if prior.type == UNCHANGED
                    )
                current.lines.append(change)
            elif current is not None:
                if context == 0:
                    hunks.append(current)
                    current = None
                    continue

                current.lines.append(change)

                run = 1
                for ahead in changes[index + 1:index + context * 2 + 1]:
                    if ahead.type != UNCHANGED:
                        break
                    run += 1

                if run > context * 2 or index == last:
                    hunks.append(current)
                    current = None

        if current is not None:
            hunks.append(current)
        return hunks

    @staticmethod
    def unified(hunks: list[Hunk]) -> str:
        prefixes = {UNCHANGED: " ", DELETION: "-", ADDITION: "+"}
        out: list[str] = []
        for hunk in hunks:
            count = len(hunk.lines)
            out.append(f"@@ -{hunk.start_line1},{count} +{hunk.start_line2},{count} @@")
            for line in hunk.lines:
                prefix = prefixes.get(line.type)
                if prefix is not None:
                    out.append(f"{prefix}{line.content}")
        return "\n".join(out)

    @staticmethod
    def side_by_side(hunks: list[Hunk]) -> list[SideBySideRow]:
        rows: list[SideBySideRow] = []
        for hunk in hunks:
            for line in hunk.lines:
                if line.type == UNCHANGED:
                    rows.append(SideBySideRow(
                        line.line_number1, line.content, line.line_number2, line.content, UNCHANGED,
                    ))
                elif line.type == DELETION:
                    rows.append(SideBySideRow(line.line_number1, line.content, None, "", DELETION))
                elif line.type == ADDITION:
                    rows.append(SideBySideRow(None, "", line.line_number2, line.content, ADDITION))
        return rows

    @staticmethod
    def summarize(hunks: list[Hunk]) -> DiffSummary:
        """Count line types across all hunks."""
        summary = DiffSummary()
        for hunk in hunks:
            for line in hunk.lines:
                if line.type == ADDITION:
                    summary.additions += 1
                elif line.type == DELETION:
                    summary.deletions += 1
                elif line.type == MODIFICATION:
                    summary.modifications += 1
                elif line.type == UNCHANGED:
                    summary.unchanged += 1
        summary.total_changes = summary.additions + summary.deletions + summary.modifications
        return summary

    def render_html(self, diff: DiffResult, side_by_side: bool = False) -> str:
        """Render a diff result as HTML markup for display."""
        out = ['<div class="diff-container">']

        if side_by_side:
            out.append('<div class="diff-side-by-side">')
            for side, title in (("left", "Original"), ("right", "Modified")):
                out.append(f'<div class="diff-{side}">')
                out.append(f"<h3>{title}</h3>")
                for row in diff.side_by_side:
                    number = getattr(row, f"{side}_line_number")
                    number = "" if number is None else number
                    out.append(f'<div class="diff-line diff-{row.type}" data-line="{number}">')
                    out.append(f'<span class="line-number">{number}</span>')
                    out.append(
                        f'<span class="line-content">'
                        f"{html.escape(getattr(row, f'{side}_content'))}</span>"
                    )
                    out.append("</div>")
                out.append("</div>")
            out.append("</div>")
        else:
            out.append('<div class="diff-unified">')
            for hunk in diff.line_diff:
                out.append('<div class="diff-group">')
                for line in hunk.lines:
                    out.append(f'<div class="diff-line diff-{line.type}">')
                    for number in (line.line_number1, line.line_number2):
                        out.append(f'<span class="line-number">{"" if number is None else number}</span>')
                    out.append(f'<span class="line-content">{html.escape(line.content)}</span>')
                    out.append("</div>")
                out.append("</div>")
            out.append("</div>")

        out.append("</div>")
        return "\n".join(out)


_default_differ = TextDiffer()


def generate_diff(
    content1: str,
    content2: str,
    options: DiffOptions | None = None,
    **overrides: Any,
) -> DiffResult:
    """Diff two strings with default options (see ``TextDiffer.generate_diff``)."""
    return _default_differ.generate_diff(content1, content2, options, **overrides)
