"""
Sentence segmentation for semantic chunking.

Splits raw text into sentences while keeping code spans and common
abbreviations intact, so their punctuation never produces a boundary.

Dependencies: re (stdlib)
System role: First stage of the indexing path
"""

import re

ABBREVIATIONS: tuple[str, ...] = (
    "Dr.",
    "Mr.",
    "Mrs.",
    "Ms.",
    "Prof.",
    "Sr.",
    "Jr.",
    "vs.",
    "etc.",
    "e.g.",
    "i.e.",
    "Ph.D.",
    "M.D.",
    "U.S.",
    "U.K.",
    "Inc.",
    "Ltd.",
    "Corp.",
    "Co.",
)

DOT_PLACEHOLDER = "{{DOT}}"
CODE_PLACEHOLDER = "__CODE_BLOCK_{index}__"

# Non-greedy: the first closing fence ends the span, an unmatched opener stays text.
CODE_BLOCK_PATTERN = re.compile(r"```[\s\S]*?```|`[^`]+`")
CODE_PLACEHOLDER_PATTERN = re.compile(r"__CODE_BLOCK_(\d+)__")

# Longest first so "Mrs." wins over "Mr." and "Ph.D." is not eaten piecemeal.
_ABBREVIATION_PATTERN = re.compile(
    r"(?<![\w.])("
    + "|".join(re.escape(a) for a in sorted(ABBREVIATIONS, key=len, reverse=True))
    + ")"
)

SENTENCE_TERMINATORS = frozenset(".!?")


class SentenceSplitter:
    """
    Rule-based sentence splitter.

    A boundary is placed after `.`, `!` or `?` when the text ends there,
    when the following whitespace contains a line break, or when the next
    non-whitespace character is uppercase. A blank line also ends a
    sentence. Fragments shorter than ``min_sentence_length`` characters
    are dropped.
    """

    def __init__(self, min_sentence_length: int = 10) -> None:
        self.min_sentence_length = min_sentence_length

    def split(self, text: str) -> list[str]:
        """
        Split text into sentences.

        Args:
            text: Raw document text

        Returns:
            list[str]: Sentences in document order, code spans restored verbatim
        """
        if not text or not text.strip():
            return []

        protected, code_blocks = self._extract_code_blocks(text)
        protected = self._protect_abbreviations(protected)

        sentences = [
            self._restore(fragment, code_blocks)
            for fragment in self._scan(protected)
        ]
        return [s for s in sentences if len(s) >= self.min_sentence_length]

    def _scan(self, text: str) -> list[str]:
        fragments: list[str] = []
        start = 0
        length = len(text)
        i = 0

        while i < length:
            ch = text[i]
            boundary = None

            if ch in SENTENCE_TERMINATORS:
                if i == length - 1:
                    boundary = i + 1
                else:
                    j = i + 1
                    while j < length and text[j].isspace():
                        if text[j] in "\r\n":
                            boundary = i + 1
                            break
                        j += 1
                    if boundary is None and j < length and j > i + 1 and text[j].isupper():
                        boundary = i + 1
            elif ch == "\n" and self._is_paragraph_break(text, i):
                boundary = i

            if boundary is not None:
                fragment = text[start:boundary].strip()
                if fragment:
                    fragments.append(fragment)
                start = boundary
            i += 1

        tail = text[start:].strip()
        if tail:
            fragments.append(tail)
        return fragments

    @staticmethod
    def _is_paragraph_break(text: str, index: int) -> bool:
        j = index + 1
        while j < len(text) and text[j] in " \t\r":
            j += 1
        return j < len(text) and text[j] == "\n"

    @staticmethod
    def _extract_code_blocks(text: str) -> tuple[str, list[str]]:
        blocks: list[str] = []

        def _replace(match: re.Match) -> str:
            blocks.append(match.group(0))
            return CODE_PLACEHOLDER.format(index=len(blocks) - 1)

        return CODE_BLOCK_PATTERN.sub(_replace, text), blocks

    @staticmethod
    def _protect_abbreviations(text: str) -> str:
        return _ABBREVIATION_PATTERN.sub(
            lambda m: m.group(1).replace(".", DOT_PLACEHOLDER), text
        )

    @staticmethod
    def _restore(fragment: str, code_blocks: list[str]) -> str:
        fragment = fragment.replace(DOT_PLACEHOLDER, ".")
        if not code_blocks:
            return fragment
        return CODE_PLACEHOLDER_PATTERN.sub(
            lambda m: code_blocks[int(m.group(1))], fragment
        )


def split_sentences(text: str, min_sentence_length: int = 10) -> list[str]:
    """Split text into sentences with a one-off splitter."""
    return SentenceSplitter(min_sentence_length).split(text)
