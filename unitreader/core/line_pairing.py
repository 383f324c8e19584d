"""Pairing of English, translation and phonetic text blocks into lines."""

import re
from dataclasses import dataclass

from unitreader.core.models import Line


def split_block(text: str, drop_empty: bool = False) -> list[str]:
    """Split a text block on newlines and trim every line."""
    lines = [line.strip() for line in (text or "").splitlines()]
    if drop_empty:
        lines = [line for line in lines if line]
    return lines


def pair_lines(english: str, japanese: str = "", phonetic: str = "") -> list[Line]:
    """
    Align three free-text blocks into Line records by position.

    Empty lines are dropped from the English block only, so the translation
    and phonetic blocks keep their positions. Missing lines default to an
    empty string and extra lines are ignored.

    Returns:
        Lines with ids 0..n-1, where n is the number of non-empty English lines
    """
    english_lines = split_block(english, drop_empty=True)
    japanese_lines = split_block(japanese)
    phonetic_lines = split_block(phonetic)

    def at(lines: list[str], index: int) -> str:
        return lines[index] if index < len(lines) else ""

    return [
        Line(
            id=index,
            english=text,
            japanese=at(japanese_lines, index),
            phonetic=at(phonetic_lines, index),
        )
        for index, text in enumerate(english_lines)
    ]


def unpair_lines(lines: list[Line]) -> tuple[str, str, str]:
    """Rebuild the (english, japanese, phonetic) blocks for an edit form."""
    return (
        "\n".join(line.english for line in lines),
        "\n".join(line.japanese for line in lines),
        "\n".join(line.phonetic for line in lines),
    )


@dataclass
class Token:
    """A token from a line with position information."""
    text: str
    start: int
    end: int
    is_word: bool


# Any run of letters/digits, keeping inner apostrophes and hyphens
# ("don't", "well-known"). Japanese text without spaces forms one token
# per run between punctuation marks.
WORD_PATTERN = re.compile(r"\w+(?:['’-]\w+)*", re.UNICODE)


def tokenize(text: str) -> list[Token]:
    """
    Tokenize a line into words and non-words.

    Returns a list of tokens that, when concatenated, reconstruct
    the original text exactly.
    """
    tokens = []
    last_end = 0

    for match in WORD_PATTERN.finditer(text):
        if match.start() > last_end:
            tokens.append(Token(
                text=text[last_end:match.start()],
                start=last_end,
                end=match.start(),
                is_word=False,
            ))
        tokens.append(Token(
            text=match.group(),
            start=match.start(),
            end=match.end(),
            is_word=True,
        ))
        last_end = match.end()

    if last_end < len(text):
        tokens.append(Token(
            text=text[last_end:],
            start=last_end,
            end=len(text),
            is_word=False,
        ))

    return tokens
