"""Spoken punctuation phrases and longest-match lookup."""

from __future__ import annotations

from typing import NamedTuple, Optional, Sequence

MAX_PHRASE_WORDS = 3

PUNCTUATION_TABLE = {
    "full stop": ".",
    "period": ".",
    "dot": ".",
    "comma": ",",
    "question mark": "?",
    "exclamation mark": "!",
    "exclamation point": "!",
    "semicolon": ";",
    "semi colon": ";",
    "colon": ":",
    "dash": "-",
    "hyphen": "-",
    "apostrophe": "'",
    "quotation mark": '"',
    "quote": '"',
    "open bracket": "(",
    "open parenthesis": "(",
    "close bracket": ")",
    "close parenthesis": ")",
    "new line": "\n",
    "new paragraph": "\n\n",
}

NEWLINE_SYMBOLS = frozenset({"\n", "\n\n"})
SENTENCE_ENDINGS = frozenset({".", "?", "!", "\n\n"})


class PhraseMatch(NamedTuple):
    symbol: str
    words_consumed: int


def lookup(phrase: str) -> Optional[str]:
    """Return the symbol for a spoken phrase, ignoring case and spacing."""
    key = " ".join(phrase.lower().split())
    return PUNCTUATION_TABLE.get(key)


def resolve(words: Sequence[str], start_index: int) -> Optional[PhraseMatch]:
    """Match the longest punctuation phrase beginning at ``start_index``.

    Windows of three, two and one words are tried in that order so that
    "semi colon" wins over a literal "semi" followed by "colon".
    """
    for size in range(MAX_PHRASE_WORDS, 0, -1):
        end = start_index + size
        if end > len(words):
            continue
        symbol = lookup(" ".join(words[start_index:end]))
        if symbol is not None:
            return PhraseMatch(symbol, size)
    return None
