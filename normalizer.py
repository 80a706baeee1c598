"""Turn a raw spoken transcript into spaced, punctuated text."""

from __future__ import annotations

from punctuation import NEWLINE_SYMBOLS, SENTENCE_ENDINGS, resolve


def normalize(raw_text: str) -> str:
    """Resolve spoken punctuation and rebuild spacing and capitalization.

    >>> normalize("hello comma world full stop")
    'hello, world. '
    """
    if not raw_text or not raw_text.strip():
        return ""

    words = raw_text.split()
    parts: list[str] = []
    capitalize_next = False
    i = 0

    while i < len(words):
        match = resolve(words, i)
        if match is not None:
            # Symbols attach to the preceding text.
            if parts and parts[-1] == " ":
                parts.pop()
            parts.append(match.symbol)
            if match.symbol not in NEWLINE_SYMBOLS:
                parts.append(" ")
            if match.symbol in SENTENCE_ENDINGS:
                capitalize_next = True
            i += match.words_consumed
            continue

        word = words[i]
        if parts and not parts[-1].endswith((" ", "\n")):
            parts.append(" ")
        if capitalize_next:
            word = word[0].upper() + word[1:]
            capitalize_next = False
        parts.append(word)
        i += 1

    return "".join(parts)
