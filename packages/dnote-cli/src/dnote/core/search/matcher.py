"""Case-insensitive phrase location within note bodies."""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from typing import Iterator, List, Tuple


@dataclass(frozen=True)
class Occurrence:
    """Half-open ``[start, end)`` range of a phrase match in the original body."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start


def fold_case(text: str) -> Tuple[str, List[int]]:
    """
    Case-fold ``text`` and build an index map back to the original.

    ``offsets[i]`` is the index in ``text`` of the character that produced
    ``folded[i]``. Some characters fold to more than one character
    (``"ß"`` -> ``"ss"``), so the map is not the identity in general.
    A sentinel ``len(text)`` is appended so that end positions map too.
    """
    folded_parts: List[str] = []
    offsets: List[int] = []
    for index, char in enumerate(text):
        folded = char.casefold()
        folded_parts.append(folded)
        offsets.extend([index] * len(folded))
    offsets.append(len(text))
    return "".join(folded_parts), offsets


def find_occurrences(body: str, phrase: str) -> Iterator[Occurrence]:
    """Yield non-overlapping matches of ``phrase`` in ``body``, left to right."""
    needle = phrase.casefold()
    if not needle:
        return

    haystack, offsets = fold_case(body)
    position = haystack.find(needle)
    while position != -1:
        end = position + len(needle)
        occurrence = Occurrence(offsets[position], offsets[end - 1] + 1)
        yield occurrence
        # Resume at the first folded character produced at or after the
        # occurrence end; a match inside an expanded fold must not repeat.
        position = haystack.find(needle, bisect_left(offsets, occurrence.end))


__all__ = ["Occurrence", "fold_case", "find_occurrences"]
