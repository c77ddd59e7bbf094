"""Game catalogue files: game names and their player limits."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Union

log = logging.getLogger(__name__)

PathArg = Union[str, "os.PathLike[str]"]

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class _LineFormatError(ValueError):
    """A catalogue line lacks one of its three comma-separated fields."""


@dataclass(frozen=True)
class GameSpec:
    """A game type with the number of players a match needs."""

    name: str
    min_players: int
    max_players: int


def _parse_count(text: str) -> int:
    """Read the integer at the start of ``text``; trailing text is ignored."""
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"invalid player count: {text!r}")
    return int(match.group(1))


def parse_game_line(line: str) -> GameSpec:
    """Parse one ``name,min,max`` catalogue line.

    Fields past the third are ignored. A line with fewer than three fields
    raises ``ValueError`` mentioning the invalid format; a count that does not
    start with an integer raises ``ValueError`` as well.
    """
    fields = line.split(",")
    if len(fields) < 3 or (len(fields) == 3 and fields[2] == ""):
        raise _LineFormatError(f"Invalid line format: {line}")
    name, low, high = fields[:3]
    return GameSpec(name, _parse_count(low), _parse_count(high))


def _read_lines(path: PathArg):
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            yield line.removesuffix("\n")


def load_games(path: PathArg) -> list[GameSpec]:
    """Load the server's catalogue, skipping lines with missing fields."""
    games = []
    for line in _read_lines(path):
        try:
            games.append(parse_game_line(line))
        except _LineFormatError as exc:
            log.error("%s", exc)
    return games


def load_game_names(path: PathArg) -> list[str]:
    """Load the client's catalogue: one game name per line, in order."""
    return list(_read_lines(path))