"""Parser for anchor-alignment directive strings.

An alignment string is a comma separated list of directives. Each directive
holds up to four numeric tokens that are assigned, in order, to ``anchor_x``,
``anchor_y``, ``popover_x`` and ``popover_y``::

    "0.5 1 0.5 0"              anchor bottom-center to popover top-center
    "1+4px 0.5 0 0.5, 0 0.5"   right side, then a second candidate

A token may carry an offset with a unit (``0.5+4px``, ``1 - 2em``). Offsets and
units are not applied here; they are carried on the candidate for the
presentation layer to resolve. Malformed
input never raises: non-finite numbers collapse to ``0.0`` and offsets without a
unit are dropped. The parsed candidates are padded with synthesised fallbacks
(see :mod:`popover_anchor.alignment_transforms`).
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

from popover_anchor.alignment import ALIGNMENT_AXES, DEFAULT_ALIGNMENT, Alignment
from popover_anchor.alignment_transforms import build_fallback_chain

_LOGGER = logging.getLogger("PopoverAnchor.Parser")

_MAGNITUDE = r"(?:\d+(?:\.\d+)?|\.\d+)(?:[eE][+-]?\d+)?"
_NUMBER_RE = re.compile(r"[+-]?" + _MAGNITUDE)
_OFFSET_RE = re.compile(
    r"(?P<gap>\s*)(?P<sign>[+-])\s*(?P<magnitude>" + _MAGNITUDE + r")(?P<unit>[a-zA-Z%]*)"
)


@dataclass(frozen=True)
class AlignmentToken:
    """A single positional value from a directive, with its optional offset."""

    text: str
    position: float
    offset: float = 0.0
    unit: str = ""


def _finite_float(text: str) -> float:
    try:
        value = float(text)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def _clamp_unit(value: float) -> float:
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def tokenize_directive(directive: str) -> List[AlignmentToken]:
    """Split one directive into tokens, skipping characters that start no number.

    An offset may be spaced away from its number only when it carries a unit;
    otherwise a signed number after whitespace begins the next token. A sign
    glued to the number always forms an offset, and a non-zero unit-less offset
    is discarded along with its (empty) unit.
    """

    tokens: List[AlignmentToken] = []
    length = len(directive)
    pos = 0
    while pos < length:
        number_match = _NUMBER_RE.match(directive, pos)
        if number_match is None:
            pos += 1
            continue
        end = number_match.end()
        offset = 0.0
        unit = ""
        offset_match = _OFFSET_RE.match(directive, end)
        if offset_match is not None:
            glued = offset_match.group("gap") == ""
            unit = offset_match.group("unit")
            if unit or glued:
                offset = _finite_float(offset_match.group("sign") + offset_match.group("magnitude"))
                end = offset_match.end()
                if not unit and offset != 0.0:
                    _LOGGER.debug(
                        "Discarding unit-less offset %r in alignment directive %r",
                        offset_match.group(0),
                        directive,
                    )
                    offset = 0.0
        tokens.append(
            AlignmentToken(
                text=directive[number_match.start():end],
                position=_finite_float(number_match.group(0)),
                offset=offset,
                unit=unit,
            )
        )
        pos = end
    return tokens


def parse_directive(directive: str, *, clamp: bool = True) -> Alignment:
    """Build one explicit alignment; axes without a token keep their defaults."""

    fields: Dict[str, Any] = {}
    for axis, token in zip(ALIGNMENT_AXES, tokenize_directive(directive)):
        position = _clamp_unit(token.position) if clamp else token.position
        fields[axis] = position
        fields[f"{axis}_offset"] = token.offset
        fields[f"{axis}_offset_unit"] = token.unit
    if not fields:
        return DEFAULT_ALIGNMENT
    return replace(DEFAULT_ALIGNMENT, **fields)


def split_directives(alignment_input: str) -> List[str]:
    return [part.strip() for part in alignment_input.split(",") if part.strip()]


def canonical_candidates() -> Tuple[Alignment, ...]:
    """Candidates used when no directive is supplied."""

    return build_fallback_chain((DEFAULT_ALIGNMENT,))


@dataclass(frozen=True)
class _AlignmentCacheEntry:
    alignment_input: str
    clamp: bool
    result: Tuple[Alignment, ...]

    def matches(self, alignment_input: str, clamp: bool) -> bool:
        return self.alignment_input == alignment_input and self.clamp == clamp


class AlignmentParser:
    """Parse alignment strings, memoising the most recent result.

    The parser owns a single cache slot keyed by the stripped input and the
    resolved clamp flag. It is not thread-safe; use one parser per thread.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or _LOGGER
        self._cache: Optional[_AlignmentCacheEntry] = None

    def parse(self, alignment_input: Optional[str], *, clamp: Optional[bool] = True) -> Tuple[Alignment, ...]:
        """Return the ordered candidate alignments for ``alignment_input``.

        ``clamp`` limits positions to ``[0, 1]``; only an explicit ``False``
        disables it.
        """

        text = (alignment_input or "").strip()
        resolved_clamp = clamp is not False
        cached = self._cache
        if cached is not None and cached.matches(text, resolved_clamp):
            return cached.result

        result = self._calculate(text, resolved_clamp)
        self._cache = _AlignmentCacheEntry(alignment_input=text, clamp=resolved_clamp, result=result)
        self._logger.debug(
            "Parsed alignment %r (clamp=%s) into %d candidates", text, resolved_clamp, len(result)
        )
        return result

    def clear_cache(self) -> None:
        self._cache = None

    @property
    def cached_input(self) -> Optional[Tuple[str, bool]]:
        cached = self._cache
        if cached is None:
            return None
        return cached.alignment_input, cached.clamp

    def _calculate(self, text: str, clamp: bool) -> Tuple[Alignment, ...]:
        directives = split_directives(text)
        if not directives:
            return canonical_candidates()
        explicit = [parse_directive(directive, clamp=clamp) for directive in directives]
        return build_fallback_chain(explicit)


_default_parser = AlignmentParser()


def parse_alignment(alignment_input: Optional[str], *, clamp: Optional[bool] = True) -> Tuple[Alignment, ...]:
    """Parse with the process-wide default parser."""

    return _default_parser.parse(alignment_input, clamp=clamp)
