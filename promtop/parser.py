"""Prometheus / OpenMetrics text exposition parser.

Turns a response body into an ExpositionDocument. Parsing is all-or-nothing:
the first malformed line fails the whole document and nothing partial is
returned, so whatever the dashboard lists exists upstream exactly as written.

Grammar accepted:

    # HELP <name> <escaped text>
    # TYPE <name> <type>
    # UNIT <name> <unit>
    # EOF
    # any other comment
    <name>[{<label>="<value>",...}] <value> [<timestamp>] [# <exemplar>]

Component lines (``_bucket``, ``_sum``, ``_count``, ...) join their base
family only when that base is declared with a type owning the suffix.
Undeclared ``foo_bucket``/``foo_sum``/``foo_count`` stay three untyped
families, as other exposition parsers treat them, so unrelated metrics that
happen to share a prefix are never merged.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from loguru import logger

from .model import (
    COMPONENT_SUFFIXES,
    ExpositionDocument,
    MetricFamily,
    MetricType,
    ParseError,
    ParseOutcome,
    Sample,
)

_METRIC_NAME = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")
_LABEL_NAME = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_SPECIAL_VALUES: MappingProxyType[str, float] = MappingProxyType({
    "nan": math.nan,
    "inf": math.inf,
    "+inf": math.inf,
    "-inf": -math.inf,
    "infinity": math.inf,
    "+infinity": math.inf,
    "-infinity": -math.inf,
})

_ESCAPES: MappingProxyType[str, str] = MappingProxyType({"\\": "\\", '"': '"', "n": "\n"})

# Longest first so "_gcount" wins over "_count".
_ALL_SUFFIXES = tuple(sorted(
    {s for suffixes in COMPONENT_SUFFIXES.values() for s in suffixes},
    key=len,
    reverse=True,
))

log = logger.bind(component="parser")


# =============================================================================
# Drafts (mutable while the document is being read)
# =============================================================================


type _LabelKey = tuple[tuple[str, str], ...]


@dataclass(slots=True)
class _SampleDraft:
    labels: dict[str, str]
    values: dict[str, float] = field(default_factory=dict)
    timestamp: float | None = None

    def freeze(self) -> Sample:
        return Sample(
            labels=MappingProxyType(self.labels),
            values=MappingProxyType(self.values),
            timestamp=self.timestamp,
        )


@dataclass(slots=True)
class _FamilyDraft:
    name: str
    type: MetricType = MetricType.UNTYPED
    help: str | None = None
    unit: str | None = None
    typed: bool = False
    samples: dict[_LabelKey, _SampleDraft] = field(default_factory=dict)

    def freeze(self) -> MetricFamily:
        return MetricFamily(
            name=self.name,
            type=self.type,
            help=self.help,
            unit=self.unit,
            samples=tuple(s.freeze() for s in self.samples.values()),
        )


# =============================================================================
# Token helpers
# =============================================================================


def _parse_number(token: str, what: str) -> float:
    special = _SPECIAL_VALUES.get(token.lower())
    if special is not None:
        return special
    if not _DECIMAL.fullmatch(token):
        raise ParseError(f"invalid {what} '{token}'")
    return float(token)


def _skip_blanks(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in " \t":
        pos += 1
    return pos


def _parse_quoted(text: str, pos: int) -> tuple[str, int]:
    """Read a label value starting right after its opening quote."""
    chars: list[str] = []
    while pos < len(text):
        ch = text[pos]
        if ch == '"':
            return "".join(chars), pos + 1
        if ch == "\\":
            escaped = _ESCAPES.get(text[pos + 1 : pos + 2])
            if escaped is None:
                raise ParseError("invalid escape sequence in label value")
            chars.append(escaped)
            pos += 2
            continue
        chars.append(ch)
        pos += 1
    raise ParseError("unterminated label value")


def _parse_labels(text: str, pos: int) -> tuple[dict[str, str], int]:
    """Read ``{...}`` starting at the opening brace."""
    labels: dict[str, str] = {}
    pos += 1
    while True:
        pos = _skip_blanks(text, pos)
        if text[pos : pos + 1] == "}":
            return labels, pos + 1

        match = _LABEL_NAME.match(text, pos)
        if match is None:
            raise ParseError("invalid label name")
        name = match.group()
        pos = _skip_blanks(text, match.end())

        if text[pos : pos + 1] != "=":
            raise ParseError(f"expected '=' after label '{name}'")
        pos = _skip_blanks(text, pos + 1)
        if text[pos : pos + 1] != '"':
            raise ParseError(f"expected quoted value for label '{name}'")
        value, pos = _parse_quoted(text, pos + 1)

        if name in labels:
            raise ParseError(f"duplicate label '{name}'")
        labels[name] = value

        pos = _skip_blanks(text, pos)
        match text[pos : pos + 1]:
            case ",":
                pos += 1
            case "}":
                return labels, pos + 1
            case _:
                raise ParseError("expected ',' or '}' in label set")


@dataclass(frozen=True, slots=True)
class _SampleLine:
    name: str
    labels: dict[str, str]
    value: float
    timestamp: float | None


def _parse_sample_line(line: str) -> _SampleLine:
    match = _METRIC_NAME.match(line)
    if match is None:
        raise ParseError("invalid metric name")
    name = match.group()
    pos = match.end()

    labels: dict[str, str] = {}
    if line[pos : pos + 1] == "{":
        labels, pos = _parse_labels(line, pos)
    elif pos < len(line) and line[pos] not in " \t":
        raise ParseError("invalid metric name")

    rest = line[pos:]
    if " # " in rest:
        rest = rest.split(" # ", 1)[0]
    tokens = rest.split()

    if not tokens:
        raise ParseError(f"missing value for '{name}'")
    value = _parse_number(tokens[0], "value")

    match tokens[1:]:
        case []:
            return _SampleLine(name, labels, value, None)
        case [timestamp]:
            return _SampleLine(name, labels, value, _parse_number(timestamp, "timestamp"))
        case _:
            raise ParseError("unexpected content after timestamp")


def _unescape_help(text: str) -> str:
    chars: list[str] = []
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch == "\\" and pos + 1 < len(text) and text[pos + 1] in "\\n":
            chars.append("\n" if text[pos + 1] == "n" else "\\")
            pos += 2
            continue
        chars.append(ch)
        pos += 1
    return "".join(chars)


# =============================================================================
# Document builder
# =============================================================================


class _DocumentBuilder:
    """Accumulates families line by line, enforcing one block per family."""

    def __init__(self) -> None:
        self._families: dict[str, _FamilyDraft] = {}
        self._current: str | None = None
        self._eof = False

    def feed(self, line: str) -> None:
        stripped = line.strip()
        if not stripped:
            return
        if self._eof:
            raise ParseError("content after # EOF")
        if stripped.startswith("#"):
            self._comment(stripped[1:])
        else:
            self._sample(stripped)

    def build(self) -> ExpositionDocument:
        return ExpositionDocument(tuple(f.freeze() for f in self._families.values()))

    # --- families ---

    def _open(self, name: str) -> _FamilyDraft:
        if name == self._current:
            return self._families[name]
        if name in self._families:
            raise ParseError(f"metric family '{name}' appears more than once")
        draft = _FamilyDraft(name=name)
        self._families[name] = draft
        self._current = name
        return draft

    def _resolve(self, name: str) -> tuple[str, str]:
        """Map a sample name to (family name, component suffix)."""
        if name in self._families:
            return name, ""
        for suffix in _ALL_SUFFIXES:
            if not name.endswith(suffix) or len(name) == len(suffix):
                continue
            base = name[: -len(suffix)]
            draft = self._families.get(base)
            if draft is not None and suffix in COMPONENT_SUFFIXES.get(draft.type, ()):
                return base, suffix
        return name, ""

    # --- metadata ---

    def _comment(self, body: str) -> None:
        parts = body.strip().split(None, 2)
        keyword = parts[0] if parts else ""

        if keyword == "EOF" and len(parts) == 1:
            self._eof = True
            return
        if keyword not in ("HELP", "TYPE", "UNIT"):
            return
        if len(parts) < 2 or not _METRIC_NAME.fullmatch(parts[1]):
            raise ParseError(f"{keyword} line without a valid metric name")

        name = parts[1]
        text = parts[2] if len(parts) == 3 else ""
        draft = self._open(name)

        match keyword:
            case "HELP":
                if draft.help is not None:
                    raise ParseError(f"second HELP line for '{name}'")
                draft.help = _unescape_help(text)
            case "TYPE":
                if draft.typed:
                    raise ParseError(f"second TYPE line for '{name}'")
                if draft.samples:
                    raise ParseError(f"TYPE line for '{name}' after its samples")
                try:
                    draft.type = MetricType(text.strip())
                except ValueError:
                    raise ParseError(f"unknown metric type '{text.strip()}'") from None
                draft.typed = True
            case "UNIT":
                if draft.unit is not None:
                    raise ParseError(f"second UNIT line for '{name}'")
                draft.unit = text.strip()

    # --- samples ---

    def _sample(self, line: str) -> None:
        parsed = _parse_sample_line(line)
        family_name, suffix = self._resolve(parsed.name)
        draft = self._open(family_name)

        labels = dict(parsed.labels)
        match suffix:
            case "_bucket":
                le = labels.pop("le", None)
                if le is None:
                    raise ParseError(f"bucket of '{family_name}' without 'le' label")
                key = f"bucket[{le}]"
            case "" if draft.type is MetricType.SUMMARY and "quantile" in labels:
                key = f"quantile[{labels.pop('quantile')}]"
            case "":
                key = "value"
            case _:
                key = suffix[1:]

        label_key = tuple(sorted(labels.items()))
        sample = draft.samples.get(label_key)
        if sample is None:
            sample = draft.samples[label_key] = _SampleDraft(labels=labels)
        if key in sample.values:
            raise ParseError(f"duplicate sample for '{parsed.name}'")
        sample.values[key] = parsed.value
        if sample.timestamp is None:
            sample.timestamp = parsed.timestamp


# =============================================================================
# Public API
# =============================================================================


def parse(text: str) -> ParseOutcome:
    """Parse an exposition body.

    Returns the document, or the ParseError describing the first malformed
    line. Never returns a partial document.
    """
    builder = _DocumentBuilder()
    for lineno, line in enumerate(text.split("\n"), start=1):
        try:
            builder.feed(line)
        except ParseError as exc:
            error = replace(exc, line=line.rstrip("\r"), lineno=lineno)
            log.warning("Exposition rejected: {error}", error=error)
            return error

    document = builder.build()
    log.debug(
        "Parsed {families} families from {size} bytes",
        families=len(document),
        size=len(text),
    )
    return document
