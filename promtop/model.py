"""Exposition data model.

Frozen types produced by the parser and consumed by the summarizer and view.
A document is read once at startup and never changes afterwards.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


class MetricType(Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    GAUGEHISTOGRAM = "gaugehistogram"
    SUMMARY = "summary"
    INFO = "info"
    STATESET = "stateset"
    UNTYPED = "untyped"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return self.value


# Suffixes of the lines that make up one sample of a composite type.
COMPONENT_SUFFIXES: MappingProxyType[MetricType, tuple[str, ...]] = MappingProxyType({
    MetricType.COUNTER: ("_total", "_created"),
    MetricType.HISTOGRAM: ("_bucket", "_count", "_sum", "_created"),
    MetricType.GAUGEHISTOGRAM: ("_bucket", "_gcount", "_gsum"),
    MetricType.SUMMARY: ("_count", "_sum", "_created"),
    MetricType.INFO: ("_info",),
})

type Labels = MappingProxyType[str, str]


@dataclass(frozen=True, slots=True)
class Sample:
    """One label-set of a family with every value reported for it.

    ``values`` maps a component key to its value: ``value`` for plain
    lines, ``count``/``sum``/``created``/``total`` for suffixed lines and
    ``bucket[<le>]``/``quantile[<q>]`` for bucket and quantile lines.
    """

    labels: Labels
    values: MappingProxyType[str, float]
    timestamp: float | None = None

    @property
    def value(self) -> float | None:
        return self.values.get("value")


@dataclass(frozen=True, slots=True)
class MetricFamily:
    name: str
    type: MetricType = MetricType.UNTYPED
    help: str | None = None
    unit: str | None = None
    samples: tuple[Sample, ...] = ()

    @property
    def labelsets(self) -> tuple[Labels, ...]:
        """Distinct label-sets in first-seen order."""
        seen: dict[tuple[tuple[str, str], ...], Labels] = {}
        for sample in self.samples:
            seen.setdefault(tuple(sorted(sample.labels.items())), sample.labels)
        return tuple(seen.values())


@dataclass(frozen=True, slots=True)
class ExpositionDocument:
    families: tuple[MetricFamily, ...] = ()
    _index: MappingProxyType[str, MetricFamily] = field(
        init=False, repr=False, compare=False,
    )

    def __post_init__(self) -> None:
        index: dict[str, MetricFamily] = {}
        for family in self.families:
            if family.name in index:
                raise ValueError(f"Duplicate metric family '{family.name}'")
            index[family.name] = family
        object.__setattr__(self, "_index", MappingProxyType(index))

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.families)

    def get(self, name: str) -> MetricFamily | None:
        return self._index.get(name)

    def __getitem__(self, name: str) -> MetricFamily:
        return self._index[name]

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[MetricFamily]:
        return iter(self.families)

    def __len__(self) -> int:
        return len(self.families)


@dataclass(frozen=True, slots=True)
class ParseError(Exception):
    """A document that could not be parsed; nothing of it is displayed."""

    reason: str
    line: str | None = None
    lineno: int | None = None

    def __str__(self) -> str:
        if self.lineno is not None and self.line is not None:
            return f"line {self.lineno}: {self.reason}: {self.line!r}"
        if self.line is not None:
            return f"{self.reason}: {self.line!r}"
        return self.reason


type ParseOutcome = ExpositionDocument | ParseError
