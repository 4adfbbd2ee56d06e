"""Family summarizer: one display row per metric family."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .model import Labels, MetricFamily, MetricType, Sample

MULTIPLE_LABELSETS = "(multiple labelsets)"
NO_SAMPLES = "(no samples)"
ARROW = "\u2192"


@dataclass(frozen=True, slots=True)
class DisplayRow:
    name: str
    type_label: str
    summary: str


def format_value(value: float) -> str:
    """Locale-independent rendering: ``1027``, ``0.25``, ``NaN``, ``+Inf``."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def format_labels(labels: Labels) -> str:
    return ", ".join(f'{k}="{_escape(v)}"' for k, v in labels.items())


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _aggregate(family_type: MetricType, sample: Sample) -> str:
    values = sample.values
    match family_type:
        case MetricType.HISTOGRAM | MetricType.SUMMARY if "count" in values or "sum" in values:
            parts = [f"{k}={format_value(values[k])}" for k in ("count", "sum") if k in values]
            return " ".join(parts)
        case MetricType.GAUGEHISTOGRAM if "gcount" in values or "gsum" in values:
            parts = [f"{k}={format_value(values[k])}" for k in ("gcount", "gsum") if k in values]
            return " ".join(parts)
        case MetricType.HISTOGRAM | MetricType.GAUGEHISTOGRAM:
            buckets = sum(1 for k in values if k.startswith("bucket["))
            return f"{buckets} buckets"
        case MetricType.SUMMARY:
            quantiles = sum(1 for k in values if k.startswith("quantile["))
            return f"{quantiles} quantiles"

    for key in ("value", "total"):
        if key in values:
            return format_value(values[key])
    return " ".join(f"{k}={format_value(v)}" for k, v in values.items())


def summarize(family: MetricFamily) -> DisplayRow:
    """Reduce a family to a single row.

    One label-set renders as ``label="value", ... → value`` (or just the
    value when unlabelled); more than one renders the placeholder.
    """
    labelsets = family.labelsets
    if not labelsets:
        text = NO_SAMPLES
    elif len(labelsets) > 1:
        text = MULTIPLE_LABELSETS
    else:
        sample = family.samples[0]
        value = _aggregate(family.type, sample)
        text = f"{format_labels(sample.labels)} {ARROW} {value}" if sample.labels else value

    return DisplayRow(name=family.name, type_label=family.type.label, summary=text)
