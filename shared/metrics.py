"""Prometheus metric helpers.

Thin wrappers around prometheus_client primitives with service-name
prefixing and naming validation. Metrics register on the default registry;
the helpers hand back the collector they created earlier under the same
name instead of registering a duplicate.
"""

from __future__ import annotations

import re

from prometheus_client import Counter, Histogram

_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]*$")


def _validate(name: str) -> str:
    if not _NAME_RE.match(name):  # pragma: no cover - simple guard
        raise ValueError(
            f"Invalid metric name '{name}'. Use snake_case alphanumerics/underscores."
        )
    return name


def _prefix(name: str, service: str | None) -> str:
    if service and not name.startswith(service + "_"):
        return f"{service}_{name}"
    return name


_collectors: dict[str, Counter | Histogram] = {}


def _existing(name: str):
    return _collectors.get(name)


def get_counter(
    name: str,
    documentation: str,
    service: str | None = None,
    labelnames: tuple[str, ...] = (),
) -> Counter:
    full_name = _validate(_prefix(name, service))
    found = _existing(full_name)
    if found is not None:
        return found
    counter = Counter(full_name, documentation, labelnames)
    _collectors[full_name] = counter
    return counter


def get_histogram(
    name: str,
    documentation: str,
    service: str | None = None,
    buckets: list[float] | None = None,
    labelnames: tuple[str, ...] = (),
) -> Histogram:
    full_name = _validate(_prefix(name, service))
    found = _existing(full_name)
    if found is not None:
        return found
    if buckets is None:
        histogram = Histogram(full_name, documentation, labelnames)
    else:
        histogram = Histogram(full_name, documentation, labelnames, buckets=buckets)
    _collectors[full_name] = histogram
    return histogram


__all__ = [
    "get_counter",
    "get_histogram",
]
