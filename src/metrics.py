"""In-process metrics for the shop, exported in Prometheus text format.

Counters, gauges and histograms are kept in a module-level registry and
rendered by :func:`generate_metrics_text`.  Only the standard library is
used.
"""

from collections import defaultdict
from threading import Lock
from typing import Dict, Iterable, List, Tuple


class Metric:
    """Base class for all metrics."""

    kind = "untyped"

    def __init__(self, name: str, description: str, label_names: Iterable[str]):
        self.name = name
        self.description = description
        self.label_names = list(label_names)
        self._lock = Lock()
        _METRIC_REGISTRY.append(self)

    def _label_key(self, labels: Dict[str, str]) -> Tuple[str, ...]:
        return tuple(str(labels.get(k, "")) for k in self.label_names)

    def _format_labels(self, label_values: Tuple[str, ...], **extra: str) -> str:
        pairs = [f'{name}="{value}"' for name, value in zip(self.label_names, label_values)]
        pairs.extend(f'{name}="{value}"' for name, value in extra.items())
        if not pairs:
            return ""
        return "{" + ",".join(pairs) + "}"

    def _header(self) -> List[str]:
        return [f"# HELP {self.name} {self.description}", f"# TYPE {self.name} {self.kind}"]

    def to_prometheus(self) -> List[str]:
        """Return a list of strings in Prometheus exposition format."""
        raise NotImplementedError

    def reset(self) -> None:
        raise NotImplementedError


class Counter(Metric):
    """Monotonic counter.  ``ORDERS.inc(status="ok")`` adds one."""

    kind = "counter"

    def __init__(self, name: str, description: str, label_names: Iterable[str] = ()):
        super().__init__(name, description, label_names)
        self._values: Dict[Tuple[str, ...], int] = defaultdict(int)

    def inc(self, **labels: str) -> None:
        key = self._label_key(labels)
        with self._lock:
            self._values[key] += 1

    def value(self, **labels: str) -> int:
        with self._lock:
            return self._values.get(self._label_key(labels), 0)

    def reset(self) -> None:
        with self._lock:
            self._values.clear()

    def to_prometheus(self) -> List[str]:
        lines = self._header()
        with self._lock:
            for label_values, value in self._values.items():
                lines.append(f"{self.name}{self._format_labels(label_values)} {value}")
        return lines


class Gauge(Metric):
    """Gauge holding the last value set for each label combination."""

    kind = "gauge"

    def __init__(self, name: str, description: str, label_names: Iterable[str] = ()):
        super().__init__(name, description, label_names)
        self._values: Dict[Tuple[str, ...], float] = {}

    def set(self, value: float, **labels: str) -> None:
        key = self._label_key(labels)
        with self._lock:
            self._values[key] = float(value)

    def value(self, **labels: str) -> float:
        with self._lock:
            return self._values.get(self._label_key(labels), 0.0)

    def reset(self) -> None:
        with self._lock:
            self._values.clear()

    def to_prometheus(self) -> List[str]:
        lines = self._header()
        with self._lock:
            for label_values, value in self._values.items():
                lines.append(f"{self.name}{self._format_labels(label_values)} {value}")
        return lines


class Histogram(Metric):
    """Histogram with fixed ascending bucket bounds plus ``+Inf``."""

    kind = "histogram"

    def __init__(self, name: str, description: str, label_names: Iterable[str], buckets: Iterable[float]):
        super().__init__(name, description, label_names)
        self.buckets = sorted(float(b) for b in buckets)
        self.counts: Dict[Tuple[str, ...], List[int]] = defaultdict(lambda: [0] * len(self.buckets))
        self.sums: Dict[Tuple[str, ...], float] = defaultdict(float)
        self.total_counts: Dict[Tuple[str, ...], int] = defaultdict(int)

    def observe(self, value: float, **labels: str) -> None:
        key = self._label_key(labels)
        value = float(value)
        with self._lock:
            for idx, upper in enumerate(self.buckets):
                if value <= upper:
                    self.counts[key][idx] += 1
                    break
            self.total_counts[key] += 1
            self.sums[key] += value

    def count(self, **labels: str) -> int:
        with self._lock:
            return self.total_counts.get(self._label_key(labels), 0)

    def reset(self) -> None:
        with self._lock:
            self.counts.clear()
            self.sums.clear()
            self.total_counts.clear()

    def to_prometheus(self) -> List[str]:
        lines = self._header()
        with self._lock:
            for label_values, total in self.total_counts.items():
                cumulative = 0
                for idx, upper in enumerate(self.buckets):
                    cumulative += self.counts[label_values][idx]
                    le = self._format_labels(label_values, le=str(upper))
                    lines.append(f"{self.name}_bucket{le} {cumulative}")
                inf = self._format_labels(label_values, le="+Inf")
                lines.append(f"{self.name}_bucket{inf} {total}")
                label_str = self._format_labels(label_values)
                lines.append(f"{self.name}_sum{label_str} {self.sums[label_values]}")
                lines.append(f"{self.name}_count{label_str} {total}")
        return lines


_METRIC_REGISTRY: List[Metric] = []


def generate_metrics_text() -> str:
    """Render every registered metric."""
    lines: List[str] = []
    for metric in _METRIC_REGISTRY:
        lines.extend(metric.to_prometheus())
    return "\n".join(lines)


def reset_metrics() -> None:
    """Clear all recorded values (used between test cases)."""
    for metric in _METRIC_REGISTRY:
        metric.reset()


# -----------------------------------------------------------------------------
# Metrics recorded by the shop and the payment service.
# -----------------------------------------------------------------------------

ORDERS_PROCESSED_TOTAL = Counter(
    name="shop_orders_processed_total",
    description="Orders accepted by the shop",
)

OPERATIONS_REJECTED_TOTAL = Counter(
    name="shop_operations_rejected_total",
    description="Guarded operations that refused their input, labelled by operation",
    label_names=["operation"],
)

PAYMENTS_TOTAL = Counter(
    name="shop_payments_total",
    description="Payment status changes, labelled by resulting status and method",
    label_names=["status", "method"],
)

PRODUCT_STOCK = Gauge(
    name="shop_product_stock",
    description="Units in stock per product",
    label_names=["product_id"],
)

# Order totals in so'm; bounds span bread to phones.
ORDER_TOTAL_AMOUNT = Histogram(
    name="shop_order_total_amount",
    description="Order totals at processing time",
    label_names=[],
    buckets=[10_000, 100_000, 1_000_000, 10_000_000, 100_000_000],
)
