"""Shared fixtures for metric translation tests."""

import json
from pathlib import Path
from typing import Dict, List, Sequence

import pytest

from metric_translation.models.metrics import DataPoint, MetricType
from metric_translation.models.resource import (
    AggregationTemporality,
    Metric,
    MetricDataType,
    NumberDataPoint,
    ResourceMetrics,
)

TESTDATA = Path(__file__).parent / "testdata" / "json"

T0 = 1596000000  # seconds
T0_NANOS = T0 * 1_000_000_000
T0_MILLIS = T0 * 1000


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_point(
    metric: str,
    value,
    dimensions: Dict[str, str] | None = None,
    timestamp: int = T0_MILLIS,
    metric_type: MetricType = MetricType.GAUGE,
) -> DataPoint:
    return DataPoint(
        metric=metric,
        value=value,
        dimensions=dict(dimensions or {}),
        timestamp=timestamp,
        metric_type=metric_type,
    )


def by_metric(points: Sequence[DataPoint]) -> Dict[str, List[DataPoint]]:
    grouped: Dict[str, List[DataPoint]] = {}
    for point in points:
        grouped.setdefault(point.metric, []).append(point)
    return grouped


def read_points(name: str) -> List[DataPoint]:
    with open(TESTDATA / name) as f:
        return [DataPoint.from_dict(d) for d in json.load(f)]


def _metric(name, keys, series, data_type, seconds=T0, unit=""):
    points = [
        NumberDataPoint(
            attributes=dict(zip(keys, values)),
            value=value,
            time_unix_nano=seconds * 1_000_000_000,
        )
        for values, value in series
    ]
    metric = Metric(name=name, data_type=data_type, data_points=points, unit=unit)
    if data_type == MetricDataType.SUM:
        metric.is_monotonic = True
        metric.aggregation_temporality = AggregationTemporality.CUMULATIVE
    return metric


def host_metrics_data() -> ResourceMetrics:
    """Host metrics batch holding two disk-operations scrapes 60s apart"""
    gauge, cumulative = MetricDataType.GAUGE, MetricDataType.SUM
    k8s = ["host", "kubernetes_node", "kubernetes_cluster"]
    node = ("host0", "node0", "cluster0")
    disk_keys = ["host", "direction", "device"]
    net_keys = ["direction", "device"] + k8s
    metrics = [
        _metric(
            "system.memory.usage",
            ["state"] + k8s,
            [(("used",) + node, 4_000_000_000), (("free",) + node, 6_000_000_000)],
            gauge,
            unit="bytes",
        ),
        _metric(
            "system.disk.io",
            disk_keys,
            [
                (("host0", "read", "sda1"), 1_000_000_000),
                (("host0", "read", "sda2"), 2_000_000_000),
                (("host0", "write", "sda1"), 3_000_000_000),
                (("host0", "write", "sda2"), 8_000_000_000),
            ],
            cumulative,
        ),
        _metric(
            "system.disk.operations",
            disk_keys,
            [
                (("host0", "read", "sda1"), 4000),
                (("host0", "read", "sda2"), 6000),
                (("host0", "write", "sda1"), 1000),
                (("host0", "write", "sda2"), 5000),
            ],
            cumulative,
        ),
        _metric(
            "system.disk.operations",
            disk_keys,
            [
                (("host0", "read", "sda1"), 6000),
                (("host0", "read", "sda2"), 8000),
                (("host0", "write", "sda1"), 3000),
                (("host0", "write", "sda2"), 7000),
            ],
            cumulative,
            seconds=T0 + 60,
        ),
        _metric(
            "system.network.io",
            net_keys,
            [
                (("receive", "eth0") + node, 4_000_000_000),
                (("transmit", "eth0") + node, 6_000_000_000),
            ],
            gauge,
            unit="bytes",
        ),
        _metric(
            "system.network.packets",
            net_keys,
            [
                (("receive", "eth0") + node, 200),
                (("receive", "eth1") + node, 150),
            ],
            gauge,
        ),
        _metric("container.memory.working_set", k8s, [(node, 1000)], gauge, unit="bytes"),
        _metric("container.memory.page_faults", k8s, [(node, 1000)], gauge),
        _metric("container.memory.major_page_faults", k8s, [(node, 1000)], gauge),
    ]
    return ResourceMetrics(resource_attributes={}, metrics=metrics)


@pytest.fixture
def metrics_data() -> ResourceMetrics:
    return host_metrics_data()
