"""Built-in translation rules and exclude filters.

The tables are plain data; ``load_default_translation_rules`` and
``load_default_exclude_metrics`` validate them once and hand out immutable
results that callers pass explicitly into the translator and filter.
"""

from functools import lru_cache
from typing import Tuple

from metric_translation.models.filters import MetricFilter
from metric_translation.models.rules import BaseRule, parse_translation_rules

TEMP_METRICS = (
    "sf_temp.system.cpu.delta",
    "sf_temp.system.cpu.usage",
    "sf_temp.system.cpu.total",
    "sf_temp.memory.used",
    "sf_temp.memory.total",
    "sf_temp.filesystem.summary",
)

CPU_BUSY_STATES = ["interrupt", "nice", "softirq", "steal", "system", "user", "wait"]

FILESYSTEM_DEVICE_DIMENSIONS = ["device", "mode", "mountpoint", "type"]

DEFAULT_TRANSLATION_RULES = (
    {
        "action": "rename_dimension_keys",
        "mapping": {
            "host.name": "host",
            "k8s.cluster.name": "kubernetes_cluster",
            "k8s.namespace.name": "kubernetes_namespace",
            "k8s.node.name": "kubernetes_node",
            "k8s.pod.name": "kubernetes_pod_name",
            "k8s.pod.uid": "kubernetes_pod_uid",
            "container.id": "container_id",
            "container.image.name": "container_image",
        },
    },
    # cpu.utilization: busy share of all cpu time since the previous scrape
    {"action": "delta_metric", "mapping": {"system.cpu.time": "sf_temp.system.cpu.delta"}},
    {
        "action": "copy_metrics",
        "mapping": {"sf_temp.system.cpu.delta": "sf_temp.system.cpu.usage"},
        "dimension_key": "state",
        "dimension_values": CPU_BUSY_STATES,
    },
    {
        "action": "aggregate_metric",
        "metric_name": "sf_temp.system.cpu.usage",
        "aggregation_method": "sum",
        "without_dimensions": ["state", "cpu"],
    },
    {"action": "copy_metrics", "mapping": {"sf_temp.system.cpu.delta": "sf_temp.system.cpu.total"}},
    {
        "action": "aggregate_metric",
        "metric_name": "sf_temp.system.cpu.total",
        "aggregation_method": "sum",
        "without_dimensions": ["state", "cpu"],
    },
    {
        "action": "calculate_new_metric",
        "metric_name": "cpu.utilization",
        "operand1_metric": "sf_temp.system.cpu.usage",
        "operand2_metric": "sf_temp.system.cpu.total",
        "operator": "/",
    },
    # memory.utilization
    {
        "action": "copy_metrics",
        "mapping": {"system.memory.usage": "sf_temp.memory.used"},
        "dimension_key": "state",
        "dimension_values": ["used"],
    },
    {
        "action": "aggregate_metric",
        "metric_name": "sf_temp.memory.used",
        "aggregation_method": "sum",
        "without_dimensions": ["state"],
    },
    {
        "action": "copy_metrics",
        "mapping": {"system.memory.usage": "sf_temp.memory.total"},
        "dimension_key": "state",
        "dimension_values": ["buffered", "cached", "free", "used"],
    },
    {
        "action": "aggregate_metric",
        "metric_name": "sf_temp.memory.total",
        "aggregation_method": "sum",
        "without_dimensions": ["state"],
    },
    {
        "action": "calculate_new_metric",
        "metric_name": "memory.utilization",
        "operand1_metric": "sf_temp.memory.used",
        "operand2_metric": "sf_temp.memory.total",
        "operator": "/",
    },
    {
        "action": "multiply_float",
        "scale_factors_float": {"cpu.utilization": 100, "memory.utilization": 100},
    },
    # disk.utilization per filesystem and disk.summary_utilization per host
    {
        "action": "compute_utilization",
        "metric_name": "disk.utilization",
        "used": [{"metric_name": "system.filesystem.usage", "dimension_key": "state", "dimension_value": "used"}],
        "free": [{"metric_name": "system.filesystem.usage", "dimension_key": "state", "dimension_value": "free"}],
    },
    {"action": "copy_metrics", "mapping": {"system.filesystem.usage": "sf_temp.filesystem.summary"}},
    {
        "action": "aggregate_metric",
        "metric_name": "sf_temp.filesystem.summary",
        "aggregation_method": "sum",
        "without_dimensions": FILESYSTEM_DEVICE_DIMENSIONS,
    },
    {
        "action": "compute_utilization",
        "metric_name": "disk.summary_utilization",
        "used": [{"metric_name": "sf_temp.filesystem.summary", "dimension_key": "state", "dimension_value": "used"}],
        "free": [{"metric_name": "sf_temp.filesystem.summary", "dimension_key": "state", "dimension_value": "free"}],
    },
    # disk I/O rollups
    {
        "action": "copy_metrics",
        "mapping": {
            "system.disk.operations": "system.disk.operations.total",
            "system.disk.io": "system.disk.io.total",
        },
    },
    {
        "action": "aggregate_metric",
        "metric_name": "system.disk.operations.total",
        "aggregation_method": "sum",
        "without_dimensions": ["device"],
    },
    {
        "action": "aggregate_metric",
        "metric_name": "system.disk.io.total",
        "aggregation_method": "sum",
        "without_dimensions": ["device"],
    },
    {"action": "delta_metric", "mapping": {"system.disk.operations": "disk_ops.total"}},
    {
        "action": "aggregate_metric",
        "metric_name": "disk_ops.total",
        "aggregation_method": "sum",
        "without_dimensions": ["direction", "device"],
    },
    # network rollups
    {
        "action": "copy_metrics",
        "mapping": {
            "system.network.io": "system.network.io.total",
            "system.network.packets": "system.network.packets.total",
        },
    },
    {
        "action": "aggregate_metric",
        "metric_name": "system.network.io.total",
        "aggregation_method": "sum",
        "without_dimensions": ["device"],
    },
    {
        "action": "aggregate_metric",
        "metric_name": "system.network.packets.total",
        "aggregation_method": "sum",
        "without_dimensions": ["device"],
    },
    {"action": "copy_metrics", "mapping": {"system.network.io": "network.total"}},
    {
        "action": "aggregate_metric",
        "metric_name": "network.total",
        "aggregation_method": "sum",
        "without_dimensions": ["direction", "device"],
    },
    {"action": "drop_metrics", "metric_names": list(TEMP_METRICS)},
)

DEFAULT_EXCLUDE_METRICS = (
    # agent-style cpu metrics superseded by cpu.utilization
    {
        "metric_names": [
            "cpu.interrupt",
            "cpu.nice",
            "cpu.softirq",
            "cpu.steal",
            "cpu.system",
            "cpu.user",
            "cpu.utilization_per_core",
            "cpu.wait",
        ]
    },
    {
        "metric_names": [
            "disk_ops.pending",
            "if_dropped",
            "if_errors",
            "vmpage_io.memory.in",
            "vmpage_io.memory.out",
            "vmpage_io.swap.in",
            "vmpage_io.swap.out",
        ]
    },
    {
        "metric_name": "system.cpu.time",
        "dimensions": {
            "state": ["idle", "interrupt", "nice", "softirq", "steal", "system", "user", "wait"],
        },
    },
    {"metric_name": "cpu.idle", "dimensions": {"cpu": ["*"]}},
    {"metric_name": "system.memory.usage", "dimensions": {"state": ["inactive"]}},
    {"metric_names": ["system.filesystem.usage", "system.filesystem.inodes.usage"]},
    {
        "metric_names": [
            "system.disk.merged",
            "system.disk.io",
            "system.disk.time",
            "system.disk.io_time",
            "system.disk.operation_time",
            "system.disk.pending_operations",
            "system.disk.weighted_io_time",
        ]
    },
    {
        "metric_names": [
            "system.network.packets",
            "system.network.dropped",
            "system.network.tcp_connections",
            "system.network.connections",
        ]
    },
    {"metric_names": ["system.processes.count", "system.processes.created"]},
    {"metric_names": ["system.paging.faults", "system.paging.usage"]},
    {"metric_name": "system.paging.operations", "dimensions": {"type": ["minor"]}},
)


@lru_cache(maxsize=1)
def load_default_translation_rules() -> Tuple[BaseRule, ...]:
    return tuple(parse_translation_rules(DEFAULT_TRANSLATION_RULES))


@lru_cache(maxsize=1)
def load_default_exclude_metrics() -> Tuple[MetricFilter, ...]:
    return tuple(MetricFilter.model_validate(f) for f in DEFAULT_EXCLUDE_METRICS)
