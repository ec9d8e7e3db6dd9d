"""Tests for applying translation rules to data point batches."""

import pytest

from metric_translation.converters.otel import resource_metrics_to_data_points
from metric_translation.models.metrics import DataPoint, MetricType, ValueKind
from metric_translation.models.rules import parse_translation_rules
from metric_translation.translators.renames import rename_keys
from metric_translation.translators.stateful import _CumulativeHandler
from metric_translation.translators.translator import MetricTranslator
from metric_translation.translators.values import truncating_div

from conftest import T0_MILLIS, by_metric, host_metrics_data, make_point

CUMULATIVE = MetricType.CUMULATIVE_COUNTER


def translate(rules, points, **kwargs):
    return MetricTranslator(rules, **kwargs).translate_data_points(points)


class TestTranslator:
    def test_no_rules_returns_equal_copies(self):
        points = [make_point("m", 1, {"host": "h0"}), make_point("n", 2.5)]
        result = translate([], points)
        assert result == points
        assert all(a is not b for a, b in zip(result, points))

    def test_input_is_not_mutated(self):
        point = make_point("m", 1, {"host.name": "h0"})
        translate(
            [
                {"action": "rename_dimension_keys", "mapping": {"host.name": "host"}},
                {"action": "rename_metrics", "mapping": {"m": "n"}},
            ],
            [point],
        )
        assert point == make_point("m", 1, {"host.name": "h0"})

    def test_rule_order_is_significant(self):
        points = [make_point("a", 1)]
        rename_then_copy = translate(
            [
                {"action": "rename_metrics", "mapping": {"a": "b"}},
                {"action": "copy_metrics", "mapping": {"a": "c"}},
            ],
            points,
        )
        copy_then_rename = translate(
            [
                {"action": "copy_metrics", "mapping": {"a": "c"}},
                {"action": "rename_metrics", "mapping": {"a": "b"}},
            ],
            points,
        )
        assert [p.metric for p in rename_then_copy] == ["b"]
        assert [p.metric for p in copy_then_rename] == ["b", "c"]


class TestRenames:
    def test_rename_dimension_keys(self):
        (point,) = translate(
            [{"action": "rename_dimension_keys", "mapping": {"k8s.node.name": "kubernetes_node"}}],
            [make_point("m", 1, {"k8s.node.name": "n0", "state": "used"})],
        )
        assert point.dimensions == {"kubernetes_node": "n0", "state": "used"}

    def test_rename_dimension_keys_scoped_to_metrics(self):
        result = translate(
            [{"action": "rename_dimension_keys", "mapping": {"a": "b"}, "metric_names": ["m"]}],
            [make_point("m", 1, {"a": "1"}), make_point("n", 1, {"a": "1"})],
        )
        assert [p.dimensions for p in result] == [{"b": "1"}, {"a": "1"}]

    def test_collision_later_mapping_entry_wins(self):
        assert rename_keys({"a": "1", "b": "2", "c": "3"}, {"a": "x", "b": "x"}) == {"x": "2", "c": "3"}
        assert rename_keys({"b": "2", "a": "1"}, {"a": "x", "b": "x"}) == {"x": "2"}

    def test_collision_renamed_key_beats_existing_key(self):
        assert rename_keys({"x": "0", "a": "1"}, {"a": "x"}) == {"x": "1"}
        assert rename_keys({"a": "1", "x": "0"}, {"a": "x"}) == {"x": "1"}

    def test_rename_metrics(self):
        result = translate(
            [{"action": "rename_metrics", "mapping": {"old": "new"}}],
            [make_point("old", 1), make_point("other", 2)],
        )
        assert [p.metric for p in result] == ["new", "other"]

    def test_drop_dimensions(self):
        result = translate(
            [{"action": "drop_dimensions", "dimensions": ["cpu"], "metric_names": ["m"]}],
            [make_point("m", 1, {"cpu": "0", "host": "h"}), make_point("n", 1, {"cpu": "0"})],
        )
        assert [p.dimensions for p in result] == [{"host": "h"}, {"cpu": "0"}]

    def test_drop_metrics(self):
        result = translate(
            [{"action": "drop_metrics", "metric_names": ["tmp", "absent"]}],
            [make_point("tmp", 1), make_point("keep", 2), make_point("tmp", 3)],
        )
        assert [p.metric for p in result] == ["keep"]


class TestValueRules:
    def test_multiply_int(self):
        result = translate(
            [{"action": "multiply_int", "scale_factors_int": {"m": 3}}],
            [make_point("m", 5), make_point("n", 5)],
        )
        assert [p.value for p in result] == [15, 5]

    def test_int_rules_leave_doubles_unchanged(self):
        result = translate(
            [
                {"action": "multiply_int", "scale_factors_int": {"m": 3}},
                {"action": "divide_int", "scale_factors_int": {"m": 2}},
            ],
            [make_point("m", 2.5)],
        )
        assert result[0].value == 2.5

    def test_divide_int_truncates_toward_zero(self):
        result = translate(
            [{"action": "divide_int", "scale_factors_int": {"m": 2}}],
            [make_point("m", 7), make_point("m", -7)],
        )
        assert [p.value for p in result] == [3, -3]
        assert all(p.value_kind == ValueKind.INT for p in result)

    def test_truncating_div_is_exact_for_large_ints(self):
        assert truncating_div(10**30 + 1, 10) == 10**29
        assert truncating_div(-(10**30) - 1, 10) == -(10**29)

    def test_multiply_float_promotes(self):
        (point,) = translate(
            [{"action": "multiply_float", "scale_factors_float": {"m": 0.5}}],
            [make_point("m", 3)],
        )
        assert point.value == 1.5
        assert point.value_kind == ValueKind.DOUBLE

    def test_convert_values(self):
        result = translate(
            [{"action": "convert_values", "types_mapping": {"to_double": "double", "to_int": "int"}}],
            [make_point("to_double", 3), make_point("to_int", 2.9), make_point("to_int", -2.9)],
        )
        assert [p.value for p in result] == [3.0, 2, -2]
        assert [p.value_kind for p in result] == [ValueKind.DOUBLE, ValueKind.INT, ValueKind.INT]

    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_convert_unrepresentable_double_is_left_alone(self, value):
        (point,) = translate(
            [{"action": "convert_values", "types_mapping": {"m": "int"}}], [make_point("m", value)]
        )
        assert point.value_kind == ValueKind.DOUBLE


class TestDerivedMetrics:
    def test_copy_metrics(self):
        result = translate(
            [{"action": "copy_metrics", "mapping": {"m": "m.copy"}}],
            [make_point("m", 1, {"host": "h"})],
        )
        assert [(p.metric, p.value, p.dimensions) for p in result] == [
            ("m", 1, {"host": "h"}),
            ("m.copy", 1, {"host": "h"}),
        ]
        result[1].dimensions["host"] = "changed"
        assert result[0].dimensions == {"host": "h"}

    def test_copy_metrics_selected_dimension_values(self):
        result = translate(
            [
                {
                    "action": "copy_metrics",
                    "mapping": {"m": "busy"},
                    "dimension_key": "state",
                    "dimension_values": ["user", "system"],
                }
            ],
            [
                make_point("m", 1, {"state": "user"}),
                make_point("m", 2, {"state": "idle"}),
                make_point("m", 3, {"state": "system"}),
                make_point("m", 4),
            ],
        )
        assert [p.value for p in by_metric(result)["busy"]] == [1, 3]

    def test_copy_metrics_requires_dimension_key_present(self):
        result = translate(
            [{"action": "copy_metrics", "mapping": {"m": "c"}, "dimension_key": "state"}],
            [make_point("m", 1, {"state": "x"}), make_point("m", 2)],
        )
        assert [p.value for p in by_metric(result)["c"]] == [1]

    def test_split_metric(self):
        result = translate(
            [
                {
                    "action": "split_metric",
                    "metric_name": "io",
                    "dimension_key": "direction",
                    "mapping": {"read": "io.read", "write": "io.write"},
                }
            ],
            [
                make_point("io", 1, {"direction": "read", "device": "sda"}),
                make_point("io", 2, {"direction": "write", "device": "sda"}),
                make_point("io", 3, {"direction": "other", "device": "sda"}),
            ],
        )
        grouped = by_metric(result)
        assert len(grouped["io"]) == 3
        assert [(p.value, p.dimensions) for p in grouped["io.read"]] == [(1, {"device": "sda"})]
        assert [(p.value, p.dimensions) for p in grouped["io.write"]] == [(2, {"device": "sda"})]

    @pytest.mark.parametrize(
        "operator, expected",
        [("+", 12), ("-", 8), ("*", 20), ("/", 5.0)],
    )
    def test_calculate_new_metric(self, operator, expected):
        result = translate(
            [
                {
                    "action": "calculate_new_metric",
                    "metric_name": "out",
                    "operand1_metric": "a",
                    "operand2_metric": "b",
                    "operator": operator,
                }
            ],
            [make_point("a", 10, {"host": "h"}), make_point("b", 2, {"host": "h"})],
        )
        (point,) = by_metric(result)["out"]
        assert point.value == expected
        assert point.dimensions == {"host": "h"}
        assert point.metric_type == MetricType.GAUGE

    def test_calculate_new_metric_needs_matching_dimensions(self):
        result = translate(
            [
                {
                    "action": "calculate_new_metric",
                    "metric_name": "out",
                    "operand1_metric": "a",
                    "operand2_metric": "b",
                    "operator": "+",
                }
            ],
            [make_point("a", 1, {"host": "h0"}), make_point("b", 2, {"host": "h1"})],
        )
        assert "out" not in by_metric(result)

    def test_calculate_new_metric_skips_division_by_zero(self):
        result = translate(
            [
                {
                    "action": "calculate_new_metric",
                    "metric_name": "out",
                    "operand1_metric": "a",
                    "operand2_metric": "b",
                    "operator": "/",
                }
            ],
            [make_point("a", 1), make_point("b", 0)],
        )
        assert [p.metric for p in result] == ["a", "b"]

    def test_compute_utilization(self):
        rule = {
            "action": "compute_utilization",
            "metric_name": "disk.utilization",
            "used": [{"metric_name": "fs", "dimension_key": "state", "dimension_value": "used"}],
            "free": [{"metric_name": "fs", "dimension_key": "state", "dimension_value": "free"}],
        }
        result = translate(
            [rule],
            [
                make_point("fs", 25, {"state": "used", "device": "sda1"}),
                make_point("fs", 75, {"state": "free", "device": "sda1"}),
                make_point("fs", 10, {"state": "used", "device": "sda2"}),
                make_point("fs", 0, {"state": "used", "device": "sdb"}),
                make_point("fs", 0, {"state": "free", "device": "sdb"}),
            ],
        )
        (point,) = by_metric(result)["disk.utilization"]
        assert point.value == 25.0
        assert point.dimensions == {"device": "sda1"}
        assert point.metric_type == MetricType.GAUGE


class TestAggregateMetric:
    def test_sum(self):
        result = translate(
            [{"action": "aggregate_metric", "metric_name": "m", "without_dimensions": ["device"]}],
            [
                make_point("m", 1, {"host": "h", "device": "a"}),
                make_point("other", 9),
                make_point("m", 2, {"host": "h", "device": "b"}),
                make_point("m", 4, {"host": "g", "device": "a"}),
            ],
        )
        assert [(p.metric, p.value, p.dimensions) for p in result] == [
            ("other", 9, {}),
            ("m", 3, {"host": "h"}),
            ("m", 4, {"host": "g"}),
        ]

    def test_count(self):
        result = translate(
            [
                {
                    "action": "aggregate_metric",
                    "metric_name": "m",
                    "aggregation_method": "count",
                    "without_dimensions": ["cpu"],
                }
            ],
            [make_point("m", 0.5, {"cpu": str(n)}) for n in range(4)],
        )
        assert [(p.value, p.dimensions) for p in result] == [(4, {})]

    def test_points_missing_removed_dimension_are_dropped(self):
        result = translate(
            [{"action": "aggregate_metric", "metric_name": "m", "without_dimensions": ["device"]}],
            [make_point("m", 1, {"device": "a"}), make_point("m", 2, {"host": "h"})],
        )
        assert [(p.value, p.dimensions) for p in result] == [(1, {})]

    def test_large_ints_stay_exact(self):
        big = 2**62
        (point,) = translate(
            [{"action": "aggregate_metric", "metric_name": "m", "without_dimensions": ["d"]}],
            [make_point("m", big + 1, {"d": "a"}), make_point("m", big, {"d": "b"})],
        )
        assert point.value == 2 * big + 1
        assert point.value_kind == ValueKind.INT

    def test_timestamps_are_not_merged(self):
        result = translate(
            [{"action": "aggregate_metric", "metric_name": "m", "without_dimensions": ["d"]}],
            [
                make_point("m", 1, {"d": "a"}),
                make_point("m", 2, {"d": "b"}, timestamp=T0_MILLIS + 1000),
            ],
        )
        assert [p.value for p in result] == [1, 2]


class TestStatefulRules:
    def test_delta_metric_across_batches(self):
        translator = MetricTranslator([{"action": "delta_metric", "mapping": {"c": "c.delta"}}])
        first = translator.translate_data_points([make_point("c", 100, metric_type=CUMULATIVE)])
        assert "c.delta" not in by_metric(first)

        second = translator.translate_data_points(
            [make_point("c", 160, timestamp=T0_MILLIS + 10_000, metric_type=CUMULATIVE)]
        )
        (point,) = by_metric(second)["c.delta"]
        assert point.value == 60
        assert point.metric_type == MetricType.COUNTER
        assert point.timestamp == T0_MILLIS + 10_000

    def test_compute_rate_ignores_non_cumulative_points(self):
        translator = MetricTranslator([{"action": "compute_rate", "mapping": {"g": "g.rate"}}])
        for ts in (T0_MILLIS, T0_MILLIS + 1000):
            result = translator.translate_data_points([make_point("g", 1, timestamp=ts)])
            assert [p.metric for p in result] == ["g"]

    def test_disk_ops_rate_aggregated_per_direction(self):
        points = resource_metrics_to_data_points(host_metrics_data())
        result = translate(
            [
                {"action": "compute_rate", "mapping": {"system.disk.operations": "disk_ops.rate"}},
                {
                    "action": "aggregate_metric",
                    "metric_name": "disk_ops.rate",
                    "without_dimensions": ["device"],
                },
            ],
            points,
        )
        rates = {p.dimensions["direction"]: p for p in by_metric(result)["disk_ops.rate"]}
        assert set(rates) == {"read", "write"}
        for point in rates.values():
            assert point.value == pytest.approx(2000 / 60 + 2000 / 60)
            assert point.dimensions == {"host": "host0", "direction": point.dimensions["direction"]}
            assert point.metric_type == MetricType.GAUGE

    def test_each_stateful_rule_keeps_its_own_state(self):
        translator = MetricTranslator(
            [
                {"action": "delta_metric", "mapping": {"c": "c.delta"}},
                {"action": "compute_rate", "mapping": {"c": "c.rate"}},
            ]
        )
        translator.translate_data_points([make_point("c", 0, metric_type=CUMULATIVE)])
        result = translator.translate_data_points(
            [make_point("c", 50, timestamp=T0_MILLIS + 5000, metric_type=CUMULATIVE)]
        )
        grouped = by_metric(result)
        assert grouped["c.delta"][0].value == 50
        assert grouped["c.rate"][0].value == 10.0

    def test_state_expires_after_ttl(self, clock):
        translator = MetricTranslator(
            [{"action": "delta_metric", "mapping": {"c": "c.delta"}}],
            delta_translation_ttl=60,
            clock=clock,
        )
        translator.translate_data_points([make_point("c", 1, metric_type=CUMULATIVE)])
        clock.advance(61)
        result = translator.translate_data_points(
            [make_point("c", 5, timestamp=T0_MILLIS + 61_000, metric_type=CUMULATIVE)]
        )
        assert "c.delta" not in by_metric(result)

    def test_rules_see_earlier_outputs(self):
        result = translate(
            [
                {"action": "copy_metrics", "mapping": {"m": "tmp"}},
                {"action": "multiply_float", "scale_factors_float": {"tmp": 2}},
                {"action": "rename_metrics", "mapping": {"tmp": "doubled"}},
            ],
            [make_point("m", 4)],
        )
        assert [(p.metric, p.value) for p in result] == [("m", 4), ("doubled", 8.0)]

    def test_translated_points_are_data_points(self):
        result = translate([{"action": "copy_metrics", "mapping": {"m": "n"}}], [make_point("m", 1)])
        assert all(isinstance(p, DataPoint) for p in result)

    def test_cumulative_handler_requires_derive(self):
        class NoDerive(_CumulativeHandler):
            pass

        rule = parse_translation_rules([{"action": "delta_metric", "mapping": {"c": "d"}}])[0]
        with pytest.raises(TypeError):
            NoDerive(rule)
