# tests/test_conditions.py
import logging

import pytest

from approvalflow import (
    Condition, ConditionGroup, EvaluationContext, UnknownOperatorError,
    compare_values, evaluate_condition_groups, evaluate_condition_groups_with_details,
    evaluate_conditions, resolve_field,
)


def _group(operator, *conditions, group_id="g"):
    return {"id": group_id, "operator": operator, "conditions": list(conditions)}


def _cond(field, operator, value=None, cid="c"):
    return {"id": cid, "field": field, "operator": operator, "value": value}


# --- 字段解析 ---

def test_resolve_direct_resource_field(mock_context):
    assert resolve_field(mock_context, "amount") == 15000


def test_resolve_namespaced_fields(mock_context):
    assert resolve_field(mock_context, "requester.department") == "finance"
    assert resolve_field(mock_context, "currentApprover.role") == "director"
    assert resolve_field(mock_context, "workflow.iterationCount") == 1


def test_direct_resource_key_wins_over_namespace():
    context = EvaluationContext(resource={"requester.role": "X"}, requester={"role": "Y"})
    assert resolve_field(context, "requester.role") == "X"


def test_metadata_namespace():
    context = EvaluationContext(resource={}, metadata={"source": {"channel": "web"}})
    assert resolve_field(context, "metadata.source.channel") == "web"


def test_missing_namespace_falls_back_to_resource():
    context = EvaluationContext(resource={"requester": {"role": "from-resource"}})
    assert resolve_field(context, "requester.role") == "from-resource"


def test_nested_resource_path_and_missing_intermediate():
    context = EvaluationContext(resource={"vendor": {"country": "DE"}, "empty": None})
    assert resolve_field(context, "vendor.country") == "DE"
    assert resolve_field(context, "vendor.city.zip") is None
    assert resolve_field(context, "empty.anything") is None
    assert resolve_field(context, "nonexistent") is None


# --- 运算符 ---

@pytest.mark.parametrize("actual,operator,expected,result", [
    (15000, ">", 10000, True),
    ("15000", ">", "10000", True),
    ("abc", ">", 5, False),
    ("abc", "<=", 5, False),
    (None, ">", -1, False),
    (True, ">=", 1, True),
    ("", "<", 1, True),
    (5, "==", "5", True),
    ("high", "==", "high", True),
    ("high", "!=", "low", True),
    (None, "==", None, True),
    (None, "==", 0, False),
    (0, "==", "", True),
    ("urgent tag", "CONTAINS", "urgent", True),
    (["urgent"], "CONTAINS", "urgent", True),
    (42, "CONTAINS", "4", False),
    (42, "NOT_CONTAINS", "4", True),
    (["urgent"], "NOT_CONTAINS", "urgent", False),
    ("payment", "IN", ["payment", "refund"], True),
    ("payment", "IN", "payment", False),
    ("payment", "NOT_IN", "payment", True),
    ("payment", "NOT_IN", ["refund"], True),
    ("INV-001", "STARTS_WITH", "INV", True),
    (1001, "STARTS_WITH", "1", False),
    ("report.pdf", "ENDS_WITH", ".pdf", True),
])
def test_compare_values(actual, operator, expected, result):
    assert compare_values(actual, operator, expected) is result


@pytest.mark.parametrize("value", [[], "", None])
def test_is_empty_values(value):
    assert compare_values(value, "IS_EMPTY", None) is True
    assert compare_values(value, "IS_NOT_EMPTY", None) is False


def test_zero_is_not_empty():
    assert compare_values(0, "IS_EMPTY", None) is False
    assert compare_values(0, "IS_NOT_EMPTY", None) is True


@pytest.mark.parametrize("text,result", [
    ("0x1A", True),
    ("0b11", False),
    ("1e5", True),
    (" 20000 ", True),
    ("Infinity", True),
    ("inf", False),
    ("infinity", False),
    ("nan", False),
    ("1_000_000", False),
    ("-0x1A", False),
])
def test_numeric_strings_follow_js_number(text, result):
    assert compare_values(text, ">", 25) is result


def test_unknown_operator_raises_internally():
    with pytest.raises(UnknownOperatorError):
        compare_values(1, "BETWEEN", [0, 2])


# --- 条件组 ---

def test_empty_or_missing_groups_pass(mock_context):
    assert evaluate_condition_groups(None, mock_context).passed is True
    assert evaluate_condition_groups([], mock_context).passed is True
    result = evaluate_condition_groups_with_details([], mock_context)
    assert result.passed is True
    assert result.details == []


def test_single_condition_group_matches_condition(mock_context):
    passing = [_group("AND", _cond("amount", ">", 10000))]
    failing = [_group("AND", _cond("amount", "<", 10000))]
    assert evaluate_condition_groups(passing, mock_context).passed is True
    assert evaluate_condition_groups(failing, mock_context).passed is False


def test_and_or_groups(mock_context):
    mixed = [_cond("amount", ">", 10000, "c1"), _cond("riskLevel", "==", "low", "c2")]
    assert evaluate_condition_groups([_group("OR", *mixed)], mock_context).passed is True
    assert evaluate_condition_groups([_group("AND", *mixed)], mock_context).passed is False


def test_groups_combine_with_and(mock_context):
    ok = _group("AND", _cond("amount", ">", 10000), group_id="g1")
    bad = _group("AND", _cond("riskLevel", "==", "low"), group_id="g2")
    assert evaluate_condition_groups([ok, ok], mock_context).passed is True
    assert evaluate_condition_groups([ok, bad], mock_context).passed is False


def test_empty_group_semantics(mock_context):
    """空 AND 组视为通过，空 OR 组视为不通过"""
    assert evaluate_condition_groups([_group("AND")], mock_context).passed is True
    assert evaluate_condition_groups([_group("OR")], mock_context).passed is False


def test_nested_groups(mock_context):
    group = _group(
        "AND",
        _cond("amount", ">", 10000),
        _group("OR", _cond("riskLevel", "==", "low"), _cond("requester.department", "==", "finance")),
    )
    assert evaluate_conditions(group, mock_context).passed is True


def test_schema_objects_are_accepted(mock_context):
    group = ConditionGroup(operator="AND", conditions=[Condition(field="tags", operator="CONTAINS", value="urgent")])
    assert evaluate_condition_groups([group], mock_context).passed is True


def test_details_are_in_group_then_condition_order(mock_context):
    groups = [
        _group("OR", _cond("amount", ">", 10000, "c1"), _cond("riskLevel", "==", "low", "c2"), group_id="g1"),
        _group("AND", _cond("requester.role", "==", "manager", "c3"), group_id="g2"),
    ]
    result = evaluate_condition_groups_with_details(groups, mock_context)
    assert result.passed is True
    # 即使 OR 组首个条件已通过，明细模式仍对所有条件求值
    assert [d.condition_id for d in result.details] == ["c1", "c2", "c3"]
    assert [d.passed for d in result.details] == [True, False, True]
    first = result.details[0].to_dict()
    assert first == {
        "conditionId": "c1", "field": "amount", "actualValue": 15000,
        "expectedValue": 10000, "operator": ">", "passed": True,
    }


# --- 错误处理 ---

def test_unknown_operator_fails_closed(mock_context, caplog):
    groups = [_group("AND", _cond("amount", "BETWEEN", [1, 2]))]
    with caplog.at_level(logging.ERROR, logger="approvalflow"):
        assert evaluate_condition_groups(groups, mock_context).passed is False
    assert "Unknown operator: BETWEEN" in caplog.text


def test_unknown_operator_detail_entry(mock_context):
    groups = [_group("AND", _cond("amount", ">", 1, "c1"), _cond("amount", "BETWEEN", [1, 2], "c2"))]
    result = evaluate_condition_groups_with_details(groups, mock_context)
    assert result.passed is False
    assert len(result.details) == 1
    detail = result.details[0]
    assert detail.condition_id == "error"
    assert detail.field == "error"
    assert detail.operator == "ERROR"
    assert detail.expected_value is None
    assert "Unknown operator" in detail.actual_value


def test_summary_and_details_agree_on_bad_operator(mock_context):
    # 第一个条件已满足 OR，后面的未知运算符仍然使整体不通过
    groups = [_group("OR", _cond("amount", ">", 1, "c1"), _cond("amount", "BETWEEN", [1, 2], "c2"))]
    summary = evaluate_condition_groups(groups, mock_context)
    detailed = evaluate_condition_groups_with_details(groups, mock_context)
    assert summary.passed is False
    assert detailed.passed is summary.passed
    assert evaluate_conditions(groups[0], mock_context).passed is False


def test_malformed_group_fails_closed(mock_context):
    assert evaluate_condition_groups([{"operator": "XOR", "conditions": []}], mock_context).passed is False
    assert evaluate_condition_groups([["not", "a", "group"]], mock_context).passed is False


def test_context_is_not_mutated(mock_context, context_data):
    groups = [_group("AND", _cond("requester.department", "==", "finance"), _cond("tags", "CONTAINS", "urgent"))]
    evaluate_condition_groups_with_details(groups, mock_context)
    assert mock_context == EvaluationContext.from_dict(context_data)
