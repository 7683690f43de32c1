# approvalflow/utils/conditions.py
"""
条件求值器：解析上下文字段并对条件 / 条件组求值。
公开接口永不抛出异常，求值错误一律降级为 passed=False。
"""

import logging
import math
import re
from typing import Any, Dict, List, Optional, Union

from ..core.models import (
    ConditionDetail, ConditionOperator, EvaluationContext, EvaluationResult,
    LogicalOperator, UnknownOperatorError,
)
from ..core.schema import Condition, ConditionGroup, condition_from_dict, parse_condition_groups

logger = logging.getLogger(__name__)

NAMESPACES = ("requester", "currentApprover", "workflow", "metadata")

GroupsInput = Optional[List[Union[ConditionGroup, Dict[str, Any]]]]

# 与 JS Number() 一致的数字字面量写法
_DECIMAL_RE = re.compile(r"^[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)$", re.ASCII)
_RADIX_RE = re.compile(r"^0([xXoObB])([0-9a-fA-F]+)$")
_RADIX_BASES = {"x": 16, "o": 8, "b": 2}


def _get_nested_value(obj: Any, path: str) -> Any:
    """支持点号嵌套访问: "department.code" """
    value = obj
    for key in path.split('.'):
        if value is None:
            return None
        if isinstance(value, dict):
            value = value.get(key)
        elif isinstance(value, list) and key.isdigit():
            index = int(key)
            value = value[index] if index < len(value) else None
        else:
            return None
    return value


def resolve_field(context: EvaluationContext, field: str) -> Any:
    # resource 的直接键优先，即使它看起来像带命名空间的路径
    if field in context.resource:
        return context.resource[field]

    for name in NAMESPACES:
        prefix = name + "."
        namespace = context.namespace(name)
        if field.startswith(prefix) and namespace is not None:
            return _get_nested_value(namespace, field[len(prefix):])

    return _get_nested_value(context.resource, field)


def _to_number(value: Any) -> float:
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        radix = _RADIX_RE.match(text)
        if radix:
            try:
                return float(int(radix.group(2), _RADIX_BASES[radix.group(1).lower()]))
            except ValueError:
                return math.nan
        if not _DECIMAL_RE.match(text):
            return math.nan
        return float(text)
    return math.nan


def _is_scalar_number(value: Any) -> bool:
    return isinstance(value, (int, float, bool))


def _loose_equals(actual: Any, expected: Any) -> bool:
    if actual is None or expected is None:
        return actual is None and expected is None
    if type(actual) is type(expected):
        return actual == expected
    # 数字与字符串/布尔值比较时按数值比较
    if _is_scalar_number(actual) or _is_scalar_number(expected):
        if isinstance(actual, (str, int, float, bool)) and isinstance(expected, (str, int, float, bool)):
            left, right = _to_number(actual), _to_number(expected)
            return not math.isnan(left) and left == right
    return actual == expected


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, list) and len(value) == 0)


def _contains(actual: Any, expected: Any) -> Optional[bool]:
    """None 表示类型不适用"""
    if isinstance(actual, str) and isinstance(expected, str):
        return expected in actual
    if isinstance(actual, list):
        return expected in actual
    return None


def compare_values(actual: Any, operator: Union[ConditionOperator, str], expected: Any) -> bool:
    try:
        op = ConditionOperator(operator)
    except ValueError:
        raise UnknownOperatorError(operator)

    if op == ConditionOperator.EQ:
        return _loose_equals(actual, expected)
    elif op == ConditionOperator.NE:
        return not _loose_equals(actual, expected)
    elif op == ConditionOperator.GT:
        return _to_number(actual) > _to_number(expected)
    elif op == ConditionOperator.LT:
        return _to_number(actual) < _to_number(expected)
    elif op == ConditionOperator.GE:
        return _to_number(actual) >= _to_number(expected)
    elif op == ConditionOperator.LE:
        return _to_number(actual) <= _to_number(expected)
    elif op == ConditionOperator.CONTAINS:
        return bool(_contains(actual, expected))
    elif op == ConditionOperator.NOT_CONTAINS:
        found = _contains(actual, expected)
        return True if found is None else not found
    elif op == ConditionOperator.IN:
        return isinstance(expected, list) and actual in expected
    elif op == ConditionOperator.NOT_IN:
        return not isinstance(expected, list) or actual not in expected
    elif op == ConditionOperator.STARTS_WITH:
        return isinstance(actual, str) and isinstance(expected, str) and actual.startswith(expected)
    elif op == ConditionOperator.ENDS_WITH:
        return isinstance(actual, str) and isinstance(expected, str) and actual.endswith(expected)
    elif op == ConditionOperator.IS_EMPTY:
        return _is_empty(actual)
    elif op == ConditionOperator.IS_NOT_EMPTY:
        return not _is_empty(actual)
    raise UnknownOperatorError(operator)


def _operator_text(operator: Union[ConditionOperator, str]) -> str:
    return operator.value if isinstance(operator, ConditionOperator) else str(operator)


def _evaluate_condition(condition: Condition, context: EvaluationContext,
                        details: Optional[List[ConditionDetail]]) -> bool:
    actual = resolve_field(context, condition.field)
    passed = compare_values(actual, condition.operator, condition.value)
    if details is not None:
        details.append(ConditionDetail(
            condition_id=condition.id,
            field=condition.field,
            actual_value=actual,
            expected_value=condition.value,
            operator=_operator_text(condition.operator),
            passed=passed,
        ))
    return passed


def _evaluate_entry(entry: Union[Condition, ConditionGroup], context: EvaluationContext,
                    details: Optional[List[ConditionDetail]]) -> bool:
    if isinstance(entry, ConditionGroup):
        return _evaluate_group(entry, context, details)
    if isinstance(entry, Condition):
        return _evaluate_condition(entry, context, details)
    raise TypeError(f"Malformed condition entry: {entry!r}")


def _evaluate_group(group: ConditionGroup, context: EvaluationContext,
                    details: Optional[List[ConditionDetail]]) -> bool:
    """
    空的 AND 组视为通过，空的 OR 组视为不通过。
    总是对全部条件求值，保证摘要与明细两种形式的结论一致。
    """
    results = [_evaluate_entry(c, context, details) for c in group.conditions]

    if group.operator == LogicalOperator.AND:
        return all(results)
    elif group.operator == LogicalOperator.OR:
        return any(results)
    raise ValueError(f"Unknown logical operator: {group.operator}")


def _evaluate_groups(groups: GroupsInput, context: EvaluationContext,
                     details: Optional[List[ConditionDetail]]) -> bool:
    parsed = parse_condition_groups(groups)
    return all([_evaluate_group(g, context, details) for g in parsed])


def _error_detail(exc: Exception) -> ConditionDetail:
    return ConditionDetail(
        condition_id="error",
        field="error",
        actual_value=str(exc),
        expected_value=None,
        operator="ERROR",
        passed=False,
    )


def evaluate_condition_groups(groups: GroupsInput, context: EvaluationContext) -> EvaluationResult:
    """所有条件组都通过才算通过；未定义条件组时始终通过"""
    if not groups:
        return EvaluationResult(passed=True)
    try:
        return EvaluationResult(passed=_evaluate_groups(groups, context, None))
    except Exception as e:
        logger.error("Condition evaluation error: %s", e)
        return EvaluationResult(passed=False)


def evaluate_condition_groups_with_details(groups: GroupsInput, context: EvaluationContext) -> EvaluationResult:
    """同 evaluate_condition_groups，并按 组→条件 顺序返回每个条件的求值明细"""
    if not groups:
        return EvaluationResult(passed=True, details=[])
    details: List[ConditionDetail] = []
    try:
        passed = _evaluate_groups(groups, context, details)
        return EvaluationResult(passed=passed, details=details)
    except Exception as e:
        logger.error("Condition evaluation error: %s", e)
        return EvaluationResult(passed=False, details=[_error_detail(e)])


def evaluate_conditions(entry: Union[Condition, ConditionGroup, Dict[str, Any]],
                        context: EvaluationContext, with_details: bool = False) -> EvaluationResult:
    """对单个条件或单个（可嵌套的）条件组求值"""
    details: Optional[List[ConditionDetail]] = [] if with_details else None
    try:
        if isinstance(entry, dict):
            entry = condition_from_dict(entry)
        passed = _evaluate_entry(entry, context, details)
        return EvaluationResult(passed=passed, details=details)
    except Exception as e:
        logger.error("Condition evaluation error: %s", e)
        return EvaluationResult(passed=False, details=[_error_detail(e)] if with_details else None)
