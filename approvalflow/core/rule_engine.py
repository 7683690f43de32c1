# approvalflow/core/rule_engine.py
"""
流程路径校验：检查流程定义结构是否完整，以及给定的状态序列能否沿流转图走通。
两个接口都只报告问题，不抛出异常。
"""

import logging
from typing import Any, Dict, List, Optional, Set, Union

from .models import ApprovalStatus, FlowPathEvaluation
from .schema import ApprovalFlowDefinition, FlowSchemaError

logger = logging.getLogger(__name__)

DefinitionInput = Union[ApprovalFlowDefinition, Dict[str, Any]]

STAGE_STRING_FIELDS = ("id", "name", "description", "actor")


def _status_value(status: Any) -> str:
    # 统一为字符串，避免枚举成员与原始字符串在集合中哈希不一致
    if isinstance(status, ApprovalStatus):
        return status.value
    return status if isinstance(status, str) else str(status)


def _is_transition(value: Any) -> bool:
    if not isinstance(value, dict) or not ApprovalStatus.is_valid(value.get("to")):
        return False
    target_id = value.get("targetStageId")
    return target_id is None or isinstance(target_id, str)


def _is_stage(value: Any) -> bool:
    if not isinstance(value, dict):
        return False
    if not all(isinstance(value.get(key), str) for key in STAGE_STRING_FIELDS):
        return False
    if not ApprovalStatus.is_valid(value.get("status")):
        return False
    transitions = value.get("transitions")
    if not isinstance(transitions, list):
        return False
    return all(_is_transition(t) for t in transitions)


def validate_flow_definition(definition: Any) -> bool:
    """结构校验：任何不合法之处都返回 False"""
    if isinstance(definition, ApprovalFlowDefinition):
        try:
            definition = definition.to_dict()
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug("Flow definition cannot be dumped: %s", e)
            return False
    if not isinstance(definition, dict):
        return False

    stages = definition.get("stages")
    if not isinstance(stages, list) or not stages:
        return False
    if not all(_is_stage(s) for s in stages):
        return False

    stage_ids = {s["id"] for s in stages}
    existing_statuses = {s["status"] for s in stages}

    for stage in stages:
        for transition in stage["transitions"]:
            target_id = transition.get("targetStageId")
            if target_id:
                if target_id not in stage_ids:
                    logger.debug("Stage %s targets unknown stage %s", stage["id"], target_id)
                    return False
                continue
            if transition["to"] not in existing_statuses:
                logger.debug("Stage %s targets status %s with no stage", stage["id"], transition["to"])
                return False
    return True


def _build_status_graph(definition: ApprovalFlowDefinition) -> Dict[str, Set[str]]:
    stage_by_id = {s.id: s for s in definition.stages}
    graph: Dict[str, Set[str]] = {}
    for stage in definition.stages:
        adjacency = graph.setdefault(_status_value(stage.status), set())
        for transition in stage.transitions:
            target = stage_by_id.get(transition.target_stage_id) if transition.target_stage_id else None
            if target is not None:
                adjacency.add(_status_value(target.status))
            else:
                adjacency.add(_status_value(transition.to))
    return graph


def _missing_stage(status: Any) -> str:
    return f'Stage for status "{status}" does not exist in flow.'


def evaluate_flow_path(definition: DefinitionInput, path: Any) -> FlowPathEvaluation:
    """
    沿状态邻接图检查路径：
    - 路径为空 / 不是列表时直接失败；
    - 首个状态没有对应阶段时记录问题；
    - 依次检查相邻状态对，收集所有问题而非遇到第一个就返回。
    """
    issues: List[str] = []

    if not isinstance(path, (list, tuple)) or len(path) == 0:
        issues.append("Path must contain at least one status.")
        return FlowPathEvaluation(is_valid=False, issues=issues)

    if not isinstance(definition, ApprovalFlowDefinition):
        try:
            definition = ApprovalFlowDefinition.from_dict(definition)
        except FlowSchemaError as e:
            issues.append(f"Invalid flow definition structure: {e}")
            return FlowPathEvaluation(is_valid=False, issues=issues)

    statuses = [_status_value(s) for s in path]
    try:
        known_statuses = {_status_value(s.status) for s in definition.stages}
        graph = _build_status_graph(definition)
    except (AttributeError, TypeError) as e:
        issues.append(f"Invalid flow definition structure: {e}")
        return FlowPathEvaluation(is_valid=False, issues=issues)

    if statuses[0] not in known_statuses:
        issues.append(_missing_stage(statuses[0]))

    for prev_status, next_status in zip(statuses, statuses[1:]):
        if next_status not in known_statuses:
            issues.append(_missing_stage(next_status))
            continue
        adjacency = graph.get(prev_status)
        if not adjacency or next_status not in adjacency:
            issues.append(f'No transition from "{prev_status}" to "{next_status}" in flow.')

    return FlowPathEvaluation(is_valid=not issues, issues=issues)


def build_path(start: Any, between: Optional[List[Any]] = None, end: Optional[Any] = None) -> List[Any]:
    """把起点、中间状态和终点拼成完整的候选路径"""
    path = [start]
    path.extend(between or [])
    if end is not None:
        path.append(end)
    return path


def check_flow_path(definition: Any, path: Any) -> FlowPathEvaluation:
    """先校验定义与路径的形状，再求值路径（沙盒与 CLI 的入口）"""
    if not validate_flow_definition(definition):
        return FlowPathEvaluation(is_valid=False, issues=["Invalid flow definition structure"])
    if not isinstance(path, list):
        return FlowPathEvaluation(is_valid=False, issues=["Path must be an array of statuses"])
    return evaluate_flow_path(definition, path)
