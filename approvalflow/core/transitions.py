# approvalflow/core/transitions.py
"""
流转解析：根据当前阶段、审批动作和求值上下文确定下一个阶段与状态。
只计算结果，不做持久化。
"""

import logging
from typing import Any, Dict, List, Optional

from .models import (
    ApprovalStatus, EvaluationContext, FINAL_STATUSES, TransitionError, TransitionOutcome,
)
from .schema import ApprovalFlowDefinition, ApprovalFlowStage, FlowTransition
from ..utils.conditions import evaluate_condition_groups

logger = logging.getLogger(__name__)


def build_context(
    payload: Dict[str, Any],
    requester: Optional[Dict[str, Any]] = None,
    approver: Optional[Dict[str, Any]] = None,
    current_stage_id: Optional[str] = None,
    approval_metadata: Optional[Dict[str, Any]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> EvaluationContext:
    """由审批单的 payload、申请人、当前审批人和流程元数据组装求值上下文"""
    approval_metadata = approval_metadata or {}
    workflow = None
    if current_stage_id is not None:
        workflow = {
            "currentStageId": current_stage_id,
            "previousStageId": approval_metadata.get("previousStageId"),
            "iterationCount": approval_metadata.get("iterationCount", 0),
        }
    return EvaluationContext(
        resource=dict(payload),
        requester=requester,
        current_approver=approver,
        workflow=workflow,
        metadata=metadata,
    )


def find_stage(definition: ApprovalFlowDefinition, stage_id: str) -> Optional[ApprovalFlowStage]:
    return definition.stage_by_id(stage_id)


def find_transition(stage: ApprovalFlowStage, action: str) -> Optional[FlowTransition]:
    """动作可以是目标阶段 id，也可以是目标状态"""
    for transition in stage.transitions:
        if transition.target_stage_id == action or transition.to.value == action:
            return transition
    return None


def available_transitions(stage: ApprovalFlowStage, context: EvaluationContext) -> List[FlowTransition]:
    """
    返回当前上下文下可用的流转。
    没有配置条件的非默认流转总是可用；带条件的流转需要条件组全部通过；
    若带条件的流转一个都没通过，则退回到标记为默认的流转。
    """
    open_transitions = []
    conditioned_passed = False
    for transition in stage.transitions:
        if transition.is_default:
            continue
        if not transition.condition_groups:
            open_transitions.append(transition)
            continue
        if evaluate_condition_groups(transition.condition_groups, context).passed:
            open_transitions.append(transition)
            conditioned_passed = True

    if not conditioned_passed:
        open_transitions.extend(t for t in stage.transitions if t.is_default)
    return open_transitions


def _comment_action(status: ApprovalStatus) -> str:
    if status == ApprovalStatus.APPROVED:
        return "approve"
    if status == ApprovalStatus.REJECT:
        return "reject"
    return "return"


def resolve_action(
    definition: ApprovalFlowDefinition,
    current_stage_id: str,
    action: str,
    context: Optional[EvaluationContext] = None,
    iteration_count: int = 0,
) -> TransitionOutcome:
    stage = find_stage(definition, current_stage_id)
    if stage is None:
        raise TransitionError("Current stage not found")

    transition = find_transition(stage, action)
    if transition is None:
        raise TransitionError("Invalid action for current stage")

    if context is not None and not any(t is transition for t in available_transitions(stage, context)):
        raise TransitionError(f"Conditions for transition {action!r} are not met")

    next_stage = definition.stage_by_id(transition.target_stage_id) if transition.target_stage_id else None
    if transition.target_stage_id and next_stage is None:
        raise TransitionError(f"Target stage {transition.target_stage_id!r} not found")

    if next_stage is not None and next_stage.max_iterations is not None \
            and iteration_count >= next_stage.max_iterations:
        raise TransitionError(
            f"Stage {next_stage.id!r} reached its iteration limit ({next_stage.max_iterations})")

    logger.debug("Stage %s -> %s via %r", stage.id, transition.target_stage_id or transition.to.value, action)
    return TransitionOutcome(
        from_stage_id=stage.id,
        next_status=transition.to,
        next_stage_id=transition.target_stage_id,
        next_stage_name=next_stage.name if next_stage else None,
        is_final=transition.to in FINAL_STATUSES,
        comment_action=_comment_action(transition.to),
        workflow={
            "previousStageId": stage.id,
            "iterationCount": iteration_count + 1,
        },
    )
