"""
ApprovalFlow 库 - 审批流程定义的规则引擎（条件求值与路径校验）。
"""

from .core.models import (
    ApprovalStatus, ConditionOperator, LogicalOperator, EvaluationContext,
    EvaluationResult, ConditionDetail, FlowPathEvaluation, TransitionOutcome,
    TransitionError, UnknownOperatorError,
)
from .core.schema import (
    Condition, ConditionGroup, FlowTransition, ApprovalFlowStage,
    ApprovalFlowDefinition, ApprovalFlow, FlowSchemaError,
)
from .core.rule_engine import validate_flow_definition, evaluate_flow_path, check_flow_path, build_path
from .core.transitions import build_context, available_transitions, resolve_action
from .core.notifications import build_stage_notification, build_flow_notifications
from .utils.conditions import (
    evaluate_condition_groups, evaluate_condition_groups_with_details,
    evaluate_conditions, resolve_field, compare_values,
)

__version__ = "0.1.0"

__all__ = [
    'ApprovalStatus', 'ConditionOperator', 'LogicalOperator', 'EvaluationContext',
    'EvaluationResult', 'ConditionDetail', 'FlowPathEvaluation', 'TransitionOutcome',
    'TransitionError', 'UnknownOperatorError',
    'Condition', 'ConditionGroup', 'FlowTransition', 'ApprovalFlowStage',
    'ApprovalFlowDefinition', 'ApprovalFlow', 'FlowSchemaError',
    'validate_flow_definition', 'evaluate_flow_path', 'check_flow_path', 'build_path',
    'build_context', 'available_transitions', 'resolve_action',
    'build_stage_notification', 'build_flow_notifications',
    'evaluate_condition_groups', 'evaluate_condition_groups_with_details',
    'evaluate_conditions', 'resolve_field', 'compare_values',
]
