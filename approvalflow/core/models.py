# approvalflow/core/models.py
"""
ApprovalFlow 核心数据模型
定义了条件求值器、路径校验器和流转解析器之间传递的枚举与结果对象。
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class ApprovalStatus(str, Enum):
    IN_PROCESS = "in_process"
    APPROVED = "approved"
    REJECT = "reject"
    END = "end"

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        if isinstance(value, cls):
            return True
        return isinstance(value, str) and value in _STATUS_VALUES


_STATUS_VALUES = frozenset(s.value for s in ApprovalStatus)

# 终态：进入后审批结束
FINAL_STATUSES = frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECT, ApprovalStatus.END})


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class ConditionOperator(str, Enum):
    EQ = "=="
    NE = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    CONTAINS = "CONTAINS"
    NOT_CONTAINS = "NOT_CONTAINS"
    IN = "IN"
    NOT_IN = "NOT_IN"
    STARTS_WITH = "STARTS_WITH"
    ENDS_WITH = "ENDS_WITH"
    IS_EMPTY = "IS_EMPTY"
    IS_NOT_EMPTY = "IS_NOT_EMPTY"


class ConditionEvaluationError(ValueError):
    """条件求值过程中的错误（在公开接口处被捕获）"""


class UnknownOperatorError(ConditionEvaluationError):
    def __init__(self, operator: Any):
        super().__init__(f"Unknown operator: {operator}")
        self.operator = operator


class TransitionError(ValueError):
    """无法执行的流转动作"""


@dataclass
class EvaluationContext:
    """
    条件求值的上下文快照。
    resource 必须存在，其余命名空间可选；求值器只读不写。
    """
    resource: Dict[str, Any] = field(default_factory=dict)
    requester: Optional[Dict[str, Any]] = None
    current_approver: Optional[Dict[str, Any]] = None
    workflow: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvaluationContext':
        """从线上格式（camelCase 键）创建上下文"""
        return cls(
            resource=data.get("resource") or {},
            requester=data.get("requester"),
            current_approver=data.get("currentApprover", data.get("current_approver")),
            workflow=data.get("workflow"),
            metadata=data.get("metadata"),
        )

    def namespace(self, name: str) -> Optional[Dict[str, Any]]:
        return {
            "requester": self.requester,
            "currentApprover": self.current_approver,
            "workflow": self.workflow,
            "metadata": self.metadata,
        }.get(name)


@dataclass
class ConditionDetail:
    condition_id: str
    field: str
    actual_value: Any
    expected_value: Any
    operator: str
    passed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conditionId": self.condition_id,
            "field": self.field,
            "actualValue": self.actual_value,
            "expectedValue": self.expected_value,
            "operator": self.operator,
            "passed": self.passed,
        }


@dataclass
class EvaluationResult:
    passed: bool
    # None 表示摘要模式（未收集明细）
    details: Optional[List[ConditionDetail]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"passed": self.passed}
        if self.details is not None:
            data["details"] = [d.to_dict() for d in self.details]
        return data


@dataclass
class FlowPathEvaluation:
    is_valid: bool
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"isValid": self.is_valid, "issues": list(self.issues)}


@dataclass
class TransitionOutcome:
    """执行一次流转动作后的结果（不含持久化）"""
    from_stage_id: str
    next_status: ApprovalStatus
    next_stage_id: Optional[str]
    next_stage_name: Optional[str]
    is_final: bool
    comment_action: str  # approve / reject / return
    workflow: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["next_status"] = self.next_status.value
        return data


@dataclass
class StageNotificationPreview:
    stage_id: str
    to: List[str]
    cc: List[str]
    subject: str
    body: str
    actor: Optional[Dict[str, Any]] = None
    supervisor: Optional[Dict[str, Any]] = None
