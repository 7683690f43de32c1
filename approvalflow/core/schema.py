# approvalflow/core/schema.py
"""
流程定义与条件的结构化表示，以及与持久化 JSON 线上格式之间的转换。
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Union

from .models import ApprovalStatus, ConditionOperator, LogicalOperator
from ..utils.id_generator import generate_id


class FlowSchemaError(ValueError):
    """线上数据无法转换为流程定义对象"""


def _require_mapping(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise FlowSchemaError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _parse_status(value: Any, what: str) -> ApprovalStatus:
    if isinstance(value, ApprovalStatus):
        return value
    if not ApprovalStatus.is_valid(value):
        raise FlowSchemaError(f"{what}: invalid status {value!r}")
    return ApprovalStatus(value)


def _parse_stage_id(value: Any, what: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise FlowSchemaError(f"{what} must be a string, got {type(value).__name__}")
    return value


def _parse_operator(value: Any) -> Union[ConditionOperator, str]:
    # 未知运算符原样保留，由求值器在运行时报错
    try:
        return ConditionOperator(value)
    except ValueError:
        return value


@dataclass
class Condition:
    field: str
    operator: Union[ConditionOperator, str]
    value: Any = None
    id: str = field(default_factory=generate_id)

    def __post_init__(self):
        if not isinstance(self.operator, ConditionOperator):
            self.operator = _parse_operator(self.operator)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Condition':
        data = _require_mapping(data, "condition")
        if not isinstance(data.get("field"), str):
            raise FlowSchemaError("condition.field must be a string")
        if "operator" not in data:
            raise FlowSchemaError("condition.operator is required")
        kwargs = {"field": data["field"], "operator": data["operator"], "value": data.get("value")}
        if data.get("id") is not None:
            kwargs["id"] = str(data["id"])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        operator = self.operator.value if isinstance(self.operator, ConditionOperator) else self.operator
        return {"id": self.id, "field": self.field, "operator": operator, "value": self.value}


@dataclass
class ConditionGroup:
    operator: LogicalOperator
    # 成员可以是条件，也可以是嵌套的条件组
    conditions: List[Union[Condition, 'ConditionGroup']] = field(default_factory=list)
    id: str = field(default_factory=generate_id)

    def __post_init__(self):
        if not isinstance(self.operator, LogicalOperator):
            try:
                self.operator = LogicalOperator(self.operator)
            except ValueError:
                raise FlowSchemaError(f"invalid logical operator {self.operator!r}")
        converted = []
        for item in self.conditions:
            if isinstance(item, dict):
                converted.append(condition_from_dict(item))
            else:
                converted.append(item)
        self.conditions = converted

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConditionGroup':
        data = _require_mapping(data, "condition group")
        conditions = data.get("conditions", [])
        if not isinstance(conditions, list):
            raise FlowSchemaError("condition group conditions must be a list")
        kwargs = {"operator": data.get("operator", "AND"), "conditions": conditions}
        if data.get("id") is not None:
            kwargs["id"] = str(data["id"])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "operator": self.operator.value,
            "conditions": [c.to_dict() for c in self.conditions],
        }


def condition_from_dict(data: Dict[str, Any]) -> Union[Condition, ConditionGroup]:
    """带 conditions 列表的条目视为嵌套条件组"""
    data = _require_mapping(data, "condition")
    if "conditions" in data:
        return ConditionGroup.from_dict(data)
    return Condition.from_dict(data)


def parse_condition_groups(data: Optional[List[Any]]) -> List[ConditionGroup]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise FlowSchemaError("condition groups must be a list")
    return [g if isinstance(g, ConditionGroup) else ConditionGroup.from_dict(g) for g in data]


@dataclass
class StageNotificationTemplate:
    subject: Optional[str] = None
    body: Optional[str] = None
    send_to_actor_supervisor: Optional[bool] = None
    cc_actor: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StageNotificationTemplate':
        data = _require_mapping(data, "notification")
        return cls(
            subject=data.get("subject"),
            body=data.get("body"),
            send_to_actor_supervisor=data.get("sendToActorSupervisor"),
            cc_actor=data.get("ccActor"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "subject": self.subject,
            "body": self.body,
            "sendToActorSupervisor": self.send_to_actor_supervisor,
            "ccActor": self.cc_actor,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class FlowTransition:
    to: ApprovalStatus
    target_stage_id: Optional[str] = None
    conditions: List[str] = field(default_factory=list)
    label: Optional[str] = None
    condition_groups: List[ConditionGroup] = field(default_factory=list)
    is_default: bool = False

    def __post_init__(self):
        self.to = _parse_status(self.to, "transition.to")
        self.target_stage_id = _parse_stage_id(self.target_stage_id, "transition.targetStageId")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FlowTransition':
        data = _require_mapping(data, "transition")
        conditions = data.get("conditions") or []
        if not isinstance(conditions, list) or not all(isinstance(c, str) for c in conditions):
            raise FlowSchemaError("transition.conditions must be a list of strings")
        return cls(
            to=_parse_status(data.get("to"), "transition.to"),
            target_stage_id=data.get("targetStageId"),
            conditions=list(conditions),
            label=data.get("label"),
            condition_groups=parse_condition_groups(data.get("conditionGroups")),
            is_default=bool(data.get("isDefault", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"to": self.to.value}
        if self.target_stage_id:
            data["targetStageId"] = self.target_stage_id
        if self.conditions:
            data["conditions"] = list(self.conditions)
        if self.label is not None:
            data["label"] = self.label
        if self.condition_groups:
            data["conditionGroups"] = [g.to_dict() for g in self.condition_groups]
        if self.is_default:
            data["isDefault"] = True
        return data


@dataclass
class ApprovalFlowStage:
    id: str
    name: str
    description: str
    actor: str
    status: ApprovalStatus
    transitions: List[FlowTransition] = field(default_factory=list)
    actor_user_id: Optional[str] = None
    notification: Optional[StageNotificationTemplate] = None
    max_iterations: Optional[int] = None

    def __post_init__(self):
        self.status = _parse_status(self.status, f"stage {self.id!r}")
        self.transitions = [
            FlowTransition.from_dict(t) if isinstance(t, dict) else t for t in self.transitions
        ]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApprovalFlowStage':
        data = _require_mapping(data, "stage")
        for key in ("id", "name", "description", "actor"):
            if not isinstance(data.get(key), str):
                raise FlowSchemaError(f"stage.{key} must be a string")
        transitions = data.get("transitions")
        if not isinstance(transitions, list):
            raise FlowSchemaError(f"stage {data['id']!r}: transitions must be a list")
        notification = data.get("notification")
        return cls(
            id=data["id"],
            name=data["name"],
            description=data["description"],
            actor=data["actor"],
            status=_parse_status(data.get("status"), f"stage {data['id']!r}"),
            transitions=[FlowTransition.from_dict(t) for t in transitions],
            actor_user_id=data.get("actorUserId"),
            notification=StageNotificationTemplate.from_dict(notification) if notification else None,
            max_iterations=data.get("maxIterations"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "actor": self.actor,
            "status": self.status.value,
            "transitions": [t.to_dict() for t in self.transitions],
        }
        if self.actor_user_id is not None:
            data["actorUserId"] = self.actor_user_id
        if self.notification is not None:
            data["notification"] = self.notification.to_dict()
        if self.max_iterations is not None:
            data["maxIterations"] = self.max_iterations
        return data


@dataclass
class ApprovalFlowDefinition:
    stages: List[ApprovalFlowStage] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApprovalFlowDefinition':
        data = _require_mapping(data, "flow definition")
        stages = data.get("stages")
        if not isinstance(stages, list):
            raise FlowSchemaError("flow definition stages must be a list")
        return cls(stages=[ApprovalFlowStage.from_dict(s) for s in stages])

    def to_dict(self) -> Dict[str, Any]:
        return {"stages": [s.to_dict() for s in self.stages]}

    def stage_by_id(self, stage_id: str) -> Optional[ApprovalFlowStage]:
        return next((s for s in self.stages if s.id == stage_id), None)


@dataclass
class ApprovalFlow:
    """带名称和版本信息的流程（持久化层的外层包装）"""
    name: str
    definition: ApprovalFlowDefinition
    id: Optional[str] = None
    version: str = "1.0"
    description: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApprovalFlow':
        data = _require_mapping(data, "flow")
        return cls(
            name=str(data.get("name", "")),
            definition=ApprovalFlowDefinition.from_dict(data.get("definition")),
            id=data.get("id"),
            version=str(data.get("version", "1.0")),
            description=str(data.get("description", "")),
        )
