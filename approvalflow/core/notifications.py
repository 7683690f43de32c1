# approvalflow/core/notifications.py
"""
阶段通知预览：确定收件人并渲染主题 / 正文模板。
只生成预览，不负责发送。
"""

import logging
import re
from typing import Any, Dict, List, Optional

import jinja2
from jinja2.sandbox import SandboxedEnvironment

from .models import StageNotificationPreview
from .schema import ApprovalFlow, ApprovalFlowStage

logger = logging.getLogger(__name__)


class _KeepPlaceholder(jinja2.Undefined):
    """未知占位符原样保留为 {{name}}"""

    def __str__(self):
        return "{{%s}}" % self._undefined_name


# 模板由流程作者编写，在沙盒中渲染
_env = SandboxedEnvironment(undefined=_KeepPlaceholder, autoescape=False, keep_trailing_newline=True)

_PLACEHOLDER_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def _substitute_placeholders(template: str, replacements: Dict[str, str]) -> str:
    """只替换简单的 {{name}} 占位符，其余文本原样保留"""
    return _PLACEHOLDER_RE.sub(lambda m: replacements.get(m.group(1), m.group(0)), template)


def render_template(template: str, replacements: Dict[str, str]) -> str:
    try:
        return _env.from_string(template).render(**replacements)
    except jinja2.TemplateError as e:
        logger.warning("Notification template could not be rendered, substituting placeholders only: %s", e)
        return _substitute_placeholders(template, replacements)


def default_subject(flow_name: str, stage_name: str) -> str:
    return f"{flow_name} · {stage_name}"


def default_body(flow_name: str, stage_name: str, domain_name: str, subdomain_name: str,
                 actor_name: str, supervisor_name: str) -> str:
    return "\n".join([
        f"Hello {supervisor_name},",
        "",
        f'{actor_name} progressed "{flow_name}" for {domain_name} ({subdomain_name}) into the "{stage_name}" stage.',
        "Please review the update and provide support as needed.",
        "",
        "Thanks,",
        "Agnostic Approval Platform",
    ])


def _find_user(users: List[Dict[str, Any]], user_id: Optional[str]) -> Optional[Dict[str, Any]]:
    if not user_id:
        return None
    return next((u for u in users if u.get("id") == user_id), None)


def build_stage_notification(
    stage: ApprovalFlowStage,
    flow_name: str,
    domain_name: str,
    subdomain_name: str,
    users: List[Dict[str, Any]],
) -> Optional[StageNotificationPreview]:
    template = stage.notification
    if not stage.actor_user_id and template is None:
        return None

    actor = _find_user(users, stage.actor_user_id)
    supervisor = _find_user(users, actor.get("supervisorId")) if actor else None
    if actor is None and supervisor is None:
        return None

    actor_name = actor.get("name") if actor else None
    replacements = {
        "actorName": actor_name or "Actor",
        "supervisorName": (supervisor or {}).get("name") or actor_name or "Supervisor",
        "stageName": stage.name,
        "flowName": flow_name,
        "domainName": domain_name,
        "subdomainName": subdomain_name,
    }

    subject_template = template.subject if template and template.subject is not None \
        else default_subject(flow_name, stage.name)
    body_template = template.body if template and template.body is not None else default_body(
        flow_name, stage.name, domain_name, subdomain_name,
        replacements["actorName"], replacements["supervisorName"],
    )

    to: List[str] = []
    cc: List[str] = []
    actor_email = actor.get("email") if actor else None

    notify_supervisor = True
    if template is not None and template.send_to_actor_supervisor is not None:
        notify_supervisor = template.send_to_actor_supervisor
    if notify_supervisor and supervisor and supervisor.get("email"):
        to.append(supervisor["email"])
    if not to and actor_email:
        to.append(actor_email)
    if template is not None and template.cc_actor and actor_email and actor_email not in to:
        cc.append(actor_email)

    if not to:
        return None

    return StageNotificationPreview(
        stage_id=stage.id,
        to=to,
        cc=cc,
        subject=render_template(subject_template, replacements),
        body=render_template(body_template, replacements),
        actor=actor,
        supervisor=supervisor,
    )


def build_flow_notifications(flow: ApprovalFlow, domain_name: str, subdomain_name: str,
                             users: List[Dict[str, Any]]) -> List[StageNotificationPreview]:
    previews = []
    for stage in flow.definition.stages:
        preview = build_stage_notification(stage, flow.name, domain_name, subdomain_name, users)
        if preview is not None:
            previews.append(preview)
    return previews
