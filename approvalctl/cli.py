# approvalctl/cli
"""
approvalctl CLI 主入口：在本地文件上运行流程规则引擎（定义校验、路径检查、条件求值、流转解析、通知预览）
"""
from pathlib import Path

import click
import yaml
from rich.markup import escape
from rich.text import Text

from approvalflow import (
    ApprovalFlow, ApprovalFlowDefinition, EvaluationContext, FlowSchemaError, TransitionError,
    available_transitions, build_flow_notifications, build_path, check_flow_path,
    evaluate_condition_groups_with_details, evaluate_conditions, resolve_action,
    validate_flow_definition,
)
from approvalctl.core.config import ConfigError, load_config, load_document, unwrap_definition
from approvalctl.utils.console import (
    configure_logging, console, error, heading, info, print_json, print_table, success, verdict,
)

# ------------------------------
# CLI 主入口
# ------------------------------

@click.group()
@click.version_option("0.1.0", message="approvalctl v%(version)s")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Config file (default: .approvalflow/config.yaml)")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print machine-readable JSON")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, config_path, as_json, verbose):
    """🧭 approvalctl - approval flow rule engine tools"""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        error(str(e))
        raise click.Abort()

    configure_logging("DEBUG" if verbose else config.log_level)
    ctx.ensure_object(dict)
    ctx.obj['JSON'] = as_json or config.output == "json"

# ------------------------------
# 辅助函数
# ------------------------------

def _read(path: Path, what: str):
    try:
        return load_document(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        error(f"Failed to read {what} {path}: {e}")
        raise click.Abort()


def _load_definition(path: Path) -> ApprovalFlowDefinition:
    raw = unwrap_definition(_read(path, "flow file"))
    if not validate_flow_definition(raw):
        error(f"Invalid flow definition structure: {path}")
        raise click.Abort()
    try:
        return ApprovalFlowDefinition.from_dict(raw)
    except FlowSchemaError as e:
        error(f"Invalid flow definition {path}: {e}")
        raise click.Abort()


def _load_context(path: Path) -> EvaluationContext:
    data = _read(path, "context file")
    if not isinstance(data, dict):
        error(f"Context file must contain a mapping: {path}")
        raise click.Abort()
    return EvaluationContext.from_dict(data)


def _detail_rows(details):
    return [
        [d.condition_id, d.field, d.operator, repr(d.expected_value), repr(d.actual_value),
         Text.from_markup(verdict(d.passed))]
        for d in details
    ]

# ------------------------------
# 命令 1: validate
# ------------------------------

@cli.command()
@click.argument("flow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def validate(ctx, flow_file: Path):
    """✅ Check that a flow definition is well-formed"""
    raw = unwrap_definition(_read(flow_file, "flow file"))
    valid = validate_flow_definition(raw)
    if ctx.obj['JSON']:
        print_json({"valid": valid})
    elif valid:
        success(f"{flow_file} is a valid flow definition")
    else:
        error(f"{flow_file} is not a valid flow definition")
    ctx.exit(0 if valid else 1)

# ------------------------------
# 命令 2: path
# ------------------------------

@cli.command()
@click.argument("flow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("statuses", nargs=-1)
@click.option("--start", help="First status of the path")
@click.option("--via", multiple=True, help="Intermediate status (repeatable)")
@click.option("--end", help="Last status of the path")
@click.pass_context
def path(ctx, flow_file: Path, statuses, start, via, end):
    """🛤️ Check whether a sequence of statuses can be walked through the flow"""
    if start:
        if statuses:
            raise click.UsageError("Give either STATUSES or --start/--via/--end, not both")
        candidate = build_path(start, list(via), end)
    elif via or end:
        raise click.UsageError("--via and --end require --start")
    else:
        candidate = list(statuses)

    raw = unwrap_definition(_read(flow_file, "flow file"))
    evaluation = check_flow_path(raw, candidate)

    if ctx.obj['JSON']:
        print_json(evaluation.to_dict())
    else:
        heading(f"Path: {' → '.join(candidate) or '(empty)'}")
        if evaluation.is_valid:
            success("Path is reachable in flow")
        for issue in evaluation.issues:
            error(issue)
    ctx.exit(0 if evaluation.is_valid else 1)

# ------------------------------
# 命令 3: evaluate
# ------------------------------

@cli.command()
@click.argument("groups_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("context_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--details", is_flag=True, default=False, help="Show per-condition results")
@click.pass_context
def evaluate(ctx, groups_file: Path, context_file: Path, details: bool):
    """🧮 Evaluate condition groups against a context"""
    groups = _read(groups_file, "condition file")
    context = _load_context(context_file)

    if isinstance(groups, dict) and "conditionGroups" in groups:
        groups = groups["conditionGroups"]
    if isinstance(groups, dict):
        result = evaluate_conditions(groups, context, with_details=True)
    else:
        result = evaluate_condition_groups_with_details(groups, context)

    if ctx.obj['JSON']:
        data = result.to_dict()
        if not details:
            data.pop("details", None)
        print_json(data)
    else:
        console.print(f"Result: {verdict(result.passed)}")
        if details and result.details:
            print_table(_detail_rows(result.details),
                        ["Condition", "Field", "Operator", "Expected", "Actual", "Result"],
                        title="Condition details")
    ctx.exit(0 if result.passed else 1)

# ------------------------------
# 命令 4: transitions
# ------------------------------

@cli.command()
@click.argument("flow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("stage_id")
@click.argument("context_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def transitions(ctx, flow_file: Path, stage_id: str, context_file: Path):
    """🔀 List the transitions open from a stage under a context"""
    definition = _load_definition(flow_file)
    stage = definition.stage_by_id(stage_id)
    if stage is None:
        error(f"Stage not found: {stage_id}")
        raise click.Abort()

    open_transitions = available_transitions(stage, _load_context(context_file))
    if ctx.obj['JSON']:
        print_json([t.to_dict() for t in open_transitions])
        return
    if not open_transitions:
        info(f"No transitions are open from stage {stage_id}")
        return
    print_table(
        [[t.label or "", t.to.value, t.target_stage_id or "", "yes" if t.is_default else ""]
         for t in open_transitions],
        ["Label", "To", "Target stage", "Default"],
        title=f"Open transitions from {stage.name}",
    )

# ------------------------------
# 命令 5: act
# ------------------------------

@cli.command()
@click.argument("flow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("stage_id")
@click.argument("action")
@click.option("--context", "context_file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Evaluate transition conditions against this context")
@click.option("--iteration", default=0, show_default=True, type=int, help="Current iteration count")
@click.pass_context
def act(ctx, flow_file: Path, stage_id: str, action: str, context_file, iteration: int):
    """▶️ Resolve what an approval action does from a stage"""
    definition = _load_definition(flow_file)
    context = _load_context(context_file) if context_file else None
    try:
        outcome = resolve_action(definition, stage_id, action, context=context, iteration_count=iteration)
    except TransitionError as e:
        error(str(e))
        ctx.exit(1)
        return

    if ctx.obj['JSON']:
        print_json(outcome.to_dict())
        return
    success(f"{stage_id} → {outcome.next_stage_name or outcome.next_status.value}")
    print_table([
        ["Next status", outcome.next_status.value],
        ["Next stage", outcome.next_stage_id or "-"],
        ["Final", "yes" if outcome.is_final else "no"],
        ["Action", outcome.comment_action],
        ["Iteration", outcome.workflow["iterationCount"]],
    ], ["Field", "Value"])

# ------------------------------
# 命令 6: notify
# ------------------------------

@cli.command()
@click.argument("flow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("users_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--stage", "stage_id", help="Only preview this stage")
@click.option("--flow-name", help="Flow name (defaults to the name in FLOW_FILE)")
@click.option("--domain", "domain_name", required=True, help="Domain name")
@click.option("--subdomain", "subdomain_name", required=True, help="Subdomain name")
@click.pass_context
def notify(ctx, flow_file: Path, users_file: Path, stage_id, flow_name, domain_name, subdomain_name):
    """✉️ Preview the stage notifications a flow would send"""
    document = _read(flow_file, "flow file")
    definition = _load_definition(flow_file)
    name = flow_name or (document.get("name") if isinstance(document, dict) else None) or flow_file.stem

    users = _read(users_file, "users file")
    if not isinstance(users, list):
        error(f"Users file must contain a list: {users_file}")
        raise click.Abort()

    flow = ApprovalFlow(name=name, definition=definition)
    previews = build_flow_notifications(flow, domain_name, subdomain_name, users)
    if stage_id:
        previews = [p for p in previews if p.stage_id == stage_id]

    if ctx.obj['JSON']:
        print_json([
            {"stageId": p.stage_id, "to": p.to, "cc": p.cc, "subject": p.subject, "body": p.body}
            for p in previews
        ])
        return
    if not previews:
        info("No notifications would be sent")
        return
    for p in previews:
        heading(p.subject)
        console.print(f"[path]to[/path]: {escape(', '.join(p.to))}")
        if p.cc:
            console.print(f"[path]cc[/path]: {escape(', '.join(p.cc))}")
        console.print(p.body, markup=False)


if __name__ == "__main__":
    cli()
