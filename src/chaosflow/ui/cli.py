"""Command-line interface router for chaosflow."""

from __future__ import annotations

import argparse
import json
import sys
import uuid
from collections.abc import Mapping, Sequence
from typing import Any

from chaosflow.auth.credentials import load_credentials
from chaosflow.auth.gate import NO_ACCESS_MESSAGE
from chaosflow.backend.client import BackendClient
from chaosflow.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    load_config,
)
from chaosflow.domain.errors import (
    AuthenticationError,
    AuthorizationError,
    ChaosflowError,
    SubmissionRejectedError,
    UpstreamServiceError,
)
from chaosflow.main import ExitCode, route_exception
from chaosflow.manifest.weights import policy_from_config
from chaosflow.observability.logging import setup_logging, shutdown_logging
from chaosflow.submission.pipeline import SubmissionRequest, SubmissionResult, WorkflowSubmitter
from chaosflow.ui.prompts import resolve_identifier
from chaosflow.ui.render import CLIRenderer, create_renderer


class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    def __init__(self, message: str, exit_code: int = int(ExitCode.INPUT_ERROR)) -> None:
        self.message = message
        self.exit_code = exit_code
        super().__init__(message)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router."""

    parser = argparse.ArgumentParser(
        prog="chaosflow",
        description=(
            "chaosflow — submit chaos workflows to an orchestration backend.\n\n"
            "Common workflows:\n"
            "  chaosflow create workflow -f workflow.yaml --project-id P --cluster-id C\n"
            "  chaosflow config            Show the effective configuration\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to chaosflow TOML config (default: ./chaosflow.toml if present).",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Log debug output to stderr.",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # create workflow -----------------------------------------------------
    create_parser = subparsers.add_parser("create", help="Create a resource on the backend")
    create_subparsers = create_parser.add_subparsers(dest="resource", required=True)
    workflow_parser = create_subparsers.add_parser(
        "workflow",
        parents=[common],
        help="Create a chaos workflow from a manifest",
        description=(
            "Create a chaos workflow.\n\n"
            "Example:\n"
            "  chaosflow create workflow -f workflow.yaml \\\n"
            "      --project-id=d861b650-1549-4574-b2ba-ab754058dd04 \\\n"
            "      --cluster-id=1c9c5801-8789-4ac9-bf5f-32649b707a5c\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    workflow_parser.add_argument(
        "-f", "--file", dest="manifest", required=True, help="The manifest file for the workflow"
    )
    workflow_parser.add_argument(
        "--project-id", default="", help="Project to create the workflow in"
    )
    workflow_parser.add_argument(
        "--cluster-id", default="", help="Cluster (agent) to run the workflow on"
    )
    workflow_parser.add_argument(
        "--litmus-config",
        default=None,
        help="Account config holding endpoint and token (default: ~/.litmusconfig).",
    )
    workflow_parser.add_argument(
        "--scan-all-artifacts",
        action="store_true",
        default=None,
        help="Inspect every artifact of each template, not only the first.",
    )
    workflow_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Check access and print the request without submitting it.",
    )
    workflow_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    workflow_parser.set_defaults(handler=_cmd_create_workflow)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show the effective configuration",
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return int(ExitCode.INPUT_ERROR)

    renderer = _get_renderer(namespace)
    try:
        result = handler(namespace)
    except CLIError as exc:
        renderer.error(exc.message)
        return exc.exit_code
    except ChaosflowError as exc:
        renderer.error(_describe_failure(exc))
        return int(route_exception(exc))
    finally:
        shutdown_logging()
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_create_workflow(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    invocation_id = uuid.uuid4().hex
    setup_logging(
        _section(config, "observability"),
        invocation_id=invocation_id,
        verbose=_flag(args, "verbose"),
    )

    project_id = resolve_identifier(args.project_id, "Project ID")
    cluster_id = resolve_identifier(args.cluster_id, "Cluster ID")

    credentials = load_credentials(_section(config, "credentials")["litmus_config"])
    scan_all = bool(_section(config, "manifest").get("scan_all_artifacts", False))
    try:
        weight_policy = policy_from_config(config)
    except ValueError as exc:
        raise CLIError(str(exc)) from exc

    timeout = _section(config, "backend").get("timeout_seconds")
    with BackendClient(credentials, timeout_seconds=float(timeout)) as client:
        submitter = WorkflowSubmitter(
            fetch_user_details=lambda: client.get_user_details(credentials.username),
            submit=client.create_workflow,
            weight_policy=weight_policy,
            scan_all_artifacts=scan_all,
        )
        result = submitter.run(
            SubmissionRequest(
                manifest_path=args.manifest,
                project_id=project_id,
                cluster_id=cluster_id,
            ),
            dry_run=_flag(args, "dry_run"),
        )

    if _flag(args, "json"):
        _emit_json(_result_payload(result))
        return int(ExitCode.SUCCESS)

    _render_result(_get_renderer(args), result)
    return int(ExitCode.SUCCESS)


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    print(json.dumps(json.loads(dump_effective_config(config)), indent=2, sort_keys=True))
    return int(ExitCode.SUCCESS)


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(no_color=_flag(args, "no_color"), verbose=_flag(args, "verbose"))


def _result_payload(result: SubmissionResult) -> dict[str, object]:
    report = result.prepared.report
    payload: dict[str, object] = {
        "command": "create workflow",
        "submitted": result.submitted,
        "role": result.decision.role,
        "request": result.prepared.payload.to_dict(),
        "artifacts": {
            "extracted": report.extracted,
            "skipped": report.skipped,
            "malformed": report.malformed,
        },
    }
    if result.created is not None:
        payload["workflow_id"] = result.created.workflow_id
    return payload


def _render_result(renderer: CLIRenderer, result: SubmissionResult) -> None:
    payload = result.prepared.payload
    report = result.prepared.report

    if result.created is None:
        renderer.text("Dry run: workflow was not submitted.")
        renderer.text(payload.to_json())
    else:
        renderer.success(f"Workflow {result.created.workflow_name} created successfully")
        renderer.kv("Workflow ID", result.created.workflow_id or "(not reported)")

    renderer.kv("Project ID", payload.project_id)
    renderer.kv("Cluster ID", payload.cluster_id)
    renderer.table(
        ("EXPERIMENT", "WEIGHTAGE"),
        [(entry.experiment_name, str(entry.weightage)) for entry in payload.weightages],
        title="Experiments:",
    )
    if report.malformed:
        renderer.text(f"\n{report.malformed} artifact(s) could not be decoded and were skipped.")


def _describe_failure(exc: ChaosflowError) -> str:
    if isinstance(exc, AuthorizationError):
        suffix = f" {exc.project_id}" if exc.project_id else ""
        return f"{NO_ACCESS_MESSAGE}{suffix}"
    if isinstance(exc, AuthenticationError):
        return f"authentication failed: {exc.detail}"
    if isinstance(exc, SubmissionRejectedError):
        return f"backend rejected the workflow: {'; '.join(exc.messages)}"
    if isinstance(exc, UpstreamServiceError):
        return f"backend request failed: {exc.detail}"
    return exc.detail


# ---------------------------------------------------------------------------
# Helpers: config
# ---------------------------------------------------------------------------


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    config_path = getattr(args, "config_path", None)
    try:
        return load_config(
            config_path,
            overrides={
                "credentials.litmus_config": getattr(args, "litmus_config", None),
                "manifest.scan_all_artifacts": getattr(args, "scan_all_artifacts", None),
            },
        )
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=int(ExitCode.INPUT_ERROR)) from exc


def _section(config: Mapping[str, object], name: str) -> dict[str, Any]:
    value = config.get(name)
    return dict(value) if isinstance(value, Mapping) else {}


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "build_parser", "run_cli"]
