"""
Command-line interface for flowengine.

Usage:
    flowengine plan flow.json [--parallel]
    flowengine run flow.json [--parallel] [--local]
    flowengine run flow.json --backend-url http://executor:8080/api --timeout 30
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from flowengine.config import EngineConfig
from flowengine.credentials import CredentialManager
from flowengine.errors import FlowEngineError
from flowengine.graph import Flow, compute_order, compute_parallel_groups
from flowengine.observability import configure_logging
from flowengine.runner import create_flow_executor
from flowengine.tasks import map_category_to_task_type

logger = logging.getLogger(__name__)


def load_flow(path: str) -> Flow:
    """Read a flow JSON file; editor-shaped nodes (``data.config``) are accepted."""
    with open(Path(path), encoding="utf-8") as f:
        return Flow.model_validate(json.load(f))


def cmd_plan(args: argparse.Namespace) -> int:
    flow = load_flow(args.flow)
    try:
        if args.parallel:
            plan = {"groups": compute_parallel_groups(flow.nodes, flow.edges)}
        else:
            plan = {"order": compute_order(flow.nodes, flow.edges)}
    except FlowEngineError as e:
        print(json.dumps({"error": str(e)}), file=sys.stderr)
        return 1

    print(json.dumps(plan, indent=2))
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    config = EngineConfig.load(
        executor="local" if args.local else None,
        backend_url=args.backend_url,
        timeout_seconds=args.timeout,
    )
    configure_logging(level=config.log_level, format=config.log_format)

    flow = load_flow(args.flow)
    credentials = CredentialManager()
    if config.executor == "remote":
        warn_missing_credentials(flow, credentials)
    executor = create_flow_executor(config, credentials=credentials)
    if args.parallel:
        result = asyncio.run(executor.execute_flow_parallel(flow))
    else:
        result = asyncio.run(executor.execute_flow(flow))

    print(json.dumps(result.to_wire(), indent=2, default=str))
    return 0 if result.success else 1


def warn_missing_credentials(flow: Flow, credentials: CredentialManager) -> list[str]:
    """Log every credential the flow's task types need but cannot find."""
    task_types = sorted({map_category_to_task_type(node.category) for node in flow.nodes})
    missing = credentials.get_missing_for_task_types(task_types)
    for name in missing:
        spec = credentials.get_spec(name)
        hint = f" ({spec.help_url})" if spec.help_url else ""
        logger.warning(
            "Credential '%s' is not set; export %s or add it to .env%s",
            name,
            spec.env_var,
            hint,
            extra={"event": "credential_missing"},
        )
    return missing


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="flowengine",
        description="Plan and execute node-graph automation flows",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    plan_parser = subparsers.add_parser("plan", help="Print the execution order of a flow")
    plan_parser.add_argument("flow", help="Path to a flow JSON file")
    plan_parser.add_argument(
        "--parallel", action="store_true", help="Print parallel groups instead of a total order"
    )
    plan_parser.set_defaults(func=cmd_plan)

    run_parser = subparsers.add_parser("run", help="Execute a flow")
    run_parser.add_argument("flow", help="Path to a flow JSON file")
    run_parser.add_argument("--parallel", action="store_true", help="Run level by level")
    run_parser.add_argument(
        "--local", action="store_true", help="Use the in-process simulation executor"
    )
    run_parser.add_argument("--backend-url", default=None, help="Execution backend base URL")
    run_parser.add_argument(
        "--timeout", type=float, default=None, help="Per-submission timeout in seconds"
    )
    run_parser.set_defaults(func=cmd_run)

    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        print(f"Cannot load flow '{args.flow}': {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
