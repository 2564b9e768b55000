"""XcodeKit CLI — validate configs, run the MCP or HTTP server, and query audit logs."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

# Ensure project root is importable when running as script
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def _configure_logging(debug: bool) -> None:
    # stdout belongs to the MCP stdio transport
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load(path: str | None):
    from runtime.config_loader import load_config

    try:
        return load_config(path)
    except FileNotFoundError:
        print(f"Error: config not found: {path}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(f"Error: invalid config: {exc}", file=sys.stderr)
        sys.exit(1)


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate an xcodekit.yaml config."""
    config = _load(args.config)

    from runtime.policy import WorkflowPolicyEngine
    from runtime.tools.registry import create_default_registry

    registry = create_default_registry()
    policy = WorkflowPolicyEngine(config)

    print(f"Config OK: {config.app.name} v{config.app.version}")
    print(f"  Workflows:        {', '.join(policy.enabled_workflows) or '(all)'}")
    print(f"  Session defaults: {'on' if config.session.enabled else 'off'}"
          f" ({len(config.session.defaults)} seeded)")
    print(f"  Command timeout:  {config.executor.timeout_seconds or '(none)'}")
    print(f"  Audit path:       {config.audit.path or '(memory)'}")

    known = set(registry.workflows())
    for workflow in policy.enabled_workflows:
        if workflow not in known:
            print(f"  Warning: workflow '{workflow}' is not a known workflow")

    enabled = [d for d in registry.definitions() if policy.workflow_enabled(d.workflow)]
    print(f"  Tools enabled:    {len(enabled)} of {len(registry.definitions())}")


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the MCP server on stdio."""
    config = _load(args.config)
    _configure_logging(config.debug)

    from runtime import mcp_server
    from runtime.mcp_helpers import build_components

    mcp_server.set_components(build_components(config))
    mcp_server.mcp.run(transport="stdio")


def cmd_http(args: argparse.Namespace) -> None:
    """Start the XcodeKit HTTP runtime."""
    config = _load(args.config)
    if args.config:
        os.environ["XCODEKIT_CONFIG"] = args.config
    _configure_logging(config.debug)

    print(f"Starting XcodeKit runtime '{config.app.name}'...", file=sys.stderr)
    print(f"  Host: {args.host}", file=sys.stderr)
    print(f"  Port: {args.port}", file=sys.stderr)

    import uvicorn

    uvicorn.run(
        "runtime.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="debug" if config.debug else "info",
    )


def cmd_logs(args: argparse.Namespace) -> None:
    """Query audit logs."""
    from contracts.audit import AuditEvent
    from runtime.audit.logger import JsonlAuditLogger

    log_path = args.log_path or _load(args.config).audit.path
    if not log_path or not Path(log_path).exists():
        print(f"No audit log found at {log_path}", file=sys.stderr)
        sys.exit(1)
    audit = JsonlAuditLogger(log_path)

    if args.request_id:
        entries = audit.query_by_request(args.request_id)
    elif args.event:
        try:
            event = AuditEvent(args.event)
        except ValueError:
            valid = ", ".join(e.value for e in AuditEvent)
            print(f"Unknown event type: {args.event}", file=sys.stderr)
            print(f"Valid events: {valid}", file=sys.stderr)
            sys.exit(1)
        entries = audit.query_by_event(event, limit=args.limit)
    else:
        entries = audit.tail(args.limit)

    if not entries:
        print("No matching audit entries.")
        return

    for entry in entries:
        record = json.loads(entry.model_dump_json())
        if args.json:
            print(json.dumps(record))
        else:
            ts = record["ts"][:19]
            rid = record["request_id"][:8]
            detail = json.dumps(record.get("detail", {}))
            print(f"{ts}  [{record['event']:17s}]  {rid}  {record['tool']:20s}  {detail}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="xcodekit",
        description="XcodeKit — Xcode build, simulator and device tools for agents",
    )
    sub = parser.add_subparsers(dest="command")

    # validate
    p_val = sub.add_parser("validate", help="Validate an xcodekit.yaml config")
    p_val.add_argument("config", nargs="?", default=None, help="Path to config")
    p_val.set_defaults(func=cmd_validate)

    # serve
    p_serve = sub.add_parser("serve", help="Run the MCP server on stdio")
    p_serve.add_argument("config", nargs="?", default=None, help="Path to config")
    p_serve.set_defaults(func=cmd_serve)

    # http
    p_http = sub.add_parser("http", help="Start the HTTP runtime")
    p_http.add_argument("config", nargs="?", default=None, help="Path to config")
    p_http.add_argument("--host", default="127.0.0.1", help="Bind address")
    p_http.add_argument("--port", type=int, default=8080, help="Port")
    p_http.add_argument("--reload", action="store_true", help="Enable auto-reload")
    p_http.set_defaults(func=cmd_http)

    # logs
    p_logs = sub.add_parser("logs", help="Query audit logs")
    p_logs.add_argument("log_path", nargs="?", help="Path to audit JSONL file (default: from config)")
    p_logs.add_argument("--config", "-c", default=None, help="Path to config")
    p_logs.add_argument("--request-id", "-r", help="Filter by request ID")
    p_logs.add_argument("--event", "-e", help="Filter by event type")
    p_logs.add_argument("--limit", "-n", type=int, default=20, help="Max entries")
    p_logs.add_argument("--json", action="store_true", help="Output raw JSON")
    p_logs.set_defaults(func=cmd_logs)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
