"""ytbulk CLI.

Subcommands:
  bulk-update   -> apply one update request to many issues and verify read-back
  bulk-link     -> create issue links via link commands, optionally verifying them
  rank          -> rank issues from a JSON file by criticality (no network)
  critical-path -> rank a project's unresolved issues by criticality

Batch results are printed as JSON on stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from ytbulk.config import BulkConfig, ConfigError, config_from_env, load_config
from ytbulk.criticality import critical_path, rank_by_criticality
from ytbulk.logging import configure_logging
from ytbulk.models import BulkResult
from ytbulk.orchestrator import BulkOrchestrator
from ytbulk.youtrack_rest import YouTrackAPIError, YouTrackRestClient

CONFIG_DEFAULT = "ytbulk.config.yaml"
EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


class _UsageError(ValueError):
    pass


def _non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {text!r}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater, got {value}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ytbulk", description="Bulk YouTrack issue updates and links")
    p.add_argument("--config", default=CONFIG_DEFAULT)
    p.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    p.add_argument("--pretty", action="store_true", help="Indent JSON output")
    sub = p.add_subparsers(dest="cmd", required=True, metavar="<command>")

    pu = sub.add_parser("bulk-update", help="Apply one update to many issues")
    pu.add_argument("--ids", nargs="+", default=[], help="Issue ids (readable or internal)")
    src = pu.add_mutually_exclusive_group(required=True)
    src.add_argument("--update", help="Update request as a JSON object")
    src.add_argument("--update-file", help="Path to a JSON file with the update request")

    pl = sub.add_parser("bulk-link", help="Link issues using link commands")
    pl.add_argument(
        "--link",
        action="append",
        default=[],
        metavar="SRC:TARGET[:COMMAND]",
        help="Link request; may be repeated",
    )
    pl.add_argument("--links-file", help="JSON list of {sourceIssueId, targetIssueId, linkCommand}")
    pl.add_argument("--no-verify", action="store_true", help="Skip link read-back")

    pr = sub.add_parser("rank", help="Rank issues from a JSON file by criticality")
    pr.add_argument("--issues-file", required=True)
    pr.add_argument("--top", type=_non_negative_int)

    pc = sub.add_parser("critical-path", help="Rank a project's open issues by criticality")
    pc.add_argument("--project", required=True)
    pc.add_argument("--limit", type=_non_negative_int)
    return p


def _read_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise _UsageError(f"cannot read JSON from {path}: {exc}") from exc


def _parse_link(spec: str) -> dict[str, Any]:
    parts = spec.split(":", 2)
    if len(parts) < 2:  # noqa: PLR2004
        raise _UsageError(f"link must look like SRC:TARGET[:COMMAND], got {spec!r}")
    link: dict[str, Any] = {"sourceIssueId": parts[0], "targetIssueId": parts[1]}
    if len(parts) == 3:  # noqa: PLR2004
        link["linkCommand"] = parts[2]
    return link


def _load_cfg(path: str) -> BulkConfig:
    if Path(path).exists():
        return load_config(path)
    return config_from_env()


def _client(cfg: BulkConfig) -> YouTrackRestClient:
    cfg.validate()
    return YouTrackRestClient(
        base_url=str(cfg.youtrack_url),
        token=str(cfg.youtrack_token),
        timeout=cfg.timeout,
        retry=cfg.retry,
    )


def _emit(data: Any, pretty: bool) -> None:
    print(json.dumps(data, indent=2 if pretty else None))


def _emit_result(result: BulkResult, pretty: bool) -> int:
    _emit(result.to_dict(), pretty)
    return EXIT_OK if result.ok else EXIT_FAILED


def _cmd_bulk_update(cfg: BulkConfig, args: argparse.Namespace) -> int:
    update = _read_json(args.update_file) if args.update_file else None
    if args.update is not None:
        try:
            update = json.loads(args.update)
        except json.JSONDecodeError as exc:
            raise _UsageError(f"--update is not valid JSON: {exc}") from exc
    # An empty id list is rejected by the orchestrator without touching the backend
    backend = _client(cfg) if args.ids else None
    orchestrator = BulkOrchestrator(backend)  # type: ignore[arg-type]
    return _emit_result(orchestrator.bulk_update(args.ids, update), args.pretty)


def _cmd_bulk_link(cfg: BulkConfig, args: argparse.Namespace) -> int:
    links: list[Any] = [_parse_link(spec) for spec in args.link]
    if args.links_file:
        loaded = _read_json(args.links_file)
        if not isinstance(loaded, list):
            raise _UsageError("--links-file must contain a JSON list")
        links.extend(loaded)
    verify = cfg.verify_links and not args.no_verify
    backend = _client(cfg) if links else None
    orchestrator = BulkOrchestrator(backend)  # type: ignore[arg-type]
    return _emit_result(orchestrator.bulk_link(links, verify=verify), args.pretty)


def _cmd_rank(args: argparse.Namespace) -> int:
    issues = _read_json(args.issues_file)
    if not isinstance(issues, list):
        raise _UsageError("--issues-file must contain a JSON list")
    ranked = rank_by_criticality(i for i in issues if isinstance(i, dict))
    if args.top is not None:
        ranked = ranked[: args.top]
    _emit(ranked, args.pretty)
    return EXIT_OK


def _cmd_critical_path(cfg: BulkConfig, args: argparse.Namespace) -> int:
    limit = args.limit if args.limit is not None else cfg.critical_path_limit
    try:
        report = critical_path(_client(cfg), args.project, limit=limit)
    except YouTrackAPIError as exc:
        _emit({"error": f"Failed to analyze critical path: {exc}"}, args.pretty)
        return EXIT_FAILED
    _emit(report, args.pretty)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        if args.cmd == "rank":
            configure_logging(level="WARNING" if args.quiet else "INFO")
            return _cmd_rank(args)
        cfg = _load_cfg(args.config)
        configure_logging(
            json_logging=cfg.logging_json_enabled,
            level="WARNING" if args.quiet else cfg.logging_level,
        )
        if args.cmd == "bulk-update":
            return _cmd_bulk_update(cfg, args)
        if args.cmd == "bulk-link":
            return _cmd_bulk_link(cfg, args)
        return _cmd_critical_path(cfg, args)
    except ConfigError as exc:
        print(f"[config] {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except _UsageError as exc:
        print(f"[usage] {exc}", file=sys.stderr)
        return EXIT_CONFIG


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
