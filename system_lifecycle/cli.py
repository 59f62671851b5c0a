"""Command line entry point for retry and restore point operations."""
from __future__ import annotations

import argparse
import json
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from .core.logging_utils import configure_logging, get_logger
from .core.paths import is_writable_dir, resolve_log_dir
from .core.process import Command
from .core.settings import apply_environment, create_default_config, get_bool, load_settings
from .retry import RetryCoordinator, RetrySettings
from .rollback import RollbackService, RollbackSettings
from .rollback.types import RESTORE_TARGETS


def _settings(args: argparse.Namespace) -> Dict[str, Any]:
    settings = apply_environment(load_settings(args.config))
    if args.rollback_dir:
        settings["rollback_dir"] = str(args.rollback_dir)
    if args.log_dir:
        settings["log_dir"] = str(args.log_dir)
    if args.quiet:
        settings["quiet"] = True
    return settings


def _log_dir(settings: Dict[str, Any]) -> Path:
    log_dir = resolve_log_dir(settings)
    if is_writable_dir(log_dir):
        return log_dir
    return Path(tempfile.gettempdir()) / "system-lifecycle-logs"


def _cmd_retry(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    argv = list(args.argv)
    if argv and argv[0] == "--":
        argv = argv[1:]
    if not argv:
        get_logger("cli").error("No command given to retry")
        return 2
    retry_settings = RetrySettings.from_mapping(settings)
    coordinator = RetryCoordinator(retry_settings)
    command = Command(tuple(argv), timeout=args.timeout)
    attempts = args.attempts or retry_settings.max_attempts
    if args.strategy == "fixed":
        result = coordinator.retry_command(attempts, args.delay, command)
    elif args.strategy == "jitter":
        result = coordinator.retry_with_jitter(attempts, args.delay, command)
    else:
        result = coordinator.retry_with_backoff(attempts, command)
    return result.exit_code


def _cmd_wait_network(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    return RetryCoordinator(settings).wait_for_network(args.max_wait).exit_code


def _cmd_wait_service(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    result = RetryCoordinator(settings).wait_for_service(args.service, args.max_wait, args.interval)
    return result.exit_code


def _cmd_create(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    result = RollbackService(RollbackSettings.from_mapping(settings)).create_restore_point(
        args.name, args.extra_dir or ()
    )
    if result.path is not None:
        print(result.path)
    return result.exit_code


def _cmd_list(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    service = RollbackService(RollbackSettings.from_mapping(settings))
    points = list(service.list_restore_points())
    if args.json:
        payload = [
            {
                "id": point.id,
                "name": point.name,
                "timestamp": point.timestamp,
                "path": str(point.path),
                "created": point.created,
                "hostname": point.hostname,
                "os": point.os,
                "components": point.components,
            }
            for point in points
        ]
        print(json.dumps(payload, indent=2))
        return 0
    if not points:
        get_logger("cli").info("No restore points found")
        return 0
    get_logger("cli").info("Available restore points:")
    for point in points:
        print(f"  - {point.name} ({point.timestamp}): {point.path}")
    return 0


def _cmd_restore(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    result = RollbackService(RollbackSettings.from_mapping(settings)).restore(args.ref, args.what)
    return result.exit_code


def _cmd_cleanup(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    RollbackService(RollbackSettings.from_mapping(settings)).cleanup(args.keep)
    return 0


def _cmd_backup_file(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    service = RollbackService(RollbackSettings.from_mapping(settings))
    return service.backup_file(args.path, args.label).exit_code


def _cmd_backup_dir(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    service = RollbackService(RollbackSettings.from_mapping(settings))
    return service.backup_directory(args.path, args.label).exit_code


def _cmd_config_init(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    create_default_config(args.path)
    return 0


def _cmd_config_show(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    for key in sorted(settings):
        print(f"{key}={settings[key]}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="system-lifecycle",
        description="Retry flaky maintenance commands and manage configuration restore points",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to a key=value config file")
    parser.add_argument("--rollback-dir", type=Path, default=None, help="Override the backup root")
    parser.add_argument("--log-dir", type=Path, default=None, help="Override the log directory")
    parser.add_argument("--no-log-file", action="store_true", help="Only log to the console")
    parser.add_argument("--quiet", action="store_true", help="Suppress console logging")
    sub = parser.add_subparsers(dest="command", required=True)

    retry = sub.add_parser("retry", help="Run a command until it succeeds")
    retry.add_argument("--attempts", type=int, default=None, help="Maximum attempts (default from config)")
    retry.add_argument("--strategy", choices=("backoff", "fixed", "jitter"), default="backoff")
    retry.add_argument("--delay", type=float, default=1.0, help="Delay or base delay for fixed/jitter")
    retry.add_argument("--timeout", type=float, default=None, help="Kill an attempt after this many seconds")
    retry.add_argument("argv", nargs=argparse.REMAINDER, help="Command to run, after --")
    retry.set_defaults(handler=_cmd_retry)

    network = sub.add_parser("wait-network", help="Wait for network connectivity")
    network.add_argument("--max-wait", type=float, default=30)
    network.set_defaults(handler=_cmd_wait_network)

    service = sub.add_parser("wait-service", help="Wait for a systemd service to become active")
    service.add_argument("service")
    service.add_argument("--max-wait", type=float, default=60)
    service.add_argument("--interval", type=float, default=5)
    service.set_defaults(handler=_cmd_wait_service)

    points = sub.add_parser("restore-point", help="Create, list, restore and prune restore points")
    points_sub = points.add_subparsers(dest="action", required=True)

    create = points_sub.add_parser("create", help="Create a restore point")
    create.add_argument("name")
    create.add_argument("--extra-dir", action="append", default=[], help="Additional directory to archive")
    create.set_defaults(handler=_cmd_create)

    listing = points_sub.add_parser("list", help="List restore points")
    listing.add_argument("--json", action="store_true", help="Output as JSON")
    listing.set_defaults(handler=_cmd_list)

    restore = points_sub.add_parser("restore", help="Restore from a restore point")
    restore.add_argument("ref", help="Restore point directory or name prefix")
    restore.add_argument("--what", choices=RESTORE_TARGETS, default="all")
    restore.set_defaults(handler=_cmd_restore)

    cleanup = points_sub.add_parser("cleanup", help="Remove old restore points")
    cleanup.add_argument("--keep", type=int, default=None, help="Restore points to keep (default from config)")
    cleanup.set_defaults(handler=_cmd_cleanup)

    backup_file = sub.add_parser("backup-file", help="Back up a single file")
    backup_file.add_argument("path", type=Path)
    backup_file.add_argument("--label", default=None)
    backup_file.set_defaults(handler=_cmd_backup_file)

    backup_dir = sub.add_parser("backup-dir", help="Back up a directory as tar.gz")
    backup_dir.add_argument("path", type=Path)
    backup_dir.add_argument("--label", default=None)
    backup_dir.set_defaults(handler=_cmd_backup_dir)

    config = sub.add_parser("config", help="Inspect or create the config file")
    config_sub = config.add_subparsers(dest="action", required=True)
    config_init = config_sub.add_parser("init", help="Write a commented default config file")
    config_init.add_argument("path", type=Path)
    config_init.set_defaults(handler=_cmd_config_init)
    config_show = config_sub.add_parser("show", help="Print the effective settings")
    config_show.set_defaults(handler=_cmd_config_show)

    return parser


def cli(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(quiet=args.quiet)
    settings = _settings(args)
    quiet = get_bool(settings, "quiet", False)
    log_dir = None if args.no_log_file else _log_dir(settings)
    configure_logging(args.command, log_dir=log_dir, quiet=quiet)
    return args.handler(args, settings)


def main() -> None:  # pragma: no cover
    raise SystemExit(cli())


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(cli())
