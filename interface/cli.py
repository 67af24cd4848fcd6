"""todomd command line: keep a folder of markdown documents in sync with Todoist."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from prompt_toolkit import prompt

import config
from application.sync_service import SyncResult, SyncService
from infrastructure.state_store import YamlStateStore
from infrastructure.todoist import TodoistClient, TodoistClientError
from infrastructure.vault_store import DocumentStoreError, FileDocumentStore
from util.sync_status import sync_status_label

from .cli_io import structured_error, structured_response


def _notify(message: str) -> None:
    print(message, file=sys.stderr)


def _interactive() -> bool:
    return sys.stdin.isatty()


def ask_token() -> str:
    return prompt("Todoist API token: ", is_password=True).strip()


def build_service(args: argparse.Namespace) -> SyncService:
    vault = config.get_vault(args.vault)
    return SyncService(
        remote=TodoistClient(config.get_user_token),
        store=FileDocumentStore(vault),
        state_store=YamlStateStore(config.get_state_path(vault)),
        settings=config.get_editor_settings(),
        directory=config.get_directory(),
        notifier=_notify,
    )


def _respond(command: str, result: SyncResult) -> int:
    if result.success:
        return structured_response(command, message=result.message, payload=result.to_dict())
    return structured_error(command, result.message, payload=result.to_dict())


def _run_pass(command: str, args: argparse.Namespace, action: Callable[[SyncService], SyncResult]) -> int:
    service = build_service(args)
    result = action(service)
    if not result.auth_failed:
        return _respond(command, result)
    if not _interactive():
        return structured_error(command, result.message, payload={"auth": False})
    token = ask_token()
    try:
        accepted = bool(token) and service.remote.health_check(token)
    except TodoistClientError as exc:
        return structured_error(command, f"Token check failed: {exc}", payload={"auth": False})
    if not accepted:
        return structured_error(command, "Token rejected by Todoist", payload={"auth": False})
    config.set_user_token(token)
    return _respond(command, action(service))


def cmd_pull(args: argparse.Namespace) -> int:
    return _run_pass("pull", args, lambda service: service.pull(forced=args.forced))


def cmd_push(args: argparse.Namespace) -> int:
    return _run_pass("push", args, lambda service: service.push())


def cmd_capture(args: argparse.Namespace) -> int:
    vault = config.get_vault(args.vault)
    try:
        path = FileDocumentStore(vault).relative(Path(args.path))
    except DocumentStoreError as exc:
        return structured_error("capture", str(exc))
    return _run_pass("capture", args, lambda service: service.capture(path))


def cmd_auth(args: argparse.Namespace) -> int:
    """Set or clear the Todoist API token."""
    if args.unset:
        config.set_user_token("")
        return structured_response("auth", message="Token cleared", payload={"token": None})
    token = (args.token or "").strip()
    if not token and _interactive():
        token = ask_token()
    if not token:
        return structured_error("auth", "Pass a token or --unset")
    config.set_user_token(token)
    return structured_response("auth", message="Token saved", payload={"token": "***"})


def cmd_status(args: argparse.Namespace) -> int:
    vault = config.get_vault(args.vault)
    state, snapshot = YamlStateStore(config.get_state_path(vault)).load()
    token_present = bool(config.get_user_token())
    info = {"last_pull": state.last_pull, "last_push": state.last_push}
    payload = {
        "vault": str(vault),
        "directory": config.get_directory(),
        "token": token_present,
        "last_pull": state.last_pull,
        "last_push": state.last_push,
        "projects": len(snapshot.projects),
        "tasks": len(snapshot.items),
        "registered_files": sorted(state.registered_files),
    }
    return structured_response("status", message=sync_status_label(info, token_present), payload=payload)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="todomd",
        description="todomd: Todoist <-> markdown synchronisation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--vault", help="root folder of the markdown documents (default: config or cwd)")
    parser.add_argument("--verbose", "-v", action="store_true", help="log to stderr")
    sub = parser.add_subparsers(dest="command", help="Commands")

    pull = sub.add_parser("pull", help="Bring remote changes into the documents")
    pull.add_argument("--forced", action="store_true", help="render remote truth, dropping unsent local edits")
    pull.set_defaults(func=cmd_pull)

    push = sub.add_parser("push", help="Send local edits to Todoist")
    push.set_defaults(func=cmd_push)

    capture = sub.add_parser("capture", help="Process ```todomd blocks in a note")
    capture.add_argument("path", help="note containing capture blocks")
    capture.set_defaults(func=cmd_capture)

    auth = sub.add_parser("auth", help="Store the Todoist API token")
    auth.add_argument("token", nargs="?", help="API token (prompted when omitted)")
    auth.add_argument("--unset", action="store_true", help="remove the stored token")
    auth.set_defaults(func=cmd_auth)

    status = sub.add_parser("status", help="Show sync state")
    status.set_defaults(func=cmd_status)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    if not getattr(args, "func", None):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
