from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import dataclass
from typing import Any, Optional

from . import __version__
from .desktop import Desktop, SystemDesktop
from .host import Host, install_signal_handlers
from .kernel.documents import TargetError, resolve_target
from .kernel.inbox import InboundQueue
from .kernel.registry import OwnershipRegistry
from .kernel.routing import Router
from .kernel.scope import resolve_context
from .kernel.session import Session
from .kernel.settings import Settings, load_settings
from .kernel.store import FileStore
from .paths import ensure_home
from .util.obslog import setup_root_json_logging
from .util.time import age_seconds


@dataclass
class Runtime:
    settings: Settings
    registry: OwnershipRegistry
    queue: InboundQueue
    session: Session
    router: Router
    desktop: Desktop


def build_runtime(settings: Optional[Settings] = None, *, desktop: Optional[Desktop] = None) -> Runtime:
    st = settings or load_settings()
    home = ensure_home(st.state_dir)
    store = FileStore(home)
    pid = os.getpid()
    registry = OwnershipRegistry(store, pid=pid)
    queue = InboundQueue(store, sender_pid=pid)
    session = Session(registry, queue, pid=pid)
    dt = desktop or SystemDesktop(spawn_command=st.spawn_command, log_path=home / "logs" / "instances.log")
    router = Router(
        session,
        registry,
        queue,
        dt,
        activate=st.activate,
        spawn_on_enqueue_failure=st.spawn_on_enqueue_failure,
    )
    return Runtime(settings=st, registry=registry, queue=queue, session=session, router=router, desktop=dt)


def _print_json(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def _host(rt: Runtime, path: Optional[str], *, read_stdin: bool) -> int:
    host = Host(rt.session, rt.router, poll_interval=rt.settings.poll_interval_seconds)
    install_signal_handlers(host)
    return host.serve(path, stdin=sys.stdin if read_stdin else None)


def cmd_open(args: argparse.Namespace) -> int:
    try:
        path = resolve_target(args.path)
    except TargetError as e:
        print(str(e), file=sys.stderr)
        return 1
    rt = build_runtime()
    result = rt.router.handle_launch(path)
    if result.action != "deliver_local":
        _print_json(result.model_dump())
        return 0 if result.ok else 1
    if args.detach:
        spawned = rt.router.execute(result.decision.model_copy(update={"action": "spawn"}))
        _print_json(spawned.model_dump())
        return 0 if spawned.ok else 1
    return _host(rt, path, read_stdin=not args.no_stdin)


def cmd_run(args: argparse.Namespace) -> int:
    path: Optional[str] = None
    if args.path:
        try:
            path = resolve_target(args.path)
        except TargetError as e:
            print(str(e), file=sys.stderr)
            return 1
    rt = build_runtime()
    return _host(rt, path, read_stdin=not args.no_stdin)


def cmd_context(args: argparse.Namespace) -> int:
    _print_json(resolve_context(args.path).model_dump())
    return 0


def cmd_status(_: argparse.Namespace) -> int:
    rt = build_runtime()
    rows = []
    for st in rt.registry.list_records():
        rec = st.record
        age = age_seconds(rec.registered_at)
        rows.append(
            {
                "root": rec.root,
                "owner_pid": rec.owner_pid,
                "alive": st.alive,
                "registered_at": rec.registered_at,
                "age_seconds": round(age, 1) if age is not None else None,
                "queued": rt.queue.pending(rec.owner_pid),
            }
        )
    _print_json({"home": str(ensure_home(rt.settings.state_dir)), "instances": rows})
    return 0


def cmd_reap(_: argparse.Namespace) -> int:
    rt = build_runtime()
    _print_json({"reaped": rt.registry.reap_stale()})
    return 0


def cmd_version(_: argparse.Namespace) -> int:
    print(__version__)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mdcat", description="Open markdown documents, one instance per project")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_open = sub.add_parser("open", help="Open a document (routes to the instance owning its project)")
    p_open.add_argument("path", nargs="?", default=".", help="File or directory (default: .)")
    p_open.add_argument("--detach", action="store_true", help="Start a background instance instead of hosting here")
    p_open.add_argument("--no-stdin", action="store_true", help="Do not read open requests from stdin")
    p_open.set_defaults(func=cmd_open)

    p_run = sub.add_parser("run", help="Host an instance in the foreground")
    p_run.add_argument("path", nargs="?", default="", help="Document to open on startup")
    p_run.add_argument("--no-stdin", action="store_true", help="Do not read open requests from stdin")
    p_run.set_defaults(func=cmd_run)

    p_ctx = sub.add_parser("context", help="Show the project root for a path")
    p_ctx.add_argument("path")
    p_ctx.set_defaults(func=cmd_context)

    p_status = sub.add_parser("status", help="List registered instances")
    p_status.set_defaults(func=cmd_status)

    p_reap = sub.add_parser("reap", help="Remove registry records of dead instances")
    p_reap.set_defaults(func=cmd_reap)

    p_ver = sub.add_parser("version", help="Show version")
    p_ver.set_defaults(func=cmd_version)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = load_settings()
    setup_root_json_logging(component=f"mdcat.{args.cmd}", level=settings.log_level)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
