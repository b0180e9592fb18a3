# backend/propdash/cli/__main__.py
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from ..logging_config import configure_logging
from ..services.dashboard import dashboard_payload, engine_payload
from ..snapshot import normalize_snapshot

COMMANDS = {
    "sla": "sla",
    "risk": "tenant_risk",
    "vacancy": "vacancy",
    "chasing": "rent_chasing",
    "dashboard": None,
}


def _load(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    return json.loads(Path(path).read_text(encoding="utf-8"))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="propdash", description="Compute dashboard metrics from a records snapshot.")
    sub = p.add_subparsers(dest="command", required=True)

    for name in COMMANDS:
        sp = sub.add_parser(name)
        sp.add_argument("snapshot", help="snapshot JSON file, or - for stdin")
        sp.add_argument("--now", default=None, help="evaluation instant (ISO 8601); defaults to current UTC time")
        sp.add_argument("--indent", type=int, default=2)

    sp = sub.add_parser("serve")
    sp.add_argument("--host", default="127.0.0.1")
    sp.add_argument("--port", type=int, default=8000)
    sp.add_argument("--reload", action="store_true")
    return p


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("propdash.main:app", host=args.host, port=args.port, reload=args.reload)
        return 0

    # stdout carries the JSON result
    configure_logging(stream=sys.stderr)

    try:
        raw = _load(args.snapshot)
    except (OSError, json.JSONDecodeError) as e:
        print(json.dumps({"ok": False, "error": f"cannot read snapshot: {e}"}), file=sys.stderr)
        return 2

    if isinstance(raw, dict) and args.now:
        raw = {**raw, "now": args.now}

    try:
        snap = normalize_snapshot(raw)
    except ValidationError as e:
        print(json.dumps({"ok": False, "error": str(e)}), file=sys.stderr)
        return 2

    engine = COMMANDS[args.command]
    out = dashboard_payload(snap) if engine is None else engine_payload(snap, engine)
    print(json.dumps(out, indent=args.indent, ensure_ascii=False))
    return 0


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
