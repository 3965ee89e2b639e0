from __future__ import annotations

import argparse
import sys
from pathlib import Path

from consulta.core.flow_logging import configure_logging
from consulta.db.session import SessionLocal
from consulta.services.display_state import DisplayState
from consulta.services.order_desk import OrderDesk


def _import(args: argparse.Namespace) -> int:
    with SessionLocal() as db:
        desk = OrderDesk(db)
        outcome = desk.import_file(DisplayState(days_to_show=args.days), args.file)
    if outcome.state.error:
        print(f"ERR: {outcome.state.error}", file=sys.stderr)
        return 2
    print(f"Imported {outcome.inserted} orders; {len(outcome.state.records)} in the last {args.days} day(s).")
    return 0


def _export(args: argparse.Namespace) -> int:
    with SessionLocal() as db:
        desk = OrderDesk(db)
        state = desk.load_saved(DisplayState(days_to_show=args.days))
        if state.error:
            print(f"ERR: {state.error}", file=sys.stderr)
            return 3
        state, export_file = desk.export(state)
    if export_file is None:
        print(f"ERR: {state.error}", file=sys.stderr)
        return 4

    out_path = Path(args.out) / export_file.filename
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(export_file.content)
    print(f"Output saved to: {out_path}")
    return 0


def _status(args: argparse.Namespace) -> int:
    with SessionLocal() as db:
        desk = OrderDesk(db)
        state = desk.stage_status(DisplayState(), args.order_id, args.status)
        state = desk.save_status(state, args.order_id)
    if state.error:
        print(f"ERR: {state.error}", file=sys.stderr)
        return 5
    print(f"Order {args.order_id} -> {args.status}")
    return 0


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Consulta R2PP order desk")
    sub = ap.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="import a carrier .xlsx export")
    imp.add_argument("file", type=Path)
    imp.add_argument("--days", type=int, default=1, help="window reloaded after import")
    imp.set_defaults(handler=_import)

    exp = sub.add_parser("export", help="export the last N days to .xlsx")
    exp.add_argument("--days", type=int, default=1)
    exp.add_argument("--out", default=".", help="output directory")
    exp.set_defaults(handler=_export)

    st = sub.add_parser("status", help="change the status of one order")
    st.add_argument("order_id")
    st.add_argument("status", choices=["Pendentes", "Resolvido", "Extraviado"])
    st.set_defaults(handler=_status)

    args = ap.parse_args(argv)
    configure_logging()
    return args.handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
