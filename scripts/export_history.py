#!/usr/bin/env python
"""Export the persisted set history to CSV."""
import argparse
from pathlib import Path

from emgrep.config import settings
from emgrep.io.store import SqlStateStore
from emgrep.reports import export_history_csv, format_summary


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("output_csv", type=Path)
    ap.add_argument("--db", default=settings.sqlite_path)
    ap.add_argument("--print", dest="show", action="store_true")
    args = ap.parse_args()

    history = SqlStateStore(args.db).load().history
    n = export_history_csv(history, args.output_csv)
    if args.show:
        for s in history:
            print(format_summary(s))
    print(f"Wrote {n} sets to {args.output_csv}")


if __name__ == "__main__":
    main()
