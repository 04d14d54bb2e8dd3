import csv
import sys
import logging
from typing import List, Optional

from engine import ReplayEngine
from export import write_snapshot

LOG_FORMAT = "%(levelname)s: %(message)s"
FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(log_file: Optional[str] = None) -> None:
    """Warnings go to stderr; a log file, when given, captures the full debug trail instead."""
    if log_file:
        logging.basicConfig(
            level=logging.DEBUG,
            format=FILE_LOG_FORMAT,
            filename=log_file,
            filemode="w",
            force=True,
        )
    else:
        logging.basicConfig(
            level=logging.WARNING,
            format=LOG_FORMAT,
            stream=sys.stderr,
            force=True,
        )


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) not in (1, 2):
        print("Usage: python main.py <input.csv> [log_file]", file=sys.stderr)
        return 1

    filepath = args[0]
    configure_logging(args[1] if len(args) == 2 else None)
    logging.getLogger(__name__).info("Start payments ledger replay")

    engine = ReplayEngine()
    try:
        snapshot = engine.process_file(filepath)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        print(f"Unable to read input file {filepath}: {e}", file=sys.stderr)
        return 1

    write_snapshot(snapshot, sys.stdout)
    print(engine.stats.summary(), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
