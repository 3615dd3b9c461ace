# main.py
"""Headless driver: open CSV files, fit each one and print the summary.

A GUI connects to the same WorkspaceViewModel signals; this script only
shows the engine end to end from the command line.
"""
import argparse
import logging
import sys

from PySide6.QtCore import QCoreApplication

from dataio import get_config
from viewmodel import WorkspaceViewModel


def _parse_args(argv):
    parser = argparse.ArgumentParser(description="Fit a simple linear regression to CSV files.")
    parser.add_argument("files", nargs="+", help="CSV files with a header row")
    parser.add_argument("-x", "--independent", help="independent variable (default: first column)")
    parser.add_argument("-y", "--dependent", help="dependent variable (default: second column)")
    parser.add_argument("--exclude", type=int, nargs="*", default=[],
                        help="row indices to leave out of the fit")
    parser.add_argument("--save-session", help="write the last session snapshot here (.json/.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    workspace = WorkspaceViewModel(config=get_config())
    workspace.error_occurred.connect(lambda code, msg: print(f"[{code}] {msg}", file=sys.stderr))

    exit_code = 0
    for path in args.files:
        session = workspace.load_file(path)
        if session is None:
            exit_code = 1
            continue
        if args.independent or args.dependent:
            session.set_fields(args.independent, args.dependent)
        with session.batch():
            for index in args.exclude:
                session.toggle_row(index, False)
        if not session.plot():
            exit_code = 1
            continue
        print(session.report())
        print()

    active = workspace.active_session
    if args.save_session and active is not None:
        if not workspace.save_session(active.id, args.save_session):
            exit_code = 1

    app.processEvents()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
