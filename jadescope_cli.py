"""Run the jade consumption analysis on a CSV export from the command line."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from config import COLUMN_PRESETS
from models import to_plain
from parsing import ParseError, decode_payload
from report import REPORT_TITLE, generate_report_narrative, run_analysis
from session import AnalysisSession

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyse a jade consumption CSV export and emit the report as JSON.")
    parser.add_argument("csv_path", help="Path to the CSV export.")
    parser.add_argument(
        "--columns",
        choices=["auto", *COLUMN_PRESETS.keys()],
        default="auto",
        help="Column name preset; auto detects it from the header row.",
    )
    parser.add_argument("--title", default=REPORT_TITLE, help="Report title.")
    parser.add_argument("--output", default="", help="Write the JSON report here instead of stdout.")
    parser.add_argument(
        "--narrative",
        action="store_true",
        help="Replace the summary with a generated narrative (needs LLM_API_KEY).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)

    path = Path(str(args.csv_path)).expanduser()
    columns = None if args.columns == "auto" else COLUMN_PRESETS[args.columns]
    session = AnalysisSession.create()
    try:
        text = decode_payload(path.read_bytes())
        report = run_analysis(text, session, columns=columns, title=str(args.title))
    except (OSError, ParseError) as exc:
        print(f"Could not analyse {path}: {exc}", file=sys.stderr)
        return 1

    payload = to_plain(report)
    if args.narrative and report.ok:
        mode, text = generate_report_narrative(session)
        payload["summary"]["content"] = text
        payload["summary"]["mode"] = mode

    rendered = json.dumps(payload, ensure_ascii=False, indent=2)
    if args.output:
        out_path = Path(str(args.output)).expanduser()
        out_path.write_text(rendered + "\n", encoding="utf-8")
        logger.info(f"[CLI] report written to {out_path}")
    else:
        print(rendered)
    return 0 if report.ok else 2


if __name__ == "__main__":
    sys.exit(main())
