"""Generate a flattened broker pricing report from a broker payload file."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from be_fees.config_loader import load_default_rule_tables
from be_fees.pipeline import flatten_api_data, generate_report
from be_fees.sources.payload import export_rows_to_csv, load_broker_payload


DEFAULT_DATA_DIR = Path("data")
DEFAULT_PAYLOAD_PATH = DEFAULT_DATA_DIR / "examples" / "brokers_new_format.json"
DEFAULT_OUTPUT_PATH = DEFAULT_DATA_DIR / "output" / "pricing_rows.csv"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--payload",
        type=Path,
        default=DEFAULT_PAYLOAD_PATH,
        help="JSON or YAML file with broker records in either response schema.",
    )
    parser.add_argument(
        "--rules",
        type=Path,
        default=None,
        help="YAML file with instrument/market keyword rules (defaults to data/fee_rules.yaml).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT_PATH,
        help="Where to write the report. A .json suffix writes JSON, anything else CSV.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    rules = load_default_rule_tables(args.rules)
    payload = load_broker_payload(args.payload)
    rows = flatten_api_data(payload, rules)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    if args.output.suffix == ".json":
        args.output.write_text(json.dumps(generate_report(rows), indent=2, ensure_ascii=False), encoding="utf-8")
    else:
        export_rows_to_csv(rows, args.output)

    print(f"Wrote {len(rows)} pricing rows to {args.output}.")


if __name__ == "__main__":
    main()
