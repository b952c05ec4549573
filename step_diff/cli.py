"""Command line entry point.

Compares two JSON record dumps of STEP files and prints the change report:

    step-diff assembly_v1.json assembly_v2.json --out diff_output
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import Config, SIGNATURE_FIELDS
from .pipeline.orchestrator import StepDiffOrchestrator
from .report.diff_report import generate_report, generate_report_without_llm
from .utils.io import load_step_data

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BAD_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="step-diff",
        description="Compare the assembly trees of two STEP AP242 record dumps",
    )
    parser.add_argument("first", help="JSON records of the first (reference) file")
    parser.add_argument("second", help="JSON records of the second (new) file")
    parser.add_argument("--out", "--output-dir", dest="out",
                        help="Output directory for the JSON result and markdown report")
    parser.add_argument("--json", action="store_true", help="Print the diff result as JSON instead of the report")
    parser.add_argument("--llm-report", action="store_true", help="Have an OpenAI model write the report narrative")
    parser.add_argument("--api-key", help="OpenAI API key (or set OPENAI_API_KEY)")
    parser.add_argument("--no-relocations", action="store_true", help="Report moves as removed + added")
    parser.add_argument(
        "--signature-fields",
        nargs="+",
        choices=SIGNATURE_FIELDS,
        help="Fields folded into each node's signature (default: name representation_kind)",
    )
    parser.add_argument("--root-name", default="", help="Prefix of every instance path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config_kwargs = {
        "detect_relocations": not args.no_relocations,
        "root_assembly_name": args.root_name,
    }
    if args.signature_fields:
        config_kwargs["signature_fields"] = tuple(args.signature_fields)
    config = Config(**config_kwargs)

    first, err = load_step_data(args.first)
    if err:
        logger.error("Cannot read first file: %s", err)
        return EXIT_BAD_INPUT
    second, err = load_step_data(args.second)
    if err:
        logger.error("Cannot read second file: %s", err)
        return EXIT_BAD_INPUT

    orchestrator = StepDiffOrchestrator(config)
    orchestrator.set_data(first, second)
    result = orchestrator.process()

    if args.llm_report:
        report = generate_report(result, api_key=args.api_key, config=config)
    else:
        report = generate_report_without_llm(result, config)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(report.to_markdown())

    if args.out:
        result_path = result.save(args.out, config)
        report_path = report.save(args.out, config)
        logger.info("Saved %s and %s", result_path, report_path)

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
