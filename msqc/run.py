"""CLI entry point for the QC pipeline.

Usage:
    python -m msqc.run --in-cm data/consensus.json --out qc/report.mzTab \\
                       [--in-raw run1.parquet run2.parquet] \\
                       [--in-postfdr run1.features.json run2.features.json] \\
                       [--in-trafo run1.trafo.json run2.trafo.json] \\
                       [--in-contaminants contaminants.fasta] [--quiet]

Or through the installed console script:
    msqc --in-cm ... --out ...
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import QcConfig, TOLERANCE_UNITS
from .errors import ExitCode, InvalidParameterError, MissingInformationError
from .pipeline import run_pipeline

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute QC metrics over a batch of MS experiments and export them as mzTab",
    )
    parser.add_argument(
        "--in-cm", type=str, default=None,
        help="Consensus JSON (mandatory, here or in --config)",
    )
    parser.add_argument(
        "--in-raw", type=str, nargs="*", default=None,
        help="Spectra Parquet files, one per experiment",
    )
    parser.add_argument(
        "--in-postfdr", type=str, nargs="*", default=None,
        help="Feature table JSON files after FDR, one per experiment",
    )
    parser.add_argument(
        "--in-trafo", type=str, nargs="*", default=None,
        help="RT alignment transform JSON files, one per experiment",
    )
    parser.add_argument(
        "--in-contaminants", type=str, default=None,
        help="Contaminant protein database (FASTA)",
    )
    parser.add_argument(
        "--out", type=str, default=None,
        help="mzTab report path (mandatory, here or in --config)",
    )
    parser.add_argument(
        "--out-cm", type=str, default=None,
        help="Write the annotated consensus JSON here (optional)",
    )
    parser.add_argument(
        "--out-feat", type=str, nargs="*", default=None,
        help="Write annotated feature tables here, one per experiment (optional)",
    )
    parser.add_argument(
        "--fme-unit", type=str, choices=TOLERANCE_UNITS, default=None,
        help="FragmentMassError tolerance unit",
    )
    parser.add_argument(
        "--fme-tolerance", type=float, default=None,
        help="FragmentMassError search window",
    )
    parser.add_argument(
        "--force-no-fdr", action="store_true",
        help="Compute the MS2 identification rate without FDR annotation",
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to JSON config file (overrides defaults)",
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="Suppress progress messages",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> QcConfig:
    """Defaults, overlaid by --config, overlaid by explicit flags."""
    config = QcConfig.from_json(args.config) if args.config else QcConfig()

    overrides = {
        "in_cm": args.in_cm,
        "in_raw": args.in_raw,
        "in_postfdr": args.in_postfdr,
        "in_trafo": args.in_trafo,
        "in_contaminants": args.in_contaminants,
        "out": args.out,
        "out_cm": args.out_cm,
        "out_feat": args.out_feat,
        "fragment_mass_error_unit": args.fme_unit,
        "fragment_mass_error_tolerance": args.fme_tolerance,
    }
    for k, v in overrides.items():
        if v is not None:
            setattr(config, k, v)
    if args.force_no_fdr:
        config.force_no_fdr = True
    return config


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Setup logging
    log_level = logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = config_from_args(args)
        result = run_pipeline(config, verbose=not args.quiet)
    except InvalidParameterError as e:
        logger.error("%s", e)
        return ExitCode.ILLEGAL_PARAMETERS
    except MissingInformationError as e:
        logger.error("%s", e)
        return ExitCode.UNEXPECTED_RESULT
    except FileNotFoundError as e:
        logger.error("%s", e)
        return ExitCode.INPUT_FILE_NOT_FOUND
    except PermissionError as e:
        logger.error("%s", e)
        return ExitCode.INPUT_FILE_NOT_READABLE
    except ValueError as e:
        # schema problems and malformed JSON (JSONDecodeError is a ValueError)
        logger.error("%s", e)
        return ExitCode.INPUT_FILE_CORRUPT

    summary = result.summary()

    # Print summary
    print("\n" + "=" * 60)
    print("QC Results")
    print("=" * 60)
    print(f"  Experiments: {result.n_experiments}")
    print(f"  Available inputs: {', '.join(summary['status']) or 'none'}")
    print(f"  Identifications annotated: {result.n_merged}")
    print(f"  Metric-created identifications: {len(result.overflow)}")
    print(f"  Elapsed time: {result.elapsed_seconds:.1f}s")
    print()
    print("  Metrics:")
    for name, entry in summary["metrics"].items():
        print(f"    {name}: {entry['runs']} run, {entry['skipped']} skipped")
    if summary["custom_fields"]:
        print()
        print(f"  Custom fields: {', '.join(summary['custom_fields'])}")
    print()
    print(f"  Report written to: {config.out}")

    # Also write metrics JSON alongside the report
    metrics_path = Path(config.out).with_suffix(".qc.json")
    with open(metrics_path, "w") as f:
        json.dump({"config": config.to_dict(), **summary}, f, indent=2, default=str)
    print(f"  Metrics written to: {metrics_path}")

    print("=" * 60)
    return ExitCode.EXECUTION_OK


if __name__ == "__main__":
    sys.exit(main())
