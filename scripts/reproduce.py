#!/usr/bin/env python3
"""
Reproduce a model from its provenance and report how the result differs.

Examples:
    # Re-train from a saved model and check the reproduced domains match
    python scripts/reproduce.py --model outputs/svm/model.pkl --validate

    # Take diff labels, overrides and validation from a config file
    python scripts/reproduce.py --model outputs/svm/model.pkl --config configs/repro.yaml

    # Re-train from provenance alone, pointing the data source at a moved file
    python scripts/reproduce.py --provenance outputs/svm/provenance.json \
        --override CSVDataSource.path=/data/train.csv --output outputs/repro
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

import yaml

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from reprokit.config_schema import ReproConfig, load_config
from reprokit.errors import ReproductionError
from reprokit.models import load_model
from reprokit.provenance import provenance_from_dict
from reprokit.reproducibility import Reproducer
from reprokit.utils.logging_utils import get_logger, setup_logging

logger = get_logger(__name__)


def parse_overrides(values: List[str]) -> Dict[str, Dict[str, Any]]:
    """
    Parse ``ClassName.argument=value`` strings.

    Values are read as YAML scalars, so numbers and booleans keep their type.
    """
    overrides: Dict[str, Dict[str, Any]] = {}
    for item in values:
        target, sep, raw = item.partition("=")
        class_name, dot, key = target.partition(".")
        if not sep or not dot or not class_name or not key:
            raise ValueError(f"Override must look like ClassName.argument=value, got '{item}'")
        overrides.setdefault(class_name, {})[key] = yaml.safe_load(raw)
    return overrides


def load_reproducer(args, overrides: Dict[str, Dict[str, Any]]) -> Reproducer:
    if args.model:
        model = load_model(args.model)
        logger.info(f"Loaded {type(model).__name__} from {args.model}")
        return Reproducer.from_model(model, overrides=overrides)

    with open(args.provenance, "r") as f:
        provenance = provenance_from_dict(json.load(f))
    logger.info(f"Loaded provenance of {provenance.class_name} from {args.provenance}")
    return Reproducer(provenance, overrides=overrides)


def main(argv=None):
    """Main entry point for reproduction."""
    parser = argparse.ArgumentParser(description="Reproduce a model from its provenance")

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--model", type=str, help="Pickled model (model.pkl)")
    source.add_argument("--provenance", type=str, help="Provenance file (provenance.json)")

    parser.add_argument(
        "--config",
        type=str,
        help="YAML configuration file; its repro section supplies defaults for the flags below",
    )
    parser.add_argument(
        "--validate",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Check the reproduced model's feature and output domains (needs --model)",
    )
    parser.add_argument(
        "--override",
        action="append",
        default=[],
        metavar="CLASS.ARG=VALUE",
        help="Replace a constructor argument of every component of CLASS",
    )
    parser.add_argument(
        "--labels",
        nargs=2,
        metavar=("OLD", "NEW"),
        help="Labels of the two sides of the provenance diff",
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Directory for the reproduced model.pkl, provenance.json and diff.json",
    )
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level")

    args = parser.parse_args(argv)

    try:
        repro = load_config(args.config).repro if args.config else ReproConfig()
    except (OSError, ValueError) as e:
        parser.error(str(e))

    if args.validate and not args.model:
        parser.error("--validate requires --model")
    validate = args.validate if args.validate is not None else repro.validate and args.model is not None

    labels = tuple(args.labels) if args.labels else repro.diff_labels
    if labels[0] == labels[1]:
        parser.error("--labels must be two different labels")

    try:
        overrides = {class_name: dict(values) for class_name, values in repro.overrides.items()}
        for class_name, values in parse_overrides(args.override).items():
            overrides.setdefault(class_name, {}).update(values)
    except ValueError as e:
        parser.error(str(e))

    setup_logging(level=getattr(logging, args.log_level.upper()), use_tracing=True, force=True)

    try:
        reproducer = load_reproducer(args, overrides)
        if validate:
            model = reproducer.reproduce_from_model()
            logger.info("Reproduced model matches the original's feature and output domains")
        else:
            model = reproducer.reproduce_from_provenance()
        report = Reproducer.diff_provenance(reproducer.provenance, model.provenance, labels)
    except (ReproductionError, OSError, ValueError) as e:
        logger.error(f"Could not reproduce model: {e}")
        return 1

    if args.output:
        output_dir = Path(args.output)
        model.save(output_dir / "model.pkl")
        with open(output_dir / "provenance.json", "w") as f:
            json.dump(model.provenance.to_dict(), f, indent=2)
        with open(output_dir / "diff.json", "w") as f:
            f.write(report)
        logger.info(f"Saved reproduction outputs to {output_dir}")
    else:
        print(report)

    return 0


if __name__ == "__main__":
    sys.exit(main())
