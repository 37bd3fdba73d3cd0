#!/usr/bin/env python3
"""
Ruleset validation script for the tier entitlements engine.
This script compiles ruleset YAML files exactly as the engine would at
startup and reports any configuration errors.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from shared.errors import RulesetError
from service_tiers.app.rules.ruleset import (
    Ruleset, describe_ruleset, load_default_ruleset, load_ruleset
)


def validate_ruleset(path: Optional[Path]) -> List[str]:
    """Validate a single ruleset file (or the embedded default)."""
    try:
        if path is None:
            load_default_ruleset()
        else:
            load_ruleset(path)
    except RulesetError as e:
        errors = [e.message]
        for key, value in e.details.items():
            errors.append(f"{key}: {value}")
        return errors
    return []


def main(argv: Optional[List[str]] = None) -> int:
    """Validate the given ruleset files."""
    parser = argparse.ArgumentParser(description="Validate entitlement ruleset files")
    parser.add_argument("paths", nargs="*", type=Path, help="Ruleset YAML files (default: embedded ruleset)")
    parser.add_argument("--describe", action="store_true", help="Print a JSON summary of each valid ruleset")
    args = parser.parse_args(argv)

    targets: List[Optional[Path]] = list(args.paths) or [None]
    total_errors = 0

    for path in targets:
        label = str(path) if path else "embedded default"
        errors = validate_ruleset(path)

        if errors:
            print(f"❌ {label}: invalid ruleset")
            for error in errors:
                print(f"   - {error}")
            total_errors += len(errors)
            continue

        print(f"✅ {label}: ruleset is valid")
        if args.describe:
            ruleset: Ruleset = load_ruleset(path) if path else load_default_ruleset()
            print(json.dumps(describe_ruleset(ruleset), indent=2))

    print(f"\nValidation complete: {total_errors} total errors")
    return 0 if total_errors == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
