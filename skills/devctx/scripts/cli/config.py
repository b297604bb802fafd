from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Optional

from indexer.repo_config import MAX_BUDGET, MIN_BUDGET


def parse_budget(value: str) -> int:
    try:
        budget = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"budget must be an integer, got {value!r}")
    if not MIN_BUDGET <= budget <= MAX_BUDGET:
        raise argparse.ArgumentTypeError(f"budget must be between {MIN_BUDGET} and {MAX_BUDGET}, got {budget}")
    return budget


def parse_positive(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def default_workers() -> int:
    return max(1, min(8, os.cpu_count() or 2))


def resolve_out_root(out_arg: Optional[str]) -> Optional[Path]:
    if not out_arg:
        return None
    return Path(out_arg).expanduser().resolve()
