"""Song Points Validation Script

Checks a song points JSON file written by the Qdrant points store:
  - every point has a string id and a finite numeric vector
  - vectors share the expected dimension
  - payload carries the document text and the required song metadata
  - payload id and point id agree, releaseYear is an integer

Usage:
    python -m lyricmind_pipeline.scripts.validate_output \\
        --path output/song_points.json \\
        --expected-dim 1536

Exits with code 0 on success, 1 on validation failure.
"""

import argparse
import json
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from lyricmind_pipeline.qdrant_config import (
    QDRANT_PRIMARY_KEY,
    QDRANT_REQUIRED_PAYLOAD_FIELDS,
)


def load_points(path: Path) -> List[Dict[str, Any]]:
    """Load a JSON array of points. Raises ValueError for anything else."""
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError("Top-level JSON is not a list of points.")
    return data


def validate_point(
    point: Dict[str, Any],
    idx: int,
    expected_dim: Optional[int],
) -> Tuple[List[str], List[str]]:
    """Validate one point.

    Returns:
        (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    pid = point.get("id")
    if not isinstance(pid, str) or not pid:
        errors.append(f"[idx={idx}] 'id' should be a non-empty string, got {pid!r}")

    vector = point.get("vector")
    if not isinstance(vector, list) or not vector:
        errors.append(f"[idx={idx}] 'vector' should be a non-empty list")
    else:
        if expected_dim is not None and len(vector) != expected_dim:
            errors.append(
                f"[idx={idx}] vector length {len(vector)} != expected_dim {expected_dim}"
            )
        bad = next(
            (v for v in vector
             if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v)),
            None,
        )
        if bad is not None:
            errors.append(f"[idx={idx}] vector has a non-finite value {bad!r}")

    payload = point.get("payload")
    if not isinstance(payload, dict):
        errors.append(f"[idx={idx}] 'payload' should be an object")
        return errors, warnings

    for key in QDRANT_REQUIRED_PAYLOAD_FIELDS:
        if key not in payload:
            errors.append(f"[idx={idx}] payload missing required field '{key}'")

    text = payload.get("text")
    if isinstance(text, str) and not text.startswith("Title: "):
        warnings.append(f"[idx={idx}] payload.text does not start with 'Title: '")

    if pid is not None and payload.get(QDRANT_PRIMARY_KEY) not in (None, pid):
        errors.append(
            f"[idx={idx}] payload.{QDRANT_PRIMARY_KEY} {payload.get(QDRANT_PRIMARY_KEY)!r} "
            f"!= point id {pid!r}"
        )

    year = payload.get("releaseYear")
    if year is None:
        warnings.append(f"[idx={idx}] payload has no releaseYear")
    elif isinstance(year, bool) or not isinstance(year, int):
        errors.append(f"[idx={idx}] payload.releaseYear should be an int, got {year!r}")

    return errors, warnings


def main(argv: Optional[List[str]] = None) -> None:
    """Validate a song points file; always ends with SystemExit."""
    parser = argparse.ArgumentParser(description="Validate song points JSON output.")
    parser.add_argument("--path", type=str, required=True, help="Path to song_points.json")
    parser.add_argument(
        "--expected-dim",
        type=int,
        default=None,
        help="Expected vector dimensionality (e.g. 1536). Not enforced when omitted.",
    )
    args = parser.parse_args(argv)

    try:
        points = load_points(Path(args.path))
    except (OSError, ValueError) as e:
        print(f"FAILED TO LOAD FILE: {e}")
        raise SystemExit(1)

    all_errors: List[str] = []
    all_warnings: List[str] = []
    for idx, point in enumerate(points):
        errors, warnings = validate_point(point, idx, args.expected_dim)
        all_errors.extend(errors)
        all_warnings.extend(warnings)

    if all_errors:
        print("VALIDATION FAILED:\n")
        for err in all_errors:
            print(err)
        print(f"\nTotal errors: {len(all_errors)}")
        raise SystemExit(1)

    print("VALIDATION PASSED")
    print(f"Total points: {len(points)}")
    if all_warnings:
        print("\nWarnings (non-fatal):")
        for w in all_warnings:
            print(w)

    raise SystemExit(0)


if __name__ == "__main__":
    main()
