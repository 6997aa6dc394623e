"""Reference sustainability scoring program.

Invoked by the API as::

    python scripts/predict_sustainability.py <soil_ph> <soil_moisture> \
        <temperature_c> <rainfall_mm> <crop_type> <fertilizer_usage_kg> \
        <pesticide_usage_kg> <crop_yield_ton>

Prints a single float to stdout. On failure prints ``{"error": "..."}`` to
stderr and exits with status 1.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

FEATURES = [
    "soil_ph",
    "soil_moisture",
    "temperature_c",
    "rainfall_mm",
    "crop_type",
    "fertilizer_usage_kg",
    "pesticide_usage_kg",
    "crop_yield_ton",
]

DEFAULT_MODEL = os.environ.get(
    "SUSTAINABILITY_MODEL_PATH",
    str(Path(__file__).resolve().parent.parent / "models" / "sustainability_model.joblib"),
)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Predict a crop sustainability score.")
    for name in FEATURES:
        ap.add_argument(name, type=float)
    ap.add_argument("--model", default=DEFAULT_MODEL)
    return ap


def predict(model_path: str, row: dict[str, float]) -> float:
    if not Path(model_path).is_file():
        raise FileNotFoundError(f"Model file not found: {model_path}")

    import joblib
    import pandas as pd

    model = joblib.load(model_path)
    X = pd.DataFrame([row], columns=FEATURES)
    return float(model.predict(X)[0])


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    row = {name: getattr(args, name) for name in FEATURES}
    try:
        score = predict(args.model, row)
    except Exception as exc:
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return 1

    print(round(score, 2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
