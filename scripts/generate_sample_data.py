#!/usr/bin/env python3
"""
Generate realistic reef telemetry CSVs for demos and smoke tests.

Creates the four files expected by the pipeline:
- stations.csv: station, x, y
- sharks.csv:   datetime, animal_id, species, From, To, Movement
- mantas.csv:   detect_date, receiver, From, To, Movement
- vessel.csv:   Date, lat, long

Receivers are laid out around an atoll lagoon. Animals hop between
neighbouring receivers; a share of detections are residency records
("NA" movement). The vessel patrols the rim.
"""

import argparse
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List

import numpy as np
import pandas as pd

SHARK_SPECIES = [
    "Carcharhinus albimarginatus",
    "Carcharhinus amblyrhynchos",
]

ATOLL_CENTER = (71.75, -5.35)  # lon, lat
ATOLL_RADIUS_DEG = 0.12


def generate_stations(n_stations: int, rng: np.random.Generator) -> pd.DataFrame:
    """Receivers on a noisy ring around the lagoon."""
    angles = np.linspace(0, 2 * np.pi, n_stations, endpoint=False)
    r = ATOLL_RADIUS_DEG * (1 + rng.normal(0, 0.05, n_stations))
    return pd.DataFrame({
        "station": [f"ST{i + 1:02d}" for i in range(n_stations)],
        "x": ATOLL_CENTER[0] + r * np.cos(angles),
        "y": ATOLL_CENTER[1] + r * np.sin(angles),
    })


def random_walk(n_steps: int, n_stations: int, rng: np.random.Generator) -> List[int]:
    """Station indices visited by one animal; mostly neighbour hops."""
    current = int(rng.integers(n_stations))
    visits = [current]
    for _ in range(n_steps):
        current = (current + int(rng.choice([-1, 0, 1], p=[0.35, 0.3, 0.35]))) % n_stations
        visits.append(current)
    return visits


def detection_rows(
    codes: List[str],
    visits: List[int],
    start: datetime,
    n_days: int,
    rng: np.random.Generator
) -> List[Dict[str, object]]:
    """From/To/Movement rows with sorted random detection times."""
    offsets = np.sort(rng.uniform(0, n_days * 24, len(visits) - 1))
    rows = []
    for (a, b), hours in zip(zip(visits[:-1], visits[1:]), offsets):
        rows.append({
            "time": start + timedelta(hours=float(hours)),
            "From": codes[a],
            "To": codes[b],
            "Movement": "NA" if a == b else f"{codes[a]}-{codes[b]}",
        })
    return rows


def generate_sharks(codes, start, n_days, n_animals, rng) -> pd.DataFrame:
    rows = []
    for animal in range(n_animals):
        species = SHARK_SPECIES[animal % len(SHARK_SPECIES)]
        visits = random_walk(int(rng.integers(10, 40)), len(codes), rng)
        for r in detection_rows(codes, visits, start, n_days, rng):
            rows.append({
                "datetime": r["time"].strftime("%Y-%m-%d %H:%M:%S"),
                "animal_id": f"{1000 + animal}",
                "species": species,
                "From": r["From"],
                "To": r["To"],
                "Movement": r["Movement"],
            })
    return pd.DataFrame(rows)


def generate_mantas(codes, start, n_days, n_animals, rng) -> pd.DataFrame:
    rows = []
    for animal in range(n_animals):
        visits = random_walk(int(rng.integers(5, 20)), len(codes), rng)
        for r in detection_rows(codes, visits, start, n_days, rng):
            rows.append({
                "detect_date": r["time"].strftime("%d/%m/%Y %H:%M"),
                "receiver": f"M{animal + 1:03d}",
                "From": r["From"],
                "To": r["To"],
                "Movement": r["Movement"],
            })
    return pd.DataFrame(rows)


def generate_vessel(start, n_days, n_fixes, rng) -> pd.DataFrame:
    """Vessel circling the rim, one fix every few hours."""
    hours = np.sort(rng.uniform(0, n_days * 24, n_fixes))
    angles = np.linspace(0, 6 * np.pi, n_fixes) + rng.normal(0, 0.05, n_fixes)
    r = ATOLL_RADIUS_DEG * 1.2
    return pd.DataFrame({
        "Date": [(start + timedelta(hours=float(h))).strftime("%d/%m/%Y %H:%M:%S") + " UTC" for h in hours],
        "lat": ATOLL_CENTER[1] + r * np.sin(angles),
        "long": ATOLL_CENTER[0] + r * np.cos(angles),
    })


def generate_sample_data(
    output_dir: Path,
    start: datetime = datetime(2020, 1, 1),
    n_days: int = 14,
    n_stations: int = 12,
    n_sharks: int = 6,
    n_mantas: int = 3,
    n_vessel_fixes: int = 40,
    seed: int = 42
) -> Dict[str, Path]:
    """
    Write the four CSVs into output_dir.

    Returns:
        Dict mapping source name to file path
    """
    rng = np.random.default_rng(seed)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    stations = generate_stations(n_stations, rng)
    codes = stations["station"].tolist()

    frames = {
        "stations": stations,
        "sharks": generate_sharks(codes, start, n_days, n_sharks, rng),
        "mantas": generate_mantas(codes, start, n_days, n_mantas, rng),
        "vessel": generate_vessel(start, n_days, n_vessel_fixes, rng),
    }

    paths = {}
    for name, df in frames.items():
        path = output_dir / f"{name}.csv"
        df.to_csv(path, index=False)
        paths[name] = path
        print(f"  {name}: {len(df)} rows -> {path}")

    return paths


def main():
    parser = argparse.ArgumentParser(description="Generate sample reef telemetry CSVs")
    parser.add_argument("--output", "-o", type=Path, default=Path("csv"),
                        help="Output directory for CSVs")
    parser.add_argument("--days", type=int, default=14, help="Days of data")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")

    args = parser.parse_args()

    print("Generating sample telemetry data...")
    generate_sample_data(args.output, n_days=args.days, seed=args.seed)


if __name__ == "__main__":
    main()
