#!/usr/bin/env python3
"""
Generate synthetic weather input files for local runs and benchmarks.

Writes a location reference CSV and observation CSVs of increasing size
with the same column layout as the real district dataset.
"""

import argparse
import datetime
import random
from pathlib import Path

# Configuration
SHARED_DIR = Path("shared")
INPUT_DIR = SHARED_DIR / "input"

CITIES = [
    "Colombo", "Mount Lavinia", "Kesbewa", "Moratuwa", "Negombo", "Beruwala",
    "Kalutara", "Gampaha", "Kandy", "Matale", "Nuwara Eliya", "Galle",
    "Matara", "Hambantota", "Jaffna", "Kilinochchi", "Mannar", "Vavuniya",
    "Mullaitivu", "Batticaloa", "Ampara", "Trincomalee", "Kurunegala",
    "Puttalam", "Anuradhapura", "Welimada", "Bandarawela",
]

LOCATION_HEADER = ("location_id,latitude,longitude,elevation,utc_offset_seconds,"
                   "timezone,timezone_abbreviation,city_name")

WEATHER_HEADER = ("location_id,date,weather_code (wmo code),temperature_2m_max (°C),"
                  "temperature_2m_min (°C),temperature_2m_mean (°C),"
                  "apparent_temperature_max (°C),apparent_temperature_min (°C),"
                  "apparent_temperature_mean (°C),daylight_duration (s),"
                  "sunshine_duration (s),precipitation_sum (mm),rain_sum (mm),"
                  "precipitation_hours (h)")

# Years of daily data per target file
TARGETS = [
    ("weather_small.csv", 2),
    ("weather_medium.csv", 6),
    ("weather_large.csv", 15),
]


def write_locations(path: Path):
    with open(path, 'w', encoding='utf-8') as f:
        f.write(LOCATION_HEADER + '\n')
        for location_id, city in enumerate(CITIES):
            lat = 6.0 + location_id * 0.15
            lon = 79.8 + location_id * 0.05
            f.write(f"{location_id},{lat:.4f},{lon:.4f},{10 + location_id * 20},19800,"
                    f"Asia/Colombo,+0530,{city}\n")
    print(f"  ✓ Created: {path.name} ({len(CITIES)} locations)")


def write_observations(path: Path, first_year: int, last_year: int, rng: random.Random):
    """One row per station per day, dates written as month/day/year"""
    day = datetime.date(first_year, 1, 1)
    end = datetime.date(last_year, 12, 31)
    rows = 0

    with open(path, 'w', encoding='utf-8') as f:
        f.write(WEATHER_HEADER + '\n')
        while day <= end:
            # Monsoon months are wetter
            wet = day.month in (5, 6, 10, 11, 12)
            for location_id in range(len(CITIES)):
                t_mean = rng.gauss(27.0 - (location_id % 5), 1.5)
                hours = max(0.0, rng.gauss(8.0 if wet else 3.0, 3.0))
                f.write(
                    f"{location_id},{day.month}/{day.day}/{day.year},{rng.choice((1, 3, 51, 61, 63))},"
                    f"{t_mean + 4:.1f},{t_mean - 4:.1f},{t_mean:.1f},"
                    f"{t_mean + 6:.1f},{t_mean - 2:.1f},{t_mean + 2:.1f},"
                    f"43200,{rng.uniform(0, 40000):.0f},{hours * 1.7:.1f},{hours * 1.6:.1f},"
                    f"{hours:.1f}\n"
                )
                rows += 1
            day += datetime.timedelta(days=1)

    size = path.stat().st_size
    print(f"  ✓ Created: {path.name} ({size / (1024 * 1024):.2f} MB, {rows} rows)")
    return size


def main():
    """Generate all input files."""
    parser = argparse.ArgumentParser(description="Generate synthetic weather input files")
    parser.add_argument('--output-dir', default=str(INPUT_DIR), help='Directory for generated files')
    parser.add_argument('--last-year', type=int, default=2024, help='Last year of generated data')
    parser.add_argument('--seed', type=int, default=2024, help='Random seed')
    args = parser.parse_args()

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    rng = random.Random(args.seed)

    print("=" * 70)
    print("Generating Weather Input Files")
    print("=" * 70)

    write_locations(output_dir / "locationData.csv")

    total_size = 0
    for filename, years in TARGETS:
        total_size += write_observations(
            output_dir / filename, args.last_year - years + 1, args.last_year, rng)

    print("\n" + "=" * 70)
    print(f"✓ Generation complete! Total size: {total_size / (1024 * 1024):.2f} MB in {output_dir}")
    print("=" * 70)
    return 0


if __name__ == "__main__":
    exit(main())
