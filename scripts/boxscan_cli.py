#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Fractal dimension, lacunarity and multifractal description of box-counting
scan measurements.

Input: long-format CSV, one row per sample (box):
  size,mass[,grid]     raw masses; counts are the number of rows per size
  size,count[,grid]    pre-counted; one row per size and grid

Features:
- Grid-placement averaging with inverse-variance weighted fit of
  log N vs log(1/ε).
- Lacunarity (CV²+1) per size, over placements and of the counts.
- Multifractal spectra D(Q), α, f(α) and their shape description.
- CSV / TXT / JSON outputs, plus a two-row TSV description with
  --multifractal.

Usage examples:
  python boxscan_cli.py --input scan.csv --out out/scan
  python boxscan_cli.py --input scan.csv --out out/scan --multifractal --qs=-5,-4,-3,-2,-1,0,1,2,3,4,5
  python boxscan_cli.py --input scan.csv --out out/scan --auto-window --min-window 5 --progress
"""
import argparse
import json
import os
import subprocess
from datetime import datetime, timezone

import numpy as np
import pandas as pd
from colorama import Fore, Style, init as colorama_init

from boxscan.boxcount import BoxCount
from boxscan.curves import D_TOLERANCE
from boxscan.policy import FLIP_THRESHOLD, MONO_BELOW
from boxscan.report import GridVariant, description_tsv, fnum, heading_for
from boxscan.scan import ScanConfig, analyze_scan
from boxscan.spectrum import DEFAULT_QS

DIMENSION_HEADINGS = {
    GridVariant.ALL_GRIDS: "Mean D over grid placements",
    GridVariant.ONE_GRID: "D (single grid placement)",
}


def parse_qs(text: str):
    try:
        return tuple(float(v) for v in text.split(",") if v.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a comma-separated list of numbers: {text}")


def load_placements(df: pd.DataFrame):
    """Group the long-format table into one BoxCount per grid placement."""
    if "grid" not in df.columns:
        df = df.assign(grid=0)
    sizes = np.sort(df["size"].unique())
    placements = []
    for _, part in df.groupby("grid", sort=True):
        if "mass" in df.columns:
            by_size = {s: g["mass"].to_numpy(dtype=float) for s, g in part.groupby("size")}
            masses = [by_size.get(s, np.array([], dtype=float)) for s in sizes]
            placements.append(BoxCount.from_masses(sizes, masses))
        else:
            by_size = part.groupby("size")["count"].sum()
            placements.append(BoxCount.from_counts(sizes, [float(by_size.get(s, 0.0)) for s in sizes]))
    return placements


def main():
    ap = argparse.ArgumentParser(description="Fractal dimension and multifractal description of box-counting scans.")
    ap.add_argument("--input", required=True, help="CSV with columns size,mass[,grid] or size,count[,grid].")
    ap.add_argument("--out", default="boxscan_output", help="Output prefix (without extension).")
    ap.add_argument("--drop-head", type=int, default=0, help="Drop this many smallest sizes from the fit.")
    ap.add_argument("--drop-tail", type=int, default=0, help="Drop this many largest sizes from the fit.")
    ap.add_argument("--auto-window", action="store_true", help="Auto-pick fit window (min width ≥5) by max R², tie-break by minimal curvature")
    ap.add_argument("--min-window", type=int, default=5, help="Minimum number of sizes in the fit window when --auto-window")
    ap.add_argument("--qs", type=parse_qs, default=DEFAULT_QS, help="Comma-separated, strictly increasing Q exponents.")
    ap.add_argument("--multifractal", action="store_true", help="Compute spectra and the multifractal description (needs masses).")
    ap.add_argument("--tolerance", type=float, default=D_TOLERANCE, help="Rise tolerance for never-increasing and ordering checks.")
    ap.add_argument("--flip-threshold", type=float, default=FLIP_THRESHOLD, help="Flippancy above which a spectrum counts as flipped.")
    ap.add_argument("--mono-below", type=float, default=MONO_BELOW, help="Divergence (%%) below which a scan is called mono/non-fractal.")
    ap.add_argument("--progress", action="store_true", help="Show per-placement progress")
    args = ap.parse_args()

    colorama_init(autoreset=True)
    OK = Fore.GREEN + "[ok]" + Style.RESET_ALL
    INFO = Fore.CYAN + "[info]" + Style.RESET_ALL
    RES = Fore.GREEN + "[result]" + Style.RESET_ALL
    WARN = Fore.YELLOW + "[warn]" + Style.RESET_ALL
    ERR = Fore.RED + "[error]" + Style.RESET_ALL

    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)

    if not os.path.exists(args.input):
        raise SystemExit(f"{ERR} Input not found: {args.input}")
    if os.path.isdir(args.input):
        raise SystemExit(f"{ERR} Provided path is a directory, not a file: {args.input}")
    try:
        df = pd.read_csv(args.input, comment="#")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise SystemExit(f"{ERR} Cannot read {args.input}: {e}")
    df.columns = [c.strip().lower() for c in df.columns]
    if "size" not in df.columns or not ({"mass", "count"} & set(df.columns)):
        raise SystemExit(f"{ERR} Input needs a 'size' column and a 'mass' or 'count' column; got {list(df.columns)}")

    config = ScanConfig(
        drop_head=args.drop_head,
        drop_tail=args.drop_tail,
        auto_window=args.auto_window,
        min_window=args.min_window,
        qs=tuple(args.qs),
        multifractal=args.multifractal,
        tolerance=args.tolerance,
        flip_threshold=args.flip_threshold,
        mono_below=args.mono_below,
        progress=args.progress,
    )
    try:
        placements = load_placements(df)
        summary = analyze_scan(placements, config)
    except ValueError as e:
        raise SystemExit(f"{ERR} {e}")
    print(f"{INFO} {len(placements)} grid placement(s), {len(summary.sizes)} sizes")

    avg = summary.average
    k0, k1 = summary.window
    in_fit = np.zeros(len(avg.sizes), dtype=bool)
    in_fit[k0:k1] = True
    with np.errstate(divide="ignore"):
        inv_size = 1.0 / avg.sizes
        log_inv_size = np.log(inv_size)
        log_N = np.log(avg.mean_counts)
    lac_mean = [np.nan] * len(avg.sizes)
    if summary.lacunarity is not None:
        per_size = np.array([[np.nan if v is None else v for v in r.lacunarity]
                             for r in summary.lacunarity.placements], dtype=float)
        with np.errstate(invalid="ignore"):
            counted = np.isfinite(per_size).sum(axis=0)
            lac_mean = np.where(counted > 0, np.nansum(per_size, axis=0) / np.maximum(counted, 1), np.nan)

    df_out = pd.DataFrame({
        "size": avg.sizes,
        "N_mean": avg.mean_counts,
        "N_std": avg.std_counts,
        "n_placements": avg.n_placements,
        "inv_size": inv_size,
        "log_inv_size": log_inv_size,
        "log_N": log_N,
        "lacunarity_mean": lac_mean,
        "count_lacunarity": [np.nan if v is None else v for v in summary.count_lacunarity],
        "in_fit_window": in_fit,
    })
    csv_path = args.out + ".csv"
    df_out.to_csv(csv_path, index=False)
    try:
        rev = subprocess.check_output(["git", "rev-parse", "--short", "HEAD"], stderr=subprocess.DEVNULL).decode().strip()
    except (OSError, subprocess.CalledProcessError):
        rev = "unknown"
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    with open(csv_path, "a", encoding="utf-8") as fcsv:
        fcsv.write(f"\n# generated-by: boxscan (rev={rev}, utc={stamp})\n")

    fit = summary.fit
    variant = GridVariant.ONE_GRID if avg.n_placements == 1 else GridVariant.ALL_GRIDS
    d_heading = heading_for(DIMENSION_HEADINGS, variant)
    mass_slopes = [f.slope for f in summary.mass_fits if f is not None]

    txt_path = args.out + ".txt"
    with open(txt_path, "w", encoding="utf-8") as f:
        f.write(f"Input: {args.input}\n")
        f.write(f"Grid placements: {avg.n_placements}\n")
        f.write(f"Sizes: {', '.join(f'{s:g}' for s in avg.sizes)}\n")
        f.write(f"Fit window indices: [{k0}, {k1}) (min-window={args.min_window}, auto={args.auto_window})\n")
        f.write(f"Fit window: drop_head={args.drop_head}, drop_tail={args.drop_tail}\n")
        if fit is not None:
            f.write(f"{d_heading} (slope of log N vs log(1/ε)): {fit.slope:.6f}\n")
            f.write(f"StdErr(slope): {fit.slope_stderr:.6f}\n")
            f.write(f"R^2: {fit.r2:.6f}\n")
            f.write(f"Prefactor: {fit.prefactor:.6g}\n")
            f.write(f"Fit points: {fit.n}\n")
        else:
            f.write(f"{d_heading}: not calculated\n")
        if mass_slopes:
            f.write(f"Mass dimension (slope of log mean mass vs log size): {float(np.mean(mass_slopes)):.6f}\n")
        if summary.lacunarity is not None and summary.lacunarity.summary is not None:
            lac = summary.lacunarity.summary
            f.write(f"Lacunarity over placements: mean={lac.mean:.6f}, min={lac.min:.6f}, "
                    f"max={lac.max:.6f}, cv={fnum(lac.cv, 6)}\n")
        if summary.best is not None:
            f.write(f"Multifractal: best grid={summary.best.grid}, scaling={summary.best.scaling}\n")
        if summary.warnings:
            f.write("Warnings:\n")
            for wmsg in summary.warnings:
                f.write(f"- {wmsg}\n")

    print(f"{OK} CSV: {csv_path}")
    print(f"{OK} Summary: {txt_path}")
    if summary.best is not None:
        tsv_path = args.out + "_mf.tsv"
        with open(tsv_path, "w", encoding="utf-8") as ft:
            ft.write(description_tsv(summary.best))
        print(f"{OK} Multifractal description: {tsv_path}")
    for wmsg in summary.warnings:
        print(f"{WARN} {wmsg}")

    if fit is not None:
        print(f"{RES} D = {Fore.MAGENTA}{fit.slope:.6f}{Style.RESET_ALL} ± {fit.slope_stderr:.6f} (R^2={fit.r2:.4f}, points={fit.n})")
    else:
        print(f"{RES} D = not calculated")
    if summary.best is not None:
        best = summary.best
        print(f"{RES} Scaling = {Fore.MAGENTA}{best.scaling}{Style.RESET_ALL} "
              f"(grid {best.grid}, flippancy={fnum(best.flippancy)}, divergence={fnum(best.divergence)})")

    meta = {
        "input": args.input,
        "out": args.out,
        "args": vars(args),
        "window": {"k0": int(k0), "k1": int(k1)},
        "D": None if fit is None else float(fit.slope),
        "SE": None if fit is None else float(fit.slope_stderr),
        "R2_unweighted": None if fit is None else float(fit.r2),
        "sizes": [float(v) for v in avg.sizes.tolist()],
        "grid_placements": int(avg.n_placements),
        "mass_dimension": float(np.mean(mass_slopes)) if mass_slopes else None,
        "warnings": list(summary.warnings),
    }
    if summary.lacunarity is not None and summary.lacunarity.summary is not None:
        meta["lacunarity_mean"] = summary.lacunarity.summary.mean
    if summary.best is not None:
        best = summary.best
        meta["multifractal"] = {
            "best_grid": int(best.grid),
            "scaling": best.scaling,
            "flippancy": best.flippancy,
            "divergence": best.divergence,
            "amplitude_0_to_2": best.amplitude_0_to_2,
            "amplitude_neg1_to_2": best.amplitude_neg1_to_2,
            "dimension_curve": best.dimension_curve.shape.value,
            "ordering": best.ordering.value,
            "spectrum_rises_after_peak": int(best.spectrum_rises_after_peak),
        }
    with open(args.out + ".json", "w", encoding="utf-8") as fj:
        json.dump(meta, fj, indent=2)


if __name__ == "__main__":
    main()
