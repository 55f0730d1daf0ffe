import importlib.util
import json
import os
import re
import subprocess
import sys
from pathlib import Path

import pandas as pd

from boxscan.boxcount import BoxCount
from boxscan.report import HEADINGS
from boxscan.scan import ScanConfig, analyze_scan

ROOT = Path(__file__).resolve().parent.parent
BOXSCAN = str(ROOT / "scripts" / "boxscan_cli.py")
GEN_MEASURES_PATH = str(Path(__file__).resolve().parent / "generate_measures.py")


def load_module_by_path(name: str, path: str):
    spec = importlib.util.spec_from_file_location(name, path)
    mod = importlib.util.module_from_spec(spec)
    assert spec and spec.loader
    spec.loader.exec_module(mod)  # type: ignore[attr-defined]
    return mod


def run(cmd):
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT), env.get("PYTHONPATH")]))
    return subprocess.run(cmd, env=env, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)


def run_ok(cmd):
    r = run(cmd)
    assert r.returncode == 0, f"cmd failed: {cmd}\nstdout:\n{r.stdout}\nstderr:\n{r.stderr}"
    return r


def cascade_placements(placements=3, levels=10, p=0.3):
    gen = load_module_by_path("gen_measures", GEN_MEASURES_PATH)
    fine = gen.binomial_cascade(levels, p)
    sizes = gen.box_sizes(levels)
    return [BoxCount.from_masses(*gen.scan(fine, sizes, offset=g)) for g in range(placements)]


def test_analyze_scan_counts_only():
    sizes = [1, 2, 4, 8, 16]
    bc = BoxCount.from_counts(sizes, [256 / s for s in sizes])
    summary = analyze_scan([bc])
    assert abs(summary.fit.slope - 1.0) < 1e-9
    assert summary.window == (0, 5)
    assert summary.lacunarity is None
    assert summary.mass_fits == [None]
    assert summary.best is None


def test_analyze_scan_multifractal():
    summary = analyze_scan(cascade_placements(), ScanConfig(multifractal=True))
    assert abs(summary.fit.slope - 1.0) < 1e-9
    assert summary.average.n_placements == 3
    assert len(summary.descriptions) == 3
    assert [d.grid for d in summary.descriptions] == [0, 1, 2]
    assert summary.best is not None
    assert summary.best.probably_mono is False
    assert summary.lacunarity.summary.mean > 1.0


def test_analyze_scan_multifractal_needs_masses():
    bc = BoxCount.from_counts([1, 2, 4], [16, 8, 4])
    summary = analyze_scan([bc], ScanConfig(multifractal=True))
    assert summary.best is None
    assert any("needs masses" in w for w in summary.warnings)


def test_drop_head_and_tail_window():
    sizes = [1, 2, 4, 8, 16, 32]
    bc = BoxCount.from_counts(sizes, [1000 / s for s in sizes])
    summary = analyze_scan([bc], ScanConfig(drop_head=1, drop_tail=2))
    assert summary.window == (1, 4)
    assert summary.fit.n == 3


def write_cascade_csv(tmp_path, placements=2):
    gen = load_module_by_path("gen_measures", GEN_MEASURES_PATH)
    df = gen.scan_rows(gen.binomial_cascade(10, 0.3), gen.box_sizes(10), placements)
    path = tmp_path / "cascade.csv"
    df.to_csv(path, index=False)
    return path


def test_cli_script_imports_the_package():
    r = run_ok([sys.executable, BOXSCAN, "--help"])
    assert "--input" in r.stdout
    assert Path(BOXSCAN).stem != "boxscan"


def test_cli_outputs_and_schema(tmp_path):
    src = write_cascade_csv(tmp_path)
    outp = tmp_path / "out" / "cascade"
    r = run_ok([sys.executable, BOXSCAN, "--input", str(src), "--out", str(outp), "--multifractal"])
    assert "[result]" in r.stdout

    for suffix in [".csv", ".txt", ".json"]:
        assert outp.with_suffix(suffix).exists()
    header = outp.with_suffix(".csv").read_text(encoding="utf-8").splitlines()[0]
    for col in ["size", "N_mean", "N_std", "log_inv_size", "log_N", "lacunarity_mean", "in_fit_window"]:
        assert col in header
    table = pd.read_csv(outp.with_suffix(".csv"), comment="#")
    assert len(table) == 8

    txt = outp.with_suffix(".txt").read_text(encoding="utf-8")
    assert "R^2:" in txt
    m = re.search(r"Mean D over grid placements \(slope.*\): ([0-9.]+)", txt)
    assert m and abs(float(m.group(1)) - 1.0) < 1e-6

    meta = json.loads(outp.with_suffix(".json").read_text(encoding="utf-8"))
    assert abs(meta["D"] - 1.0) < 1e-6
    assert meta["grid_placements"] == 2
    assert meta["multifractal"]["scaling"] == "Multifractal"
    assert meta["multifractal"]["spectrum_rises_after_peak"] == 0

    tsv = Path(str(outp) + "_mf.tsv").read_text(encoding="utf-8").splitlines()
    assert tsv[0].split("\t") == HEADINGS
    assert len(tsv[1].split("\t")) == len(HEADINGS)


def test_cli_counts_input(tmp_path):
    src = tmp_path / "counts.csv"
    pd.DataFrame({"size": [1, 2, 4, 8], "count": [64, 32, 16, 8]}).to_csv(src, index=False)
    outp = tmp_path / "counts"
    run_ok([sys.executable, BOXSCAN, "--input", str(src), "--out", str(outp)])
    meta = json.loads(outp.with_suffix(".json").read_text(encoding="utf-8"))
    assert abs(meta["D"] - 1.0) < 1e-9
    assert "D (single grid placement)" in outp.with_suffix(".txt").read_text(encoding="utf-8")


def test_cli_errors(tmp_path):
    r = run([sys.executable, BOXSCAN, "--input", str(tmp_path / "missing.csv"), "--out", str(tmp_path / "x")])
    assert r.returncode != 0
    assert "Input not found" in (r.stderr + r.stdout)

    bad = tmp_path / "bad.csv"
    pd.DataFrame({"width": [1, 2], "mass": [3, 4]}).to_csv(bad, index=False)
    r = run([sys.executable, BOXSCAN, "--input", str(bad), "--out", str(tmp_path / "x")])
    assert r.returncode != 0
    assert "size" in (r.stderr + r.stdout)

    neg = tmp_path / "neg.csv"
    pd.DataFrame({"size": [-1, 2], "count": [3, 4]}).to_csv(neg, index=False)
    r = run([sys.executable, BOXSCAN, "--input", str(neg), "--out", str(tmp_path / "x")])
    assert r.returncode != 0
    assert "strictly positive" in (r.stderr + r.stdout)
