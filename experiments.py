# experiments.py

"""
Experiments: optimal BST vs median-balanced BST

Builds both trees over the same keys for several search distributions and
measures build time, expected search cost, and the average comparisons of
a simulated search workload (hits and misses drawn from the distribution).

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --n 63 --searches 20000
  python experiments.py --outdir results --sizes 8,16,32,64,128 --distributions uniform,zipf
"""

from __future__ import annotations

import argparse
import bisect
import csv
import logging
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt

import obst as obst_mod
from obst_map import EMPTY, Internal, Node, OBSTMap

logger = logging.getLogger(__name__)

TREE_KINDS = ("optimal", "balanced")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def spaced_keys(n: int) -> List[int]:
    # Keys 0, 2, 4, ... so gap g always holds the probe 2*g - 1
    return [2 * i for i in range(n)]

def gap_probe(gap: int) -> int:
    return 2 * gap - 1

def normalize(key_weights: List[float], miss_weights: List[float]) -> Tuple[List[float], List[float]]:
    total = sum(key_weights) + sum(miss_weights)
    return [w / total for w in key_weights], [w / total for w in miss_weights]

def make_data(n: int, key_weights: List[float], miss_weights: List[float]) -> obst_mod.OBSTData:
    keys = spaced_keys(n)
    key_probs, miss_probs = normalize(key_weights, miss_weights)
    return obst_mod.OBSTData(keys=keys, values=[f"v{k}" for k in keys],
                             key_probs=key_probs, miss_probs=miss_probs)


# Distribution generators

def gen_uniform(n: int, miss_frac: float = 0.2, seed: int = 0) -> obst_mod.OBSTData:
    key_weights = [(1.0 - miss_frac) / n] * n
    miss_weights = [miss_frac / (n + 1)] * (n + 1)
    return make_data(n, key_weights, miss_weights)

def gen_zipf(n: int, s: float = 1.2, miss_frac: float = 0.1, seed: int = 0) -> obst_mod.OBSTData:
    # Zipf ranks shuffled across the key order
    rng = random.Random(seed)
    ranks = list(range(n))
    rng.shuffle(ranks)
    key_weights = [(1.0 - miss_frac) / ((r + 1) ** s) for r in ranks]
    miss_weights = [miss_frac / (n + 1)] * (n + 1)
    return make_data(n, key_weights, miss_weights)

def gen_skewed(n: int, hot_frac: float = 0.9, seed: int = 0) -> obst_mod.OBSTData:
    rng = random.Random(seed)
    hot = rng.randrange(n)
    cold = (1.0 - hot_frac) / (2 * n) # split the rest between cold keys and gaps
    key_weights = [cold] * n
    key_weights[hot] = hot_frac
    miss_weights = [cold * n / (n + 1)] * (n + 1)
    return make_data(n, key_weights, miss_weights)

def gen_random(n: int, resolution: int = 100, seed: int = 0) -> obst_mod.OBSTData:
    rng = random.Random(seed)
    key_weights = [float(rng.randint(1, resolution)) for _ in range(n)]
    miss_weights = [float(rng.randint(0, resolution // 4)) for _ in range(n + 1)]
    return make_data(n, key_weights, miss_weights)

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], obst_mod.OBSTData]] = {
    "uniform": lambda n, seed: gen_uniform(n, seed=seed),
    "zipf": lambda n, seed: gen_zipf(n, s=1.2, seed=seed),
    "skewed": lambda n, seed: gen_skewed(n, hot_frac=0.9, seed=seed),
    "random": lambda n, seed: gen_random(n, resolution=100, seed=seed),
}

def generate_dataset(name: str, n: int, seed: int) -> Tuple[str, obst_mod.OBSTData]:
    """
    Unknown distribution names fall back to uniform under a renamed label
    so one typo does not sink the whole run
    """
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        logger.warning("Unknown distribution %r, using uniform", name)
        return f"{name}_fallback_uniform", gen_uniform(n, seed=seed)
    return name, fn(n, seed)


# Baseline tree

def build_balanced(keys: Sequence, values: Sequence) -> OBSTMap:
    """Median-split BST over sorted keys, ignoring probabilities."""
    def build(i: int, j: int) -> Node:
        if i > j:
            return EMPTY
        mid = (i + j) // 2
        return Internal(build(i, mid - 1), keys[mid], values[mid], build(mid + 1, j))

    return OBSTMap(build(0, len(keys) - 1))


# Search workload

def sample_searches(data: obst_mod.OBSTData, count: int, seed: int) -> List[Tuple[int, bool]]:
    """Draw (probe, is_hit) pairs; hits probe a key, misses probe a gap."""
    rng = random.Random(seed)
    n = len(data.keys)
    weights = list(data.key_probs) + list(data.miss_probs)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w
        cdf.append(acc)

    out = []
    for _ in range(count):
        idx = min(bisect.bisect_left(cdf, rng.random() * acc), len(cdf) - 1)
        if idx < n:
            out.append((data.keys[idx], True))
        else:
            out.append((gap_probe(idx - n), False))
    return out


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    n_keys: int
    run_id: int
    tree_kind: str  # "optimal" or "balanced"

    build_ms: float
    search_ms: float
    height: int

    expected_cost: float
    searches: int
    comparisons_total: int
    comparisons_per_search: float
    correctness_ok: int  # 1 or 0


def build_tree(data: obst_mod.OBSTData, tree_kind: str) -> OBSTMap:
    if tree_kind == "optimal":
        return obst_mod.build_obst_from_data(data)
    elif tree_kind == "balanced":
        return build_balanced(data.keys, data.values)
    raise ValueError("tree_kind must be 'optimal' or 'balanced'")


def run_one(data: obst_mod.OBSTData, tree_kind: str, searches: int, seed: int) -> MetricRow:
    t0 = now_ns()
    tree = build_tree(data, tree_kind)
    t1 = now_ns()
    build_ms = ns_to_ms(t1 - t0)

    cost = obst_mod.expected_cost(tree.root, data.key_probs, data.miss_probs)

    workload = sample_searches(data, searches, seed)
    comparisons_total = 0
    ok = True
    t2 = now_ns()
    for probe, is_hit in workload:
        value, comps = tree.search(probe)
        comparisons_total += comps
        if is_hit and value != f"v{probe}":
            ok = False
        elif not is_hit and value is not None:
            ok = False
    t3 = now_ns()

    # every key must come back in order, nothing lost or duplicated
    ok = ok and tree.keys() == list(data.keys)
    if not ok:
        logger.error("Correctness check failed for %s tree over %d keys", tree_kind, len(data.keys))

    return MetricRow(
        exp_name="",
        dataset_name="",
        n_keys=len(data.keys),
        run_id=0,
        tree_kind=tree_kind,
        build_ms=build_ms,
        search_ms=ns_to_ms(t3 - t2),
        height=tree.height(),
        expected_cost=cost,
        searches=len(workload),
        comparisons_total=comparisons_total,
        comparisons_per_search=comparisons_total / max(1, len(workload)),
        correctness_ok=1 if ok else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, n_keys, tree_kind and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.n_keys, r.tree_kind)
        key_to.setdefault(key, []).append(r)

    measured = ["build_ms", "search_ms", "expected_cost", "comparisons_per_search"]
    summary_fields = ["exp_name", "dataset_name", "n_keys", "tree_kind", "n_runs"]
    for m in measured:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, n_keys, tree_kind = key
            out = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "n_keys": n_keys,
                "tree_kind": tree_kind,
                "n_runs": len(items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in measured:
                out[f"{m}_mean"], out[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(out)


# Plotting

def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))

    def mean_for(dataset: str, kind: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset and r.tree_kind == kind]
        return statistics.mean(vals) if vals else float("nan")

    x = list(range(len(datasets)))

    for field, ylabel, fname in (
        ("expected_cost", "Expected Search Cost", "exp1_expected_cost.png"),
        ("comparisons_per_search", "Comparisons per Search (simulated)", "exp1_comparisons.png"),
    ):
        plt.figure()
        for kind in TREE_KINDS:
            y = [mean_for(d, kind, field) for d in datasets]
            plt.plot(x, y, marker="o", label=kind)
        plt.xticks(x, datasets, rotation=20, ha="right")
        plt.ylabel(ylabel)
        plt.title(f"Experiment 1: {ylabel} by Distribution")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / fname, dpi=200)
        plt.close()


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling" and r.tree_kind == "optimal"]
    if not exp_rows:
        return

    distributions = sorted(set(r.dataset_name for r in exp_rows))

    plt.figure()
    for dist in distributions:
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.n_keys for r in dist_rows))
        y = [statistics.mean(r.build_ms for r in dist_rows if r.n_keys == s) for s in sizes]
        plt.plot(sizes, y, marker="o", label=dist)
    plt.xlabel("Number of Keys")
    plt.ylabel("Build Time (ms)")
    plt.title("Experiment 2: Optimal BST Build Time vs Keys")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp2_build_time.png", dpi=200)
    plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def parse_int_list(s: str) -> List[int]:
    return [int(x) for x in parse_csv_list(s)]

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Optimal vs balanced BST experiments")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--verbose", action="store_true", help="Debug logging")

    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")

    # Experiment 1 controls
    ap.add_argument("--n", type=int, default=63, help="Experiment 1 number of keys")
    ap.add_argument("--searches", type=int, default=10_000, help="Simulated searches per run")
    ap.add_argument("--distributions", type=str, default="uniform,zipf,skewed,random",
                    help="Comma-separated distribution names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--sizes", type=str, default="8,16,32,64,128",
                    help="Comma-separated key counts for experiment 2")
    ap.add_argument("--exp2_distributions", type=str, default="uniform,zipf",
                    help="Comma-separated distribution names for experiment 2")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed n)
    if not args.no_exp1:
        n = max(1, args.n)
        for gen_name in parse_csv_list(args.distributions):
            for run_id in range(1, args.runs + 1):
                dataset_name, data = generate_dataset(gen_name, n, args.seed + run_id)
                for kind in TREE_KINDS:
                    row = run_one(data, kind, args.searches, args.seed + run_id)
                    row.exp_name = "exp1_distribution"
                    row.dataset_name = dataset_name
                    row.run_id = run_id
                    rows.append(row)

    # Experiment 2: build time as n grows
    if not args.no_exp2:
        sizes = [max(1, s) for s in parse_int_list(args.sizes)]
        for gen_name in parse_csv_list(args.exp2_distributions):
            for n in sizes:
                logger.info("Experiment 2: %s with %d keys", gen_name, n)
                for run_id in range(1, args.runs + 1):
                    dataset_name, data = generate_dataset(gen_name, n, args.seed + 10_000 + n + run_id)
                    for kind in TREE_KINDS:
                        row = run_one(data, kind, min(args.searches, 1_000), args.seed + run_id)
                        row.exp_name = "exp2_size_scaling"
                        row.dataset_name = dataset_name
                        row.run_id = run_id
                        rows.append(row)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    plot_experiment_1(rows, outdir)
    plot_experiment_2(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
