"""
Benchmark: two-queue Huffman build vs heap Huffman build

Runs repeated experiments over synthetic 7-bit datasets and records timing,
compressed size and code efficiency for each tree-building pipeline

Outputs (in --outdir):
  - metrics.csv     (raw row per run per pipeline)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --size_kb 64 --generators zipf128,english_like

Notes:
  Both pipelines are optimal, so avg_code_bits must match between them for
  the same dataset; only the build time should differ.
"""

from __future__ import annotations

import argparse
import csv
import math
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

import huffman as huff
from bitpack import BYTE_BITS, pack_bits, unpack_bits


PIPELINES: Dict[str, Callable] = {
    "two-queue": huff.build_huffman_tree,
    "heap": huff.build_huffman_tree_heap,
}


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def entropy_bits(sorted_list: List[huff.WeightedSymbol]) -> float:
    return -sum(ws.weight * math.log2(ws.weight) for ws in sorted_list if ws.weight > 0)


# Synthetic dataset generators (all symbols < huff.ALPHABET_SIZE)

def _sample(rng: random.Random, symbols: str, weights: List[float], size: int) -> str:
    return "".join(rng.choices(symbols, weights=weights, k=size))

def gen_uniform(size: int, alphabet: int = huff.ALPHABET_SIZE, seed: int = 0) -> str:
    rng = random.Random(seed)
    return "".join(chr(rng.randrange(0, alphabet)) for _ in range(size))

def gen_repetitive(size: int, dominant: str = 'A', dom_frac: float = 0.90, seed: int = 0) -> str:
    rng = random.Random(seed)
    others = [chr(i) for i in range(32, 127) if chr(i) != dominant]
    return "".join(dominant if rng.random() < dom_frac else rng.choice(others) for _ in range(size))

def gen_zipf_like(size: int, alphabet: int = huff.ALPHABET_SIZE, s: float = 1.2, seed: int = 0) -> str:
    rng = random.Random(seed)
    symbols = "".join(chr(i) for i in range(alphabet))
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample(rng, symbols, weights, size)

def gen_english_like(size: int, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = (
        " etaoinshrdlcumwfgypbvkjxq"
        "ETAOINSHRDLCUMWFGYPBVKJXQ"
        "\n.,"
    )
    weights = []
    for ch in chars:
        if ch == ' ':
            weights.append(13.0)
        elif ch in "\n.,":
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return _sample(rng, chars, weights, size)

def gen_single(size: int, seed: int = 0) -> str:
    return chr(random.Random(seed).randrange(0, huff.ALPHABET_SIZE)) * size

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], str]] = {
    "uniform128": lambda size, seed: gen_uniform(size, alphabet=128, seed=seed),
    "uniform16": lambda size, seed: gen_uniform(size, alphabet=16, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single": lambda size, seed: gen_single(size, seed=seed),
}

def generate_dataset(name: str, size: int, seed: int) -> str:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown dataset generator {name!r} (known: {', '.join(sorted(GENERATOR_REGISTRY))})")
    return fn(size, seed)


# Experiment runner

@dataclass
class MetricRow:
    dataset_name: str
    file_size_bytes: int
    run_id: int
    pipeline: str  # key of PIPELINES
    unique_symbols: int

    build_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    compressed_bytes: int
    padding_bits: int
    compression_ratio: float

    avg_code_bits: float
    entropy_bits: float
    correctness_ok: int  # 1 or 0


def run_one(text: str, pipeline: str, dataset_name: str = "", run_id: int = 0) -> MetricRow:
    build = PIPELINES.get(pipeline)
    if build is None:
        raise ValueError(f"pipeline must be one of {sorted(PIPELINES)}")

    # frequency table + tree + codes
    t0 = now_ns()
    sorted_list = huff.make_sorted_list(text)
    root = build(sorted_list)
    table = huff.generate_huffman_codes(root)
    t1 = now_ns()

    # encode
    bits = table.encode(text)
    packed = pack_bits(bits)
    t2 = now_ns()

    # decode
    decoded = huff.huffman_decode(unpack_bits(packed), root)
    t3 = now_ns()

    weights = {ws.symbol: ws.weight for ws in sorted_list}
    build_ms = ns_to_ms(t1 - t0)
    encode_ms = ns_to_ms(t2 - t1)
    decode_ms = ns_to_ms(t3 - t2)

    return MetricRow(
        dataset_name=dataset_name,
        file_size_bytes=len(text),
        run_id=run_id,
        pipeline=pipeline,
        unique_symbols=sum(1 for ws in sorted_list if ws.weight > 0),
        build_ms=build_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + encode_ms + decode_ms,
        compressed_bytes=len(packed),
        padding_bits=BYTE_BITS - len(bits) % BYTE_BITS,
        compression_ratio=len(packed) / max(1, len(text)),
        avg_code_bits=table.average_length(weights),
        entropy_bits=entropy_bits(sorted_list),
        correctness_ok=1 if decoded == text else 0,
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


SUMMARY_METRICS = ("compression_ratio", "build_ms", "encode_ms", "decode_ms", "total_ms", "avg_code_bits")


def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by dataset_name, file_size_bytes, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.dataset_name, r.file_size_bytes, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["dataset_name", "file_size_bytes", "pipeline", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields += ["entropy_bits", "correctness_ok_rate"]

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for (dataset_name, size_b, pipeline), items in sorted(key_to.items()):
            row = {
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "pipeline": pipeline,
                "n_runs": len(items),
                "entropy_bits": statistics.mean(x.entropy_bits for x in items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                row[f"{m}_mean"], row[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(row)


# Plotting

def plot_by_dataset(rows: List[MetricRow], outdir: Path) -> List[Path]:
    if not rows:
        return []

    datasets = sorted(set(r.dataset_name for r in rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, pipeline: str, field: str) -> float:
        vals = [getattr(r, field) for r in rows if r.dataset_name == dataset and r.pipeline == pipeline]
        return statistics.mean(vals) if vals else float("nan")

    charts = [
        ("build_ms", "Tree Build Time (ms)", "Build Time by Dataset", "build_time.png"),
        ("total_ms", "Total Time (ms) (build + encode + decode)", "Total Runtime by Dataset", "total_time.png"),
        ("compression_ratio", "Compressed Bytes / Original Bytes", "Compression Ratio by Dataset", "compression_ratio.png"),
    ]
    written = []
    for field, ylabel, title, name in charts:
        plt.figure()
        for p in PIPELINES:
            y = [mean_for(d, p, field) for d in datasets]
            plt.plot(x, y, marker="o", label=p)
        plt.xticks(x, datasets, rotation=20, ha="right")
        plt.ylabel(ylabel)
        plt.title(title)
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / name, dpi=200)
        plt.close()
        written.append(outdir / name)

    # code efficiency against the entropy bound
    plt.figure()
    plt.bar([i - 0.2 for i in x], [mean_for(d, "two-queue", "avg_code_bits") for d in datasets],
            width=0.4, label="avg code length")
    plt.bar([i + 0.2 for i in x], [mean_for(d, "two-queue", "entropy_bits") for d in datasets],
            width=0.4, label="entropy")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title("Average Code Length vs Entropy")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "code_length.png", dpi=200)
    plt.close()
    written.append(outdir / "code_length.png")
    return written


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def main(argv=None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--size_kb", type=int, default=256, help="Dataset size in KB")
    ap.add_argument("--generators", type=str, default="uniform128,zipf128,repetitive90,english_like,single",
                    help="Comma-separated dataset generator names")
    ap.add_argument("--no_plots", action="store_true", help="Only write the CSV files")
    args = ap.parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    size = max(1, args.size_kb) * 1024
    rows: List[MetricRow] = []
    for gen_name in parse_csv_list(args.generators):
        for run_id in range(1, args.runs + 1):
            text = generate_dataset(gen_name, size, args.seed + run_id)
            for pipeline in PIPELINES:
                rows.append(run_one(text, pipeline, dataset_name=gen_name, run_id=run_id))

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)
    if not args.no_plots:
        plot_by_dataset(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
