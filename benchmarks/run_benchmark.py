"""
CLI entry point for running throughput benchmarks.

Usage:
    python -m benchmarks.run_benchmark                          # all policies, 100 jobs
    python -m benchmarks.run_benchmark --policy priority        # single policy
    python -m benchmarks.run_benchmark --num-jobs 500           # more jobs
    python -m benchmarks.run_benchmark --policy round_robin --time-slice-ms 5

Runs in-process; nothing needs to be running beforehand.
"""

import argparse
import json

from benchmarks.throughput import ThroughputBenchmark
from models.enums import SchedulingPolicy


def main():
    parser = argparse.ArgumentParser(description="Job Scheduler Throughput Benchmark")
    parser.add_argument(
        "--num-jobs", type=int, default=100,
        help="Number of jobs to submit (default: 100)",
    )
    parser.add_argument(
        "--policy", type=str, default="all",
        choices=[p.value for p in SchedulingPolicy] + ["all"],
        help="Which policy to benchmark (default: all)",
    )
    parser.add_argument(
        "--max-concurrent", type=int, default=4,
        help="Concurrent job cap (default: 4)",
    )
    parser.add_argument(
        "--time-slice-ms", type=int, default=20,
        help="Round robin time slice in ms (default: 20)",
    )
    args = parser.parse_args()

    print(f"=== Job Scheduler Throughput Benchmark ===")
    print(f"Jobs: {args.num_jobs} | Policy: {args.policy}\n")

    bench = ThroughputBenchmark(
        num_jobs=args.num_jobs,
        max_concurrent_jobs=args.max_concurrent,
        time_slice_ms=args.time_slice_ms,
    )

    if args.policy == "all":
        results = bench.run_all_policies()
    else:
        results = [bench.run(args.policy)]

    print("\n=== RESULTS ===")
    print(json.dumps(results, indent=2))

    # Summary table
    print("\n{:<15} {:>10} {:>15}".format("Policy", "Time (s)", "Throughput"))
    print("-" * 42)
    for r in results:
        print("{:<15} {:>10.3f} {:>12.2f} j/s".format(
            r["policy"], r["wall_clock_sec"], r["throughput_jobs_per_sec"]
        ))


if __name__ == "__main__":
    main()
