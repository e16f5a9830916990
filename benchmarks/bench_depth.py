import sys
import gc
import time
import pprint
import numpy as np
from specfda.depth import functional_depth


def benchmark_depth(rng, n, grid, method="MBD"):
    """Benchmark the functional_depth function."""
    gc.collect()  # Clear garbage collector to avoid interference
    curves = np.sin(2.0 * np.pi * grid) + 0.3 * rng.standard_normal((n, grid.size))
    start_time = time.time_ns()
    result = functional_depth(curves, method=method)
    elapsed_time = time.time_ns() - start_time
    del curves, result  # Free memory
    return elapsed_time


if __name__ == "__main__":
    grid = np.linspace(850.0, 1050.0, 100, dtype=np.float64)
    sample_sizes = [100, 200, 500]
    rng = np.random.default_rng(42)
    methods = ["BD2", "MBD", "Both"]

    print("Python Information:\n", sys.version)
    np.show_config()

    num_replications = 10
    run_times = dict()
    for method in methods:
        for n in sample_sizes:
            run_times[(method, n)] = []
            for i in range(num_replications):
                # Generate new curves each time to simulate different data
                run_times[(method, n)].append(benchmark_depth(rng, n, grid, method=method))

    for (method, n), run_time in run_times.items():
        # remove fastest and slowest
        run_times_remove = np.sort(run_time)[1:-1]

        print(
            f"Average time (remove fastest and slowest) for {num_replications} replications with {n} curves on " +
            f"{grid.size} points with {method} depth runs: {np.mean(run_times_remove) / 1e9:.6f} seconds"
        )
        print(f"Standard deviation of run times: {np.std(run_times_remove) / 1e9:.6f} seconds")

    for key, run_time in run_times.items():
        print(f"method, n - {key}, run_time:")
        pprint.pprint(np.array(run_time) / 1e9)
