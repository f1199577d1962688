"""HTTP benchmark for the public read endpoints (run against a seeded database)."""
import argparse
import asyncio
import statistics
import time

import httpx

BASE_URL = "http://localhost:8000"

ENDPOINTS = [
    ("GET /posts", "/posts"),
    ("GET /posts?author=user_0001", "/posts?author=user_0001"),
    ("GET /posts/1/comments", "/posts/1/comments"),
    ("GET /posts/1/likes", "/posts/1/likes"),
    ("GET /users", "/users"),
    ("GET /users/user_0001", "/users/user_0001"),
    ("GET /users/user_0001/likes", "/users/user_0001/likes"),
    ("GET /health", "/health"),
]


def _percentile(times: list[float], q: float) -> float:
    ordered = sorted(times)
    return round(ordered[min(int(len(ordered) * q), len(ordered) - 1)], 2)


async def benchmark_endpoint(client: httpx.AsyncClient, name: str, path: str, iterations: int = 50):
    times: list[float] = []
    query_counts: list[int] = []
    errors = 0

    # Warmup
    for _ in range(3):
        try:
            await client.get(path)
        except httpx.HTTPError:
            pass

    for _ in range(iterations):
        try:
            start = time.perf_counter()
            resp = await client.get(path)
            elapsed = (time.perf_counter() - start) * 1000
        except httpx.HTTPError:
            errors += 1
            continue

        if resp.status_code != 200:
            errors += 1
            continue
        times.append(elapsed)
        if "X-Query-Count" in resp.headers:
            query_counts.append(int(resp.headers["X-Query-Count"]))

    if not times:
        return {"name": name, "error": f"All {iterations} requests failed"}

    return {
        "name": name,
        "avg_ms": round(statistics.mean(times), 2),
        "p50_ms": _percentile(times, 0.50),
        "p95_ms": _percentile(times, 0.95),
        "p99_ms": _percentile(times, 0.99),
        "queries": round(statistics.mean(query_counts), 1) if query_counts else "N/A",
        "errors": errors,
    }


async def run_benchmark(base_url: str, iterations: int = 50):
    print("=" * 80)
    print(f"Social API Benchmark — {iterations} iterations per endpoint")
    print(f"Target: {base_url}")
    print("=" * 80)

    async with httpx.AsyncClient(base_url=base_url) as client:
        try:
            resp = await client.get("/health")
        except httpx.HTTPError as e:
            print(f"ERROR: Cannot connect to {base_url} — {e}")
            return
        if resp.status_code != 200:
            print(f"ERROR: Health check failed ({resp.status_code})")
            return
        print(f"Health: {resp.json()}\n")

        print(f"{'Endpoint':<40} {'Avg':>9} {'P50':>9} {'P95':>9} {'P99':>9} {'Queries':>8} {'Err':>4}")
        print("-" * 92)
        for name, path in ENDPOINTS:
            result = await benchmark_endpoint(client, name, path, iterations)
            if "error" in result:
                print(f"{result['name']:<40} {'ERROR':>9}")
                continue
            print(
                f"{result['name']:<40} "
                f"{result['avg_ms']:>7.1f}ms "
                f"{result['p50_ms']:>7.1f}ms "
                f"{result['p95_ms']:>7.1f}ms "
                f"{result['p99_ms']:>7.1f}ms "
                f"{str(result['queries']):>8} "
                f"{result['errors']:>4}"
            )
        print("-" * 92)


def main():
    parser = argparse.ArgumentParser(description="Benchmark the social network API")
    parser.add_argument("-n", "--iterations", type=int, default=50, help="Iterations per endpoint")
    parser.add_argument("--base-url", default=BASE_URL, help="API base URL")
    args = parser.parse_args()
    asyncio.run(run_benchmark(args.base_url, args.iterations))


if __name__ == "__main__":
    main()
