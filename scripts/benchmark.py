"""HTTP benchmark for the GraphQL API and the rendered feed pages."""
import asyncio
import argparse
import time
import statistics
import httpx

BASE_URL = "http://localhost:8000"

FEED_QUERY = """
query ($type: FeedType!, $first: Int, $skip: Int) {
  feed(type: $type, first: $first, skip: $skip) {
    id title url submitterId upvoteCount commentCount creationTime
    author { id karma }
  }
}
"""

# (name, method, path, json body)
REQUESTS = [
    ("POST /graphql feed(top)", "POST", "/graphql",
     {"query": FEED_QUERY, "variables": {"type": "top", "first": 30, "skip": 0}}),
    ("POST /graphql feed(new, skip 60)", "POST", "/graphql",
     {"query": FEED_QUERY, "variables": {"type": "new", "first": 30, "skip": 60}}),
    ("POST /graphql newsItem(1)", "POST", "/graphql",
     {"query": "{ newsItem(id: 1) { id title comments { id text comments { id } } } }"}),
    ("GET /news", "GET", "/news", None),
    ("GET /shownew", "GET", "/shownew", None),
    ("GET /item?id=1", "GET", "/item?id=1", None),
    ("GET /api/v1/metrics", "GET", "/api/v1/metrics", None),
    ("GET /health", "GET", "/health", None),
]


async def _send(client: httpx.AsyncClient, method: str, path: str, body: dict | None) -> httpx.Response:
    return await client.request(method, f"{BASE_URL}{path}", json=body)


async def benchmark_request(
    client: httpx.AsyncClient, name: str, method: str, path: str, body: dict | None, iterations: int = 50
):
    times = []
    query_counts = []
    errors = 0

    # Warmup
    for _ in range(3):
        try:
            await _send(client, method, path, body)
        except httpx.HTTPError:
            pass

    for _ in range(iterations):
        try:
            start = time.perf_counter()
            resp = await _send(client, method, path, body)
            elapsed = (time.perf_counter() - start) * 1000

            if resp.status_code == 200:
                times.append(elapsed)
                qc = resp.headers.get("X-Query-Count")
                if qc is not None:
                    query_counts.append(int(qc))
            else:
                errors += 1
        except httpx.HTTPError:
            errors += 1

    if not times:
        return {"name": name, "error": f"All {iterations} requests failed"}

    ordered = sorted(times)
    return {
        "name": name,
        "avg_ms": round(statistics.mean(times), 2),
        "p50_ms": round(ordered[len(ordered) // 2], 2),
        "p95_ms": round(ordered[int(len(ordered) * 0.95)], 2),
        "p99_ms": round(ordered[int(len(ordered) * 0.99)], 2),
        "queries": round(statistics.mean(query_counts), 1) if query_counts else "N/A",
        "errors": errors,
    }


async def run_benchmark(iterations: int = 50):
    print("=" * 84)
    print(f"Hacker News clone benchmark, {iterations} iterations per request")
    print(f"Target: {BASE_URL}")
    print("=" * 84)

    async with httpx.AsyncClient() as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
        except httpx.HTTPError as e:
            print(f"ERROR: Cannot connect to {BASE_URL}: {e}")
            return
        if resp.status_code != 200:
            print(f"ERROR: Health check failed ({resp.status_code})")
            return
        print(f"Health: {resp.json()}")

        print()
        print(f"{'Request':<38} {'Avg':>9} {'P50':>9} {'P95':>9} {'P99':>9} {'Queries':>8} {'Err':>4}")
        print("-" * 84)

        for name, method, path, body in REQUESTS:
            result = await benchmark_request(client, name, method, path, body, iterations)
            if "error" in result:
                print(f"{result['name']:<38} {'ERROR':>9}")
                continue
            print(
                f"{result['name']:<38} "
                f"{result['avg_ms']:>7.1f}ms "
                f"{result['p50_ms']:>7.1f}ms "
                f"{result['p95_ms']:>7.1f}ms "
                f"{result['p99_ms']:>7.1f}ms "
                f"{str(result['queries']):>8} "
                f"{result['errors']:>4}"
            )

        print("-" * 84)
        print("\nBenchmark complete.")


def main():
    global BASE_URL
    parser = argparse.ArgumentParser(description="Benchmark the Hacker News clone")
    parser.add_argument("-n", "--iterations", type=int, default=50, help="Iterations per request")
    parser.add_argument("--base-url", default=BASE_URL, help="Server base URL")
    args = parser.parse_args()

    BASE_URL = args.base_url
    asyncio.run(run_benchmark(args.iterations))


if __name__ == "__main__":
    main()
