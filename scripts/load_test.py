"""Load test: drive N simulated couples through the full PairQuiz flow.

Each pair registers, creates and joins a session, answers the question set
(the partner copies each answer with probability ``--agreement``), then
fetches results.  Reports per-phase latency and counts.

Usage: python -m scripts.load_test [--pairs 50] [--base-url http://localhost:8000]
"""
import argparse
import asyncio
import random
import statistics
import sys
import time
import uuid
from typing import Any

import httpx


DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_PAIRS = 50
DEFAULT_AGREEMENT = 0.6


async def register(client: httpx.AsyncClient, base_url: str, label: str) -> str:
    """Register a participant and return its token."""
    payload = {
        "name": f"Load Test {label}",
        "gender": random.choice(["male", "female"]),
        "age": random.randint(21, 45),
        "whatsapp_number": f"+9715{uuid.uuid4().int % 10**8:08d}",
    }
    resp = await client.post(f"{base_url}/api/v1/participants", json=payload)
    resp.raise_for_status()
    return resp.json()["token"]


def pick_answers(
    question_set: dict[str, Any],
    copy_from: dict[int, int] | None,
    agreement: float,
) -> dict[int, int]:
    answers: dict[int, int] = {}
    questions = question_set["common_questions"] + question_set["individual_questions"]
    for q in questions:
        option_ids = [o["id"] for o in q["options"]]
        if copy_from is not None and random.random() < agreement:
            answers[q["id"]] = copy_from[q["id"]]
        else:
            answers[q["id"]] = random.choice(option_ids)
    return answers


async def run_pair(
    client: httpx.AsyncClient,
    base_url: str,
    index: int,
    agreement: float,
    timings: dict[str, list[float]],
) -> dict[str, Any]:
    t0 = time.monotonic()
    token_a = await register(client, base_url, f"{index}A")
    token_b = await register(client, base_url, f"{index}B")
    headers_a = {"X-Participant-Token": token_a}
    headers_b = {"X-Participant-Token": token_b}
    timings["register"].append(time.monotonic() - t0)

    t0 = time.monotonic()
    resp = await client.post(f"{base_url}/api/v1/sessions", headers=headers_a)
    resp.raise_for_status()
    code = resp.json()["session_code"]
    resp = await client.post(
        f"{base_url}/api/v1/sessions/join",
        json={"session_code": code},
        headers=headers_b,
    )
    resp.raise_for_status()
    timings["session"].append(time.monotonic() - t0)

    t0 = time.monotonic()
    resp = await client.get(f"{base_url}/api/v1/sessions/{code}/questions")
    resp.raise_for_status()
    question_set = resp.json()
    answers_a = pick_answers(question_set, None, agreement)
    answers_b = pick_answers(question_set, answers_a, agreement)
    for headers, answers in ((headers_a, answers_a), (headers_b, answers_b)):
        resp = await client.post(
            f"{base_url}/api/v1/sessions/{code}/answers",
            json={"answers": [
                {"question_id": q, "option_id": o} for q, o in answers.items()
            ]},
            headers=headers,
        )
        resp.raise_for_status()
    timings["answers"].append(time.monotonic() - t0)

    t0 = time.monotonic()
    resp = await client.get(f"{base_url}/api/v1/sessions/{code}/results", headers=headers_a)
    resp.raise_for_status()
    timings["results"].append(time.monotonic() - t0)
    return resp.json()


async def run_load_test(base_url: str, pairs: int, agreement: float) -> dict[str, Any]:
    """Run all pairs concurrently and summarise."""
    print(f"\n{'='*60}")
    print(f"PairQuiz Load Test — {pairs} pairs")
    print(f"Target: {base_url}")
    print(f"{'='*60}\n")

    timings: dict[str, list[float]] = {
        "register": [], "session": [], "answers": [], "results": [],
    }
    results: dict[str, Any] = {
        "total": pairs,
        "completed": 0,
        "vouchers": 0,
        "percentages": [],
        "errors": [],
    }

    async with httpx.AsyncClient(timeout=30.0) as client:
        outcomes = await asyncio.gather(
            *(run_pair(client, base_url, i, agreement, timings) for i in range(pairs)),
            return_exceptions=True,
        )

    for i, outcome in enumerate(outcomes):
        if isinstance(outcome, Exception):
            results["errors"].append(f"Pair {i}: {outcome}")
            continue
        results["completed"] += 1
        results["percentages"].append(outcome["match_percentage"])
        if outcome.get("voucher"):
            results["vouchers"] += 1

    print(f"{'='*60}")
    print("LOAD TEST RESULTS")
    print(f"{'='*60}")
    print(f"Pairs completed:  {results['completed']}/{pairs}")
    print(f"Vouchers issued:  {results['vouchers']}")
    if results["percentages"]:
        print(f"Mean match:       {statistics.mean(results['percentages']):.1f}%")

    for phase, samples in timings.items():
        if samples:
            print(f"\n{phase} latency:")
            print(f"  mean:   {statistics.mean(samples):.2f}s")
            print(f"  median: {statistics.median(samples):.2f}s")
            print(f"  p95:    {sorted(samples)[int(len(samples)*0.95)]:.2f}s")
            print(f"  max:    {max(samples):.2f}s")

    if results["errors"]:
        print(f"\nErrors ({len(results['errors'])}):")
        for e in results["errors"][:10]:
            print(f"  - {e}")

    print(f"\n{'='*60}\n")
    return results


def main():
    parser = argparse.ArgumentParser(description="PairQuiz Load Test")
    parser.add_argument("--pairs", type=int, default=DEFAULT_PAIRS, help="Number of couples to simulate")
    parser.add_argument("--base-url", type=str, default=DEFAULT_BASE_URL, help="API base URL")
    parser.add_argument("--agreement", type=float, default=DEFAULT_AGREEMENT, help="Chance the partner copies an answer")
    args = parser.parse_args()

    results = asyncio.run(run_load_test(args.base_url, args.pairs, args.agreement))

    success_rate = results["completed"] / max(results["total"], 1)
    if success_rate < 0.95:
        print(f"FAIL: Only {success_rate:.0%} success rate (target: 95%)")
        sys.exit(1)
    print(f"PASS: {success_rate:.0%} success rate")


if __name__ == "__main__":
    main()
