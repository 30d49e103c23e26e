#!/usr/bin/env python3
"""
Latency measurement script for the read endpoints staff hit most
Measures GET /patients, GET /global-quota, GET /monthly-report
"""
import time
import requests
import statistics
import sys

API_BASE = "http://127.0.0.1:3000/api"
NUM_ITERATIONS = 10


def measure_endpoint(name: str, url: str, params: dict = None):
    """Measure latency for a single endpoint"""
    times = []
    errors = 0

    print(f"\nMeasuring {name}...")

    for i in range(NUM_ITERATIONS):
        start = time.time()
        try:
            response = requests.get(url, params=params, timeout=5)
            duration = (time.time() - start) * 1000  # Convert to ms
            times.append(duration)
            if response.status_code != 200:
                errors += 1
                print(f"  Iteration {i+1}: {response.status_code} - {duration:.2f}ms")
            else:
                print(f"  Iteration {i+1}: {duration:.2f}ms")
        except Exception as e:
            errors += 1
            duration = (time.time() - start) * 1000
            print(f"  Iteration {i+1}: ERROR - {e} ({duration:.2f}ms)")

    if times:
        avg = statistics.mean(times)
        median = statistics.median(times)
        p95 = statistics.quantiles(times, n=20)[18] if len(times) > 1 else times[0]

        print(f"\n  Results for {name}:")
        print(f"    Average: {avg:.2f}ms")
        print(f"    Median:  {median:.2f}ms")
        print(f"    Min:     {min(times):.2f}ms")
        print(f"    Max:     {max(times):.2f}ms")
        print(f"    P95:     {p95:.2f}ms")
        print(f"    Errors:  {errors}/{NUM_ITERATIONS}")
        return {
            'name': name,
            'avg': avg,
            'median': median,
            'p95': p95,
            'errors': errors
        }
    else:
        print(f"  ERROR: All requests failed for {name}")
        return None


def main():
    """Run latency measurements"""
    # Record one delivery so the monthly report has something to aggregate
    print("Setting up test delivery...")
    month, year = None, None
    try:
        delivery_response = requests.post(
            f"{API_BASE}/drug-delivery",
            json={
                "recordNumber": "LAT-001",
                "patientName": "Latency Test Patient",
                "nationalCode": "0000000000",
                "drugs": ["قرص متادون 5"],
                "drugQuantities": {"قرص متادون 5": 1},
                "reason": "latency measurement",
            },
            timeout=5
        )
        if delivery_response.status_code == 200:
            delivery = delivery_response.json()["delivery"]
            month, year = delivery["month"], delivery["year"]
            print("✅ Test delivery recorded")
        else:
            print(f"⚠️  Delivery returned {delivery_response.status_code}")
    except Exception as e:
        print(f"⚠️  Could not record test delivery: {e}")
        print("   Continuing with measurements anyway...")

    endpoints = [
        ("GET /api/patients", f"{API_BASE}/patients", None),
        ("GET /api/global-quota", f"{API_BASE}/global-quota", None),
    ]
    if month:
        endpoints.append(("GET /api/monthly-report", f"{API_BASE}/monthly-report", {"month": month, "year": year}))

    results = []
    for name, url, params in endpoints:
        result = measure_endpoint(name, url, params)
        if result:
            results.append(result)

    # Summary
    print("\n" + "="*60)
    print("SUMMARY")
    print("="*60)
    if results:
        total_avg = sum(r['avg'] for r in results) / len(results)
        print(f"\nAverage latency across all endpoints: {total_avg:.2f}ms")
        print("\nPer-endpoint averages:")
        for r in results:
            print(f"  {r['name']:30} {r['avg']:7.2f}ms (median: {r['median']:.2f}ms)")
    else:
        print("No successful measurements")
        sys.exit(1)


if __name__ == "__main__":
    main()
