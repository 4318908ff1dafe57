"""
Checkout Load Simulation

Fires concurrent customers at a running API: each one registers, fills a
cart from the live catalog, places the order and reports the checkout
outcome to /api/order/verify (mostly paid, some abandoned).

A second mode hammers a single cart with concurrent increments and checks
that no update was lost.

Run from project root against a development server (mock payments):
    python scripts/simulate.py --orders 50
    python scripts/simulate.py --contention 100
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:4000"
TOTAL_ORDERS = 50
ABANDON_RATE = 0.2

FIRST_NAMES = ["John", "Jane", "Mike", "Sarah", "Tom", "Emma", "David", "Lisa", "Chris", "Amy"]
STREETS = ["Main St", "Broadway", "5th Avenue", "Park Ave", "Madison Ave", "Lexington Ave"]


def generate_customer() -> dict[str, str]:
    first = random.choice(FIRST_NAMES)
    return {
        "name": first,
        "email": f"{first.lower()}.{uuid.uuid4().hex[:8]}@sim.test",
        "password": "simulation-pass",
    }


def generate_address() -> dict[str, str]:
    return {
        "firstName": random.choice(FIRST_NAMES),
        "street": f"{random.randint(1, 999)} {random.choice(STREETS)}",
        "city": "New York",
        "zipcode": f"100{random.randint(10, 99)}",
        "country": "USA",
    }


async def fetch_menu(client: httpx.AsyncClient) -> list[dict]:
    response = await client.get(f"{API_BASE_URL}/api/food/list")
    response.raise_for_status()
    return response.json()["data"]


# =============================================================================
# CUSTOMER FLOW
# =============================================================================

async def run_customer(
    client: httpx.AsyncClient,
    order_num: int,
    menu: list[dict],
) -> dict[str, Any]:
    """Register, fill the cart, place the order and report the payment outcome."""
    start_time = time.time()
    stage = "register"

    try:
        response = await client.post(f"{API_BASE_URL}/api/user/register", json=generate_customer())
        response.raise_for_status()
        headers = {"token": response.json()["token"]}

        stage = "cart"
        for item in random.sample(menu, k=random.randint(1, min(3, len(menu)))):
            for _ in range(random.randint(1, 3)):
                response = await client.post(
                    f"{API_BASE_URL}/api/cart/add",
                    json={"itemId": item["id"]},
                    headers=headers,
                )
                response.raise_for_status()

        stage = "place"
        response = await client.post(
            f"{API_BASE_URL}/api/order/place",
            json={"address": generate_address()},
            headers=headers,
        )
        response.raise_for_status()
        placed = response.json()

        stage = "verify"
        paid = random.random() >= ABANDON_RATE
        response = await client.post(
            f"{API_BASE_URL}/api/order/verify",
            json={"orderId": placed["orderId"], "success": paid},
        )
        response.raise_for_status()

        return {
            "order_num": order_num,
            "success": True,
            "order_id": placed["orderId"],
            "total": placed["amount"] if paid else 0,
            "paid": paid,
            "time": round(time.time() - start_time, 3),
        }
    except httpx.HTTPStatusError as e:
        error = f"{stage}: {e.response.status_code} {e.response.text[:80]}"
    except httpx.HTTPError as e:
        error = f"{stage}: {e}"

    return {
        "order_num": order_num,
        "success": False,
        "error": error[:100],
        "time": round(time.time() - start_time, 3),
    }


async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    print("=" * 70)
    print("CHECKOUT SIMULATION - CONCURRENT CUSTOMERS")
    print("=" * 70)
    print(f"Total Orders: {num_orders}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient(timeout=30.0) as client:
        menu = await fetch_menu(client)
        if not menu:
            print("\nThe catalog is empty. Add food items before simulating orders.")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        results = await asyncio.gather(*[
            run_customer(client, i + 1, menu) for i in range(num_orders)
        ])

    total_time = round(time.time() - start_time, 2)
    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    paid = [r for r in successful if r["paid"]]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nCompleted Flows: {len(successful)}/{num_orders}")
    print(f"   Paid: {len(paid)}  Abandoned: {len(successful) - len(paid)}")
    print(f"Failed Flows: {len(failed)}/{num_orders}")
    print(f"Total Time: {total_time}s")

    if successful:
        times = [r["time"] for r in successful]
        print("\nPerformance Metrics:")
        print(f"   Average Flow: {round(sum(times) / len(times), 3)}s")
        print(f"   Fastest: {min(times)}s")
        print(f"   Slowest: {max(times)}s")
        print(f"   Total Revenue: ${sum(r['total'] for r in paid):.2f}")

    if failed:
        print("\nFailed Flow Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Customer #{f['order_num']}: {f['error']}")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


# =============================================================================
# CART CONTENTION
# =============================================================================

async def run_contention(increments: int) -> bool:
    """Add the same item to one cart concurrently and check the final count."""
    print("=" * 70)
    print(f"CART CONTENTION - {increments} concurrent increments on one cart")
    print("=" * 70)

    async with httpx.AsyncClient(timeout=30.0) as client:
        menu = await fetch_menu(client)
        if not menu:
            print("The catalog is empty. Add food items first.")
            return False
        item_id = menu[0]["id"]

        response = await client.post(f"{API_BASE_URL}/api/user/register", json=generate_customer())
        response.raise_for_status()
        headers = {"token": response.json()["token"]}

        responses = await asyncio.gather(*[
            client.post(f"{API_BASE_URL}/api/cart/add", json={"itemId": item_id}, headers=headers)
            for _ in range(increments)
        ])
        accepted = sum(1 for r in responses if r.status_code == 200)

        cart = await client.post(f"{API_BASE_URL}/api/cart/get", headers=headers)
        count = cart.json()["cartData"].get(item_id, 0)

    print(f"Accepted: {accepted}/{increments}")
    print(f"Final quantity: {count}")
    ok = count == accepted
    print("No lost updates" if ok else f"LOST UPDATES: {accepted - count}")
    return ok


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Checkout load simulation")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of customers")
    parser.add_argument("--contention", type=int, default=0, help="Run the cart contention check instead")
    parser.add_argument("--base-url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.base_url.rstrip("/")

    if args.contention:
        sys.exit(0 if asyncio.run(run_contention(args.contention)) else 1)

    asyncio.run(run_simulation(num_orders=args.orders))
