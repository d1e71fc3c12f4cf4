"""
Rush Hour Simulation Script

Drives a running Carta server the way a busy evening does: staff fire
voice commands at the menu while tables send orders concurrently.
Run from project root: python scripts/simulate.py
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 30
TABLES = [str(n) for n in range(1, 16)]

COMMANDS = [
    "agotar Lomo Saltado",
    "habilitar lomo saltado",
    "baja 10% a los Fondos",
    "sube 2 soles a las bebidas",
    "baja 1 a los postres",
    "cambia Causa a 26",
    "pon el precio de chicha morada en 12",
    "estado del menú",
    "qué tal el clima",
]


# =============================================================================
# ORDERS
# =============================================================================

async def fetch_available_ids(client: httpx.AsyncClient) -> list[int]:
    response = await client.get(f"{API_BASE_URL}/api/public/menu")
    response.raise_for_status()
    return [item["id"] for section in response.json()["sections"] for item in section["items"]]


def generate_cart(item_ids: list[int]) -> dict[str, int]:
    """Random cart of 1-4 dishes, 1-3 units each."""
    chosen = random.sample(item_ids, k=min(len(item_ids), random.randint(1, 4)))
    return {str(item_id): random.randint(1, 3) for item_id in chosen}


async def send_order(client: httpx.AsyncClient, order_num: int, item_ids: list[int]) -> dict[str, Any]:
    payload = {"table_number": random.choice(TABLES), "items": generate_cart(item_ids)}
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/public/orders", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            order = response.json()["order"]
            return {"num": order_num, "success": True, "total": order["total"], "time": elapsed, "mode": "order"}
        # sold out mid-burst is an expected rejection
        return {"num": order_num, "success": False, "error": response.text[:100], "time": elapsed, "mode": "order"}
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {"num": order_num, "success": False, "error": str(e)[:100], "time": elapsed, "mode": "order"}


# =============================================================================
# COMMANDS
# =============================================================================

async def send_command(client: httpx.AsyncClient, num: int) -> dict[str, Any]:
    utterance = random.choice(COMMANDS)
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/commands", json={"utterance": utterance}, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)
        response.raise_for_status()
        return {
            "num": num,
            "success": True,
            "utterance": utterance,
            "kind": response.json()["kind"],
            "time": elapsed,
            "mode": "command",
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {"num": num, "success": False, "error": str(e)[:100], "time": elapsed, "mode": "command"}


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS, num_commands: int = 10) -> dict[str, Any]:
    print("=" * 70)
    print("RUSH HOUR SIMULATION")
    print("=" * 70)
    print(f"Orders: {num_orders}   Commands: {num_commands}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    async with httpx.AsyncClient() as client:
        item_ids = await fetch_available_ids(client)
        tasks = [send_order(client, i + 1, item_ids) for i in range(num_orders)]
        tasks += [send_command(client, i + 1) for i in range(num_commands)]
        random.shuffle(tasks)
        results = await asyncio.gather(*tasks)

        status = (await client.get(f"{API_BASE_URL}/api/menu/status")).json()
        orders = (await client.get(f"{API_BASE_URL}/api/orders")).json()

    total_time = round(time.time() - start_time, 2)
    orders_ok = [r for r in results if r["mode"] == "order" and r["success"]]
    orders_failed = [r for r in results if r["mode"] == "order" and not r["success"]]
    commands = [r for r in results if r["mode"] == "command"]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"Orders accepted: {len(orders_ok)}/{num_orders}")
    print(f"Orders rejected: {len(orders_failed)}/{num_orders}")
    print(f"Total time: {total_time}s")

    if orders_ok:
        avg_time = round(sum(r["time"] for r in orders_ok) / len(orders_ok), 3)
        revenue = sum(r["total"] for r in orders_ok)
        print(f"Average order response: {avg_time}s")
        print(f"Total revenue: S/ {revenue:.2f}")

    kinds: dict[str, int] = {}
    for r in commands:
        kinds[r.get("kind", "error")] = kinds.get(r.get("kind", "error"), 0) + 1
    print(f"Commands by outcome: {kinds}")

    if orders_failed:
        print("\nRejected orders (first 5):")
        for r in orders_failed[:5]:
            print(f"   #{r['num']}: {r.get('error')}")

    print(f"\nMenu: {status['message']}")
    print(f"Orders on the board: {len(orders)}")
    print("=" * 70)

    return {"orders_ok": len(orders_ok), "orders_failed": len(orders_failed), "total_time": total_time}


async def check_single_flows() -> bool:
    """Pre-flight: health, one command, one order."""
    async with httpx.AsyncClient() as client:
        print("\n1. Health Check...")
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"   Failed: {response.text}")
            return False
        data = response.json()
        print(f"   Status: {data['status']}  Storage: {data['storage']}")

        print("\n2. Status command...")
        response = await client.post(f"{API_BASE_URL}/api/commands", json={"utterance": "estado del menú"})
        print(f"   {response.json().get('message')}")

        print("\n3. Single order for table 1...")
        item_ids = await fetch_available_ids(client)
        result = await send_order(client, 1, item_ids)
        print(f"   {'Accepted' if result['success'] else 'Rejected'} in {result['time']}s")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rush Hour Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--commands", type=int, default=10, help="Number of voice commands")
    parser.add_argument("--skip-checks", action="store_true", help="Skip pre-flight checks")
    args = parser.parse_args()

    if not args.skip_checks:
        if not asyncio.run(check_single_flows()):
            print("\nPre-flight checks failed. Is the server running?")
            sys.exit(1)

    asyncio.run(run_simulation(num_orders=args.orders, num_commands=args.commands))
