#!/usr/bin/env python3
"""
Stockroom Quickstart — full widget lifecycle in one script.

Creates → lists → updates → deletes a widget, and shows the 404s for
a widget that no longer exists.
Run with: python examples/quickstart.py

Requires: pip install httpx
Server must be running: stockroom serve  (http://localhost:8080)

Tip: open a WebSocket to ws://localhost:8080/updates in another
terminal first to watch the CREATE/UPDATE/DELETE events arrive.
"""

import sys

import httpx

BASE = "http://localhost:8080"


def main():
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking server health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Server not reachable at {BASE}")
        print("Start it with:  stockroom serve")
        sys.exit(1)
    health = resp.json()
    print(f"  Database:  {'✓' if health['database'] == 'ok' else '✗'}")
    print(f"  Listeners: {health['listeners']}")

    # ── Create ────────────────────────────────────────────────────
    print("\n1. Creating widget...")
    resp = client.post("/widgets", json={"name": "widget1", "quantity": 12})
    assert resp.status_code == 201, f"Failed: {resp.text}"
    widget = resp.json()
    print(f"   Widget #{widget['id']}: {widget['name']} (qty {widget['quantity']})")

    # ── List ──────────────────────────────────────────────────────
    print("\n2. Listing widgets...")
    widgets = client.get("/widgets").json()
    for w in widgets:
        print(f"   #{w['id']}  {w['name']}  qty={w['quantity']}")

    # ── Update ────────────────────────────────────────────────────
    print("\n3. Updating widget...")
    resp = client.put("/widgets", json={"id": widget["id"], "name": "updated", "quantity": 46})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    updated = resp.json()
    print(f"   Widget #{updated['id']}: {updated['name']} (qty {updated['quantity']})")

    # ── Delete ────────────────────────────────────────────────────
    print("\n4. Deleting widget...")
    resp = client.delete(f"/widgets/{widget['id']}")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Deleted #{widget['id']}")

    # ── Gone ──────────────────────────────────────────────────────
    print("\n5. Checking it is gone...")
    path = f"/widgets/{widget['id']}"
    print(f"   GET    → {client.get(path).status_code}")
    print(f"   DELETE → {client.delete(path).status_code}")

    print("\nDone.")


if __name__ == "__main__":
    main()
