#!/usr/bin/env python3
"""
Demo seed script — populates a running server with sample data for demos.

!! NOT FOR PRODUCTION !!
This script creates users with known passwords and fake income/expense
history. It is intended ONLY for local demos and frontend development.
Everything goes through the public HTTP API, so the ledger stays
consistent exactly as it would for real clients.

Usage:
    # With the API server running on localhost:8000:
    python demo/seed.py

    # Delete the local database (restart the server to recreate it):
    python demo/seed.py --reset

    # Custom server URL:
    python demo/seed.py --base-url http://localhost:9000

Login credentials after seeding:
    ┌──────────────────────────────┬───────────────────┐
    │ Email                        │ Password          │
    ├──────────────────────────────┼───────────────────┤
    │ alice.chen@example.com       │ AliceDemo123!     │
    │ bob.martinez@example.com     │ BobDemo123!       │
    │ carol.nguyen@example.com     │ CarolDemo123!     │
    └──────────────────────────────┴───────────────────┘
"""

import argparse
import asyncio
import os
import random
import sys
from datetime import datetime, timedelta, timezone

import httpx

# ---------------------------------------------------------------------------
# Demo users
# ---------------------------------------------------------------------------

DEMO_USERS = [
    {
        "name": "Alice Chen",
        "email": "alice.chen@example.com",
        "password": "AliceDemo123!",
        "accounts": [
            {"name": "Everyday", "account_type": "Current", "opening_cents": 850_00},
            {"name": "Rainy day", "account_type": "Savings", "opening_cents": 5_000_00},
        ],
    },
    {
        "name": "Bob Martinez",
        "email": "bob.martinez@example.com",
        "password": "BobDemo123!",
        "accounts": [
            {"name": "Wallet", "account_type": "Cash", "opening_cents": 120_00},
            {"name": "Visa", "account_type": "Credit Card", "opening_cents": 0},
        ],
    },
    {
        "name": "Carol Nguyen",
        "email": "carol.nguyen@example.com",
        "password": "CarolDemo123!",
        "accounts": [
            {"name": "Main", "account_type": "Current", "opening_cents": 3_200_00},
            {"name": "Brokerage", "account_type": "Investment", "opening_cents": 12_000_00},
        ],
    },
]

EXPENSE_DESCRIPTIONS = {
    "Food": ["Grocery store", "Coffee shop", "Restaurant"],
    "Transport": ["Gas station", "Parking", "Train ticket"],
    "Utilities": ["Electric bill", "Internet bill", "Phone bill"],
    "Shopping": ["Clothing store", "Hardware store", "Bookstore"],
    "Entertainment": ["Movie tickets", "Concert", "Streaming subscription"],
    "Healthcare": ["Pharmacy"],
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def log(msg: str) -> None:
    print(f"  {msg}")


def cents_to_dollars(cents: int) -> str:
    return f"${cents / 100:,.2f}"


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def signup(client: httpx.AsyncClient, user: dict) -> str:
    """Sign up a user, return JWT token."""
    resp = await client.post("/auth/signup", json={
        "name": user["name"],
        "email": user["email"],
        "password": user["password"],
    })
    resp.raise_for_status()
    return resp.json()["token"]


async def create_account(client: httpx.AsyncClient, token: str, name: str,
                         account_type: str) -> str:
    resp = await client.post(
        "/accounts",
        json={"name": name, "account_type": account_type},
        headers=auth_header(token),
    )
    resp.raise_for_status()
    return resp.json()["id"]


async def record(client: httpx.AsyncClient, token: str, account_id: str,
                 txn_type: str, amount_cents: int, category: str,
                 description: str, date: datetime) -> dict:
    resp = await client.post(
        "/transactions",
        json={
            "account_id": account_id,
            "type": txn_type,
            "amount_cents": amount_cents,
            "category": category,
            "description": description,
            "date": date.isoformat(),
        },
        headers=auth_header(token),
    )
    resp.raise_for_status()
    return resp.json()


async def get_balance(client: httpx.AsyncClient, token: str, account_id: str) -> int:
    resp = await client.get(
        f"/accounts/{account_id}/balance",
        headers=auth_header(token),
    )
    resp.raise_for_status()
    return resp.json()["balance_cents"]


# ---------------------------------------------------------------------------
# Seed logic
# ---------------------------------------------------------------------------

def history_for(account_type: str, months: int, now: datetime,
                rng: random.Random) -> list[tuple[str, int, str, str, datetime]]:
    """Generate (type, amount_cents, category, description, date) tuples.

    Current and Cash accounts get a twice-monthly salary and 8-15 purchases
    a month; Credit Card accounts only purchases; Savings and Investment
    accounts a monthly deposit plus interest.
    """
    entries = []
    for month in range(months):
        base = now - timedelta(days=30 * (month + 1))

        def day(offset_max: int = 28) -> datetime:
            return base + timedelta(days=rng.randint(0, offset_max), hours=rng.randint(8, 20))

        if account_type in ("Savings", "Investment"):
            entries.append(("income", rng.randint(200_00, 800_00), "Investment",
                            "Monthly deposit", day()))
            entries.append(("income", rng.randint(1_00, 40_00), "Interest",
                            "Interest", day()))
            continue

        if account_type in ("Current", "Cash"):
            for _ in range(2):
                entries.append(("income", rng.randint(1_800_00, 3_200_00), "Salary",
                                "Payroll deposit", day()))

        for _ in range(rng.randint(8, 15)):
            category = rng.choice(list(EXPENSE_DESCRIPTIONS))
            entries.append(("expense", rng.randint(3_00, 120_00), category,
                            rng.choice(EXPENSE_DESCRIPTIONS[category]), day()))
    return entries


async def seed_user(client: httpx.AsyncClient, user: dict, months: int = 2,
                    rng: random.Random | None = None) -> list[dict]:
    """Sign up one demo user and give each of their accounts some history.

    Returns one entry per account with the server's ending balance and
    the balance expected from the generated history. They must match.
    """
    rng = rng or random.Random()
    now = datetime.now(timezone.utc)
    token = await signup(client, user)

    results = []
    for acct in user["accounts"]:
        account_id = await create_account(client, token, acct["name"], acct["account_type"])
        expected = 0

        if acct["opening_cents"]:
            opened = now - timedelta(days=30 * months + 5)
            await record(client, token, account_id, "income", acct["opening_cents"],
                         "Other", "Opening balance", opened)
            expected += acct["opening_cents"]

        for txn_type, amount, category, description, date in history_for(
            acct["account_type"], months, now, rng
        ):
            await record(client, token, account_id, txn_type, amount, category,
                         description, date)
            expected += amount if txn_type == "income" else -amount

        results.append({
            "account_id": account_id,
            "name": acct["name"],
            "balance_cents": await get_balance(client, token, account_id),
            "expected_cents": expected,
        })
    return results


async def seed(base_url: str, months: int = 2) -> None:
    print("\n========================================")
    print("  DEMO SEED — NOT FOR PRODUCTION")
    print("========================================\n")

    async with httpx.AsyncClient(base_url=base_url, timeout=30.0) as client:
        try:
            health = await client.get("/health")
            health.raise_for_status()
        except (httpx.ConnectError, httpx.HTTPStatusError):
            print(f"  ERROR: Cannot connect to {base_url}")
            print("  Start the server first: uvicorn expense_api.main:app --reload\n")
            sys.exit(1)

        for user in DEMO_USERS:
            print(f"Creating {user['name']}...")
            for acct in await seed_user(client, user, months=months):
                status = "ok" if acct["balance_cents"] == acct["expected_cents"] else "MISMATCH"
                log(f"{acct['name']}: {cents_to_dollars(acct['balance_cents'])} ({status})")

    print("\n========================================")
    print("  SEED COMPLETE — Login Credentials")
    print("========================================")
    print(f"\n  {'Email':<30s} {'Password'}")
    print(f"  {'─' * 30} {'─' * 20}")
    for user in DEMO_USERS:
        print(f"  {user['email']:<30s} {user['password']}")
    print()


def reset_database() -> None:
    """Delete the SQLite database file so the server recreates it on restart."""
    db_path = os.path.join(os.path.dirname(__file__), "..", "data", "expenses.db")
    db_path = os.path.normpath(db_path)

    if os.path.exists(db_path):
        os.remove(db_path)
        print(f"\n  Deleted {db_path}")
        print("  Restart the server to recreate empty tables.\n")
    else:
        print(f"\n  No database found at {db_path}\n")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Demo seed script — NOT FOR PRODUCTION",
        epilog="Creates sample users, accounts, and income/expense history.",
    )
    parser.add_argument(
        "--base-url", default="http://localhost:8000",
        help="Base URL of the running API (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--months", type=int, default=2,
        help="Months of history per account (default: 2)",
    )
    parser.add_argument(
        "--reset", action="store_true",
        help="Delete the database file and exit (restart server to recreate)",
    )
    args = parser.parse_args()

    if args.reset:
        reset_database()
        return

    await seed(args.base_url, months=args.months)


if __name__ == "__main__":
    asyncio.run(main())
