"""
Tests for account management endpoints.

These tests verify:
  - Users can create, list, view, rename/retype and delete their accounts
  - New accounts start with zero balance, income and expense
  - Missing names and unknown account types are rejected (400)
  - An account with transactions cannot be deleted (409)
  - The balance endpoint reports cached and computed balances
"""

import uuid

import pytest


async def _create_account(client, name="Everyday", account_type="Current"):
    response = await client.post(
        "/accounts",
        json={"name": name, "account_type": account_type},
    )
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Account Creation
# ---------------------------------------------------------------------------

class TestAccountCreation:
    """Tests for POST /accounts."""

    async def test_create_savings_account(self, authenticated_client):
        """A new account echoes its name and type with zeroed aggregates."""
        response = await authenticated_client.post(
            "/accounts",
            json={"name": "Rainy day", "account_type": "Savings"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Rainy day"
        assert data["account_type"] == "Savings"
        assert data["balance_cents"] == 0
        assert data["income_cents"] == 0
        assert data["expense_cents"] == 0

    @pytest.mark.parametrize(
        "account_type", ["Savings", "Current", "Investment", "Credit Card", "Cash"]
    )
    async def test_all_account_types_accepted(self, authenticated_client, account_type):
        data = await _create_account(authenticated_client, "Any", account_type)
        assert data["account_type"] == account_type

    async def test_create_invalid_account_type(self, authenticated_client):
        """Unknown account types are rejected as validation errors (400)."""
        response = await authenticated_client.post(
            "/accounts",
            json={"name": "Broker", "account_type": "Checking"},
        )
        assert response.status_code == 400
        assert response.json()["error_type"] == "validation_error"

    async def test_create_missing_name(self, authenticated_client):
        response = await authenticated_client.post(
            "/accounts", json={"account_type": "Cash"}
        )
        assert response.status_code == 400

    async def test_create_blank_name(self, authenticated_client):
        """Whitespace-only names pass the length check but not the service."""
        response = await authenticated_client.post(
            "/accounts", json={"name": "   ", "account_type": "Cash"}
        )
        assert response.status_code == 400
        assert response.json()["error_type"] == "validation_error"

    async def test_create_requires_auth(self, client):
        response = await client.post(
            "/accounts", json={"name": "Wallet", "account_type": "Cash"}
        )
        assert response.status_code == 401


# ---------------------------------------------------------------------------
# Account Retrieval
# ---------------------------------------------------------------------------

class TestAccountRetrieval:
    """Tests for GET /accounts and GET /accounts/{id}."""

    async def test_list_accounts(self, authenticated_client):
        await _create_account(authenticated_client, "One", "Cash")
        await _create_account(authenticated_client, "Two", "Savings")

        response = await authenticated_client.get("/accounts")
        assert response.status_code == 200
        names = {a["name"] for a in response.json()}
        assert names == {"One", "Two"}

    async def test_list_empty(self, authenticated_client):
        response = await authenticated_client.get("/accounts")
        assert response.status_code == 200
        assert response.json() == []

    async def test_get_account(self, authenticated_client):
        created = await _create_account(authenticated_client)

        response = await authenticated_client.get(f"/accounts/{created['id']}")
        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    async def test_get_nonexistent_account(self, authenticated_client):
        response = await authenticated_client.get(f"/accounts/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error_type"] == "not_found"


# ---------------------------------------------------------------------------
# Account Update
# ---------------------------------------------------------------------------

class TestAccountUpdate:
    """Tests for PUT /accounts/{id}."""

    async def test_rename(self, authenticated_client):
        created = await _create_account(authenticated_client, "Old name", "Cash")

        response = await authenticated_client.put(
            f"/accounts/{created['id']}", json={"name": "New name"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "New name"
        assert data["account_type"] == "Cash"

    async def test_retype_keeps_balance(self, authenticated_client):
        created = await _create_account(authenticated_client, "Main", "Current")
        await authenticated_client.post(
            "/transactions",
            json={
                "account_id": created["id"],
                "type": "income",
                "amount_cents": 12_500,
                "category": "Salary",
            },
        )

        response = await authenticated_client.put(
            f"/accounts/{created['id']}", json={"account_type": "Investment"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["account_type"] == "Investment"
        assert data["balance_cents"] == 12_500
        assert data["income_cents"] == 12_500

    async def test_update_ignores_balance_fields(self, authenticated_client):
        """Aggregates are not client-editable."""
        created = await _create_account(authenticated_client)

        response = await authenticated_client.put(
            f"/accounts/{created['id']}",
            json={"name": "Same", "balance_cents": 1_000_000},
        )
        assert response.status_code == 200
        assert response.json()["balance_cents"] == 0

    async def test_update_invalid_type(self, authenticated_client):
        created = await _create_account(authenticated_client)

        response = await authenticated_client.put(
            f"/accounts/{created['id']}", json={"account_type": "Crypto"}
        )
        assert response.status_code == 400

    async def test_update_nonexistent(self, authenticated_client):
        response = await authenticated_client.put(
            f"/accounts/{uuid.uuid4()}", json={"name": "Ghost"}
        )
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Account Deletion
# ---------------------------------------------------------------------------

class TestAccountDeletion:
    """Tests for DELETE /accounts/{id}."""

    async def test_delete_empty_account(self, authenticated_client):
        created = await _create_account(authenticated_client)

        response = await authenticated_client.delete(f"/accounts/{created['id']}")
        assert response.status_code == 200
        assert response.json()["detail"] == "Account deleted successfully"

        response = await authenticated_client.get(f"/accounts/{created['id']}")
        assert response.status_code == 404

    async def test_delete_with_transactions_conflicts(self, authenticated_client):
        """Deletion is refused while transactions reference the account."""
        created = await _create_account(authenticated_client)
        txn = await authenticated_client.post(
            "/transactions",
            json={
                "account_id": created["id"],
                "type": "expense",
                "amount_cents": 499,
                "category": "Food",
            },
        )
        txn_id = txn.json()["transaction"]["id"]

        response = await authenticated_client.delete(f"/accounts/{created['id']}")
        assert response.status_code == 409
        assert response.json()["error_type"] == "conflict"

        # The account and its transaction are untouched
        response = await authenticated_client.get(f"/accounts/{created['id']}")
        assert response.status_code == 200
        assert response.json()["expense_cents"] == 499

        # Once the transaction is gone, deletion succeeds
        await authenticated_client.delete(f"/transactions/{txn_id}")
        response = await authenticated_client.delete(f"/accounts/{created['id']}")
        assert response.status_code == 200

    async def test_delete_nonexistent(self, authenticated_client):
        response = await authenticated_client.delete(f"/accounts/{uuid.uuid4()}")
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Balance Check
# ---------------------------------------------------------------------------

class TestAccountBalance:
    """Tests for GET /accounts/{id}/balance."""

    async def test_new_account_balance_is_zero(self, authenticated_client):
        created = await _create_account(authenticated_client)

        response = await authenticated_client.get(f"/accounts/{created['id']}/balance")
        assert response.status_code == 200
        data = response.json()
        assert data["balance_cents"] == 0
        assert data["computed_balance_cents"] == 0
        assert data["match"] is True

    async def test_balance_matches_journal(self, authenticated_client):
        created = await _create_account(authenticated_client)
        for txn_type, amount in [("income", 10_000), ("expense", 2_550), ("expense", 450)]:
            await authenticated_client.post(
                "/transactions",
                json={
                    "account_id": created["id"],
                    "type": txn_type,
                    "amount_cents": amount,
                    "category": "Other",
                },
            )

        response = await authenticated_client.get(f"/accounts/{created['id']}/balance")
        data = response.json()
        assert data["balance_cents"] == 7_000
        assert data["income_cents"] == 10_000
        assert data["expense_cents"] == 3_000
        assert data["computed_balance_cents"] == 7_000
        assert data["match"] is True

    async def test_expense_can_overdraw(self, authenticated_client):
        """There is no overdraft check; balances may go negative."""
        created = await _create_account(authenticated_client, "Card", "Credit Card")
        response = await authenticated_client.post(
            "/transactions",
            json={
                "account_id": created["id"],
                "type": "expense",
                "amount_cents": 3_000,
                "category": "Shopping",
            },
        )
        assert response.status_code == 201
        assert response.json()["updated_balance_cents"] == -3_000
