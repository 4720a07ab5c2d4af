# ------------------------------------------------------------------------
# File: test_routes_admin.py
# Location: tests/test_routes_admin.py
# Description:
#     Authenticated API: login, templates, users, contract issuing and the
#     dashboard statistics.
# ------------------------------------------------------------------------

import re

from kontrak.core.rate_limit import FixedWindowRateLimiter
from kontrak.db.models import ContractStatus


def test_login_with_email_or_username(client):
    by_email = client.post("/api/auth/login", json={"email": "ADMIN@tradestation.com", "password": "admin123"})
    assert by_email.status_code == 200
    assert by_email.get_json()["user"]["role"] == "admin"
    assert "password_hash" not in by_email.get_json()["user"]

    by_username = client.post("/api/auth/login", json={"email": "hermanzal", "password": "trader123"})
    assert by_username.status_code == 200
    assert by_username.get_json()["user"]["tradingAccount"] == "TRD001"


def test_login_failures(client):
    assert client.post("/api/auth/login", json={"email": "admin"}).status_code == 400
    response = client.post("/api/auth/login", json={"email": "admin", "password": "wrong"})
    assert response.status_code == 401
    assert response.get_json() == {"error": "Invalid credentials"}


def test_me(client, trader_headers):
    response = client.get("/api/auth/me", headers=trader_headers)
    assert response.status_code == 200
    assert response.get_json()["user"]["email"] == "hermanzal@trader.com"


def test_missing_and_invalid_tokens(client):
    assert client.get("/api/auth/me").get_json() == {"error": "Access token required"}
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 403


def test_admin_routes_reject_traders(client, trader_headers):
    response = client.get("/api/templates", headers=trader_headers)
    assert response.status_code == 403
    assert response.get_json() == {"error": "Admin access required"}


def test_create_template_derives_variables(client, admin_headers):
    response = client.post("/api/templates", headers=admin_headers, json={
        "name": "  Perjanjian Sederhana ",
        "content": "# Judul\n{{USER_NAME}} membayar {{AMOUNT}} dengan {{METODE}} ({{USER_NAME}})",
    })
    assert response.status_code == 201
    data = response.get_json()["data"]
    assert data["name"] == "Perjanjian Sederhana"
    assert data["category"] == "general"
    assert data["variables"] == ["USER_NAME", "AMOUNT", "METODE"]

    listing = client.get("/api/templates", headers=admin_headers).get_json()["data"]
    assert {template["name"] for template in listing} >= {"Perjanjian Sederhana"}


def test_create_template_requires_name_and_content(client, admin_headers):
    response = client.post("/api/templates", headers=admin_headers, json={"name": "x"})
    assert response.status_code == 400


def test_create_user(client, admin_headers):
    response = client.post("/api/users", headers=admin_headers, json={
        "name": "Siti Rahma", "email": "Siti@Example.com", "phone": "+62811",
    })
    assert response.status_code == 201
    body = response.get_json()
    assert body["data"]["email"] == "siti@example.com"
    assert re.fullmatch(r"TRD\d{6}", body["data"]["trading_account"])
    assert body["defaultPassword"] == "trader123"

    login = client.post("/api/auth/login", json={"email": "siti@example.com", "password": "trader123"})
    assert login.status_code == 200

    duplicate = client.post("/api/users", headers=admin_headers, json={
        "name": "Siti", "email": "siti@example.com", "phone": "1",
    })
    assert duplicate.status_code == 400
    assert duplicate.get_json() == {"error": "Email already exists"}


def test_create_contract_and_generate_link(client, admin_headers, ids):
    response = client.post("/api/contracts", headers=admin_headers, json={
        "title": "Kontrak Konsultasi",
        "templateId": str(ids["template"]),
        "userId": str(ids["trader"]),
        "amount": "75000000",
        "variables": {"PAYMENT_TERMS": 7},
    })
    assert response.status_code == 201, response.get_json()
    body = response.get_json()
    contract = body["data"]
    assert contract["status"] == ContractStatus.draft.value
    assert re.fullmatch(r"TSC\d{12}", contract["number"])
    assert contract["variables"] == {"PAYMENT_TERMS": "7"}
    assert body["accessLink"] == f"https://kontrak.test/?token={contract['access_token']}"

    link = client.post(f"/api/contracts/{contract['id']}/generate-link", headers=admin_headers)
    assert link.status_code == 200
    assert link.get_json()["token"] == contract["access_token"]

    view = client.get(f"/api/contracts/access/{contract['access_token']}").get_json()["data"]
    assert view["status"] == "sent"
    assert view["sent_at"] is not None
    assert "Rp75.000.000" in view["content"]


def test_create_contract_validation(client, admin_headers, ids):
    base = {"title": "K", "templateId": str(ids["template"]), "userId": str(ids["trader"]), "amount": 1}

    assert client.post("/api/contracts", headers=admin_headers, json={"title": "K"}).status_code == 400
    assert client.post("/api/contracts", headers=admin_headers,
                       json={**base, "userId": "nope"}).status_code == 400
    assert client.post("/api/contracts", headers=admin_headers,
                       json={**base, "amount": -5}).status_code == 400
    assert client.post("/api/contracts", headers=admin_headers,
                       json={**base, "userId": "00000000-0000-0000-0000-000000000000"}).status_code == 404


def test_create_contract_send_immediately(client, admin_headers, ids):
    response = client.post("/api/contracts", headers=admin_headers, json={
        "title": "K", "templateId": str(ids["template"]), "userId": str(ids["trader"]),
        "amount": 0, "sendImmediately": True, "expiryDate": "2999-01-01T00:00:00Z",
    })
    contract = response.get_json()["data"]
    assert contract["status"] == "sent"
    assert contract["expiry_date"].startswith("2999-01-01")


def test_contract_listing_is_scoped(client, admin_headers, trader_headers, make_contract):
    make_contract()
    make_contract()
    admin_list = client.get("/api/contracts", headers=admin_headers).get_json()["data"]
    trader_list = client.get("/api/contracts", headers=trader_headers).get_json()["data"]

    assert len(admin_list) == 2
    assert len(trader_list) == 2
    assert trader_list[0]["user_name"] == "Herman Zaldivar"
    assert trader_list[0]["template_name"].startswith("Perjanjian Layanan")


def test_dashboard_stats(client, admin_headers, trader_headers, make_contract, signature_data_uri):
    make_contract(status=ContractStatus.draft, amount=1000)
    make_contract(status=ContractStatus.sent, amount=2000)
    signed = make_contract(status=ContractStatus.sent, amount=3000)
    client.post(f"/api/contracts/access/{signed['token']}/sign", json={"signatureData": signature_data_uri})

    admin_stats = client.get("/api/stats/dashboard", headers=admin_headers).get_json()["data"]
    assert admin_stats == {
        "totalContracts": 3, "pendingSignatures": 1, "completedContracts": 1, "totalValue": 6000,
    }

    trader_stats = client.get("/api/stats/dashboard", headers=trader_headers).get_json()["data"]
    assert trader_stats["totalContracts"] == 3
    assert trader_stats["totalValue"] == 0


def test_health_and_unknown_endpoint(client):
    health = client.get("/api/health")
    assert health.status_code == 200
    assert health.get_json()["database"] == "connected"

    missing = client.get("/api/nothing-here")
    assert missing.status_code == 404
    assert missing.get_json() == {"error": "Endpoint not found"}


def test_rate_limit_ignores_client_supplied_forwarded_hops(app, client):
    app.extensions["rate_limiter"] = FixedWindowRateLimiter(max_requests=3, window_seconds=60)
    codes = [
        client.get("/api/health", headers={"X-Forwarded-For": f"10.0.0.{i}, 203.0.113.7"}).status_code
        for i in range(6)
    ]

    assert codes == [200, 200, 200, 429, 429, 429]
    assert len(app.extensions["rate_limiter"]) == 1


def test_rate_limit_windows_are_per_proxy_reported_address(app, client):
    app.extensions["rate_limiter"] = FixedWindowRateLimiter(max_requests=1, window_seconds=60)

    assert client.get("/api/health", headers={"X-Forwarded-For": "203.0.113.7"}).status_code == 200
    limited = client.get("/api/health", headers={"X-Forwarded-For": "203.0.113.7"})
    assert limited.status_code == 429
    assert limited.get_json() == {"error": "Too many requests"}
    assert client.get("/api/health", headers={"X-Forwarded-For": "203.0.113.8"}).status_code == 200
