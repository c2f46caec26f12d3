from datetime import date

import pytest

from betdesk.extensions import db
from betdesk.models import AppRole, BetResult, Profile, User
from betdesk.policy import roles_for


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestGating:
    def test_anonymous_gets_json_401(self, client):
        resp = client.get("/bets")
        assert resp.status_code == 401
        assert resp.get_json()["ok"] is False

    @pytest.mark.parametrize(
        "path",
        ["/finance/dre", "/finance/cash-flow", "/finance/transactions", "/finance/banks",
         "/analytics", "/operators", "/bookmakers", "/software-tools"],
    )
    def test_operator_is_redirected_to_dashboard(self, client, operator, login, path):
        login(operator)
        resp = client.get(path)
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/")

    def test_operator_post_to_admin_action_is_redirected(self, client, operator, login):
        login(operator)
        resp = client.post("/users/new", json={"email": "x@y.com"})
        assert resp.status_code == 302
        assert User.query.filter_by(email="x@y.com").first() is None

    def test_admin_reaches_finance(self, client, admin, login):
        login(admin)
        resp = client.get("/finance/dre?month=2025-03")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["month"] == "2025-03"
        assert body["dre"]["net_profit"] == 0.0
        assert body["dre"]["net_profit_fmt"] == "R$ 0,00"

    def test_menu_is_role_filtered(self, client, admin, operator, login):
        login(operator)
        labels = [i["label"] for i in client.get("/api/menu").get_json()["menu"]]
        assert "Apostas" in labels and "Financeiro" not in labels and "Operadores" not in labels

        client.post("/auth/logout")
        login(admin)
        labels = [i["label"] for i in client.get("/api/menu").get_json()["menu"]]
        assert "Financeiro" in labels and "Operadores" in labels


class TestScreens:
    def test_bet_flow(self, client, operator, login, make_account):
        acc = make_account(operator)
        login(operator)
        resp = client.post("/bets", json={
            "date": date.today().isoformat(), "account_id": acc.id,
            "stake": "100", "odds": "2.0", "result": "green", "software_tool": "Capper",
        })
        assert resp.status_code == 201
        assert resp.get_json()["bet"]["profit"] == 100.0

        client.post("/bets", json={
            "date": date.today().isoformat(), "account_id": acc.id,
            "stake": "50", "odds": "3.0", "result": "pendente",
        })
        listing = client.get("/bets").get_json()
        assert [b["result"] for b in listing["bets"]] == ["pendente", "green"]
        assert listing["summary"]["total_bets"] == 1

        dashboard = client.get("/").get_json()
        assert [s["label"] for s in dashboard["sections"]] == ["Geral", "Capper", "Outros"]
        assert dashboard["sections"][0]["total_profit"] == 100.0

    def test_summary_covers_bets_beyond_the_list_limit(self, app, client, operator, login, make_account, make_bet):
        app.config["BET_LIST_LIMIT"] = 2
        acc = make_account(operator)
        for _ in range(3):
            make_bet(acc, "10", "2.0", BetResult.green)
        login(operator)
        body = client.get("/bets").get_json()
        assert len(body["bets"]) == 2
        assert body["summary"]["total_bets"] == 3
        assert body["summary"]["total_profit"] == 30.0

    def test_validation_error_is_400(self, client, operator, login, make_account):
        acc = make_account(operator)
        login(operator)
        resp = client.post("/bets", json={"account_id": acc.id, "stake": "0", "odds": "2", "result": "red"})
        assert resp.status_code == 400
        assert resp.get_json() == {"ok": False, "error": "Stake deve ser maior que zero"}

    def test_deposit_screen(self, client, operator, login, make_account):
        acc = make_account(operator)
        login(operator)
        assert client.post("/deposits", json={"account_id": acc.id, "amount": "75"}).status_code == 201
        body = client.get("/deposits").get_json()
        assert body["total"] == 75.0
        assert body["total_fmt"] == "R$ 75,00"

    def test_admin_cannot_delete_self_from_operators_screen(self, client, admin, login):
        login(admin)
        resp = client.post(f"/operators/{admin.profile.id}/delete")
        assert resp.status_code == 403
        row = client.get("/operators").get_json()["operators"][0]
        assert row["can_delete"] is False

    def test_role_change_screen(self, client, admin, operator, login):
        login(admin)
        resp = client.post(f"/operators/{operator.profile.id}/role", json={"role": "admin"})
        assert resp.status_code == 200
        db.session.expire_all()
        assert roles_for(operator.profile.id) == {AppRole.admin}


class TestAuthRoutes:
    def test_bad_credentials(self, client, operator):
        resp = client.post("/auth/login", json={"email": operator.email, "password": "wrong-one"})
        assert resp.status_code == 401

    def test_register_and_session(self, client):
        resp = client.post("/auth/register", json={"email": "me@example.com", "password": "secret123", "name": "Eu"})
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["role"] == "operator" and body["is_admin"] is False

        session = client.get("/auth/session").get_json()
        assert session["profile"]["name"] == "Eu"

    def test_logout_revokes_bearer_token(self, client, operator, login):
        token = login(operator)
        assert client.get("/auth/session", headers=bearer(token)).status_code == 200
        client.post("/auth/logout", headers=bearer(token))
        assert client.get("/auth/session", headers=bearer(token)).status_code == 401
        assert client.post("/auth/token/refresh", headers=bearer(token)).status_code == 401


class TestPrivilegedFunctions:
    def test_create_user_auth_errors(self, client, operator, token_for):
        resp = client.post("/functions/create-user", json={})
        assert (resp.status_code, resp.get_json()) == (401, {"error": "Missing authorization header"})

        resp = client.post("/functions/create-user", json={}, headers=bearer("forged"))
        assert (resp.status_code, resp.get_json()) == (401, {"error": "Unauthorized"})

        resp = client.post("/functions/create-user", json={}, headers=bearer(token_for(operator)))
        assert (resp.status_code, resp.get_json()) == (403, {"error": "Only admins can create users"})

    def test_identity_without_profile(self, client, token_for):
        user = User(email="ghost@example.com")
        user.set_password("secret123")
        db.session.add(user)
        db.session.commit()
        resp = client.post("/functions/create-user", json={}, headers=bearer(token_for(user)))
        assert (resp.status_code, resp.get_json()) == (403, {"error": "Profile not found"})

    def test_create_user(self, client, admin, token_for):
        headers = bearer(token_for(admin))
        resp = client.post("/functions/create-user", headers=headers, json={
            "email": "novo@example.com", "password": "secret123", "name": "Novo", "role": "admin",
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["user"]["email"] == "novo@example.com" and body["user"]["role"] == "admin"

        resp = client.post("/functions/create-user", headers=headers, json={
            "email": "x@example.com", "password": "secret123", "name": "X", "role": "owner",
        })
        assert (resp.status_code, resp.get_json()) == (400, {"error": "Invalid role. Must be 'admin' or 'operator'"})

        resp = client.post("/functions/create-user", headers=headers, json={"email": "x@example.com"})
        assert resp.get_json() == {"error": "Missing required fields: email, password, name, role"}

    def test_delete_user(self, client, admin, operator, token_for):
        headers = bearer(token_for(admin))
        profile_id = operator.profile.id

        resp = client.post("/functions/delete-user", headers=headers, json={})
        assert (resp.status_code, resp.get_json()) == (400, {"error": "Profile ID is required"})

        resp = client.post("/functions/delete-user", headers=headers, json={"profileId": admin.profile.id})
        assert (resp.status_code, resp.get_json()) == (400, {"error": "You cannot delete your own account"})

        resp = client.post("/functions/delete-user", headers=headers, json={"profileId": "missing"})
        assert (resp.status_code, resp.get_json()) == (404, {"error": "User not found"})

        resp = client.post("/functions/delete-user", headers=headers, json={"profileId": profile_id})
        assert resp.get_json() == {"success": True}
        db.session.expire_all()
        assert db.session.get(Profile, profile_id) is None

    def test_delete_user_requires_admin(self, client, admin, operator, token_for):
        resp = client.post("/functions/delete-user", json={"profileId": admin.profile.id},
                           headers=bearer(token_for(operator)))
        assert (resp.status_code, resp.get_json()) == (403, {"error": "Only admins can delete users"})
