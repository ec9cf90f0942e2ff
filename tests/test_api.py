"""
API tests through FastAPI's TestClient.

The app runs with const_captcha=1, so every verification code is 000000.
"""

import pytest

PHONE = "+85291234567"


def create_brand(client, headers, name="Golden Dragon") -> dict:
    response = client.post(
        "/api/brands",
        json={"name": name, "en_name": name, "level_type": "PREMIUM"},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def create_restaurant(client, headers, brand_id, name="Central Store", **extra) -> dict:
    response = client.post(
        "/api/restaurants",
        json={
            **extra,
            "brand_id": brand_id,
            "name": name,
            "en_name": name,
            "address": "1 Queen's Road",
            "en_address": "1 Queen's Road",
            "region_code": "01",
            "contacts": "Lee",
            "contacts_way": "91234567",
            "cover": "https://cdn.example.com/cover.png",
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def create_restaurant_user(client, headers, brand_id, restaurant_id, phone="91234567"):
    return client.post(
        "/api/restaurant-users",
        json={
            "brand_id": brand_id,
            "restaurant_id": restaurant_id,
            "user_name": "Manager",
            "phone_area_code": "852",
            "phone": phone,
        },
        headers=headers,
    )


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "operational"
        assert body["database"] == "healthy"
        assert body["redis"] == "healthy"


class TestAuthentication:

    def test_missing_token(self, client):
        response = client.get("/api/brands")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "UNAUTHORIZED",
            "detail": "Missing session token",
        }

    def test_unknown_token(self, client):
        response = client.get("/api/brands", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    def test_wrong_password(self, client):
        response = client.post("/api/sys-users/auth", json={"username": "admin", "password": "bad"})

        assert response.status_code == 401
        assert response.json()["error"] == "UNAUTHORIZED"

    def test_login_stores_session(self, client, sync_redis):
        response = client.post("/api/sys-users/auth", json={"username": "admin", "password": "123456"})

        token = response.json()["token"]
        data = sync_redis.hgetall(f"USER_SESSION:ADMIN:{token}")
        assert data["account"] == "admin"
        assert sync_redis.ttl(f"USER_SESSION:ADMIN:{token}") > 0

    def test_me(self, client, auth_headers):
        response = client.get("/api/sys-users/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["username"] == "admin"
        assert "password" not in response.json()

    def test_logout(self, client, auth_headers):
        assert client.post("/api/sys-users/logout", headers=auth_headers).status_code == 200

        assert client.get("/api/sys-users/me", headers=auth_headers).status_code == 401


class TestSysUsers:

    def test_create_and_login(self, client, auth_headers):
        response = client.post(
            "/api/sys-users",
            json={
                "name": "Operator",
                "username": "operator",
                "password": "pa55word",
                "confirm_password": "pa55word",
                "mail": "op@example.com",
            },
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text

        login = client.post("/api/sys-users/auth", json={"username": "operator", "password": "pa55word"})
        assert login.status_code == 200

    def test_duplicate_username(self, client, auth_headers):
        response = client.post(
            "/api/sys-users",
            json={"name": "Again", "username": "admin", "password": "x", "confirm_password": "x"},
            headers=auth_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"

    def test_passwords_must_match(self, client, auth_headers):
        response = client.post(
            "/api/sys-users",
            json={"name": "A", "username": "a", "password": "x", "confirm_password": "y"},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_cannot_delete_self(self, client, auth_headers):
        me = client.get("/api/sys-users/me", headers=auth_headers).json()

        response = client.delete(f"/api/sys-users/{me['id']}", headers=auth_headers)

        assert response.status_code == 412

    def test_deleted_user_cannot_login(self, client, auth_headers):
        created = client.post(
            "/api/sys-users",
            json={"name": "Temp", "username": "temp", "password": "x", "confirm_password": "x"},
            headers=auth_headers,
        ).json()

        deleted = client.delete(f"/api/sys-users/{created['id']}", headers=auth_headers)

        assert deleted.status_code == 200
        assert deleted.json()["delete_at"] > 0
        assert client.get(f"/api/sys-users/{created['id']}", headers=auth_headers).status_code == 404
        login = client.post("/api/sys-users/auth", json={"username": "temp", "password": "x"})
        assert login.status_code == 401

    def test_query(self, client, auth_headers):
        response = client.get("/api/sys-users", params={"username": "adm"}, headers=auth_headers)

        body = response.json()
        assert body["total_count"] == 1
        assert body["page_count"] == 1
        assert body["record"][0]["username"] == "admin"


class TestBindPhone:

    def test_bind_phone_with_code(self, client, auth_headers, sync_redis):
        sent = client.post("/api/sys-users/me/phone/captcha", json={"phone": PHONE}, headers=auth_headers)
        assert sent.status_code == 200, sent.text
        assert sync_redis.get(f"CAPTCHA:ADMIN:BIND_PHONE:SMS:{PHONE}") == "000000"

        bound = client.post("/api/sys-users/me/phone", json={"phone": PHONE, "code": "000000"}, headers=auth_headers)

        assert bound.status_code == 200
        assert bound.json()["phone"] == PHONE

    def test_code_is_single_use(self, client, auth_headers):
        client.post("/api/sys-users/me/phone/captcha", json={"phone": PHONE}, headers=auth_headers)
        payload = {"phone": PHONE, "code": "000000"}

        assert client.post("/api/sys-users/me/phone", json=payload, headers=auth_headers).status_code == 200
        second = client.post("/api/sys-users/me/phone", json=payload, headers=auth_headers)

        assert second.status_code == 412
        assert second.json()["error"] == "PARAMETER_ERROR"

    def test_without_code(self, client, auth_headers):
        response = client.post("/api/sys-users/me/phone", json={"phone": PHONE, "code": "000000"}, headers=auth_headers)

        assert response.status_code == 412

    def test_taken_phone_keeps_code(self, client, auth_headers, sync_redis):
        other = client.post(
            "/api/sys-users",
            json={"name": "Other", "username": "other", "password": "x", "confirm_password": "x", "phone": PHONE},
            headers=auth_headers,
        )
        assert other.status_code == 201, other.text
        key = f"CAPTCHA:ADMIN:BIND_PHONE:SMS:{PHONE}"
        sync_redis.set(key, "000000", ex=600)

        response = client.post("/api/sys-users/me/phone", json={"phone": PHONE, "code": "000000"}, headers=auth_headers)

        assert response.status_code == 409
        assert sync_redis.get(key) == "000000"


class TestBrandsAndRestaurants:

    def test_brand_crud(self, client, auth_headers):
        brand = create_brand(client, auth_headers)

        fetched = client.get(f"/api/brands/{brand['id']}", headers=auth_headers)
        assert fetched.json()["name"] == "Golden Dragon"

        updated = client.put(
            f"/api/brands/{brand['id']}",
            json={"name": "Golden Dragon", "en_name": "GD", "level_type": "BASIC"},
            headers=auth_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["level_type"] == "BASIC"

        page = client.get("/api/brands", params={"name": "Dragon"}, headers=auth_headers).json()
        assert page["total_count"] == 1

    def test_duplicate_brand_name(self, client, auth_headers):
        create_brand(client, auth_headers, "Twin")

        response = client.post("/api/brands", json={"name": "Twin", "en_name": "Twin"}, headers=auth_headers)

        assert response.status_code == 409

    def test_unknown_brand(self, client, auth_headers):
        response = client.get("/api/brands/999", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "DATA_NOT_EXIST"

    def test_brand_delete_blocked_by_restaurants(self, client, auth_headers):
        brand = create_brand(client, auth_headers)
        restaurant = create_restaurant(client, auth_headers, brand["id"])

        blocked = client.delete(f"/api/brands/{brand['id']}", headers=auth_headers)
        assert blocked.status_code == 412

        assert client.delete(f"/api/restaurants/{restaurant['id']}", headers=auth_headers).status_code == 200
        assert client.delete(f"/api/brands/{brand['id']}", headers=auth_headers).status_code == 200
        assert client.get(f"/api/brands/{brand['id']}", headers=auth_headers).status_code == 404

    def test_restaurant_generated_codes(self, client, auth_headers):
        brand = create_brand(client, auth_headers)

        restaurant = create_restaurant(client, auth_headers, brand["id"])

        assert len(restaurant["code"]) == 16
        assert restaurant["index_code"].startswith("SX")
        assert restaurant["lat"]

    def test_restaurant_query_includes_brand_name(self, client, auth_headers):
        brand = create_brand(client, auth_headers)
        create_restaurant(client, auth_headers, brand["id"])

        page = client.get("/api/restaurants", params={"brand_id": brand["id"]}, headers=auth_headers).json()

        assert page["total_count"] == 1
        assert page["record"][0]["brand_name"] == "Golden Dragon"

    def test_restaurant_delete_blocked_by_users(self, client, auth_headers):
        brand = create_brand(client, auth_headers)
        restaurant = create_restaurant(client, auth_headers, brand["id"])
        create_restaurant_user(client, auth_headers, brand["id"], restaurant["id"])

        response = client.delete(f"/api/restaurants/{restaurant['id']}", headers=auth_headers)

        assert response.status_code == 412


class TestRestaurantUsers:

    @pytest.fixture
    def restaurant(self, client, auth_headers):
        brand = create_brand(client, auth_headers)
        return create_restaurant(client, auth_headers, brand["id"])

    def test_create_defaults(self, client, auth_headers, restaurant):
        response = create_restaurant_user(client, auth_headers, restaurant["brand_id"], restaurant["id"])

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["account"] == "852-91234567"
        assert body["is_brand_main"] is True
        assert "password" not in body

    def test_duplicate_phone(self, client, auth_headers, restaurant):
        create_restaurant_user(client, auth_headers, restaurant["brand_id"], restaurant["id"])

        response = create_restaurant_user(client, auth_headers, restaurant["brand_id"], restaurant["id"])

        assert response.status_code == 409

    def test_phone_reusable_after_delete(self, client, auth_headers, restaurant):
        user = create_restaurant_user(client, auth_headers, restaurant["brand_id"], restaurant["id"]).json()
        client.delete(f"/api/restaurant-users/{user['id']}", headers=auth_headers)

        response = create_restaurant_user(client, auth_headers, restaurant["brand_id"], restaurant["id"])

        assert response.status_code == 201

    def test_update_keeps_brand_main(self, client, auth_headers, restaurant):
        user = create_restaurant_user(client, auth_headers, restaurant["brand_id"], restaurant["id"]).json()

        response = client.put(
            f"/api/restaurant-users/{user['id']}",
            json={
                "brand_id": restaurant["brand_id"],
                "restaurant_id": restaurant["id"],
                "user_name": "Renamed",
                "phone_area_code": "852",
                "phone": "91234567",
                "is_enabled": False,
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["user_name"] == "Renamed"
        assert response.json()["is_brand_main"] is True


class TestGlobalConfig:

    def test_not_initialized(self, client, auth_headers):
        assert client.get("/api/global-config", headers=auth_headers).status_code == 404

    def test_update_and_read(self, client, auth_headers):
        saved = client.put(
            "/api/global-config",
            json={"push_fee_sms": 1.5, "bonus_points_range_end": 1000},
            headers=auth_headers,
        )
        assert saved.status_code == 200

        body = client.get("/api/global-config", headers=auth_headers).json()
        assert body["push_fee_sms"] == 1.5
        assert body["bonus_points_range_end"] == 1000
        assert body["push_fee_app"] == 0


class TestSmsPushRecords:

    def test_empty_page(self, client, auth_headers):
        body = client.get("/api/sms-push-records", headers=auth_headers).json()

        assert body == {"page": 1, "page_size": 30, "page_count": 0, "total_count": 0, "record": []}


class TestBrandWallets:

    def test_recharge_and_deduct(self, client, auth_headers):
        brand = create_brand(client, auth_headers)
        base = f"/api/brand-wallets/{brand['id']}"

        assert client.get(f"{base}/balance", headers=auth_headers).json()["balance"] == 0

        recharge = client.post(
            f"{base}/recharge",
            json={"amount": 100.5, "remark": "充值", "remark_en": "Top up"},
            headers=auth_headers,
        )
        assert recharge.status_code == 201, recharge.text
        assert recharge.json()["balance"] == 100.5

        deduct = client.post(
            f"{base}/deduct",
            json={"amount": 0.5, "remark": "扣除", "remark_en": "Deduct"},
            headers=auth_headers,
        )
        assert deduct.json()["balance"] == 100

        lines = client.get(f"{base}/transactions", headers=auth_headers).json()
        assert lines["total_count"] == 2
        assert {line["amount"] for line in lines["record"]} == {100.5, 0.5}

    def test_deduct_more_than_balance(self, client, auth_headers):
        brand = create_brand(client, auth_headers)

        response = client.post(
            f"/api/brand-wallets/{brand['id']}/deduct",
            json={"amount": 1, "remark": "x", "remark_en": "x"},
            headers=auth_headers,
        )

        assert response.status_code == 412
        assert client.get(f"/api/brand-wallets/{brand['id']}/balance", headers=auth_headers).json()["balance"] == 0

    def test_balances_page(self, client, auth_headers):
        brand = create_brand(client, auth_headers)
        client.post(
            f"/api/brand-wallets/{brand['id']}/recharge",
            json={"amount": 10, "remark": "x", "remark_en": "x"},
            headers=auth_headers,
        )

        page = client.get("/api/brand-wallets", headers=auth_headers).json()

        assert page["record"] == [{"brand_id": brand["id"], "balance": 10}]


class TestCuisineTypes:

    def test_crud(self, client, auth_headers):
        created = client.post(
            "/api/cuisine-types",
            json={"cuisine_type_name": "粵菜", "cuisine_type_name_en": "Cantonese"},
            headers=auth_headers,
        )
        assert created.status_code == 201, created.text
        cuisine_id = created.json()["id"]

        updated = client.put(
            f"/api/cuisine-types/{cuisine_id}",
            json={"cuisine_type_name": "粵菜", "cuisine_type_name_en": "Cantonese cuisine"},
            headers=auth_headers,
        )
        assert updated.json()["cuisine_type_name_en"] == "Cantonese cuisine"

        page = client.get("/api/cuisine-types", params={"cuisine_type_name_en": "cuisine"}, headers=auth_headers)
        assert page.json()["total_count"] == 1
        assert [c["id"] for c in client.get("/api/cuisine-types/all", headers=auth_headers).json()] == [cuisine_id]

        assert client.delete(f"/api/cuisine-types/{cuisine_id}", headers=auth_headers).status_code == 200
        assert client.get(f"/api/cuisine-types/{cuisine_id}", headers=auth_headers).status_code == 404

    def test_delete_refused_while_in_use(self, client, auth_headers):
        cuisine = client.post(
            "/api/cuisine-types",
            json={"cuisine_type_name": "川菜", "cuisine_type_name_en": "Sichuan"},
            headers=auth_headers,
        ).json()
        brand = create_brand(client, auth_headers)
        create_restaurant(client, auth_headers, brand["id"], cuisine_type_id=cuisine["id"])

        response = client.delete(f"/api/cuisine-types/{cuisine['id']}", headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"

    def test_requires_login(self, client):
        assert client.get("/api/cuisine-types/all").status_code == 401


class TestStatistics:

    def test_counts(self, client, auth_headers):
        brand = create_brand(client, auth_headers)
        create_restaurant(client, auth_headers, brand["id"])
        deleted = create_brand(client, auth_headers, "Closed")
        client.delete(f"/api/brands/{deleted['id']}", headers=auth_headers)

        body = client.get("/api/statistics/counts", headers=auth_headers).json()

        assert body["restaurant_count"] == 1
        assert body["brand_count"] == 1
        assert body["daily_new_restaurants"] <= 1
        assert body["daily_new_brands"] <= 1


class TestBrandPointsWallets:

    def test_balance_starts_at_zero(self, client, auth_headers):
        brand = create_brand(client, auth_headers)

        response = client.get(f"/api/brand-points-wallets/{brand['id']}/balance", headers=auth_headers)

        assert response.json() == {"brand_id": brand["id"], "balance": 0}

    def test_page_lists_restaurant_names(self, client, auth_headers):
        brand = create_brand(client, auth_headers)
        create_restaurant(client, auth_headers, brand["id"], "Central Store")
        create_restaurant(client, auth_headers, brand["id"], "Harbour Store")

        page = client.get("/api/brand-points-wallets", headers=auth_headers).json()

        record = page["record"][0]
        assert record["brand_name"] == "Golden Dragon"
        assert record["balance"] == 0
        assert sorted(record["restaurant_names"]) == ["Central Store", "Harbour Store"]

    def test_unknown_brand(self, client, auth_headers):
        response = client.get("/api/brand-points-wallets/999/transactions", headers=auth_headers)

        assert response.status_code == 404
