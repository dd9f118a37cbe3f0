"""
MovieGo API: End-to-End API Tests
=================================

Drives the public HTTP surface against the in-memory stores.

Covers:
    ✅ register → welcome mail → activate → login → gated access
    ✅ Activation tokens are single use; login failures are uniform
    ✅ Authorization gates: anonymous 401, inactive 403, missing permission 403
    ✅ Movie CRUD, listing metadata, filters and sort validation
    ✅ X-Expected-Version preconditions and edit conflicts
    ✅ Request-body errors (400) vs field validation errors (422)
"""

import pytest
import pytest_asyncio

from moviego.exceptions import AuthenticationRequiredError, AuthorizationError

from conftest import seed_user

MOANA = {"title": "Moana", "year": 2016, "runtime": 107, "genres": ["animation", "adventure"]}


async def create_movie(client, headers, **overrides):
    response = await client.post("/v1/movies", json={**MOANA, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["movie"]


@pytest_asyncio.fixture
async def editor_headers(stores):
    """Bearer headers for an activated user holding both movie permissions."""
    _, headers = await seed_user(stores, permissions=("movies:read", "movies:write"))
    return headers


@pytest_asyncio.fixture
async def catalog(test_client, editor_headers):
    await create_movie(test_client, editor_headers)
    await create_movie(
        test_client, editor_headers, title="Black Panther", year=2018, runtime=134, genres=["action", "adventure"]
    )
    await create_movie(
        test_client, editor_headers, title="Deadpool", year=2016, runtime=108, genres=["action", "comedy"]
    )
    return editor_headers


class TestAccountLifecycle:
    @pytest.mark.asyncio
    async def test_register_activate_login_and_read(self, test_client, mailer):
        registered = await test_client.post(
            "/v1/users",
            json={"name": "Alice", "email": "Alice@Example.com", "password": "pa55word"},
        )
        assert registered.status_code == 201
        user = registered.json()["user"]
        assert user["email"] == "alice@example.com"
        assert user["activated"] is False
        assert "password_hash" not in user
        assert "version" not in user

        await mailer.wait_for(1)
        recipient, template, data = mailer.sent[0]
        assert recipient == "alice@example.com"
        assert template == "user_welcome.j2"
        assert data["user_id"] == user["id"]

        activated = await test_client.put("/v1/users/activated", json={"token": data["activation_token"]})
        assert activated.status_code == 200
        assert activated.json()["user"]["activated"] is True

        # The activation token is revoked once redeemed
        replay = await test_client.put("/v1/users/activated", json={"token": data["activation_token"]})
        assert replay.status_code == 422
        assert replay.json() == {"error": {"token": "invalid or expired activation token"}}

        login = await test_client.post(
            "/v1/tokens/authentication",
            json={"email": "alice@example.com", "password": "pa55word"},
        )
        assert login.status_code == 201
        token = login.json()["authentication_token"]
        assert len(token["token"]) == 26
        assert "expiry" in token

        listing = await test_client.get("/v1/movies", headers={"Authorization": f"Bearer {token['token']}"})
        assert listing.status_code == 200

    @pytest.mark.asyncio
    async def test_activation_token_cannot_authenticate(self, test_client, mailer):
        await test_client.post(
            "/v1/users", json={"name": "Bob", "email": "bob@example.com", "password": "pa55word"}
        )
        await mailer.wait_for(1)
        activation_token = mailer.sent[0][2]["activation_token"]

        response = await test_client.get(
            "/v1/healthcheck", headers={"Authorization": f"Bearer {activation_token}"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_duplicate_email_is_a_field_error(self, test_client):
        body = {"name": "Alice", "email": "alice@example.com", "password": "pa55word"}
        await test_client.post("/v1/users", json=body)

        response = await test_client.post("/v1/users", json={**body, "email": "ALICE@example.com"})

        assert response.status_code == 422
        assert response.json() == {"error": {"email": "a user with this email address already exists"}}

    @pytest.mark.asyncio
    async def test_registration_validation_errors(self, test_client, mailer):
        response = await test_client.post("/v1/users", json={"name": "", "email": "nope", "password": "short"})

        assert response.status_code == 422
        assert response.json() == {
            "error": {
                "name": "must be provided",
                "email": "must be a valid email address",
                "password": "must be at least 8 bytes long",
            }
        }
        assert mailer.sent == []

    @pytest.mark.asyncio
    async def test_malformed_activation_token(self, test_client):
        response = await test_client.put("/v1/users/activated", json={"token": "short"})

        assert response.status_code == 422
        assert response.json() == {"error": {"token": "must be 26 bytes long"}}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email, password",
        [("alice@example.com", "wrong-password"), ("nobody@example.com", "pa55word")],
    )
    async def test_login_failures_look_the_same(self, test_client, email, password):
        await test_client.post(
            "/v1/users", json={"name": "Alice", "email": "alice@example.com", "password": "pa55word"}
        )

        response = await test_client.post("/v1/tokens/authentication", json={"email": email, "password": password})

        assert response.status_code == 401
        assert response.json() == {"error": "invalid authentication credentials"}


class TestAuthorizationGates:
    def test_authentication_required_is_an_authorization_error(self):
        assert issubclass(AuthenticationRequiredError, AuthorizationError)
        assert AuthenticationRequiredError.status_code == 401

    @pytest.mark.asyncio
    async def test_anonymous_caller_is_401(self, test_client):
        response = await test_client.get("/v1/movies")

        assert response.status_code == 401
        assert response.json() == {"error": "you must be authenticated to access this resource"}

    @pytest.mark.asyncio
    async def test_inactive_account_is_403(self, stores, test_client):
        _, headers = await seed_user(stores, activated=False)

        response = await test_client.get("/v1/movies", headers=headers)

        assert response.status_code == 403
        assert response.json() == {"error": "your user account must be activated to access this resource"}

    @pytest.mark.asyncio
    async def test_read_permission_does_not_grant_write(self, stores, test_client):
        _, headers = await seed_user(stores, permissions=("movies:read",))

        response = await test_client.post("/v1/movies", json=MOANA, headers=headers)

        assert response.status_code == 403
        assert response.json() == {
            "error": "your user account doesn't have the necessary permissions to access this resource"
        }

    @pytest.mark.asyncio
    async def test_write_permission_does_not_grant_read(self, stores, test_client):
        _, headers = await seed_user(stores, permissions=("movies:write",))

        assert (await test_client.post("/v1/movies", json=MOANA, headers=headers)).status_code == 201
        assert (await test_client.get("/v1/movies/1", headers=headers)).status_code == 403


class TestMovieCrud:
    @pytest.mark.asyncio
    async def test_create_returns_location_and_hides_created_at(self, test_client, editor_headers):
        response = await test_client.post("/v1/movies", json=MOANA, headers=editor_headers)

        assert response.status_code == 201
        movie = response.json()["movie"]
        assert response.headers["Location"] == f"/v1/movies/{movie['id']}"
        assert movie == {**MOANA, "id": movie["id"], "version": 1}

    @pytest.mark.asyncio
    async def test_show_and_missing(self, test_client, editor_headers):
        created = await create_movie(test_client, editor_headers)

        shown = await test_client.get(f"/v1/movies/{created['id']}", headers=editor_headers)
        missing = await test_client.get("/v1/movies/999", headers=editor_headers)

        assert shown.json() == {"movie": created}
        assert missing.status_code == 404
        assert missing.json() == {"error": "the requested resource could not be found"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_id", ["0", "-1", "abc"])
    async def test_invalid_ids_are_404(self, test_client, editor_headers, raw_id):
        response = await test_client.get(f"/v1/movies/{raw_id}", headers=editor_headers)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, test_client, editor_headers):
        created = await create_movie(test_client, editor_headers)

        response = await test_client.patch(
            f"/v1/movies/{created['id']}", json={"runtime": 110}, headers=editor_headers
        )

        assert response.status_code == 200
        movie = response.json()["movie"]
        assert movie["runtime"] == 110
        assert movie["title"] == "Moana"
        assert movie["version"] == 2

    @pytest.mark.asyncio
    async def test_null_fields_are_left_unchanged(self, test_client, editor_headers):
        created = await create_movie(test_client, editor_headers)

        response = await test_client.patch(
            f"/v1/movies/{created['id']}", json={"title": None, "year": 2017}, headers=editor_headers
        )

        assert response.json()["movie"]["title"] == "Moana"
        assert response.json()["movie"]["year"] == 2017

    @pytest.mark.asyncio
    async def test_merged_record_is_validated(self, test_client, editor_headers):
        created = await create_movie(test_client, editor_headers)

        response = await test_client.patch(
            f"/v1/movies/{created['id']}", json={"genres": []}, headers=editor_headers
        )

        assert response.status_code == 422
        assert response.json() == {"error": {"genres": "must contain at least 1 genre"}}

    @pytest.mark.asyncio
    async def test_expected_version_match_and_mismatch(self, test_client, editor_headers):
        created = await create_movie(test_client, editor_headers)
        url = f"/v1/movies/{created['id']}"

        ok = await test_client.patch(
            url, json={"runtime": 108}, headers={**editor_headers, "X-Expected-Version": "1"}
        )
        stale = await test_client.patch(
            url, json={"runtime": 109}, headers={**editor_headers, "X-Expected-Version": "1"}
        )

        assert ok.status_code == 200
        assert stale.status_code == 409
        assert stale.json() == {
            "error": "unable to update the record due to an edit conflict, please try again"
        }
        current = await test_client.get(url, headers=editor_headers)
        assert current.json()["movie"]["runtime"] == 108

    @pytest.mark.asyncio
    async def test_delete(self, test_client, editor_headers):
        created = await create_movie(test_client, editor_headers)
        url = f"/v1/movies/{created['id']}"

        deleted = await test_client.delete(url, headers=editor_headers)
        again = await test_client.delete(url, headers=editor_headers)

        assert deleted.json() == {"message": "movie successfully deleted"}
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_create_validation_errors(self, test_client, editor_headers):
        response = await test_client.post(
            "/v1/movies",
            json={"title": "", "year": 1500, "runtime": -1, "genres": ["drama", "drama"]},
            headers=editor_headers,
        )

        assert response.status_code == 422
        assert response.json() == {
            "error": {
                "title": "must be provided",
                "year": "must be greater than 1888",
                "runtime": "must be a positive integer",
                "genres": "must not contain duplicate values",
            }
        }


class TestRequestBodyErrors:
    async def post_raw(self, client, headers, content):
        return await client.post(
            "/v1/movies",
            content=content,
            headers={**headers, "Content-Type": "application/json"},
        )

    @pytest.mark.asyncio
    async def test_badly_formed_json(self, test_client, editor_headers):
        response = await self.post_raw(test_client, editor_headers, b'{"title": "Moana", }')

        assert response.status_code == 400
        assert response.json()["error"].startswith("body contains badly-formed JSON")

    @pytest.mark.asyncio
    async def test_empty_body(self, test_client, editor_headers):
        response = await self.post_raw(test_client, editor_headers, b"")

        assert response.status_code == 400
        assert response.json() == {"error": "body must not be empty"}

    @pytest.mark.asyncio
    async def test_wrong_json_type(self, test_client, editor_headers):
        response = await test_client.post(
            "/v1/movies", json={**MOANA, "year": "2016"}, headers=editor_headers
        )

        assert response.status_code == 400
        assert response.json() == {"error": 'body contains incorrect JSON type for field "year"'}

    @pytest.mark.asyncio
    async def test_unknown_key(self, test_client, editor_headers):
        response = await test_client.post(
            "/v1/movies", json={**MOANA, "rating": "PG"}, headers=editor_headers
        )

        assert response.status_code == 400
        assert response.json() == {"error": 'body contains unknown key "rating"'}


class TestMovieListing:
    @pytest.mark.asyncio
    async def test_metadata_describes_the_page(self, test_client, catalog):
        response = await test_client.get("/v1/movies?page=2&page_size=2", headers=catalog)

        body = response.json()
        assert [m["title"] for m in body["movies"]] == ["Deadpool"]
        assert body["metadata"] == {
            "current_page": 2,
            "page_size": 2,
            "first_page": 1,
            "last_page": 2,
            "total_records": 3,
        }

    @pytest.mark.asyncio
    async def test_filters_and_sort(self, test_client, catalog):
        response = await test_client.get(
            "/v1/movies?genres=adventure&sort=-year", headers=catalog
        )

        assert [m["title"] for m in response.json()["movies"]] == ["Black Panther", "Moana"]

    @pytest.mark.asyncio
    async def test_no_matches_has_empty_metadata(self, test_client, catalog):
        response = await test_client.get("/v1/movies?title=zzz", headers=catalog)

        assert response.json() == {"movies": [], "metadata": {}}

    @pytest.mark.asyncio
    async def test_invalid_query_values(self, test_client, catalog):
        response = await test_client.get(
            "/v1/movies?page=abc&page_size=500&sort=genres", headers=catalog
        )

        assert response.status_code == 422
        assert response.json() == {
            "error": {
                "page": "must be an integer value",
                "page_size": "must be a maximum of 100",
                "sort": "invalid sort value",
            }
        }
