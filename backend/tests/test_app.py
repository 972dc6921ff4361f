from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.middleware.sessions import SessionMiddleware

from teatime.config import Settings
from teatime.main import create_app
from teatime.middleware.exception_handler import ExceptionHandlerMiddleware
from teatime.middleware.hsts import HSTSMiddleware
from teatime.middleware.route_paths import CaseInsensitivePathMiddleware
from teatime.middleware.static_files import StaticFilesMiddleware
from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD, make_settings
from tests.fakes import RecordingEmailSender

PASSWORD = "Secret1!"


def _build_app(settings: Settings, email_sender: RecordingEmailSender) -> FastAPI:
    return create_app(settings, email_sender_factory=lambda: email_sender)


@pytest.fixture
def app(settings: Settings, email_sender: RecordingEmailSender) -> FastAPI:
    """Fixture providing the production application."""
    return _build_app(settings, email_sender)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Fixture providing a started HTTPS client that does not follow redirects."""
    with TestClient(app, base_url="https://testserver", follow_redirects=False) as client:
        yield client


def _login(client: TestClient, email: str, password: str, return_url: str | None = None):
    url = "/Identity/Account/Login"
    if return_url:
        url += f"?ReturnUrl={return_url}"
    return client.post(url, data={"email": email, "password": password})


def _register(client: TestClient, email: str = "alice@example.com"):
    return client.post(
        "/Identity/Account/Register",
        data={"email": email, "password": PASSWORD, "confirm_password": PASSWORD, "name": "Alice"},
    )


def _register_confirmed_customer(
    client: TestClient, email_sender: RecordingEmailSender, email: str = "alice@example.com"
) -> None:
    assert _register(client, email).status_code == 302
    confirm = client.get(email_sender.last_to(email).link())
    assert "Thank you for confirming your email." in confirm.text


class TestPipeline:
    """Tests for the middleware order of the composition root."""

    def test_production_stage_order(self, app: FastAPI) -> None:
        assert [m.cls for m in app.user_middleware] == [
            ExceptionHandlerMiddleware,
            HSTSMiddleware,
            HTTPSRedirectMiddleware,
            StaticFilesMiddleware,
            SessionMiddleware,
            AuthenticationMiddleware,
            CaseInsensitivePathMiddleware,
        ]

    def test_development_stage_order(self, tmp_path: Path, email_sender: RecordingEmailSender) -> None:
        app = _build_app(make_settings(tmp_path, ENVIRONMENT="Development"), email_sender)

        assert app.debug is True
        assert [m.cls for m in app.user_middleware] == [
            HTTPSRedirectMiddleware,
            StaticFilesMiddleware,
            SessionMiddleware,
            AuthenticationMiddleware,
            CaseInsensitivePathMiddleware,
        ]

    def test_http_redirected_to_https(self, app: FastAPI) -> None:
        with TestClient(app, base_url="http://testserver", follow_redirects=False) as client:
            response = client.get("/Customer/Home/Privacy")

        assert response.status_code == 307
        assert response.headers["location"] == "https://testserver/Customer/Home/Privacy"

    def test_hsts_header_in_production(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.headers["strict-transport-security"] == "max-age=2592000"

    def test_hsts_skipped_for_localhost(self, app: FastAPI) -> None:
        with TestClient(app, base_url="https://localhost", follow_redirects=False) as client:
            response = client.get("/")

        assert response.status_code == 200
        assert "strict-transport-security" not in response.headers

    def test_hsts_skipped_in_development(
        self, tmp_path: Path, email_sender: RecordingEmailSender
    ) -> None:
        app = _build_app(make_settings(tmp_path, ENVIRONMENT="Development"), email_sender)

        with TestClient(app, base_url="https://testserver") as client:
            response = client.get("/")

        assert "strict-transport-security" not in response.headers

    def test_static_file_served_before_session_and_auth(self, client: TestClient) -> None:
        response = client.get("/css/site.css")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/css")
        assert "etag" in response.headers
        assert "set-cookie" not in response.headers

    def test_missing_static_file_falls_through_to_routing(self, client: TestClient) -> None:
        assert client.get("/css/missing.css").status_code == 404

    def test_unhandled_error_redirects_to_error_page(self, app: FastAPI) -> None:
        async def boom() -> None:
            raise RuntimeError("boom")

        app.add_api_route("/boom", boom)
        with TestClient(app, base_url="https://testserver", follow_redirects=False) as client:
            response = client.get("/boom")
            error_page = client.get(response.headers["location"])

        assert response.status_code == 302
        assert response.headers["location"] == "/Customer/Home/Error"
        assert error_page.status_code == 200
        assert "An error occurred while processing your request." in error_page.text

    def test_unhandled_error_in_development_is_a_500(
        self, tmp_path: Path, email_sender: RecordingEmailSender
    ) -> None:
        app = _build_app(make_settings(tmp_path, ENVIRONMENT="Development"), email_sender)

        async def boom() -> None:
            raise RuntimeError("boom")

        app.add_api_route("/boom", boom)
        with TestClient(
            app, base_url="https://testserver", raise_server_exceptions=False
        ) as client:
            response = client.get("/boom")

        assert response.status_code == 500


class TestCustomerHome:
    """Tests for the default route and the public pages."""

    @pytest.mark.parametrize("path", ["/", "/Customer", "/Customer/Home", "/Customer/Home/Index"])
    def test_default_route(self, client: TestClient, path: str) -> None:
        response = client.get(path)

        assert response.status_code == 200
        assert "Pearl Milk Tea" in response.text

    def test_details(self, client: TestClient) -> None:
        home = client.get("/")
        assert "/Customer/Home/Details/1" in home.text

        response = client.get("/Customer/Home/Details/1")

        assert response.status_code == 200
        assert "Jasmine Green Tea" in response.text

    def test_details_unknown_product(self, client: TestClient) -> None:
        response = client.get("/Customer/Home/Details/999")

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")
        assert "Product not found" in response.text

    def test_unknown_path_renders_not_found_page(self, client: TestClient) -> None:
        response = client.get("/Customer/Cart/Checkout")

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")
        assert "The page you requested does not exist." in response.text

    @pytest.mark.parametrize(
        "path", ["/customer", "/CUSTOMER/home", "/customer/home/index", "/customer/home/details/1"]
    )
    def test_paths_match_ignoring_case(self, client: TestClient, path: str) -> None:
        response = client.get(path)

        assert response.status_code == 200
        assert "TeaTime" in response.text

    def test_privacy(self, client: TestClient) -> None:
        assert client.get("/Customer/Home/Privacy").status_code == 200

    def test_unknown_controller(self, client: TestClient) -> None:
        assert client.get("/Customer/Cart/Index").status_code == 404


class TestAuthorization:
    """Tests for the Admin area's role requirement."""

    def test_anonymous_redirected_to_login(self, client: TestClient) -> None:
        response = client.get("/Admin/Category")

        assert response.status_code == 302
        assert (
            response.headers["location"] == "/Identity/Account/Login?ReturnUrl=%2FAdmin%2FCategory"
        )

    def test_return_url_keeps_query(self, client: TestClient) -> None:
        response = client.get("/Admin/Product/Upsert?id=1")

        assert response.headers["location"] == (
            "/Identity/Account/Login?ReturnUrl=%2FAdmin%2FProduct%2FUpsert%3Fid%3D1"
        )

    def test_anonymous_lowercase_path_keeps_canonical_return_url(self, client: TestClient) -> None:
        response = client.get("/admin/category")

        assert response.status_code == 302
        assert (
            response.headers["location"] == "/Identity/Account/Login?ReturnUrl=%2FAdmin%2FCategory"
        )

    def test_customer_denied(self, client: TestClient, email_sender: RecordingEmailSender) -> None:
        _register_confirmed_customer(client, email_sender)
        assert _login(client, "alice@example.com", PASSWORD).status_code == 302

        response = client.get("/Admin/Category")
        denied = client.get(response.headers["location"])

        assert response.status_code == 302
        assert response.headers["location"] == (
            "/Identity/Account/AccessDenied?ReturnUrl=%2FAdmin%2FCategory"
        )
        assert denied.status_code == 403
        assert "Access denied" in denied.text

    def test_admin_allowed(self, client: TestClient) -> None:
        login = _login(client, ADMIN_EMAIL, ADMIN_PASSWORD, return_url="%2FAdmin%2FCategory")

        assert login.status_code == 302
        assert login.headers["location"] == "/Admin/Category"
        response = client.get("/Admin/Category")
        assert response.status_code == 200
        assert "Classic Tea" in response.text


class TestAdminCategory:
    """Tests for category management."""

    @pytest.fixture
    def admin(self, client: TestClient) -> TestClient:
        """Fixture providing a client signed in as the seeded admin."""
        assert _login(client, ADMIN_EMAIL, ADMIN_PASSWORD).status_code == 302
        return client

    def test_create(self, admin: TestClient) -> None:
        response = admin.post("/Admin/Category/Create", data={"name": "Herbal", "display_order": "4"})

        assert response.status_code == 302
        assert response.headers["location"] == "/Admin/Category"
        listing = admin.get("/Admin/Category")
        assert "Herbal" in listing.text
        assert "Category created successfully" in listing.text
        # the message is shown once
        assert "Category created successfully" not in admin.get("/Admin/Category").text

    def test_create_invalid(self, admin: TestClient) -> None:
        response = admin.post("/Admin/Category/Create", data={"name": "7", "display_order": "7"})

        assert response.status_code == 200
        assert "The Display Order cannot exactly match the Name." in response.text

    def test_edit(self, admin: TestClient) -> None:
        response = admin.post("/Admin/Category/Edit/1", data={"name": "Black Tea", "display_order": "1"})

        assert response.status_code == 302
        listing = admin.get("/Admin/Category").text
        assert "Black Tea" in listing
        assert "Classic Tea" not in listing

    def test_edit_unknown(self, admin: TestClient) -> None:
        assert admin.get("/Admin/Category/Edit/999").status_code == 404

    def test_delete(self, admin: TestClient) -> None:
        created = admin.post("/Admin/Category/Create", data={"name": "Herbal", "display_order": "9"})
        assert created.status_code == 302
        # three categories are seeded
        response = admin.post("/Admin/Category/Delete/4")

        assert response.status_code == 302
        assert "Herbal" not in admin.get("/Admin/Category").text

    def test_delete_removes_its_products(self, admin: TestClient) -> None:
        response = admin.post("/Admin/Category/Delete/1")

        assert response.status_code == 302
        products = admin.get("/Admin/Product").text
        assert "Jasmine Green Tea" not in products
        assert "Roasted Oolong" not in products
        assert "Pearl Milk Tea" in products
        assert admin.get("/Admin/Product/Upsert/1").status_code == 404


class TestAdminProduct:
    """Tests for product management."""

    @pytest.fixture
    def admin(self, client: TestClient) -> TestClient:
        """Fixture providing a client signed in as the seeded admin."""
        assert _login(client, ADMIN_EMAIL, ADMIN_PASSWORD).status_code == 302
        return client

    def test_create(self, admin: TestClient) -> None:
        response = admin.post(
            "/Admin/Product/Upsert",
            data={"name": "Earl Grey", "price": "45", "category_id": "1", "size": "Medium"},
        )

        assert response.status_code == 302
        assert "Earl Grey" in admin.get("/").text

    def test_update(self, admin: TestClient) -> None:
        response = admin.post(
            "/Admin/Product/Upsert/1",
            data={"name": "Jasmine Pearl", "price": "38", "category_id": "1"},
        )

        assert response.status_code == 302
        assert "Jasmine Pearl" in admin.get("/Customer/Home/Details/1").text

    def test_unknown_category_rejected(self, admin: TestClient) -> None:
        response = admin.post(
            "/Admin/Product/Upsert",
            data={"name": "Earl Grey", "price": "45", "category_id": "999"},
        )

        assert response.status_code == 200
        assert "Select a valid category." in response.text

    def test_delete(self, admin: TestClient) -> None:
        response = admin.post("/Admin/Product/Delete/1")

        assert response.status_code == 302
        assert admin.get("/Customer/Home/Details/1").status_code == 404


class TestAccount:
    """Tests for registration, confirmation, login and password reset."""

    def test_register_requires_confirmation(
        self, client: TestClient, email_sender: RecordingEmailSender
    ) -> None:
        response = _register(client)

        assert response.status_code == 302
        assert response.headers["location"] == (
            "/Identity/Account/RegisterConfirmation?email=alice%40example.com"
        )
        assert "set-cookie" not in response.headers
        email = email_sender.last_to("alice@example.com")
        assert email.subject == "Confirm your email"
        assert email.link().startswith("https://testserver/Identity/Account/ConfirmEmail?userId=")

    def test_login_before_confirmation_not_allowed(self, client: TestClient) -> None:
        _register(client)

        response = _login(client, "alice@example.com", PASSWORD)

        assert response.status_code == 200
        assert "You must confirm your email before you can log in." in response.text

    def test_confirm_then_login(self, client: TestClient, email_sender: RecordingEmailSender) -> None:
        _register_confirmed_customer(client, email_sender)

        response = _login(client, "alice@example.com", PASSWORD)

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert "Hello Alice!" in client.get("/").text

    def test_confirmation_link_is_single_use(
        self, client: TestClient, email_sender: RecordingEmailSender
    ) -> None:
        _register_confirmed_customer(client, email_sender)

        again = client.get(email_sender.last_to("alice@example.com").link())

        assert "Error confirming your email." in again.text

    def test_confirm_unknown_user(self, client: TestClient) -> None:
        response = client.get("/Identity/Account/ConfirmEmail?userId=nobody&code=abc")

        assert response.status_code == 404

    def test_register_duplicate_email(self, client: TestClient) -> None:
        response = _register(client, ADMIN_EMAIL)

        assert response.status_code == 200
        assert "is already taken" in response.text

    def test_register_password_mismatch(self, client: TestClient) -> None:
        response = client.post(
            "/Identity/Account/Register",
            data={"email": "bob@example.com", "password": PASSWORD, "confirm_password": "Other1!x"},
        )

        assert response.status_code == 200
        assert "do not match" in response.text

    def test_register_without_confirmation_signs_in(
        self, tmp_path: Path, email_sender: RecordingEmailSender
    ) -> None:
        app = _build_app(make_settings(tmp_path, REQUIRE_CONFIRMED_ACCOUNT=False), email_sender)

        with TestClient(app, base_url="https://testserver", follow_redirects=False) as client:
            response = _register(client)
            home = client.get("/")

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert "Hello Alice!" in home.text

    def test_invalid_login(self, client: TestClient) -> None:
        response = _login(client, ADMIN_EMAIL, "Wrong1!x")

        assert response.status_code == 200
        assert "Invalid login attempt." in response.text

    def test_external_return_url_ignored(self, client: TestClient) -> None:
        response = _login(client, ADMIN_EMAIL, ADMIN_PASSWORD, return_url="https://evil.example.com/")

        assert response.headers["location"] == "/"

    def test_logout(self, client: TestClient) -> None:
        _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        assert client.get("/Admin/Category").status_code == 200

        response = client.post("/Identity/Account/Logout?returnUrl=/")

        assert response.status_code == 302
        assert client.get("/Admin/Category").status_code == 302

    def test_password_reset(self, client: TestClient, email_sender: RecordingEmailSender) -> None:
        _register_confirmed_customer(client, email_sender)

        forgot = client.post("/Identity/Account/ForgotPassword", data={"email": "alice@example.com"})
        link = email_sender.last_to("alice@example.com").link()
        code = link.split("code=", 1)[1]
        reset = client.post(
            "/Identity/Account/ResetPassword",
            data={
                "email": "alice@example.com",
                "code": code,
                "password": "Changed2@",
                "confirm_password": "Changed2@",
            },
        )

        assert forgot.headers["location"] == "/Identity/Account/ForgotPasswordConfirmation"
        assert reset.headers["location"] == "/Identity/Account/ResetPasswordConfirmation"
        assert _login(client, "alice@example.com", PASSWORD).status_code == 200
        assert _login(client, "alice@example.com", "Changed2@").status_code == 302

    def test_forgot_password_for_unknown_email_sends_nothing(
        self, client: TestClient, email_sender: RecordingEmailSender
    ) -> None:
        response = client.post(
            "/Identity/Account/ForgotPassword", data={"email": "nobody@example.com"}
        )

        assert response.headers["location"] == "/Identity/Account/ForgotPasswordConfirmation"
        assert email_sender.sent == []

    def test_reset_password_requires_code(self, client: TestClient) -> None:
        assert client.get("/Identity/Account/ResetPassword").status_code == 400
