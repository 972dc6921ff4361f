"""
Identity account pages, mapped under ``/Identity/Account`` outside the
conventional controller route.
"""

import html
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from ..di import ServiceScope, get_cookies, get_scope
from ..identity.cookies import CookieAuthentication
from ..identity.roles import Roles
from ..identity.sign_in import SignInResult
from ..models import ApplicationUser
from ..schemas import (
    ForgotPasswordInput,
    LoginInput,
    RegisterInput,
    ResetPasswordInput,
    form_errors,
)
from ..views import render

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/Identity/Account",
    default_response_class=HTMLResponse,
    include_in_schema=False,
)


def _local_url(url: str | None) -> str:
    """Only same-site paths are followed after login."""
    if url and url.startswith("/") and not url.startswith("//") and not url.startswith("/\\"):
        return url
    return "/"


def _is_https(request: Request) -> bool:
    return request.url.scheme == "https"


# ── Register ─────────────────────────────────────────────────────────


@router.get("/Register")
async def register(request: Request, ReturnUrl: str | None = None):
    return render(
        request, "identity/account/register.html", {"form": {}, "errors": {}, "return_url": ReturnUrl}
    )


@router.post("/Register")
async def register_post(
    request: Request,
    ReturnUrl: str | None = None,
    scope: ServiceScope = Depends(get_scope),
    cookies: CookieAuthentication = Depends(get_cookies),
):
    data = dict(await request.form())
    context = {"form": data, "return_url": ReturnUrl}
    try:
        form = RegisterInput.model_validate(data)
    except ValidationError as exc:
        return render(request, "identity/account/register.html", {**context, "errors": form_errors(exc)})

    user = ApplicationUser(
        email=form.email,
        user_name=form.email,
        name=form.name,
        street_address=form.street_address,
        city=form.city,
        postal_code=form.postal_code,
        phone_number=form.phone_number,
    )
    result = await scope.user_manager.create(user, form.password)
    if result.succeeded:
        result = await scope.user_manager.add_to_role(user, Roles.CUSTOMER)
    if not result.succeeded:
        return render(request, "identity/account/register.html", {**context, "errors": {"": result.errors}})

    await scope.unit_of_work.save()
    logger.info("User %s created a new account with password", user.id)

    code = scope.user_manager.generate_email_confirmation_token(user)
    query = urlencode({"userId": user.id, "code": code})
    callback_url = f"{request.base_url}Identity/Account/ConfirmEmail?{query}"
    await scope.email_sender.send_email(
        user.email,
        "Confirm your email",
        f'Please confirm your account by <a href="{html.escape(callback_url)}">clicking here</a>.',
    )

    if not scope.settings.REQUIRE_CONFIRMED_ACCOUNT:
        response = RedirectResponse(_local_url(ReturnUrl), status_code=302)
        principal = scope.sign_in_manager.create_principal(user)
        cookies.sign_in(response, principal, secure=_is_https(request))
        return response

    return RedirectResponse(
        f"/Identity/Account/RegisterConfirmation?{urlencode({'email': user.email})}",
        status_code=302,
    )


@router.get("/RegisterConfirmation")
async def register_confirmation(request: Request, email: str | None = None):
    if not email:
        return RedirectResponse("/", status_code=302)
    return render(request, "identity/account/register_confirmation.html", {"email": email})


@router.get("/ConfirmEmail")
async def confirm_email(
    request: Request,
    userId: str | None = None,
    code: str | None = None,
    scope: ServiceScope = Depends(get_scope),
):
    if not userId or not code:
        return RedirectResponse("/", status_code=302)

    user = await scope.user_manager.find_by_id(userId)
    if user is None:
        return render(
            request,
            "identity/account/confirm_email.html",
            {"succeeded": False, "message": f"Unable to load user with ID '{userId}'."},
            status_code=404,
        )

    result = await scope.user_manager.confirm_email(user, code)
    if result.succeeded:
        await scope.unit_of_work.save()
    message = (
        "Thank you for confirming your email."
        if result.succeeded
        else "Error confirming your email."
    )
    return render(
        request,
        "identity/account/confirm_email.html",
        {"succeeded": result.succeeded, "message": message},
    )


# ── Login / Logout ───────────────────────────────────────────────────


@router.get("/Login")
async def login(request: Request, ReturnUrl: str | None = None):
    return render(
        request, "identity/account/login.html", {"form": {}, "errors": {}, "return_url": ReturnUrl}
    )


@router.post("/Login")
async def login_post(
    request: Request,
    ReturnUrl: str | None = None,
    scope: ServiceScope = Depends(get_scope),
    cookies: CookieAuthentication = Depends(get_cookies),
):
    data = dict(await request.form())
    data["remember_me"] = data.get("remember_me") in ("true", "on", "1")
    context = {"form": data, "return_url": ReturnUrl}
    try:
        form = LoginInput.model_validate(data)
    except ValidationError as exc:
        return render(request, "identity/account/login.html", {**context, "errors": form_errors(exc)})

    result, principal = await scope.sign_in_manager.password_sign_in(form.email, form.password)
    if result == SignInResult.SUCCEEDED:
        response = RedirectResponse(_local_url(ReturnUrl), status_code=302)
        cookies.sign_in(response, principal, is_persistent=form.remember_me, secure=_is_https(request))
        return response

    if result == SignInResult.NOT_ALLOWED:
        error = "You must confirm your email before you can log in."
    else:
        error = "Invalid login attempt."
    return render(request, "identity/account/login.html", {**context, "errors": {"": [error]}})


@router.post("/Logout")
async def logout(
    request: Request,
    returnUrl: str | None = None,
    cookies: CookieAuthentication = Depends(get_cookies),
):
    if request.user.is_authenticated:
        logger.info("User %s logged out", request.user.identity)
    response = RedirectResponse(_local_url(returnUrl), status_code=302)
    cookies.sign_out(response, secure=_is_https(request))
    return response


@router.get("/Logout")
async def logout_page(request: Request):
    return render(request, "identity/account/logout.html")


@router.get("/AccessDenied")
async def access_denied(request: Request, ReturnUrl: str | None = None):
    return render(
        request, "identity/account/access_denied.html", {"return_url": ReturnUrl}, status_code=403
    )


# ── Password reset ───────────────────────────────────────────────────


@router.get("/ForgotPassword")
async def forgot_password(request: Request):
    return render(request, "identity/account/forgot_password.html", {"form": {}, "errors": {}})


@router.post("/ForgotPassword")
async def forgot_password_post(request: Request, scope: ServiceScope = Depends(get_scope)):
    data = dict(await request.form())
    try:
        form = ForgotPasswordInput.model_validate(data)
    except ValidationError as exc:
        return render(
            request, "identity/account/forgot_password.html", {"form": data, "errors": form_errors(exc)}
        )

    user = await scope.user_manager.find_by_email(form.email)
    # Unknown and unconfirmed accounts get the same answer
    if user is not None and user.email_confirmed:
        code = scope.user_manager.generate_password_reset_token(user)
        query = urlencode({"code": code})
        callback_url = f"{request.base_url}Identity/Account/ResetPassword?{query}"
        await scope.email_sender.send_email(
            user.email,
            "Reset Password",
            f'Please reset your password by <a href="{html.escape(callback_url)}">clicking here</a>.',
        )
    return RedirectResponse("/Identity/Account/ForgotPasswordConfirmation", status_code=302)


@router.get("/ForgotPasswordConfirmation")
async def forgot_password_confirmation(request: Request):
    return render(request, "identity/account/forgot_password_confirmation.html")


@router.get("/ResetPassword")
async def reset_password(request: Request, code: str | None = None):
    if not code:
        return render(
            request,
            "shared/error.html",
            {"message": "A code must be supplied for password reset."},
            status_code=400,
        )
    return render(request, "identity/account/reset_password.html", {"form": {"code": code}, "errors": {}})


@router.post("/ResetPassword")
async def reset_password_post(request: Request, scope: ServiceScope = Depends(get_scope)):
    data = dict(await request.form())
    try:
        form = ResetPasswordInput.model_validate(data)
    except ValidationError as exc:
        return render(
            request, "identity/account/reset_password.html", {"form": data, "errors": form_errors(exc)}
        )

    user = await scope.user_manager.find_by_email(form.email)
    if user is None:
        # Don't reveal that the user does not exist
        return RedirectResponse("/Identity/Account/ResetPasswordConfirmation", status_code=302)

    result = await scope.user_manager.reset_password(user, form.code, form.password)
    if not result.succeeded:
        return render(
            request, "identity/account/reset_password.html", {"form": data, "errors": {"": result.errors}}
        )
    await scope.unit_of_work.save()
    return RedirectResponse("/Identity/Account/ResetPasswordConfirmation", status_code=302)


@router.get("/ResetPasswordConfirmation")
async def reset_password_confirmation(request: Request):
    return render(request, "identity/account/reset_password_confirmation.html")
