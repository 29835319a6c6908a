"""The ``/auth`` router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, FastAPI, Response

from ...factory import AccountServices
from ...mfa.qr import render_qr_png
from .dependencies import SERVICES_STATE_KEY, get_account_services, get_bearer_token
from .errors import install_exception_handlers
from .schemas import (
    LoginResponse,
    LoginTfaResponse,
    OperationResponse,
    PasswordRequest,
    PasswordResetRequest,
    RegisterRequest,
    RegisterResponse,
    TfaCodeRequest,
    VerifyEmailRequest,
    VerifyTokenData,
    VerifyTokenResponse,
)

Services = Depends(get_account_services)
BearerToken = Depends(get_bearer_token)


def create_auth_router(prefix: str = "/auth") -> APIRouter:
    """Build the account router. Services are resolved per request."""
    router = APIRouter(prefix=prefix, tags=["auth"])

    @router.post("/register", response_model=RegisterResponse, status_code=201)
    async def register(
        body: RegisterRequest, services: AccountServices = Services
    ) -> RegisterResponse:
        result = await services.provisioning.register_account(
            email=body.email,
            password=body.password,
            confirm_password=body.confirm_password,
            full_name=body.full_name,
            username=body.username,
            phone=body.phone,
        )
        return RegisterResponse(uid=result.identity_ref, email=result.email)

    @router.post("/password/request", response_model=OperationResponse)
    async def password_request(
        body: PasswordRequest, services: AccountServices = Services
    ) -> OperationResponse:
        result = await services.recovery.request_reset(body.email)
        return OperationResponse(success=result.success, message=result.message)

    @router.post("/password/reset", response_model=OperationResponse)
    async def password_reset(
        body: PasswordResetRequest, services: AccountServices = Services
    ) -> OperationResponse:
        result = await services.recovery.confirm_reset(
            body.email, body.code, body.new_password, body.confirm_new_password
        )
        return OperationResponse(success=result.success, message=result.message)

    @router.post("/verify-email", response_model=OperationResponse)
    async def verify_email(
        body: VerifyEmailRequest, services: AccountServices = Services
    ) -> OperationResponse:
        result = await services.verification.send_verification_link(body.email)
        return OperationResponse(success=result.success, message=result.message)

    @router.get("/verify-token", response_model=VerifyTokenResponse)
    async def verify_token(
        token: str = BearerToken, services: AccountServices = Services
    ) -> VerifyTokenResponse:
        info = await services.login.verify_token(token)
        return VerifyTokenResponse(
            success=True,
            data=VerifyTokenData(
                uid=info.identity_ref,
                email=info.email,
                email_verified=info.email_verified,
                phone_number=info.phone_number,
                name=info.name,
                user_name=info.username,
                tfa_enabled=info.tfa_enabled,
            ),
        )

    @router.post("/login", response_model=LoginResponse)
    async def login(
        token: str = BearerToken, services: AccountServices = Services
    ) -> LoginResponse:
        result = await services.login.login(token)
        return LoginResponse(
            tfa_required=result.tfa_required,
            token=result.token,
            authenticated=result.authenticated,
        )

    @router.post("/loginTfa", response_model=LoginTfaResponse)
    async def login_tfa(
        body: TfaCodeRequest,
        token: str = BearerToken,
        services: AccountServices = Services,
    ) -> LoginTfaResponse:
        result = await services.login.login_with_tfa_code(token, body.code)
        return LoginTfaResponse(custom_token=result.token, authenticated=result.authenticated)

    @router.post(
        "/tfa/generate",
        response_class=Response,
        responses={200: {"content": {"image/png": {}}}},
    )
    async def tfa_generate(
        token: str = BearerToken, services: AccountServices = Services
    ) -> Response:
        info = await services.login.verify_token(token)
        setup = await services.enrollment.generate_secret(info.identity_ref)
        return Response(
            content=render_qr_png(setup.uri),
            media_type="image/png",
            headers={"Cache-Control": "no-store"},
        )

    @router.post("/tfa/confirm", response_model=OperationResponse)
    async def tfa_confirm(
        body: TfaCodeRequest,
        token: str = BearerToken,
        services: AccountServices = Services,
    ) -> OperationResponse:
        info = await services.login.verify_token(token)
        message = await services.enrollment.confirm_enrollment(info.identity_ref, body.code)
        return OperationResponse(success=True, message=message)

    return router


def create_app(services: AccountServices, *, prefix: str = "/auth", **kwargs: object) -> FastAPI:
    """FastAPI application serving the account routes over *services*.

    Example:
        ```python
        app = create_app(create_account_services(idp, profiles, dispatcher))
        ```
    """
    app = FastAPI(**kwargs)  # type: ignore[arg-type]
    setattr(app.state, SERVICES_STATE_KEY, services)
    install_exception_handlers(app)
    app.include_router(create_auth_router(prefix))
    return app


__all__: list[str] = ["create_app", "create_auth_router"]
