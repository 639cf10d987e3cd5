from __future__ import annotations

import asyncio
from typing import Any, Callable, Protocol

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from authsession.clients.storage import ClientStorage
from authsession.clients.token_holder import TokenHolder
from authsession.config import Settings
from authsession.core.exceptions import AuthenticationError, AuthSessionError, ValidationError
from authsession.core.logging import get_logger
from authsession.schemas.enums import SessionState
from authsession.schemas.requests import Credentials, EmailAddress, MfaCode, PasswordChange
from authsession.schemas.responses import MfaChallenge, MfaSecret, TokenPair
from authsession.services.auth_client import AuthServiceClient

logger = get_logger(__name__)


class StateListener(Protocol):
    def notify(self, state: SessionState) -> None: ...


class _CallbackListener:
    def __init__(self, callback: Callable[[SessionState], Any]) -> None:
        self._callback = callback

    def notify(self, state: SessionState) -> None:
        self._callback(state)


def _validated(model: type[BaseModel], **fields: Any) -> Any:
    try:
        return model(**fields)
    except PydanticValidationError as exc:
        raise ValidationError(
            message="Invalid input",
            detail="; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            ),
        ) from exc


class SessionManager:
    """Owns the authentication state machine and keeps the session alive.

    Must be constructed inside a running event loop: unless AUTO_LOGIN is off,
    construction schedules one refresh that restores a persisted session and
    resolves the initial UNKNOWN state.

    Login, logout and refreshes may be in flight concurrently. A session epoch,
    advanced on every login and logout, lets a refresh that resolves after one
    of them discard its outcome instead of resurrecting or killing the wrong
    session.
    """

    def __init__(
        self,
        auth_client: AuthServiceClient,
        storage: ClientStorage,
        settings: Settings,
        token_holder: TokenHolder | None = None,
    ) -> None:
        self._auth = auth_client
        self._storage = storage
        self._settings = settings
        self._tokens = token_holder if token_holder is not None else TokenHolder()

        self._state = SessionState.UNKNOWN
        self._listeners: list[StateListener] = []
        self._timer: asyncio.Task[None] | None = None
        self._epoch = 0
        self._refreshing = False

        self._auto_login: asyncio.Task[None] | None = None
        if settings.AUTO_LOGIN:
            self._auto_login = asyncio.get_running_loop().create_task(self._refresh())

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def refresh_timer_active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def is_authenticated(self) -> SessionState:
        return self._state

    def get_access_token(self) -> str:
        return self._tokens.get()

    def get_claim(self, name: str) -> Any:
        return self._tokens.get_claim(name)

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener for future transitions. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_state_changed(self, callback: Callable[[SessionState], Any]) -> Callable[[], None]:
        return self.add_listener(_CallbackListener(callback))

    async def register(self, email: str, password: str) -> None:
        creds = _validated(Credentials, email=email, password=password)
        await self._auth.register(creds.email, creds.password)
        logger.info("register_success")

    async def login(self, email: str, password: str) -> MfaChallenge | None:
        """Log in with credentials.

        Returns the MFA challenge when the service asks for a second factor,
        otherwise None once the session is authenticated. Remote failures
        propagate and leave the state untouched.
        """
        creds = _validated(Credentials, email=email, password=password)
        result = await self._auth.login(creds.email, creds.password, self._settings.USE_COOKIES)

        if isinstance(result, MfaChallenge):
            logger.info("login_mfa_required")
            return result

        self._start_session(result)
        logger.info("login_success")
        return None

    async def verify_mfa_totp(self, code: str, ticket: str) -> None:
        mfa = _validated(MfaCode, code=code)
        pair = await self._auth.verify_mfa_totp(mfa.code, ticket)
        self._start_session(pair)
        logger.info("mfa_verified")

    async def logout(self, all: bool = False) -> None:
        """End the session locally, telling the service on a best-effort basis."""
        self._cancel_timer()
        self._epoch += 1

        try:
            await self._auth.logout(self._stored_refresh_token(), all)
        except AuthSessionError as exc:
            logger.warning("logout_remote_failed", error_code=exc.error_code, error=exc.message)

        self._clear_session_material()
        self._set_state(False)
        logger.info("logout_complete", all=all)

    async def wait_until_resolved(self) -> SessionState:
        """Wait for the auto-login probe (if any) and return the resulting state."""
        if self._auto_login is not None:
            await asyncio.shield(self._auto_login)
        return self._state

    async def close(self) -> None:
        """Stop background work without touching state or notifying listeners."""
        tasks = [t for t in (self._timer, self._auto_login) if t is not None and not t.done()]
        self._timer = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def activate(self, ticket: str) -> None:
        await self._auth.activate(ticket)

    async def change_email(self, new_email: str) -> None:
        address = _validated(EmailAddress, email=new_email)
        await self._auth.change_email(address.email, self._tokens.get())

    async def request_email_change(self, new_email: str) -> None:
        address = _validated(EmailAddress, email=new_email)
        await self._auth.request_email_change(address.email)

    async def confirm_email_change(self, ticket: str) -> None:
        await self._auth.confirm_email_change(ticket)

    async def change_password(self, old_password: str, new_password: str) -> None:
        change = _validated(PasswordChange, old_password=old_password, new_password=new_password)
        await self._auth.change_password(
            change.old_password, change.new_password, self._tokens.get()
        )

    async def request_password_change(self, email: str) -> None:
        address = _validated(EmailAddress, email=email)
        await self._auth.request_password_change(address.email)

    async def confirm_password_change(self, new_password: str, ticket: str) -> None:
        await self._auth.confirm_password_change(new_password, ticket)

    async def generate_mfa_secret(self) -> MfaSecret:
        return await self._auth.generate_mfa_secret(self._tokens.get())

    async def enable_mfa(self, code: str) -> None:
        mfa = _validated(MfaCode, code=code)
        await self._auth.enable_mfa(mfa.code, self._tokens.get())

    async def disable_mfa(self, code: str) -> None:
        mfa = _validated(MfaCode, code=code)
        await self._auth.disable_mfa(mfa.code, self._tokens.get())

    async def _refresh(self) -> None:
        if self._refreshing:
            logger.debug("refresh_skipped_in_flight")
            return

        epoch = self._epoch
        self._refreshing = True
        try:
            pair = await self._auth.refresh_token(self._stored_refresh_token())
        except (AuthenticationError, ValidationError) as exc:
            if epoch != self._epoch:
                logger.info("refresh_result_discarded", outcome="rejected")
                return
            logger.info("refresh_rejected", error_code=exc.error_code, error=exc.message)
            self._clear_session_material()
            self._set_state(False)
            return
        except AuthSessionError as exc:
            if epoch != self._epoch:
                logger.info("refresh_result_discarded", outcome="unavailable")
                return
            logger.warning(
                "refresh_unavailable",
                state=self._state.value,
                error_code=exc.error_code,
                error=exc.message,
            )
            # Only a rejection ends an established session; the next tick retries
            if self._state is SessionState.UNKNOWN:
                self._set_state(False)
            return
        finally:
            self._refreshing = False

        if epoch != self._epoch:
            logger.info("refresh_result_discarded", outcome="success")
            return
        self._store_refresh_token(pair)
        self._set_state(True, pair.jwt_token)
        logger.debug("refresh_success")

    async def _refresh_loop(self) -> None:
        interval = self._settings.REFRESH_INTERVAL_SECONDS
        while True:
            await asyncio.sleep(interval)
            try:
                await self._refresh()
            except Exception:
                logger.exception("refresh_tick_failed", state=self._state.value)

    def _start_session(self, pair: TokenPair) -> None:
        self._epoch += 1
        self._store_refresh_token(pair)
        self._set_state(True, pair.jwt_token)

    def _set_state(self, authenticated: bool, token: str | None = None) -> None:
        if token:
            self._tokens.set(token)

        target = SessionState.AUTHENTICATED if authenticated else SessionState.UNAUTHENTICATED
        if target is self._state:
            return

        previous = self._state
        self._state = target
        if authenticated:
            self._timer = asyncio.get_running_loop().create_task(self._refresh_loop())
        else:
            self._cancel_timer()
            self._tokens.clear()

        logger.info("session_state_changed", previous=previous.value, state=target.value)
        for listener in list(self._listeners):
            try:
                listener.notify(target)
            except Exception:
                logger.exception("listener_failed", listener=repr(listener))

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _stored_refresh_token(self) -> str | None:
        if self._settings.USE_COOKIES:
            return None
        return self._storage.get(self._settings.REFRESH_TOKEN_KEY)

    def _store_refresh_token(self, pair: TokenPair) -> None:
        if self._settings.USE_COOKIES or not pair.refresh_token:
            return
        self._storage.set(self._settings.REFRESH_TOKEN_KEY, pair.refresh_token)

    def _clear_session_material(self) -> None:
        self._tokens.clear()
        self._storage.remove(self._settings.REFRESH_TOKEN_KEY)
