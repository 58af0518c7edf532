"""Authentication state: failure classification and credential invalidation."""

import logging
from typing import Callable, Protocol

from ..errors import AuthenticationError
from ..models import Credential, Provider

logger = logging.getLogger(__name__)

AUTH_STATUS_CODES = (401, 403)


def is_auth_error(error: BaseException, strict: bool = False) -> bool:
    """Whether ``error`` means the credential was rejected.

    Status and code are checked first. Unless ``strict``, any message that
    mentions 401 or 403 also counts, which can misfire on unrelated text
    that happens to contain those numbers.
    """
    for value in (getattr(error, "status", None), getattr(error, "code", None)):
        if isinstance(value, int) and not isinstance(value, bool) and value in AUTH_STATUS_CODES:
            return True
    if strict:
        return False
    message = str(getattr(error, "message", None) or error).lower()
    return "401" in message or "403" in message


class CredentialStore(Protocol):
    """Where credentials live between requests. The storage medium is the caller's choice."""

    def get(self, provider: Provider) -> str: ...

    def save(self, provider: Provider, secret: str) -> None: ...

    def clear(self, provider: Provider) -> None: ...


class InMemoryCredentialStore:
    """Process-local credential store."""

    def __init__(self, initial: dict[Provider, str] | None = None):
        self._secrets: dict[Provider, str] = dict(initial or {})

    def get(self, provider: Provider) -> str:
        return self._secrets.get(provider, "")

    def save(self, provider: Provider, secret: str) -> None:
        self._secrets[provider] = secret.strip()

    def clear(self, provider: Provider) -> None:
        self._secrets.pop(provider, None)


AuthListener = Callable[[Provider], None]


class AuthStateTracker:
    """Tracks which providers hold a usable credential.

    After an authentication failure the stored credential is cleared and the
    provider stays "not ready" until a new credential is provided.
    """

    def __init__(self, store: CredentialStore, strict: bool = False):
        self.store = store
        self.strict = strict
        self._not_ready: set[Provider] = set()
        self._listeners: list[AuthListener] = []

    def classify(self, error: BaseException) -> bool:
        return is_auth_error(error, strict=self.strict)

    def add_listener(self, listener: AuthListener) -> None:
        """Register a callback fired with the provider whenever re-authentication is required."""
        self._listeners.append(listener)

    def is_ready(self, provider: Provider) -> bool:
        return provider not in self._not_ready and bool(self.store.get(provider))

    def provide(self, provider: Provider, secret: str) -> Credential:
        """Store a (new) credential and mark the provider ready."""
        secret = secret.strip()
        if not secret:
            raise AuthenticationError(provider, "Credential must not be empty")
        self.store.save(provider, secret)
        self._not_ready.discard(provider)
        return Credential(provider=provider, secret=secret)

    def forget(self, provider: Provider) -> None:
        self.store.clear(provider)

    def on_auth_failure(self, provider: Provider) -> None:
        """Invalidate the provider's credential and ask the caller to re-authenticate."""
        logger.warning("Credential for %s was rejected; re-authentication required", provider.value)
        self.store.clear(provider)
        self._not_ready.add(provider)
        for listener in self._listeners:
            listener(provider)

    def reject(self, credential: Credential) -> bool:
        """Handle an authentication failure for a request made with ``credential``.

        A rejected key that differs from the stored one leaves the stored key
        in place. Returns whether the provider now needs re-authentication.
        """
        stored = self.store.get(credential.provider)
        if stored and stored != credential.secret:
            logger.warning("Supplied %s credential was rejected; keeping the stored one", credential.provider.value)
            return False
        self.on_auth_failure(credential.provider)
        return True

    def resolve(self, provider: Provider, credential: Credential | None = None) -> Credential:
        """Pick the credential for a request.

        An explicitly passed credential wins but is not stored here; callers
        ``provide`` it once a request made with it succeeds. Otherwise the
        stored one is used, if the provider is ready.

        Raises:
            AuthenticationError: when no usable credential is available.
        """
        if credential is not None and credential.secret.strip():
            if credential.provider != provider:
                raise AuthenticationError(
                    provider,
                    f"Credential is for {credential.provider.value}, not {provider.value}",
                )
            return Credential(provider=provider, secret=credential.secret.strip())

        if not self.is_ready(provider):
            raise AuthenticationError(provider, f"Please connect a {provider.value} API key first.")
        return Credential(provider=provider, secret=self.store.get(provider))
