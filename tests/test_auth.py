"""Unit tests for authentication-failure classification and credential state."""

import pytest

from vton_studio.errors import AuthenticationError, ProviderError
from vton_studio.models import Credential, Provider
from vton_studio.services import AuthStateTracker, InMemoryCredentialStore, is_auth_error


class TestIsAuthError:

    @pytest.mark.parametrize("error", [
        ProviderError("denied", status=401),
        ProviderError("denied", status=403),
        ProviderError("denied", code=401),
        ProviderError("denied", code=403),
        ProviderError("Request failed with status 401"),
        ProviderError("HTTP 403 Forbidden"),
        RuntimeError("got 401 from upstream"),
    ])
    def test_auth_errors(self, error):
        assert is_auth_error(error)
        assert is_auth_error(error)  # idempotent

    @pytest.mark.parametrize("error", [
        ProviderError("bad request", status=400),
        ProviderError("busy", status=503, code=429),
        ProviderError("x", status="PERMISSION_DENIED"),
        ValueError("boom"),
    ])
    def test_not_auth_errors(self, error):
        assert not is_auth_error(error)

    def test_coincidental_message_match(self):
        """Broad matching flags any message mentioning 401/403."""
        error = ProviderError("Order #14013 not found", status=404)

        assert is_auth_error(error)
        assert not is_auth_error(error, strict=True)

    def test_strict_still_checks_status(self):
        assert is_auth_error(ProviderError("nope", status=403), strict=True)


class TestAuthStateTracker:

    @pytest.fixture
    def store(self):
        return InMemoryCredentialStore({Provider.GEMINI: "g-key", Provider.OPENAI: "o-key"})

    @pytest.fixture
    def tracker(self, store):
        return AuthStateTracker(store)

    def test_ready_with_stored_key(self, tracker):
        assert tracker.is_ready(Provider.GEMINI)

    def test_auth_failure_clears_only_that_provider(self, tracker, store):
        notified = []
        tracker.add_listener(notified.append)

        tracker.on_auth_failure(Provider.GEMINI)

        assert store.get(Provider.GEMINI) == ""
        assert not tracker.is_ready(Provider.GEMINI)
        assert tracker.is_ready(Provider.OPENAI)
        assert notified == [Provider.GEMINI]

    def test_resolve_requires_reauth_after_failure(self, tracker):
        tracker.on_auth_failure(Provider.GEMINI)

        with pytest.raises(AuthenticationError) as exc_info:
            tracker.resolve(Provider.GEMINI)
        assert exc_info.value.reauth_required

    def test_explicit_credential_not_stored_until_used(self, tracker, store):
        tracker.on_auth_failure(Provider.GEMINI)

        credential = tracker.resolve(Provider.GEMINI, Credential(provider=Provider.GEMINI, secret=" new-key "))

        assert credential.secret == "new-key"
        assert store.get(Provider.GEMINI) == ""
        assert not tracker.is_ready(Provider.GEMINI)

    def test_provide_reauthenticates(self, tracker, store):
        tracker.on_auth_failure(Provider.GEMINI)

        tracker.provide(Provider.GEMINI, " new-key ")

        assert store.get(Provider.GEMINI) == "new-key"
        assert tracker.is_ready(Provider.GEMINI)

    def test_reject_other_key_keeps_stored(self, tracker, store):
        notified = []
        tracker.add_listener(notified.append)

        assert not tracker.reject(Credential(provider=Provider.GEMINI, secret="typo-key"))

        assert store.get(Provider.GEMINI) == "g-key"
        assert tracker.is_ready(Provider.GEMINI)
        assert notified == []

    def test_reject_stored_key_clears_it(self, tracker, store):
        notified = []
        tracker.add_listener(notified.append)

        assert tracker.reject(Credential(provider=Provider.GEMINI, secret="g-key"))

        assert store.get(Provider.GEMINI) == ""
        assert not tracker.is_ready(Provider.GEMINI)
        assert notified == [Provider.GEMINI]

    def test_resolve_uses_stored_key(self, tracker):
        credential = tracker.resolve(Provider.OPENAI)

        assert credential == Credential(provider=Provider.OPENAI, secret="o-key")

    def test_resolve_rejects_mismatched_provider(self, tracker):
        with pytest.raises(AuthenticationError):
            tracker.resolve(Provider.GEMINI, Credential(provider=Provider.OPENAI, secret="o-key"))

    def test_missing_key_not_ready(self):
        tracker = AuthStateTracker(InMemoryCredentialStore())

        assert not tracker.is_ready(Provider.GEMINI)
        with pytest.raises(AuthenticationError):
            tracker.resolve(Provider.GEMINI)

    def test_provide_rejects_empty(self, tracker):
        with pytest.raises(AuthenticationError):
            tracker.provide(Provider.GEMINI, "   ")

    def test_strict_tracker(self, store):
        tracker = AuthStateTracker(store, strict=True)

        assert not tracker.classify(ProviderError("error 401 in message only"))
        assert tracker.classify(ProviderError("x", code=401))

    def test_credential_repr_hides_secret(self):
        assert "secret-value" not in repr(Credential(provider=Provider.GEMINI, secret="secret-value"))
