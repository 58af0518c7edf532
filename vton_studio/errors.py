"""Error taxonomy for the try-on studio."""


class StudioError(Exception):
    """Base class for all studio errors."""


class RequestCancelled(StudioError):
    """The request was superseded or cancelled. Not a user-facing failure."""

    def __init__(self, message: str = "Request was cancelled"):
        super().__init__(message)


class InputValidationError(StudioError):
    """Required input is missing or inconsistent. Raised before any network call."""


class ProviderError(StudioError):
    """Transport or application-level failure reported by a provider."""

    def __init__(
        self,
        message: str,
        status: int | str | None = None,
        code: int | str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, status={self.status!r}, code={self.code!r})"


class TransientProviderError(ProviderError):
    """Rate-limited or overloaded provider (429/503)."""


class NoImageProduced(ProviderError):
    """The provider answered an image operation without any image."""

    def __init__(self, message: str = "No image generated by the model."):
        super().__init__(message)


class AuthenticationError(StudioError):
    """The credential was rejected or is missing; the caller must re-authenticate."""

    def __init__(self, provider, message: str, reauth_required: bool = True):
        super().__init__(message)
        self.provider = provider
        self.message = message
        self.reauth_required = reauth_required
