"""Domain-specific exception hierarchy.

All exceptions inherit from ``GatewayError`` so callers can catch the entire
family in one clause while still discriminating on subclass.
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for all gateway errors."""

    def __init__(self, message: str, *, code: str = "GATEWAY_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


# ── Configuration ────────────────────────────────────────────
class ConfigurationError(GatewayError):
    """The registry cannot serve the request as configured."""

    def __init__(self, message: str, *, code: str = "CONFIGURATION_ERROR") -> None:
        super().__init__(message, code=code)


class NoProvidersAvailableError(ConfigurationError):
    def __init__(self) -> None:
        super().__init__(
            "No AI models available. Please contact admin.",
            code="NO_PROVIDERS_AVAILABLE",
        )


class RegistryUnavailableError(GatewayError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="REGISTRY_UNAVAILABLE")


# ── Providers ────────────────────────────────────────────────
class ProviderError(GatewayError):
    """A single provider attempt failed.

    ``status`` is the HTTP status of the provider reply, or ``None`` for
    transport and decoding failures.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status: int | None = None,
        body: str | None = None,
        model_id: str | None = None,
    ) -> None:
        self.provider = provider
        self.status = status
        self.body = body
        self.model_id = model_id
        super().__init__(message, code="PROVIDER_ERROR")

    @classmethod
    def from_response(cls, provider: str, status: int, body: str) -> ProviderError:
        return cls(provider, f"{provider} Error {status}: {body}", status=status, body=body)


class AllProvidersFailedError(GatewayError):
    def __init__(self, last_error: str | None) -> None:
        self.last_error = last_error
        message = (
            "All AI providers failed"
            if last_error is not None
            else "All AI providers failed: no candidate had usable credentials"
        )
        super().__init__(message, code="ALL_PROVIDERS_FAILED")


# ── Client-side ──────────────────────────────────────────────
class QuotaExceededError(GatewayError):
    def __init__(self, usage_class: str, used: int, limit: int) -> None:
        self.usage_class = usage_class
        self.used = used
        self.limit = limit
        super().__init__(
            f"Daily AI capacity reached for {usage_class} ({used}/{limit})",
            code="QUOTA_EXCEEDED",
        )


class GatewayRequestError(GatewayError):
    """The gateway answered a client call with a non-2xx status."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"AI Engine Error: {status} - {body}", code="GATEWAY_REQUEST_ERROR")


class ParseError(GatewayError):
    def __init__(self, message: str, *, text: str = "") -> None:
        self.text = text
        super().__init__(message, code="PARSE_ERROR")
