"""Custom exceptions for the code duel gateway."""


class CodeDuelError(Exception):
    """Base exception for gateway errors."""

    pass


class InvalidRequestError(CodeDuelError):
    """Client input is missing, malformed or oversized."""

    pass


class ProviderError(CodeDuelError):
    """Base class for failures talking to an LLM provider."""

    pass


class ProviderCallError(ProviderError):
    """Network, auth, rate limit or HTTP errors while calling a provider."""

    pass


class ProviderResponseError(ProviderError):
    """Provider answered but the response carried no text content."""

    pass


class ClientDisconnectedError(CodeDuelError):
    """The caller went away before the provider call finished."""

    pass
