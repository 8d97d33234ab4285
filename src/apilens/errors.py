from __future__ import annotations


class ApilensError(Exception):
    """Base class for errors surfaced to callers as an error response."""


class NotFoundError(ApilensError):
    """A class, method, route or request class does not exist."""


class RouteNotFoundError(NotFoundError):
    def __init__(self, uri: str, method: str) -> None:
        super().__init__(f"No route found for URI '{uri}' with method '{method}'.")
        self.uri = uri
        self.method = method


class ValidationError(ApilensError):
    """A required boundary parameter is missing or empty."""
