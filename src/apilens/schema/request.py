from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Any, Mapping, Optional

from apilens.domain.models import AuthorizationInfo, InputContract, NormalizedRule
from apilens.errors import NotFoundError
from apilens.reflection import helper
from apilens.reflection.types import load_class, strip_marker
from apilens.schema.rules import normalize_rules

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[/\\]+")
_DOTS = re.compile(r"\.{2,}")


class RequestInspector:
    """
    Extracts the contract declared by an input-validation class:
    rules(), messages(), attributes() and authorize().

    Methods are called on an instance created without running __init__,
    so no request context is needed.
    """

    def inspect(self, request_class: str) -> InputContract:
        name = self.normalize_class_name(request_class)
        cls = load_class(name)
        if cls is None:
            raise NotFoundError(f"Request class '{name}' does not exist.")

        return InputContract(
            class_name=name,
            file_path=helper.class_file_name(cls),
            rules=self.extract_rules(cls),
            messages=self.extract_messages(cls),
            attributes=self.extract_attributes(cls),
            authorization=self.inspect_authorization(cls),
        )

    def normalize_class_name(self, request_class: str) -> str:
        """
        Accepts "app.requests.StoreUserRequest", "app/requests/StoreUserRequest",
        "~app.requests.StoreUserRequest" or its base64 encoding.
        """
        identifier = strip_marker(request_class.strip())

        decoded = _b64decode(identifier)
        if decoded and load_class(decoded) is not None:
            return strip_marker(decoded)

        identifier = _SEPARATORS.sub(".", identifier)
        return _DOTS.sub(".", identifier).strip(".")

    def extract_rules(self, request_class: Any) -> dict[str, list[NormalizedRule]]:
        return normalize_rules(self._call(request_class, "rules"))

    def extract_messages(self, request_class: Any) -> dict[str, str]:
        return _string_map(self._call(request_class, "messages"))

    def extract_attributes(self, request_class: Any) -> dict[str, str]:
        return _string_map(self._call(request_class, "attributes"))

    def inspect_authorization(self, request_class: Any) -> AuthorizationInfo:
        cls = self._resolve(request_class)
        if cls is None or not helper.method_exists(cls, "authorize"):
            return AuthorizationInfo(has_authorize=False, authorized=True)

        try:
            result = getattr(_bare_instance(cls), "authorize")()
        except Exception as exc:
            logger.info("authorize() of %s raised: %s", cls.__qualname__, exc)
            return AuthorizationInfo(has_authorize=True, error_message=str(exc) or type(exc).__name__)

        return AuthorizationInfo(
            has_authorize=True,
            authorized=bool(result),
            type="boolean" if isinstance(result, bool) else "gate/policy",
        )

    def _resolve(self, request_class: Any) -> Optional[type]:
        if isinstance(request_class, type):
            return request_class
        if isinstance(request_class, str):
            return load_class(self.normalize_class_name(request_class))
        return None

    def _call(self, request_class: Any, method: str) -> Any:
        cls = self._resolve(request_class)
        if cls is None or not helper.method_exists(cls, method):
            return {}
        try:
            return getattr(_bare_instance(cls), method)()
        except Exception:
            logger.warning("%s.%s() raised during inspection", cls.__qualname__, method, exc_info=True)
            return {}


def _bare_instance(cls: type) -> Any:
    try:
        return cls.__new__(cls)
    except TypeError:
        return object.__new__(cls)


def _b64decode(value: str) -> Optional[str]:
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return None


def _string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(k): str(v) for k, v in value.items()}
