"""
Authorization header parsing.

    Authorization: Bearer <access-or-refresh-token>
    Authorization: ApiKey <key>

The parser is transport-agnostic: it takes the raw header value and returns a
Credential or raises a subclass of InvalidCredentialFormat.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from utils.errors import (
    AuthorizationSchemeMismatch,
    EmptyCredential,
    MalformedAuthorizationHeader,
    MissingAuthorizationHeader,
)

AUTHORIZATION_HEADER = "Authorization"

_FIRST_WHITESPACE = re.compile(r"\s")


class CredentialKind(str, Enum):
    BEARER = "Bearer"
    API_KEY = "ApiKey"


@dataclass(frozen=True)
class Credential:
    kind: CredentialKind
    value: str


def parse_authorization(header: Optional[str], kind: CredentialKind) -> Credential:
    """Parse a raw Authorization header value expecting the given scheme."""
    if header is None or not header.strip():
        raise MissingAuthorizationHeader()

    parts = _FIRST_WHITESPACE.split(header.lstrip(), maxsplit=1)
    if len(parts) != 2:
        raise MalformedAuthorizationHeader()

    scheme, value = parts[0], parts[1].strip()
    if scheme.lower() != kind.value.lower():
        raise AuthorizationSchemeMismatch()
    if not value:
        raise EmptyCredential()

    return Credential(kind=kind, value=value)


def get_bearer_token(headers: Mapping[str, str]) -> str:
    return parse_authorization(headers.get(AUTHORIZATION_HEADER), CredentialKind.BEARER).value


def get_api_key(headers: Mapping[str, str]) -> str:
    return parse_authorization(headers.get(AUTHORIZATION_HEADER), CredentialKind.API_KEY).value
