"""Authentication for requests forwarded by the external auth gateway."""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings  # type: ignore
from rest_framework import authentication, exceptions  # type: ignore

MAX_USER_ID_LENGTH = 128


@dataclass(frozen=True)
class ExternalUser:
    """The caller as identified by the external auth provider."""

    user_id: str

    is_authenticated = True
    is_anonymous = False
    is_staff = False

    @property
    def pk(self) -> str:
        return self.user_id

    def __str__(self) -> str:
        return self.user_id


class ExternalUserAuthentication(authentication.BaseAuthentication):
    """
    Trusts the opaque user id placed in settings.EXTERNAL_AUTH_HEADER.

    The gateway in front of this service authenticates the session; a
    request without the header is anonymous.
    """

    def authenticate(self, request):  # type: ignore
        header = "HTTP_" + settings.EXTERNAL_AUTH_HEADER.upper().replace("-", "_")
        user_id = request.META.get(header, "").strip()
        if not user_id:
            return None
        if len(user_id) > MAX_USER_ID_LENGTH:
            raise exceptions.AuthenticationFailed("Invalid user identifier.")
        return ExternalUser(user_id=user_id), None

    def authenticate_header(self, request):  # type: ignore
        # Makes DRF answer 401 rather than 403 for anonymous requests
        return settings.EXTERNAL_AUTH_HEADER
