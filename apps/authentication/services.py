from dataclasses import dataclass, field

from rest_framework_simplejwt.tokens import RefreshToken, AccessToken
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings

from apps.common.exceptions import AuthenticationError

import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    role: str
    token: AccessToken = field(default=None, repr=False, compare=False)


class TokenService:
    """Issues and validates the bearer tokens used by the API."""

    ROLE_CLAIM = "role"

    @classmethod
    def issue_for(cls, user):
        """
        Create a refresh/access token pair for ``user``.

        The role is stored as a claim so clients can adapt their UI; the
        server always authorizes against the role stored on the user.
        """

        refresh = RefreshToken.for_user(user)
        refresh[cls.ROLE_CLAIM] = user.role

        return {
            "refresh": str(refresh),
            "access": str(refresh.access_token),
        }

    @classmethod
    def validate(cls, raw_token):
        """
        Validate an access token and return its subject and role.

        Raises:
            AuthenticationError: if the token is malformed, expired or lacks claims
        """

        try:
            token = AccessToken(raw_token)
        except TokenError as e:
            logger.info(f"Rejected access token: {str(e)}")
            raise AuthenticationError(str(e))

        subject = token.get(api_settings.USER_ID_CLAIM)
        role = token.get(cls.ROLE_CLAIM)

        if subject is None or role is None:
            raise AuthenticationError("Token is missing required claims")

        return TokenClaims(subject=str(subject), role=role, token=token)
