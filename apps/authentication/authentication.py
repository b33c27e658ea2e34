from rest_framework_simplejwt.authentication import JWTAuthentication

from .services import TokenService


class RoleClaimJWTAuthentication(JWTAuthentication):
    """
    Bearer token authentication that only accepts access tokens issued by
    ``TokenService``, i.e. tokens carrying a subject and a role claim.
    """

    def get_validated_token(self, raw_token):
        return TokenService.validate(raw_token).token
