# trading/authentication.py
import logging
import time

import jwt
from django.conf import settings
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication

from .models import Staff

logger = logging.getLogger(__name__)


def issue_token(staff: Staff, ttl: int | None = None) -> str:
    """Signed token carrying the caller context the API expects."""
    now = int(time.time())
    payload = {
        "id": staff.pk,
        "username": staff.username,
        "role": staff.role,
        "branch": staff.branch,
        "iat": now,
        "exp": now + (ttl if ttl is not None else settings.JWT_TTL_SECONDS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _token_from_request(request):
    header = request.META.get("HTTP_AUTHORIZATION", "")
    if header.startswith("Bearer "):
        return header.split(" ", 1)[1].strip() or None
    return request.COOKIES.get("token")


class BearerTokenAuthentication(BaseAuthentication):
    """
    Authorization: Bearer <jwt>  (or a `token` cookie set by the login page)
    request.user becomes the Staff row named by the token's `id`.
    """

    def authenticate(self, request):
        token = _token_from_request(request)
        if not token:
            return None

        try:
            claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            logger.warning("rejected expired token")
            raise exceptions.AuthenticationFailed("Invalid or expired authentication token")
        except jwt.InvalidTokenError:
            logger.warning("rejected invalid token")
            raise exceptions.AuthenticationFailed("Invalid or expired authentication token")

        staff = Staff.objects.filter(pk=claims.get("id"), is_active=True).first()
        if staff is None:
            raise exceptions.AuthenticationFailed("Invalid or expired authentication token")
        return staff, token

    def authenticate_header(self, request):
        # makes DRF answer 401 instead of 403 when no token is sent
        return "Bearer"
