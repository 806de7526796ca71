# apps/core/authentication.py
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import BasePermission

from .models import CompanyMembership


class CompanyJWTAuthentication(JWTAuthentication):
    """
    JWT authentication for company users and the mobile ELD app:
    - First checks 'access_token' in cookies
    - If not found, falls back to 'Authorization: Bearer <token>' header
    - The token's user must belong to a company
    """

    def authenticate(self, request):
        # 1. Check cookies
        access_token = request.COOKIES.get("access_token")
        if access_token:
            try:
                validated_token = self.get_validated_token(access_token)
                user = self.get_user(validated_token)
                return (self._require_membership(user), validated_token)
            except AuthenticationFailed:
                pass  # invalid/expired token in cookie → fall back to header

        # 2. Fallback to default header-based JWT auth
        header = self.get_header(request)
        if header is None:
            return None

        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        validated_token = self.get_validated_token(raw_token)
        user = self.get_user(validated_token)

        return (self._require_membership(user), validated_token)

    def _require_membership(self, user):
        if get_user_membership(user) is None:
            raise AuthenticationFailed("User is not attached to a company")
        return user


def get_user_membership(user):
    """Return the user's CompanyMembership or None."""
    if user is None or not user.is_authenticated:
        return None
    try:
        return user.membership
    except CompanyMembership.DoesNotExist:
        return None


class HasCompanyMembership(BasePermission):
    """
    Allows access only to authenticated users of an active company.
    """
    message = "A company membership is required."

    def has_permission(self, request, view):
        membership = get_user_membership(request.user)
        return membership is not None and membership.company.is_active


class IsCompanyStaff(HasCompanyMembership):
    """
    Managers and dispatchers: may register devices and manage driver mappings.
    """
    message = "Only managers and dispatchers may perform this action."

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return get_user_membership(request.user).role in ('manager', 'dispatcher')


class IsCompanyManager(HasCompanyMembership):
    message = "Only managers may perform this action."

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return get_user_membership(request.user).is_manager
