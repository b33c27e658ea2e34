from rest_framework import permissions

from .policies import is_allowed


class RolePolicyPermission(permissions.BasePermission):
    """
    Allow a request only if the user's role may perform the view's operation.

    Views declare ``policy_operations``, a mapping of viewset action (or
    lowercase HTTP method for plain API views) to a policy operation.
    The ``"*"`` key is used for anything not listed.
    """

    message = "Your role does not allow this operation."

    def get_operation(self, request, view):
        operations = getattr(view, "policy_operations", {})
        action = getattr(view, "action", None) or request.method.lower()

        return operations.get(action, operations.get("*"))

    def has_permission(self, request, view):
        user = request.user

        # Unauthenticated requests are turned into 401 by DRF
        if not user or not user.is_authenticated:
            return False

        operation = self.get_operation(request, view)

        if operation is None:
            return False

        return is_allowed(user.role, operation)
