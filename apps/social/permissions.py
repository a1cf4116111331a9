from rest_framework import permissions

from .hooks import review_capability

CAPABILITY_PERMS = {
    'read': 'social.view_review',
    'create': 'social.add_review',
    'edit': 'social.change_review',
    'delete': 'social.delete_review',
}


def user_can(user, capability, review=None):
    """Capability check for the review API, adjustable through the review_capability hook."""
    allowed = bool(
        user and user.is_authenticated
        and user.has_perm(CAPABILITY_PERMS[capability])
    )
    return bool(review_capability.apply(allowed, user=user, capability=capability, review=review))


class ReviewPermission(permissions.BasePermission):
    """
    Collection routes are checked up front. Detail routes are checked against
    the loaded review, so an unknown id answers 404 before any 401/403.
    """

    ACTION_CAPABILITIES = {
        'list': 'read',
        'retrieve': 'read',
        'create': 'create',
        'update': 'edit',
        'partial_update': 'edit',
        'destroy': 'delete',
    }

    COLLECTION_ACTIONS = ('list', 'create')

    def has_permission(self, request, view):
        if view.action == 'batch':
            # Items are checked one by one
            return bool(request.user and request.user.is_authenticated)
        if view.action in self.COLLECTION_ACTIONS:
            return user_can(request.user, self.ACTION_CAPABILITIES[view.action])
        return True

    def has_object_permission(self, request, view, obj):
        capability = self.ACTION_CAPABILITIES.get(view.action)
        if capability is None:
            return False
        return user_can(request.user, capability, obj)
