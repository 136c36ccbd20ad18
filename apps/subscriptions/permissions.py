"""
Custom permission classes for subscriptions app.

Members see and change only their own subscriptions, orders and
deliveries; staff (the dispatch team) see everything and record delivery
outcomes and external payments.
"""
from rest_framework.permissions import BasePermission


class IsStaffMember(BasePermission):
    """
    Permission for dispatch/back-office actions.

    Usage:
        def get_permissions(self):
            if self.action == 'update_status':
                return [IsAuthenticated(), IsStaffMember()]
    """

    message = 'Only staff can perform this action.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_staff)


class IsSubscriptionOwner(BasePermission):
    """Owner of the subscription or order (staff may read any)."""

    message = 'You do not have access to this subscription.'

    def has_object_permission(self, request, view, obj):
        if request.user.is_staff and request.method in ('GET', 'HEAD', 'OPTIONS'):
            return True
        return obj.member_id == request.user.id


class IsDeliveryOwner(BasePermission):
    """Owner of the delivery entry's subscription (staff may read any)."""

    message = 'You do not have access to this delivery.'

    def has_object_permission(self, request, view, obj):
        if request.user.is_staff and request.method in ('GET', 'HEAD', 'OPTIONS'):
            return True
        return obj.subscription.member_id == request.user.id
