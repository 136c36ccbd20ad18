"""
Domain exceptions for subscriptions app.

Validation and policy errors are reported before any schedule is computed;
lifecycle conflicts reject a delivery status transition; collaborator
failures are surfaced as retryable and never retried here.
"""
from rest_framework.exceptions import APIException


class InvalidSubscriptionRequestError(APIException):
    """Subscription request failed validation (missing start date, bad quantity, ...)."""
    status_code = 400
    default_detail = 'Invalid subscription request.'
    default_code = 'invalid_subscription_request'


class PatternNotAllowedError(APIException):
    """Delivery pattern is not offered for the chosen period."""
    status_code = 400
    default_detail = 'This delivery pattern is not available for the selected period.'
    default_code = 'pattern_not_allowed'


class SubscriptionNotFoundError(APIException):
    """Subscription not found."""
    status_code = 404
    default_detail = 'Subscription not found.'
    default_code = 'subscription_not_found'


class SubscriptionOrderNotFoundError(APIException):
    """Subscription order not found."""
    status_code = 404
    default_detail = 'Subscription order not found.'
    default_code = 'subscription_order_not_found'


class DeliveryEntryNotFoundError(APIException):
    """Delivery schedule entry not found."""
    status_code = 404
    default_detail = 'Delivery not found.'
    default_code = 'delivery_not_found'


class DeliveryTransitionError(APIException):
    """Delivery entry cannot move to the requested status."""
    status_code = 409
    default_detail = 'This delivery can no longer be changed.'
    default_code = 'delivery_transition_conflict'


class SubscriptionAlreadyCancelledError(APIException):
    """Subscription was already cancelled."""
    status_code = 409
    default_detail = 'Subscription is already cancelled.'
    default_code = 'subscription_already_cancelled'


class PaymentAlreadyRecordedError(APIException):
    """Order payment was already recorded."""
    status_code = 409
    default_detail = 'Payment for this order is already recorded.'
    default_code = 'payment_already_recorded'
