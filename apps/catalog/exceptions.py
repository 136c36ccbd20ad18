"""
Domain exceptions for catalog app.
"""
from rest_framework.exceptions import APIException


class ProductNotFoundError(APIException):
    """Product not found or not active."""
    status_code = 404
    default_detail = 'Product not found.'
    default_code = 'product_not_found'


class VariantNotFoundError(APIException):
    """Product variant not found."""
    status_code = 404
    default_detail = 'Product variant not found.'
    default_code = 'variant_not_found'


class VariantUnavailableError(APIException):
    """Variant exists but is not currently sold."""
    status_code = 400
    default_detail = 'This product variant is not available.'
    default_code = 'variant_unavailable'


class CatalogImportError(Exception):
    """Catalog payload could not be imported."""
    pass
