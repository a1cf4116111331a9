"""Review API errors. Each carries a stable ``code`` rendered by the API exception handler."""
from rest_framework import status
from rest_framework.exceptions import APIException


class ReviewError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Product review request failed.'
    default_code = 'review_error'

    def __init__(self, detail=None, code=None, data=None):
        super().__init__(detail, code)
        self.code = code or self.default_code
        self.data = data or {}


class ReviewNotFound(ReviewError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Invalid review ID.'
    default_code = 'review_invalid_id'


class ReviewInvalidType(ReviewError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Sorry, you are not allowed to change the comment type.'
    default_code = 'review_invalid_type'


class ReviewExists(ReviewError):
    default_detail = 'Cannot create existing product review.'
    default_code = 'review_exists'


class ReviewContentInvalid(ReviewError):
    default_detail = 'Invalid review content.'
    default_code = 'review_content_invalid'


class ProductInvalid(ReviewError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Invalid product ID.'
    default_code = 'product_invalid_id'


class ReviewFieldTooLong(ReviewError):
    default_detail = 'Product review field exceeds maximum length allowed.'

    # Storage column prefix -> API field name
    RENAMES = (('comment_author', 'reviewer'), ('comment_content', 'review_content'))

    def __init__(self, storage_code, max_length=None):
        code = storage_code
        for old, new in self.RENAMES:
            code = code.replace(old, new)
        field = code[:-len('_column_length')] if code.endswith('_column_length') else code
        super().__init__(code=code, data={'field': field, 'max_length': max_length})


class DuplicateReview(ReviewError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Duplicate comment detected; it looks as though you've already said that!"
    default_code = 'comment_duplicate'


class TooManyRequests(ReviewError):
    # Flood control answers 400, not 429
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'You are posting comments too quickly. Slow down.'
    default_code = 'comment_flood'


class TrashUnsupported(ReviewError):
    status_code = status.HTTP_501_NOT_IMPLEMENTED
    default_detail = "The object does not support trashing. Set 'force=true' to delete."
    default_code = 'trash_not_supported'


class AlreadyTrashed(ReviewError):
    status_code = status.HTTP_410_GONE
    default_detail = 'The object has already been trashed.'
    default_code = 'already_trashed'


class DeleteFailed(ReviewError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'The object cannot be deleted.'
    default_code = 'cannot_delete'


class ReviewCreateFailed(ReviewError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Creating product review failed.'
    default_code = 'review_failed_create'
