import logging

from django.db import transaction
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import APIException, PermissionDenied, ValidationError
from rest_framework.response import Response

from apps.utils.exceptions import error_payload
from . import hooks
from .exceptions import ReviewExists
from .filters import ReviewFilter, ReviewOrderingFilter
from .models import Review
from .pagination import ReviewPagination
from .permissions import ReviewPermission, user_can
from .serializers import ReviewBatchSerializer, ReviewSerializer
from .services import ReviewService

logger = logging.getLogger('apps.social')

BATCH_LIMIT = 100


def parse_force(value):
    if value in (None, ''):
        return False
    try:
        return serializers.BooleanField().to_internal_value(value)
    except ValidationError:
        raise ValidationError({'force': ['Must be a valid boolean.']})


class ReviewViewSet(viewsets.GenericViewSet):
    """
    Product reviews.

    list:    GET /reviews/
    create:  POST /reviews/
    detail:  GET|PUT|PATCH|DELETE /reviews/{id}/
    batch:   POST /reviews/batch/
    """
    serializer_class = ReviewSerializer
    permission_classes = [ReviewPermission]
    pagination_class = ReviewPagination
    filter_backends = [DjangoFilterBackend, ReviewOrderingFilter]
    filterset_class = ReviewFilter
    lookup_value_regex = r'-?\d+'

    def get_queryset(self):
        return Review.objects.reviews().select_related('user').prefetch_related('meta')

    def get_object(self):
        review = ReviewService.get_review(self.kwargs[self.lookup_url_kwarg or self.lookup_field])
        self.check_object_permissions(self.request, review)
        return review

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        # Callbacks may widen the query; it still only returns reviews
        queryset = hooks.review_query.apply(queryset, request=request).reviews()

        page = self.paginate_queryset(queryset)
        readable = [review for review in page if user_can(request.user, 'read', review)]
        serializer = self.get_serializer(readable, many=True)
        return self.get_paginated_response(serializer.data)

    def create(self, request, *args, **kwargs):
        if isinstance(request.data, dict) and request.data.get('id'):
            raise ReviewExists()

        review = self._create_review(request.data)
        data = self.get_serializer(review).data
        return Response(data, status=status.HTTP_201_CREATED, headers={'Location': data['_links']['self'][0]['href']})

    def retrieve(self, request, *args, **kwargs):
        review = self.get_object()
        return Response(self.get_serializer(review).data)

    def update(self, request, *args, **kwargs):
        # PUT and PATCH both only touch the fields that were sent
        review = self.get_object()
        review = self._update_review(review, request.data)
        return Response(self.get_serializer(review).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        review = self.get_object()
        force = parse_force(request.query_params.get('force'))
        result = ReviewService.delete(
            review, force=force, request=request, serializer_class=self.get_serializer_class()
        )
        if force:
            return Response(result)
        return Response(self.get_serializer(result).data)

    @action(detail=False, methods=['post'])
    def batch(self, request):
        """Create, update and delete several reviews; each item succeeds or fails on its own."""
        payload = ReviewBatchSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        items = payload.validated_data

        total = sum(len(items[key]) for key in ('create', 'update', 'delete'))
        if total > BATCH_LIMIT:
            raise ValidationError({'batch': [f"Unable to accept more than {BATCH_LIMIT} items for this request."]})

        results = {
            'create': [self._batch_item(self._batch_create, item) for item in items['create']],
            'update': [self._batch_item(self._batch_update, item, item.get('id', 0)) for item in items['update']],
            'delete': [self._batch_item(self._batch_delete, review_id, review_id) for review_id in items['delete']],
        }
        logger.info(f"Review batch by {request.user}: {len(items['create'])} create, "
                    f"{len(items['update'])} update, {len(items['delete'])} delete")
        return Response(results)

    # ----- helpers -----

    def _create_review(self, data):
        serializer = self.get_serializer(data=data)
        serializer.is_valid(raise_exception=True)
        return ReviewService.create(serializer.validated_data, request=self.request)

    def _update_review(self, review, data):
        serializer = self.get_serializer(review, data=data, partial=True)
        serializer.is_valid(raise_exception=True)
        return ReviewService.update(review, serializer.validated_data, request=self.request)

    def _batch_item(self, handler, item, item_id=0):
        try:
            with transaction.atomic():
                return handler(item)
        except APIException as exc:
            return {'id': item_id, 'error': error_payload(exc)}

    def _batch_create(self, item):
        if item.get('id'):
            raise ReviewExists()
        if not user_can(self.request.user, 'create'):
            raise PermissionDenied()
        return self.get_serializer(self._create_review(item)).data

    def _batch_update(self, item):
        review = ReviewService.get_review(item.get('id'))
        if not user_can(self.request.user, 'edit', review):
            raise PermissionDenied()
        return self.get_serializer(self._update_review(review, item)).data

    def _batch_delete(self, review_id):
        review = ReviewService.get_review(review_id)
        if not user_can(self.request.user, 'delete', review):
            raise PermissionDenied()
        return ReviewService.delete(
            review, force=True, request=self.request, serializer_class=self.get_serializer_class()
        )
