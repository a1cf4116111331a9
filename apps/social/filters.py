import django_filters
from django.db.models import Case, IntegerField, Value, When
from rest_framework import filters
from rest_framework.exceptions import ValidationError

from apps.comments.models import Comment
from .models import Review


class NumberInFilter(django_filters.BaseInFilter, django_filters.NumberFilter):
    pass


class UUIDInFilter(django_filters.BaseInFilter, django_filters.UUIDFilter):
    pass


class ReviewFilter(django_filters.FilterSet):
    """Collection query parameters of ``GET /reviews/``."""

    STATUS_CHOICES = (
        ('all', 'All'),
        ('hold', 'Hold'),
        ('approved', 'Approved'),
        ('spam', 'Spam'),
        ('trash', 'Trash'),
    )

    STATUS_LOOKUP = {
        'all': [Comment.APPROVED, Comment.HOLD],
        'hold': [Comment.HOLD],
        'approved': [Comment.APPROVED],
        'spam': [Comment.SPAM],
        'trash': [Comment.TRASH],
    }

    reviewer = UUIDInFilter(field_name='user_id', lookup_expr='in')
    reviewer_exclude = UUIDInFilter(field_name='user_id', lookup_expr='in', exclude=True)
    reviewer_email = django_filters.CharFilter(field_name='author_email', lookup_expr='iexact')
    include = NumberInFilter(field_name='id', lookup_expr='in')
    exclude = NumberInFilter(field_name='id', lookup_expr='in', exclude=True)
    product = NumberInFilter(field_name='object_id', lookup_expr='in')
    search = django_filters.CharFilter(method='filter_search')
    status = django_filters.ChoiceFilter(choices=STATUS_CHOICES, method='filter_status')
    before = django_filters.IsoDateTimeFilter(field_name='date', lookup_expr='lt')
    after = django_filters.IsoDateTimeFilter(field_name='date', lookup_expr='gt')

    class Meta:
        model = Review
        fields = ['reviewer', 'reviewer_exclude', 'reviewer_email', 'include', 'exclude',
                  'product', 'search', 'status', 'before', 'after']

    def __init__(self, data=None, *args, **kwargs):
        # Only approved reviews unless a status is asked for
        if data is not None:
            data = data.copy()
            if not data.get('status'):
                data['status'] = 'approved'
        super().__init__(data, *args, **kwargs)

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.search(value)

    def filter_status(self, queryset, name, value):
        return queryset.filter(approved__in=self.STATUS_LOOKUP[value])


class ReviewOrderingFilter(filters.OrderingFilter):
    """``orderby`` picks the column, ``order`` (asc|desc) the direction; id breaks ties."""

    ordering_param = 'orderby'
    direction_param = 'order'
    default_orderby = 'date_gmt'
    default_direction = 'desc'

    ORDERBY_FIELDS = {
        'date': 'date',
        'date_gmt': 'date_gmt',
        'id': 'id',
        'include': 'include_position',
        'product': 'object_id',
    }

    def get_ordering(self, request, queryset, view):
        orderby = request.query_params.get(self.ordering_param) or self.default_orderby
        direction = (request.query_params.get(self.direction_param) or self.default_direction).lower()

        if orderby not in self.ORDERBY_FIELDS:
            raise ValidationError({self.ordering_param: [f"orderby is not one of {', '.join(self.ORDERBY_FIELDS)}."]})
        if direction not in ('asc', 'desc'):
            raise ValidationError({self.direction_param: ['order is not one of asc, desc.']})

        prefix = '-' if direction == 'desc' else ''
        ordering = [f"{prefix}{self.ORDERBY_FIELDS[orderby]}"]
        if orderby != 'id':
            ordering.append(f"{prefix}id")
        return ordering

    def filter_queryset(self, request, queryset, view):
        ordering = self.get_ordering(request, queryset, view)
        if any(field.lstrip('-') == 'include_position' for field in ordering):
            queryset = self.annotate_include_position(request, queryset)
        return queryset.order_by(*ordering)

    @staticmethod
    def annotate_include_position(request, queryset):
        ids = []
        for raw in (request.query_params.get('include') or '').split(','):
            raw = raw.strip()
            if raw.isdigit():
                ids.append(int(raw))
        whens = [When(pk=pk, then=Value(position)) for position, pk in enumerate(ids)]
        return queryset.annotate(
            include_position=Case(*whens, default=Value(len(ids)), output_field=IntegerField())
        )
