from math import ceil

from django.conf import settings
from rest_framework.exceptions import ValidationError
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.utils.urls import replace_query_param, remove_query_param


class ReviewPagination(PageNumberPagination):
    """
    ``page``/``per_page`` (or ``offset``) pagination that returns a bare list
    and reports totals in X-Total-Count / X-Total-Pages / Link headers.
    """
    page_size = getattr(settings, 'REVIEWS_PER_PAGE', 10)
    page_size_query_param = 'per_page'
    max_page_size = getattr(settings, 'REVIEWS_MAX_PER_PAGE', 100)
    offset_query_param = 'offset'

    def paginate_queryset(self, queryset, request, view=None):
        self.request = request
        self.per_page = self.get_page_size(request)
        self.page_number = self._int_param(request, self.page_query_param, 1, minimum=1)
        offset = self._int_param(request, self.offset_query_param, 0, minimum=0)

        self.total = queryset.count()
        self.total_pages = ceil(self.total / self.per_page) if self.total else 0

        start = offset if offset else (self.page_number - 1) * self.per_page
        return list(queryset[start:start + self.per_page])

    def get_page_size(self, request):
        page_size = self._int_param(request, self.page_size_query_param, self.page_size, minimum=1)
        if page_size > self.max_page_size:
            raise ValidationError({
                self.page_size_query_param: [f"Ensure this value is less than or equal to {self.max_page_size}."]
            })
        return page_size

    def _int_param(self, request, name, default, minimum=0):
        raw = request.query_params.get(name)
        if raw in (None, ''):
            return default
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise ValidationError({name: ['A valid integer is required.']})
        if value < minimum:
            raise ValidationError({name: [f"Ensure this value is greater than or equal to {minimum}."]})
        return value

    def get_paginated_response(self, data):
        headers = {
            'X-Total-Count': str(self.total),
            'X-Total-Pages': str(self.total_pages),
        }
        link = self.get_link_header()
        if link:
            headers['Link'] = link
        return Response(data, headers=headers)

    def get_link_header(self):
        url = remove_query_param(self.request.build_absolute_uri(), self.offset_query_param)
        links = []
        if self.page_number > 1:
            prev_page = min(self.page_number - 1, self.total_pages) or 1
            links.append(f'<{replace_query_param(url, self.page_query_param, prev_page)}>; rel="prev"')
        if self.page_number < self.total_pages:
            links.append(f'<{replace_query_param(url, self.page_query_param, self.page_number + 1)}>; rel="next"')
        return ', '.join(links)
