from django.conf import settings
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class EnvelopePagination(PageNumberPagination):
    """``page``/``limit`` paging; a page past the end is empty rather than a 404.

    A ``page`` that is not a positive integer is read as page 1.
    """

    page_size_query_param = "limit"

    @property
    def max_page_size(self):
        return settings.API_MAX_PAGE_SIZE

    def get_page_number(self, request, paginator=None):
        try:
            return max(1, int(request.query_params.get(self.page_query_param, 1)))
        except (TypeError, ValueError):
            return 1

    def paginate_queryset(self, queryset, request, view=None):
        self.request = request
        self.limit = self.get_page_size(request)
        if not self.limit:
            return None
        self.page_number = self.get_page_number(request)
        self.count = queryset.count()
        offset = (self.page_number - 1) * self.limit
        return list(queryset[offset : offset + self.limit])

    def get_paginated_response(self, data):
        return Response(
            {
                "success": True,
                "data": data,
                "total": self.count,
                "page": self.page_number,
                "limit": self.limit,
            }
        )
