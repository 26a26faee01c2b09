from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardResultsSetPagination(PageNumberPagination):
    """
    ?page=1&limit=10 style pagination.
    Response: {<results_key>: [...], total, page, limit}
    """
    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 100
    results_key = "results"

    def get_paginated_response(self, data):
        return Response({
            self.results_key: data,
            "total": self.page.paginator.count,
            "page": self.page.number,
            "limit": self.get_page_size(self.request),
        })

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "required": [self.results_key, "total", "page", "limit"],
            "properties": {
                self.results_key: schema,
                "total": {"type": "integer"},
                "page": {"type": "integer"},
                "limit": {"type": "integer"},
            },
        }
