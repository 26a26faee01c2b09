from rest_framework import mixins, viewsets, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from apps.utils.pagination import StandardResultsSetPagination
from .filters import ProductFilter
from .models import Product
from .serializers import ProductSerializer


class ProductPagination(StandardResultsSetPagination):
    results_key = "products"


# sortBy value -> model field
SORT_FIELDS = {
    "name": "name",
    "price": "price",
    "createdAt": "created_at",
    "stockQuantity": "stock_quantity",
}


class ProductViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.CreateModelMixin,
                     mixins.UpdateModelMixin,
                     viewsets.GenericViewSet):
    """
    Public product catalog.
    Listing/detail only show active products; PUT is a partial update
    and can reach inactive ones.
    """
    serializer_class = ProductSerializer
    permission_classes = [AllowAny]
    filter_backends = [DjangoFilterBackend]
    filterset_class = ProductFilter
    pagination_class = ProductPagination

    def get_queryset(self):
        qs = Product.objects.all()
        if self.action in ("list", "retrieve"):
            qs = qs.filter(is_active=True)
        if self.action == "list":
            qs = qs.order_by(*self._ordering())
        return qs

    def _ordering(self):
        sort_by = self.request.query_params.get("sortBy")
        field = SORT_FIELDS.get(sort_by)
        if not field:
            return ["id"]
        if self.request.query_params.get("sortOrder", "asc").lower() == "desc":
            return [f"-{field}", "id"]
        return [field, "id"]

    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        if isinstance(response.data, dict):
            response.data["sortBy"] = request.query_params.get("sortBy")
            response.data["sortOrder"] = request.query_params.get("sortOrder")
        return response

    def update(self, request, *args, **kwargs):
        kwargs["partial"] = True
        return super().update(request, *args, **kwargs)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = serializer.save()
        return Response(
            self.get_serializer(product).data,
            status=status.HTTP_201_CREATED,
            headers={"Location": f"/api/products/{product.id}"},
        )
