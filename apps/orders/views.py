from django.db.models import Q
from rest_framework import status

from apps.common.viewsets import EnvelopeModelViewSet
from apps.orders import services
from apps.orders.serializers import OrderCreateSerializer, OrderSerializer, OrderUpdateSerializer


class OrderViewSet(EnvelopeModelViewSet):
    serializer_class = OrderSerializer
    entity_label = "Order"
    create_status = status.HTTP_200_OK
    sort_fields = (
        "created_at",
        "updated_at",
        "order_date",
        "order_number",
        "status",
        "total_amount",
        "expected_delivery_date",
    )
    default_sort = "created_at"
    default_order = "desc"
    capability_map = {
        "list": ["orders.view"],
        "retrieve": ["orders.view"],
        "create": ["orders.manage"],
        "update": ["orders.manage"],
        "partial_update": ["orders.manage"],
        "destroy": ["orders.delete"],
    }

    def get_queryset(self):
        queryset = services.order_queryset()
        params = self.request.query_params

        search = params.get("search")
        if search:
            search = search.strip()
            queryset = queryset.filter(Q(order_number__icontains=search) | Q(notes__icontains=search))

        supplier_id = self.uuid_param("supplierId")
        if supplier_id:
            queryset = queryset.filter(supplier_id=supplier_id)

        order_status = params.get("status")
        if order_status:
            queryset = queryset.filter(status=order_status.strip().lower())
        return self.apply_sorting(queryset)

    def get_serializer_class(self):
        if self.action == "create":
            return OrderCreateSerializer
        if self.action in {"update", "partial_update"}:
            return OrderUpdateSerializer
        return OrderSerializer

    def render_order(self, order):
        return OrderSerializer(order, context=self.get_serializer_context()).data

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        order = services.create_order(
            supplier=fields.pop("supplier", None),
            items=fields.pop("items", []),
            actor=request.user,
            **fields,
        )
        return self.envelope(self.render_order(order), message="Order created successfully", status_code=self.create_status)

    def retrieve(self, request, *args, **kwargs):
        return self.envelope(self.render_order(services.get_order(kwargs["pk"])))

    def update(self, request, *args, **kwargs):
        services.get_order(kwargs["pk"])
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        new_items = fields.pop("new_items", None)
        order = services.update_order(kwargs["pk"], fields=fields, new_items=new_items, actor=request.user)
        return self.envelope(self.render_order(order), message="Order updated successfully")

    def destroy(self, request, *args, **kwargs):
        services.delete_order(kwargs["pk"], actor=request.user)
        return self.envelope(message="Order deleted successfully")
