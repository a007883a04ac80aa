from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import action

from apps.common.viewsets import EnvelopeModelViewSet
from apps.warranties import services
from apps.warranties.serializers import (
    WarrantyCreateSerializer,
    WarrantyPaymentInputSerializer,
    WarrantyPaymentSerializer,
    WarrantySerializer,
    WarrantyWriteSerializer,
)


class WarrantyViewSet(EnvelopeModelViewSet):
    serializer_class = WarrantySerializer
    entity_label = "Warranty"
    create_status = status.HTTP_200_OK
    sort_fields = (
        "created_at",
        "updated_at",
        "purchase_date",
        "expiry_date",
        "customer_name",
        "status",
        "product_id",
    )
    default_sort = "created_at"
    default_order = "desc"
    capability_map = {
        "list": ["warranties.view"],
        "retrieve": ["warranties.view"],
        "payments": ["warranties.view"],
        "create": ["warranties.manage"],
        "create_payment": ["warranties.manage"],
        "update": ["warranties.manage"],
        "partial_update": ["warranties.manage"],
        "destroy": ["warranties.delete"],
    }

    def get_queryset(self):
        queryset = services.warranty_queryset()
        params = self.request.query_params

        search = params.get("search")
        if search:
            search = search.strip()
            queryset = queryset.filter(
                Q(customer_name__icontains=search)
                | Q(customer_email__icontains=search)
                | Q(customer_phone__icontains=search)
                | Q(notes__icontains=search)
            )

        product_id = self.uuid_param("productId")
        if product_id:
            queryset = queryset.filter(product_id=product_id)

        warranty_status = params.get("status")
        if warranty_status:
            queryset = queryset.filter(status=warranty_status.strip().lower())
        return self.apply_sorting(queryset)

    def get_serializer_class(self):
        if self.action == "create":
            return WarrantyCreateSerializer
        if self.action in {"update", "partial_update"}:
            return WarrantyWriteSerializer
        if self.action == "create_payment":
            return WarrantyPaymentInputSerializer
        if self.action == "payments":
            return WarrantyPaymentSerializer
        return WarrantySerializer

    def render_warranty(self, warranty):
        return WarrantySerializer(warranty, context=self.get_serializer_context()).data

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        warranty = services.register_warranty(
            product=fields.pop("product"),
            customer_name=fields.pop("customer_name"),
            purchase_date=fields.pop("purchase_date"),
            warranty_period_months=fields.pop("warranty_period_months"),
            actor=request.user,
            **fields,
        )
        return self.envelope(
            self.render_warranty(warranty),
            message="Warranty registered successfully",
            status_code=self.create_status,
        )

    def retrieve(self, request, *args, **kwargs):
        return self.envelope(self.render_warranty(services.get_warranty(kwargs["pk"])))

    def update(self, request, *args, **kwargs):
        services.get_warranty(kwargs["pk"])
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        warranty = services.update_warranty(kwargs["pk"], fields=dict(serializer.validated_data), actor=request.user)
        return self.envelope(self.render_warranty(warranty), message="Warranty updated successfully")

    def destroy(self, request, *args, **kwargs):
        services.delete_warranty(kwargs["pk"], actor=request.user)
        return self.envelope(message="Warranty deleted successfully")

    @action(detail=True, methods=["get"])
    def payments(self, request, pk=None):
        warranty = services.get_warranty(pk)
        serializer = WarrantyPaymentSerializer(warranty.payments.all(), many=True)
        return self.envelope(serializer.data)

    @payments.mapping.post
    def create_payment(self, request, pk=None):
        services.get_warranty(pk)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.register_payment(pk, actor=request.user, **serializer.validated_data)
        return self.envelope(
            WarrantyPaymentSerializer(payment).data,
            message="Payment recorded successfully",
        )
