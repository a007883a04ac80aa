from django.db.models import ProtectedError, Q
from rest_framework import status
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.common.viewsets import EnvelopeModelViewSet
from apps.suppliers.models import Supplier
from apps.suppliers.serializers import SupplierSerializer


class SupplierViewSet(EnvelopeModelViewSet):
    serializer_class = SupplierSerializer
    entity_label = "Supplier"
    sort_fields = ("name", "created_at", "updated_at")
    default_sort = "name"
    default_order = "asc"
    capability_map = {
        "list": ["suppliers.view"],
        "retrieve": ["suppliers.view"],
        "create": ["suppliers.manage"],
        "update": ["suppliers.manage"],
        "partial_update": ["suppliers.manage"],
        "destroy": ["suppliers.delete"],
    }

    def get_queryset(self):
        queryset = Supplier.objects.all()
        search = self.request.query_params.get("search")
        if search:
            search = search.strip()
            queryset = queryset.filter(
                Q(name__icontains=search)
                | Q(email__icontains=search)
                | Q(phone__icontains=search)
                | Q(address__icontains=search)
            )

        is_active = self.request.query_params.get("isActive")
        if is_active is not None:
            normalized = is_active.strip().lower()
            if normalized in {"1", "true", "yes"}:
                queryset = queryset.filter(is_active=True)
            elif normalized in {"0", "false", "no"}:
                queryset = queryset.filter(is_active=False)
        return self.apply_sorting(queryset)

    def perform_create(self, serializer):
        supplier = serializer.save()
        record_audit(
            actor=self.request.user,
            action="suppliers.create",
            entity_type="supplier",
            entity_id=supplier.id,
            payload={"name": supplier.name, "email": supplier.email},
        )

    def perform_update(self, serializer):
        before = {"name": serializer.instance.name, "is_active": serializer.instance.is_active}
        supplier = serializer.save()
        record_audit(
            actor=self.request.user,
            action="suppliers.update",
            entity_type="supplier",
            entity_id=supplier.id,
            payload={"before": before, "after": {"name": supplier.name, "is_active": supplier.is_active}},
        )

    def destroy(self, request, *args, **kwargs):
        supplier = self.get_object()
        try:
            supplier.delete()
        except ProtectedError:
            return Response(
                {
                    "success": False,
                    "error": "Supplier has orders or products and cannot be deleted; deactivate it instead.",
                    "code": "supplier_in_use",
                    "fields": {},
                },
                status=status.HTTP_400_BAD_REQUEST,
            )
        record_audit(
            actor=request.user,
            action="suppliers.delete",
            entity_type="supplier",
            entity_id=kwargs.get("pk"),
            payload={"name": supplier.name},
        )
        return self.envelope(message="Supplier deleted successfully")
