import uuid

from rest_framework import mixins, status, viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from apps.common.permissions import RolePermission


class EnvelopeModelViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """ModelViewSet answering with ``{success, data, message}`` envelopes.

    PUT behaves like PATCH: only the fields sent are changed. Lists are sorted
    with ``sortBy``/``order`` restricted to ``sort_fields``.
    """

    permission_classes = [RolePermission]
    entity_label = "Record"
    sort_fields = ("created_at",)
    default_sort = "created_at"
    default_order = "desc"
    create_status = status.HTTP_201_CREATED

    def uuid_param(self, name):
        value = self.request.query_params.get(name)
        if not value:
            return None
        try:
            return uuid.UUID(value.strip())
        except ValueError:
            raise ValidationError({name: f"'{value}' is not a valid id"})

    def apply_sorting(self, queryset):
        sort_by = self.request.query_params.get("sortBy") or self.default_sort
        if sort_by not in self.sort_fields:
            sort_by = self.default_sort
        direction = (self.request.query_params.get("order") or self.default_order).strip().lower()
        prefix = "" if direction == "asc" else "-"
        return queryset.order_by(f"{prefix}{sort_by}", f"{prefix}pk")

    def envelope(self, data=None, message=None, status_code=status.HTTP_200_OK):
        body = {"success": True}
        if data is not None:
            body["data"] = data
        if message:
            body["message"] = message
        return Response(body, status=status_code)

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        serializer = self.get_serializer(queryset, many=True)
        body = {"success": True, "data": serializer.data, "total": len(serializer.data)}
        return Response(body)

    def retrieve(self, request, *args, **kwargs):
        instance = self.get_object()
        return self.envelope(self.get_serializer(instance).data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        return self.envelope(
            serializer.data,
            message=f"{self.entity_label} created successfully",
            status_code=self.create_status,
        )

    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)
        return self.envelope(serializer.data, message=f"{self.entity_label} updated successfully")

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        self.perform_destroy(instance)
        return self.envelope(message=f"{self.entity_label} deleted successfully")
