from django.contrib import admin
from django.urls import include, path

admin.site.site_header = "Stockroom administration"
admin.site.site_title = "Stockroom"

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health/", include("apps.health.urls")),
    path("api/v1/", include("apps.api_urls")),
]
