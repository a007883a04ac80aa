from rest_framework.routers import DefaultRouter

from apps.warranties.views import WarrantyViewSet

router = DefaultRouter()
router.register("warranties", WarrantyViewSet, basename="warranty")

urlpatterns = router.urls
