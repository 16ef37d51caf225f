from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import TaskViewSet

router = SimpleRouter(trailing_slash=False)
router.register(r"", TaskViewSet, basename="tasks")

urlpatterns = [path("", include(router.urls))]
