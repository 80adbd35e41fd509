from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    # Django's operator admin; /admin/ belongs to the JSON admin API
    path("django-admin/", admin.site.urls),
    path("chat/", include("support_app.urls")),
    path("", include("main.urls")),
]
