from django.urls import include, path

urlpatterns = [
    path("api/candles/", include("apps.catalog.urls")),
    path("api/categories/", include("apps.catalog.category_urls")),
    path("api/orders/", include("apps.orders.urls")),
    path("api/", include("apps.monitoring.urls")),
]
