from django.urls import path

from .views import (
    OrderDetailsView,
    OrderLineView,
    OrderReceiverView,
    OrdersCollectionView,
    RetrieveOrderView,
)

app_name = "orders"

urlpatterns = [
    path("", OrdersCollectionView.as_view(), name="orders-collection"),  # GET list / POST create
    path("<int:order_id>/", RetrieveOrderView.as_view(), name="orders-detail"),
    path("<int:order_id>/details/", OrderDetailsView.as_view(), name="orders-lines"),
    path("<int:order_id>/details/<int:candle_id>/", OrderLineView.as_view(), name="orders-line"),
    path("<int:order_id>/receiver/", OrderReceiverView.as_view(), name="orders-receiver"),
]
