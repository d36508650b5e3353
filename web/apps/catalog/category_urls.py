from django.urls import path

from .views import CategoryCandlesView

app_name = "categories"

urlpatterns = [
    path("<int:category_id>/candles/", CategoryCandlesView.as_view(), name="category-candles"),
]
