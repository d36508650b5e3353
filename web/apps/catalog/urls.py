from django.urls import path

from .views import CandleByNameView, CandleDetailView, CandlesCollectionView

app_name = "catalog"

urlpatterns = [
    path("", CandlesCollectionView.as_view(), name="candles-collection"),  # GET list / POST create
    path("<int:candle_id>/", CandleDetailView.as_view(), name="candles-detail"),
    path("by-name/<str:name>/", CandleByNameView.as_view(), name="candles-by-name"),
]
