from django.db import models


class CandleCategoryModel(models.Model):
    name = models.CharField(max_length=100, unique=True)

    class Meta:
        db_table = "candle_categories"
        ordering = ["name"]

    def __str__(self):
        return self.name


class CandleModel(models.Model):
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True, default="")
    photo_link = models.CharField(max_length=500, blank=True, default="")
    real_cost = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    sell_price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    height_cm = models.PositiveIntegerField(null=True, blank=True)
    burning_time_mins = models.PositiveIntegerField(null=True, blank=True)
    # A category holding candles cannot be removed from under them
    category = models.ForeignKey(
        CandleCategoryModel, on_delete=models.PROTECT, related_name="candles"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "candles"
        ordering = ["id"]

    def __str__(self):
        return self.name


class CandleIngredientModel(models.Model):
    candle = models.OneToOneField(
        CandleModel, on_delete=models.CASCADE, related_name="ingredient"
    )
    wick_diameter_cm = models.PositiveIntegerField()
    wax_grams = models.PositiveIntegerField()

    class Meta:
        db_table = "candle_ingredients"
