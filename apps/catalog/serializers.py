from rest_framework import serializers
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    average_rating = serializers.ReadOnlyField()
    review_count = serializers.ReadOnlyField()

    class Meta:
        model = Product
        fields = ('id', 'name', 'slug', 'short_description', 'price', 'sku',
                  'reviews_allowed', 'average_rating', 'review_count', 'is_active')
