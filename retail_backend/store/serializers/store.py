# store/serializers/store.py

from rest_framework import serializers

from store.models import Store


class StoreSerializer(serializers.ModelSerializer):
    """
    Serializer for store / branch master data.
    """

    label = serializers.CharField(read_only=True)

    class Meta:
        model = Store
        fields = [
            "id",
            "name",
            "code",
            "label",
            "address",
            "phone",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "created_at",
            "updated_at",
        ]
