from __future__ import annotations

from rest_framework import serializers

from modules.accounts.models import Address


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = [
            "id",
            "name",
            "email",
            "phone",
            "street",
            "city",
            "state",
            "zip_code",
            "country",
        ]
        read_only_fields = fields
