from rest_framework import serializers


class VerifyIdentitySerializer(serializers.Serializer):
    token = serializers.CharField(
        error_messages={"required": "Token required", "blank": "Token required"},
    )

    def validate_token(self, value):
        return value.strip()


class SessionSerializer(serializers.Serializer):
    sub = serializers.CharField()
    email = serializers.CharField(allow_blank=True)
    name = serializers.CharField(allow_blank=True)
    picture = serializers.CharField(allow_blank=True)
