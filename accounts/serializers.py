from django.contrib.auth import password_validation
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import Account


def required(message):
    """Same message whether the field is missing, null or blank."""
    return {"required": message, "null": message, "blank": message}


def check_password(value):
    try:
        password_validation.validate_password(value)
    except DjangoValidationError as exc:
        raise serializers.ValidationError(list(exc.messages))
    return value


class AccountSerializer(serializers.ModelSerializer):
    isVerified = serializers.BooleanField(source="is_verified", read_only=True)

    class Meta:
        model = Account
        fields = ["id", "email", "isVerified"]


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField(error_messages=required("Email and password are required"))
    password = serializers.CharField(
        trim_whitespace=False,
        error_messages=required("Email and password are required"),
    )

    def validate_password(self, value):
        return check_password(value)


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField(error_messages=required("Email and password are required"))
    password = serializers.CharField(
        trim_whitespace=False,
        error_messages=required("Email and password are required"),
    )


class EmailSerializer(serializers.Serializer):
    email = serializers.EmailField(error_messages=required("Email is required"))


class ResetPasswordSerializer(serializers.Serializer):
    password = serializers.CharField(trim_whitespace=False, error_messages=required("Password is required"))

    def validate_password(self, value):
        return check_password(value)
