from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import (
    AccountSerializer,
    EmailSerializer,
    LoginSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
)
from .services import auth_flow


class RegisterView(APIView):
    """
    Creates an unverified account and emails a verification link.
    """
    permission_classes = (AllowAny,)

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        auth_flow.register(**serializer.validated_data)
        return Response(
            {
                "success": True,
                "message": "Registration successful. Please check your email to verify your account.",
            },
            status=201,
        )


class ResendVerificationView(APIView):
    permission_classes = (AllowAny,)

    def post(self, request):
        serializer = EmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        auth_flow.resend_verification(serializer.validated_data["email"])
        return Response({"success": True, "message": "Verification email sent"}, status=200)


class VerifyEmailView(APIView):
    permission_classes = (AllowAny,)

    def get(self, request, token):
        auth_flow.verify_email(token)
        return Response({"success": True, "message": "Email verified successfully"}, status=200)


class LoginView(APIView):
    """
    Exchanges email + password for a signed session token (24h).
    """
    permission_classes = (AllowAny,)

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = auth_flow.login(**serializer.validated_data)
        return Response(
            {
                "success": True,
                "message": "Login successful",
                "user": AccountSerializer(result["account"]).data,
                "token": result["token"],
                "refresh": result["refresh"],
            },
            status=200,
        )


class ForgotPasswordView(APIView):
    permission_classes = (AllowAny,)

    def post(self, request):
        serializer = EmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        auth_flow.forgot_password(serializer.validated_data["email"])
        return Response({"success": True, "message": "Password reset email sent"}, status=200)


class ResetPasswordView(APIView):
    permission_classes = (AllowAny,)

    def post(self, request, token):
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        auth_flow.reset_password(token, serializer.validated_data["password"])
        return Response({"success": True, "message": "Password reset successful"}, status=200)


class MeView(APIView):
    permission_classes = (IsAuthenticated,)

    def get(self, request):
        return Response(
            {
                "success": True,
                "message": "Authenticated",
                "user": AccountSerializer(request.user).data,
            },
            status=200,
        )
