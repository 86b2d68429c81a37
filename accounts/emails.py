import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils.html import escape, strip_tags

logger = logging.getLogger(__name__)


class Notifier:
    """
    Sends the transactional emails of the auth and booking flows.

    Delivery goes through Django's configured email backend (SMTP in
    production, locmem in tests). Pass ``connection`` to route messages
    through a specific backend instance.
    """

    def __init__(self, connection=None, from_email=None):
        self.connection = connection
        self.from_email = from_email

    def send(self, recipient, subject, html):
        message = EmailMultiAlternatives(
            subject=subject,
            body=strip_tags(html),
            from_email=self.from_email or settings.DEFAULT_FROM_EMAIL,
            to=[recipient],
            connection=self.connection,
        )
        message.attach_alternative(html, "text/html")
        message.send(fail_silently=False)
        logger.info("Sent '%s' email to %s", subject, recipient)

    def send_verification(self, email, token):
        url = f"{settings.FRONTEND_URL}/verify/{token}"
        hours = settings.VERIFICATION_TOKEN_HOURS
        html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h2>Welcome to Smart Parking System!</h2>
          <p>Please click the link below to verify your email address:</p>
          <p><a href="{url}">Verify Email</a></p>
          <p>Or copy and paste this link in your browser:<br>{url}</p>
          <p>This link will expire in {hours} hours.</p>
        </div>
        """
        self.send(email, "Verify Your Email", html)

    def send_password_reset(self, email, token):
        url = f"{settings.FRONTEND_URL}/reset-password/{token}"
        html = f'Please click this link to reset your password: <a href="{url}">{url}</a>'
        self.send(email, "Password Reset Request", html)

    def send_booking_otp(self, email, otp, booking_details):
        minutes = settings.OTP_EXPIRY_MINUTES
        html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h2>Verify Your Parking Spot Booking</h2>
          <p>Your verification code is: <strong>{otp}</strong></p>
          <p>This code will expire in {minutes} minutes.</p>
          <p>Booking Details:</p>
          <ul>
            <li>Spot: {escape(booking_details["spotId"])}</li>
            <li>Vehicle: {escape(booking_details["registrationNumber"])}</li>
            <li>Start Time: {escape(booking_details["startTime"])}</li>
            <li>End Time: {escape(booking_details["endTime"])}</li>
          </ul>
        </div>
        """
        self.send(email, "Parking Spot Booking Verification", html)
