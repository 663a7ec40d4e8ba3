"""
Celery tasks for account emails.
"""

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.core.mail import send_mail
from django.template.loader import render_to_string
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode

from celery import shared_task

User = get_user_model()
logger = logging.getLogger(__name__)


def build_reset_link(user):
    """Front-end reset URL carrying the uid and one-time token."""
    uid = urlsafe_base64_encode(force_bytes(user.pk))
    token = default_token_generator.make_token(user)
    return uid, token, f"{settings.FRONTEND_URL}/reset-password?uid={uid}&token={token}"


@shared_task(bind=True, max_retries=3)
def send_password_reset_email(self, user_id):
    """
    Email a password reset link to the user.

    Args:
        user_id: Primary key of the user who asked for the reset
    """
    try:
        user = User.objects.get(pk=user_id)
    except User.DoesNotExist:
        logger.error(f"Password reset requested for missing user {user_id}")
        return

    uid, token, reset_link = build_reset_link(user)
    context = {
        "user": user,
        "reset_link": reset_link,
        "uid": uid,
        "token": token,
        "company_name": settings.POS_COMPANY_NAME,
    }

    try:
        send_mail(
            subject=f"{settings.POS_COMPANY_NAME} password reset",
            message=render_to_string("core/emails/password_reset.txt", context),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[user.email],
        )
    except Exception as exc:
        logger.error(f"Failed to send password reset email to user {user_id}: {exc}")
        raise self.retry(exc=exc, countdown=60 * (2**self.request.retries))

    logger.info(f"Sent password reset email to user {user_id}")
