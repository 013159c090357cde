from smtplib import SMTPException
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase

from rest_framework.test import APITestCase, APIClient

from notifications import gateway
from notifications.models import Notification

User = get_user_model()


class DeliveryTests(TestCase):
    def test_deliver_sends_mail(self):
        result = gateway.deliver("alice@uni.edu", {"subject": "Hello", "message": "Body"})

        self.assertTrue(result.ok)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "Hello")

    def test_deliver_never_raises(self):
        with patch("notifications.gateway.send_mail", side_effect=SMTPException("relay down")):
            result = gateway.deliver("alice@uni.edu", {"subject": "Hello", "message": "Body"})

        self.assertFalse(result.ok)
        self.assertIn("relay down", result.message)

    def test_deliver_without_address(self):
        result = gateway.deliver("", {"subject": "Hello", "message": "Body"})
        self.assertFalse(result.ok)
        self.assertEqual(mail.outbox, [])


class MyNotificationsTests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="alice", password="pass1234")
        gateway.notify_user(self.user, Notification.TYPE_SYSTEM, title="Welcome")
        gateway.notify_user(self.user, Notification.TYPE_SYSTEM, title="Reminder")
        self.client.force_authenticate(self.user)

    def test_list_and_mark_read(self):
        listed = self.client.get("/api/notifications/me/")
        self.assertEqual(len(listed.data), 2)

        marked = self.client.post("/api/notifications/me/", {"ids": [listed.data[0]["id"]]}, format="json")
        self.assertEqual(marked.data["marked_read"], 1)

        unread = self.client.get("/api/notifications/me/", {"unread": "true"})
        self.assertEqual(len(unread.data), 1)
