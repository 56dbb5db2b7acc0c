import sys
import os
import unittest
from unittest.mock import AsyncMock, MagicMock, patch
from datetime import datetime, timedelta
from bson import ObjectId
from fastapi import Response

# Add the project root to the path so we can import our modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from controllers import auth_controller
from models.user import ActivationRequest, UserLogin, UserSignup
from utils.app_error import AppError

EMAIL = "user@parsflix.ir"

def pending_user(**overrides):
    user = {
        "_id": ObjectId(),
        "name": "Sara",
        "email": EMAIL,
        "password": "hashed",
        "role": "USER",
        "isActivated": False,
        "activationToken": "123456",
        "activationExpires": datetime.now() + timedelta(minutes=10),
        "failedActivationAttempts": 0,
        "isBlocked": False,
    }
    user.update(overrides)
    return user

class TestAuthController(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.users = MagicMock()
        self.users.find_one = AsyncMock()
        self.users.insert_one = AsyncMock()
        self.users.update_one = AsyncMock()
        self.users.delete_one = AsyncMock()
        self.send_email = AsyncMock()

        patches = [
            patch.object(auth_controller, "user_collection", self.users),
            patch.object(auth_controller, "send_activation_email", self.send_email),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

    async def test_signup_duplicate_email(self):
        self.users.find_one.return_value = {"_id": ObjectId()}

        with self.assertRaises(AppError) as ctx:
            await auth_controller.signup(
                UserSignup(name="Sara", email="User@Parsflix.ir", password="s3cretpass"), Response()
            )
        self.assertEqual(ctx.exception.status_code, 400)
        self.users.find_one.assert_awaited_once_with({"email": EMAIL}, {"_id": 1})

    async def test_signup_creates_pending_user(self):
        self.users.insert_one.return_value = MagicMock(inserted_id=ObjectId())
        self.users.find_one.return_value = None
        response = Response()

        with patch.object(auth_controller, "get_password_hash", return_value="hashed"):
            result = await auth_controller.signup(
                UserSignup(name="Sara", email=EMAIL, password="s3cretpass"), response
            )

        doc = self.users.insert_one.call_args[0][0]
        self.assertFalse(doc["isActivated"])
        self.assertRegex(doc["activationToken"], r"^\d{6}$")
        self.assertEqual(doc["role"], "USER")
        self.send_email.assert_awaited_once()
        self.assertNotIn("password", result["data"]["user"])
        self.assertNotIn("activationToken", result["data"]["user"])
        self.assertIn("authToken", response.headers.get("set-cookie"))

    async def test_login_wrong_password(self):
        self.users.find_one.return_value = pending_user(isActivated=True)

        with patch.object(auth_controller, "verify_password", return_value=False):
            with self.assertRaises(AppError) as ctx:
                await auth_controller.login(UserLogin(email=EMAIL, password="wrongpass"), Response())
        self.assertEqual(ctx.exception.status_code, 401)

    async def test_login_pending_activation(self):
        self.users.find_one.return_value = pending_user()

        with patch.object(auth_controller, "verify_password", return_value=True):
            with self.assertRaises(AppError) as ctx:
                await auth_controller.login(UserLogin(email=EMAIL, password="s3cretpass"), Response())

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.code, "ACTIVATION_PENDING")
        self.send_email.assert_not_called()

    async def test_login_expired_code_resends(self):
        self.users.find_one.return_value = pending_user(activationExpires=datetime.now() - timedelta(minutes=1))

        with patch.object(auth_controller, "verify_password", return_value=True):
            with self.assertRaises(AppError) as ctx:
                await auth_controller.login(UserLogin(email=EMAIL, password="s3cretpass"), Response())

        self.assertEqual(ctx.exception.code, "ACTIVATION_RESENT")
        self.send_email.assert_awaited_once()
        self.assertNotIn("failedActivationAttempts", self.users.update_one.call_args[0][1]["$set"])

    async def test_login_blocked(self):
        self.users.find_one.return_value = pending_user(isActivated=True, isBlocked=True, blockReason="spam")

        with patch.object(auth_controller, "verify_password", return_value=True):
            with self.assertRaises(AppError) as ctx:
                await auth_controller.login(UserLogin(email=EMAIL, password="s3cretpass"), Response())

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertIn("spam", ctx.exception.message)

    async def test_wrong_code_counts_attempt(self):
        user = pending_user(failedActivationAttempts=2)
        self.users.find_one.return_value = user

        with self.assertRaises(AppError) as ctx:
            await auth_controller.activate_account(ActivationRequest(email=EMAIL, code="000000"), Response())

        self.assertEqual(ctx.exception.status_code, 400)
        self.users.update_one.assert_awaited_once_with(
            {"_id": user["_id"]}, {"$set": {"failedActivationAttempts": 3}}
        )
        self.users.delete_one.assert_not_called()

    async def test_too_many_attempts_removes_user(self):
        user = pending_user(failedActivationAttempts=5)
        self.users.find_one.return_value = user

        with self.assertRaises(AppError) as ctx:
            await auth_controller.activate_account(ActivationRequest(email=EMAIL, code="000000"), Response())

        self.assertEqual(ctx.exception.status_code, 410)
        self.users.delete_one.assert_awaited_once_with({"_id": user["_id"]})

    async def test_expired_code(self):
        self.users.find_one.return_value = pending_user(activationExpires=datetime.now() - timedelta(seconds=1))

        with self.assertRaises(AppError) as ctx:
            await auth_controller.activate_account(ActivationRequest(email=EMAIL, code="123456"), Response())
        self.assertEqual(ctx.exception.status_code, 400)

    async def test_already_activated(self):
        self.users.find_one.return_value = pending_user(isActivated=True)

        with self.assertRaises(AppError) as ctx:
            await auth_controller.activate_account(ActivationRequest(email=EMAIL, code="123456"), Response())
        self.assertEqual(ctx.exception.status_code, 400)

    async def test_activation_success(self):
        user = pending_user()
        self.users.find_one.side_effect = [user, dict(user, isActivated=True, activationToken=None)]

        result = await auth_controller.activate_account(ActivationRequest(email=EMAIL, code="123456"), Response())

        update = self.users.update_one.call_args[0][1]["$set"]
        self.assertTrue(update["isActivated"])
        self.assertIsNone(update["activationToken"])
        self.assertTrue(result["data"]["token"])

    async def test_resend_does_not_reset_failed_attempts(self):
        user = pending_user(failedActivationAttempts=5)
        self.users.find_one.return_value = user

        await auth_controller.resend_activation(EMAIL)

        update = self.users.update_one.call_args[0][1]["$set"]
        self.assertNotIn("failedActivationAttempts", update)
        self.send_email.assert_awaited_once()

        # Stored counter is unchanged, so the next wrong code is the sixth
        user["activationToken"] = update["activationToken"]
        wrong_code = "111111" if update["activationToken"] != "111111" else "222222"
        with self.assertRaises(AppError) as ctx:
            await auth_controller.activate_account(ActivationRequest(email=EMAIL, code=wrong_code), Response())

        self.assertEqual(ctx.exception.status_code, 410)
        self.users.delete_one.assert_awaited_once_with({"_id": user["_id"]})

    async def test_signup_survives_mail_failure(self):
        self.users.insert_one.return_value = MagicMock(inserted_id=ObjectId())
        self.users.find_one.return_value = None
        self.send_email.side_effect = AppError("SMTP is down", 500)

        with patch.object(auth_controller, "get_password_hash", return_value="hashed"):
            result = await auth_controller.signup(
                UserSignup(name="Sara", email=EMAIL, password="s3cretpass"), Response()
            )

        self.assertTrue(result["success"])
        self.assertTrue(result["data"]["token"])
        self.users.insert_one.assert_awaited_once()
        self.users.delete_one.assert_not_called()

    async def test_google_sign_in_rejects_inactive_linked_user(self):
        self.users.find_one.return_value = pending_user(googleId="google-uid-1")
        claims = {"uid": "google-uid-1", "email": EMAIL, "name": "Sara"}

        with patch.object(auth_controller, "verify_google_token", AsyncMock(return_value=claims)):
            with self.assertRaises(AppError) as ctx:
                await auth_controller.google_sign_in("id-token", Response())

        self.assertEqual(ctx.exception.status_code, 403)
        self.users.update_one.assert_not_called()

    async def test_google_sign_in_links_existing_email(self):
        user = pending_user(isActivated=True, activationToken=None)
        self.users.find_one.side_effect = [None, user]
        claims = {"uid": "google-uid-2", "email": EMAIL, "picture": "https://img/p.jpg"}

        with patch.object(auth_controller, "verify_google_token", AsyncMock(return_value=claims)):
            result = await auth_controller.google_sign_in("id-token", Response())

        update = self.users.update_one.call_args[0][1]["$set"]
        self.assertEqual(update["googleId"], "google-uid-2")
        self.assertEqual(update["profilePictureUrl"], "https://img/p.jpg")
        self.assertTrue(result["data"]["token"])

    async def test_check_email(self):
        self.users.find_one.return_value = None
        result = await auth_controller.check_email(" USER@parsflix.ir ")
        self.assertEqual(result["data"], {"exists": False, "isActivated": False, "isBlocked": False, "email": EMAIL})

if __name__ == "__main__":
    unittest.main()
