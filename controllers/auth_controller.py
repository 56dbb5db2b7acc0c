from fastapi import HTTPException, status, Response
from datetime import datetime, timedelta
import logging

from config import ACTIVATION_CODE_TTL_MINUTES, MAX_ACTIVATION_ATTEMPTS
from database import user_collection, serialize_doc
from models.enums import Role
from models.user import UserSignup, UserLogin, ActivationRequest
from utils.app_error import AppError, ACTIVATION_PENDING, ACTIVATION_RESENT
from utils.auth import (
    verify_password, get_password_hash, create_access_token, generate_activation_code,
    generate_random_password, set_auth_cookie, clear_auth_cookie, sanitize_user
)
from utils.firebase import verify_google_token
from utils.mailer import send_activation_email

logger = logging.getLogger(__name__)

def normalize_email(email: str) -> str:
    return (email or "").strip().lower()

def issue_session(user: dict, response: Response) -> dict:
    """Create a JWT for the user, set the auth cookie and build the response body"""
    token = create_access_token(str(user["_id"]), user.get("role", Role.USER.value))
    set_auth_cookie(response, token)
    return {
        "success": True,
        "data": {
            "user": sanitize_user(serialize_doc(user)),
            "token": token,
        }
    }

async def send_new_activation_code(user: dict) -> None:
    code = generate_activation_code()
    await user_collection.update_one(
        {"_id": user["_id"]},
        {"$set": {
            "activationToken": code,
            "activationExpires": datetime.now() + timedelta(minutes=ACTIVATION_CODE_TTL_MINUTES),
            "updatedAt": datetime.now(),
        }}
    )
    await send_activation_email(user["email"], user.get("name"), code)

async def signup(user_data: UserSignup, response: Response):
    try:
        email = normalize_email(user_data.email)
        existing_user = await user_collection.find_one({"email": email}, {"_id": 1})
        if existing_user:
            raise AppError("A user with this email already exists.", status.HTTP_400_BAD_REQUEST)

        code = generate_activation_code()
        now = datetime.now()
        user_doc = {
            "name": user_data.name.strip(),
            "email": email,
            "password": get_password_hash(user_data.password),
            "role": Role.USER.value,
            "isActivated": False,
            "activationToken": code,
            "activationExpires": now + timedelta(minutes=ACTIVATION_CODE_TTL_MINUTES),
            "failedActivationAttempts": 0,
            "isBlocked": False,
            "blockReason": None,
            "profilePictureUrl": None,
            "createdAt": now,
            "updatedAt": now,
        }

        result = await user_collection.insert_one(user_doc)
        user_doc["_id"] = result.inserted_id

        # The account exists either way, a failed mail is recovered through resend-activation
        try:
            await send_activation_email(email, user_doc["name"], code)
        except Exception as e:
            logger.error(f"Activation email to {email} failed after signup: {str(e)}")
        logger.info(f"New user signed up: {email}")

        return issue_session(user_doc, response)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in signup: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def login(credentials: UserLogin, response: Response):
    try:
        email = normalize_email(credentials.email)
        user = await user_collection.find_one({"email": email})

        if not user or not verify_password(credentials.password, user.get("password")):
            raise AppError("Invalid email or password.", status.HTTP_401_UNAUTHORIZED)

        if not user.get("isActivated"):
            expires = user.get("activationExpires")
            if user.get("activationToken") and expires and expires > datetime.now():
                raise AppError(
                    "Your account is not activated. Please enter the code sent to your email.",
                    status.HTTP_403_FORBIDDEN,
                    code=ACTIVATION_PENDING
                )
            await send_new_activation_code(user)
            raise AppError(
                "Your account is not activated. A new activation code has been sent to your email.",
                status.HTTP_403_FORBIDDEN,
                code=ACTIVATION_RESENT
            )

        if user.get("isBlocked"):
            message = "Your account has been blocked."
            if user.get("blockReason"):
                message = f"{message} Reason: {user['blockReason']}"
            raise AppError(message, status.HTTP_403_FORBIDDEN)

        logger.info(f"User logged in: {email}")
        return issue_session(user, response)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in login: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def activate_account(activation: ActivationRequest, response: Response):
    try:
        email = normalize_email(activation.email)
        user = await user_collection.find_one({"email": email})
        if not user:
            raise AppError("No user found with this email.", status.HTTP_404_NOT_FOUND)
        if user.get("isActivated"):
            raise AppError("This account is already activated.", status.HTTP_400_BAD_REQUEST)

        if user.get("activationToken") != activation.code:
            attempts = user.get("failedActivationAttempts", 0) + 1
            if attempts > MAX_ACTIVATION_ATTEMPTS:
                await user_collection.delete_one({"_id": user["_id"]})
                logger.warning(f"User {email} removed after {attempts} failed activation attempts")
                raise AppError(
                    "Too many failed activation attempts. Your registration was removed, please sign up again.",
                    status.HTTP_410_GONE
                )
            await user_collection.update_one(
                {"_id": user["_id"]},
                {"$set": {"failedActivationAttempts": attempts}}
            )
            raise AppError("Invalid activation code.", status.HTTP_400_BAD_REQUEST)

        expires = user.get("activationExpires")
        if not expires or expires < datetime.now():
            raise AppError("Activation code has expired. Please request a new one.", status.HTTP_400_BAD_REQUEST)

        await user_collection.update_one(
            {"_id": user["_id"]},
            {"$set": {
                "isActivated": True,
                "activationToken": None,
                "activationExpires": None,
                "failedActivationAttempts": 0,
                "updatedAt": datetime.now(),
            }}
        )
        activated = await user_collection.find_one({"_id": user["_id"]})
        logger.info(f"User activated: {email}")
        return issue_session(activated, response)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in activate_account: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def resend_activation(email: str):
    try:
        user = await user_collection.find_one({"email": normalize_email(email)})
        if not user:
            raise AppError("No user found with this email.", status.HTTP_404_NOT_FOUND)
        if user.get("isActivated"):
            raise AppError("This account is already activated.", status.HTTP_400_BAD_REQUEST)

        await send_new_activation_code(user)
        return {"success": True, "message": "A new activation code has been sent to your email."}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in resend_activation: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def check_email(email: str):
    try:
        email = normalize_email(email)
        user = await user_collection.find_one({"email": email}, {"isActivated": 1, "isBlocked": 1})
        return {
            "success": True,
            "data": {
                "exists": user is not None,
                "isActivated": bool(user and user.get("isActivated")),
                "isBlocked": bool(user and user.get("isBlocked")),
                "email": email,
            }
        }
    except Exception as e:
        logger.error(f"Error in check_email: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def google_sign_in(id_token: str, response: Response):
    try:
        claims = await verify_google_token(id_token)
        google_id = claims.get("uid") or claims.get("sub")
        email = normalize_email(claims.get("email"))
        if not google_id or not email:
            raise AppError("Google account has no email address.", status.HTTP_400_BAD_REQUEST)

        user = await user_collection.find_one({"googleId": google_id})
        if user:
            if not user.get("isActivated"):
                raise AppError("Your account is not activated.", status.HTTP_403_FORBIDDEN)
        else:
            user = await user_collection.find_one({"email": email})
            if user:
                if user.get("googleId") and user["googleId"] != google_id:
                    raise AppError("This email is linked to another Google account.", status.HTTP_409_CONFLICT)
                update = {"googleId": google_id, "isActivated": True, "updatedAt": datetime.now()}
                if not user.get("profilePictureUrl") and claims.get("picture"):
                    update["profilePictureUrl"] = claims["picture"]
                await user_collection.update_one({"_id": user["_id"]}, {"$set": update})
                user.update(update)
            else:
                now = datetime.now()
                user = {
                    "name": claims.get("name") or email.split("@")[0],
                    "email": email,
                    "password": get_password_hash(generate_random_password()),
                    "googleId": google_id,
                    "role": Role.USER.value,
                    "isActivated": True,
                    "isBlocked": False,
                    "blockReason": None,
                    "profilePictureUrl": claims.get("picture"),
                    "createdAt": now,
                    "updatedAt": now,
                }
                result = await user_collection.insert_one(user)
                user["_id"] = result.inserted_id
                logger.info(f"New user created with Google sign-in: {email}")

        if user.get("isBlocked"):
            message = "Your account has been blocked."
            if user.get("blockReason"):
                message = f"{message} Reason: {user['blockReason']}"
            raise AppError(message, status.HTTP_403_FORBIDDEN)

        return issue_session(user, response)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in google_sign_in: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def logout(response: Response):
    clear_auth_cookie(response)
    return {"success": True, "message": "Logged out successfully"}
