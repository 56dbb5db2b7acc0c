from fastapi import APIRouter, Depends, Request, Response

from controllers import auth_controller
from models.user import UserSignup, UserLogin, ActivationRequest, EmailRequest, GoogleSignIn
from middleware.auth_required import protect
from slowapi import Limiter
from slowapi.util import get_remote_address
from config import RATE_LIMIT_AUTH

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

@router.post("/signup", status_code=201)
@limiter.limit(RATE_LIMIT_AUTH)
async def signup(request: Request, response: Response, user_data: UserSignup):
    """
    Register a new user and send the activation code
    """
    return await auth_controller.signup(user_data, response)

@router.post("/login")
@limiter.limit(RATE_LIMIT_AUTH)
async def login(request: Request, response: Response, credentials: UserLogin):
    """
    Login with email and password
    """
    return await auth_controller.login(credentials, response)

@router.post("/activate")
@limiter.limit(RATE_LIMIT_AUTH)
async def activate(request: Request, response: Response, activation: ActivationRequest):
    """
    Activate an account with the emailed code
    """
    return await auth_controller.activate_account(activation, response)

@router.post("/resend-activation")
@limiter.limit(RATE_LIMIT_AUTH)
async def resend_activation(request: Request, email_data: EmailRequest):
    """
    Send a fresh activation code
    """
    return await auth_controller.resend_activation(email_data.email)

@router.post("/check-email")
@limiter.limit(RATE_LIMIT_AUTH)
async def check_email(request: Request, email_data: EmailRequest):
    """
    Tell the client whether an email is registered and its account state
    """
    return await auth_controller.check_email(email_data.email)

@router.post("/google")
@limiter.limit(RATE_LIMIT_AUTH)
async def google_sign_in(request: Request, response: Response, google_data: GoogleSignIn):
    """
    Sign in with a Firebase Google ID token
    """
    return await auth_controller.google_sign_in(google_data.idToken, response)

@router.post("/logout")
@limiter.limit(RATE_LIMIT_AUTH)
async def logout(request: Request, response: Response):
    return await auth_controller.logout(response)

@router.get("/me")
@limiter.limit(RATE_LIMIT_AUTH)
async def get_me(request: Request, current_user: dict = Depends(protect)):
    """
    Get current user profile
    """
    return {"success": True, "data": {"user": current_user}}
