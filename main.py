from contextlib import asynccontextmanager
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_utilities import repeat_every

from auth import (
    TokenPayload,
    create_access_token,
    require_login,
    require_otp,
    verify_email_ownership,
)
from config import CORS_ORIGINS, EXPIRED_OTP_CLEANUP_INTERVAL_SECONDS
from database import init_db
from models import (
    ExtractedLocation,
    LatLng,
    LoginRequest,
    LoginResponse,
    OTPVerifiedResponse,
    RegisterRequest,
    SendOTPRequest,
    StreetLocations,
    UserDetails,
    VerifyOTPRequest,
)
from services import user_service
from services.email_service import EmailService
from services.location_service import LocationExtractorService
from services.logs_service import logger
from services.otp_service import OtpManager, create_otp_store
from usermodel.user_model import Role

otp_store = create_otp_store()
otp_manager = OtpManager(otp_store, EmailService())
location_service = LocationExtractorService()


def get_otp_manager() -> OtpManager:
    return otp_manager


def get_location_service() -> LocationExtractorService:
    return location_service


# cron job to clean up expired OTPs
@repeat_every(seconds=EXPIRED_OTP_CLEANUP_INTERVAL_SECONDS)
def clear_expired_otps():
    removed = otp_store.purge_expired()
    if removed:
        logger.info(f"Expired OTP cleanup removed {removed} entries")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up... Initializing database.")
    init_db()
    logger.info("Database initialized.")
    await clear_expired_otps()
    yield


app = FastAPI(
    title="JourneyCraft API",
    description="API for JourneyCraft accounts and travel locations",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)

users_router = APIRouter(prefix="/api/users")
location_router = APIRouter(prefix="/api/location")


# OTP Routes
@users_router.post(
    "/send-otp",
    tags=["Authentication"],
    summary="Send OTP to email",
    description="Issue a one-time password for the email and mail it in the background. "
    "The response does not confirm delivery.",
    responses={
        200: {"description": "The OTP was issued and its delivery scheduled"},
    },
)
async def send_otp(
    request: SendOTPRequest,
    background_tasks: BackgroundTasks,
    manager: OtpManager = Depends(get_otp_manager),
):
    manager.generate_and_send(request.email, dispatch=background_tasks.add_task)
    return {"message": "OTP sent successfully."}


@users_router.post(
    "/verify-otp",
    response_model=OTPVerifiedResponse,
    tags=["Authentication"],
    summary="Verify OTP",
    description="Verify an OTP provided by the user. A valid OTP is consumed.",
    responses={
        200: {"description": "The OTP is valid. Returns a JWT of type 'otp'"},
        400: {"description": "The OTP is invalid or expired"},
    },
)
async def verify_otp(
    request: VerifyOTPRequest,
    manager: OtpManager = Depends(get_otp_manager),
):
    if not manager.verify(request.email, request.otp):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Invalid or expired OTP.")

    token = create_access_token(email=request.email, token_type="otp")
    return OTPVerifiedResponse(message="OTP verified successfully.", jwt=token)


# User Routes
@users_router.get(
    "/all-users",
    response_model=List[UserDetails],
    tags=["Users"],
    summary="List users",
    responses={404: {"description": "There are no users"}},
)
async def get_all_users():
    users = user_service.get_all_users()
    if not users:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "No users found")
    return users


@users_router.get(
    "/find",
    response_model=UserDetails,
    tags=["Users"],
    summary="Find user by email",
    responses={404: {"description": "No user has this email"}},
)
async def find_user_by_email(email: str):
    user = user_service.find_by_email(email)
    if user is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    return user


@users_router.post(
    "/login",
    response_model=LoginResponse,
    tags=["Authentication"],
    summary="Log in with email and password",
    responses={
        200: {"description": "Login succeeded. Returns the user and a JWT of type 'login'"},
        401: {"description": "The credentials are invalid"},
    },
)
async def login_user(request: LoginRequest):
    user = user_service.login_user(request.email, request.password)
    if user is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"message": "Invalid Credentials. Try again"},
        )

    token = create_access_token(email=user.email, token_type="login", user_id=user.id)
    logger.info(f"Login successful for email={user.email}")
    return LoginResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        message="Login successful",
        jwt=token,
    )


@users_router.post(
    "/register",
    response_model=UserDetails,
    status_code=status.HTTP_201_CREATED,
    tags=["Users"],
    summary="Register a new user",
    description="Create an account. Requires a JWT of type 'otp' issued for the same email.",
    responses={
        201: {"description": "The user was created"},
        400: {"description": "The email is already registered or the input is invalid"},
        403: {"description": "The JWT is missing, invalid or issued for another email"},
    },
)
async def register_user(
    request: RegisterRequest,
    token: TokenPayload = Depends(require_otp),
):
    verify_email_ownership(token, request.email)
    return user_service.save_user(
        username=request.username,
        email=request.email,
        password=request.password,
        role=request.role,
    )


@users_router.get(
    "/role/{role}",
    response_model=List[UserDetails],
    tags=["Users"],
    summary="List users by role",
)
async def get_users_by_role(role: Role):
    return user_service.get_users_by_role(role)


@users_router.get(
    "/me",
    response_model=UserDetails,
    tags=["Users"],
    summary="Get the logged-in user",
    responses={
        403: {"description": "The JWT is invalid or not a login token"},
        404: {"description": "The user no longer exists"},
    },
)
async def get_me(token: TokenPayload = Depends(require_login)):
    user = user_service.get_user(token.uid)
    if user is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    return user


# Location Routes
@location_router.get(
    "/extract",
    response_model=ExtractedLocation,
    tags=["Location"],
    summary="Extract coordinates from a map URL",
    description="Read the coordinates a map URL carries, expanding short links first.",
    responses={
        404: {"description": "The URL carries no coordinates"},
        502: {"description": "An upstream service failed"},
    },
)
async def extract_lat_lng(
    url: str,
    id: int | None = None,
    service: LocationExtractorService = Depends(get_location_service),
):
    return await service.extract_lat_lng(id, url)


@location_router.get(
    "/get-lat-lng",
    response_model=LatLng,
    tags=["Location"],
    summary="Resolve a place URL to coordinates",
    description="Like /extract, but geocodes the place name when the URL has no coordinates.",
    responses={
        404: {"description": "Neither coordinates nor a known place could be found"},
        502: {"description": "An upstream service failed"},
    },
)
async def get_lat_lng_from_url(
    url: str,
    service: LocationExtractorService = Depends(get_location_service),
):
    return await service.extract_lat_lng_for_places(url)


@location_router.post(
    "/street-location",
    response_model=StreetLocations,
    tags=["Location"],
    summary="Complete a street location",
    description="Geocode an address or name, or reverse-geocode coordinates, "
    "filling in whichever side is missing.",
    responses={
        400: {"description": "Neither an address, a name nor coordinates were given"},
        404: {"description": "The geocoder found nothing"},
        502: {"description": "An upstream service failed"},
    },
)
async def get_street_location(
    street_location: StreetLocations,
    service: LocationExtractorService = Depends(get_location_service),
):
    return await service.get_street_locations(street_location)


@location_router.post(
    "/nearby",
    response_model=List[StreetLocations],
    tags=["Location"],
    summary="List nearby points of interest",
    description="Named attractions, places to eat and parks around a point, nearest first.",
    responses={502: {"description": "An upstream service failed"}},
)
async def get_nearby_locations(
    lat_lng: LatLng,
    service: LocationExtractorService = Depends(get_location_service),
):
    return await service.get_nearby_locations(lat_lng)


# Include routers in the app
app.include_router(users_router)
app.include_router(location_router)


def main():
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8081)


if __name__ == "__main__":
    main()
