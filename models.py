from pydantic import BaseModel, ConfigDict, Field

from usermodel.user_model import Role


class SendOTPRequest(BaseModel):
    email: str = Field(min_length=1)


class VerifyOTPRequest(BaseModel):
    email: str = Field(min_length=1)
    otp: str


class OTPVerifiedResponse(BaseModel):
    message: str
    jwt: str


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1)
    email: str = Field(min_length=1)
    password: str = Field(min_length=8)
    role: Role = Role.USER


class UserDetails(BaseModel):
    """Public view of a user; never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: Role


class LoginResponse(UserDetails):
    message: str
    jwt: str


class LatLng(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class StreetLocations(BaseModel):
    name: str | None = None
    address: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    category: str | None = None


class ExtractedLocation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int | None = None
    lat_lng: LatLng = Field(alias="latLng")
