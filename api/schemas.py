"""Pydantic schemas for API requests and responses."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# Auth schemas
class Credentials(BaseModel):
    """Login form."""

    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)


class RegistrationProfile(BaseModel):
    """Registration form."""

    full_name: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    gender: Literal["1", "2"] = "1"
    password: str = Field(..., min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "RegistrationProfile":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserProfile(BaseModel):
    """Authenticated user as returned by the auth backend."""

    model_config = ConfigDict(extra="ignore")

    id: int | str
    full_name: str
    email: str
    gender: Literal["1", "2"] = "1"

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, value: Any) -> str:
        """The backend sends 1 for the first option; everything else is "2"."""
        return "1" if str(value) == "1" else "2"


class AuthResult(BaseModel):
    """Auth backend response to login or register."""

    model_config = ConfigDict(extra="ignore")

    token: str | None = None
    user: UserProfile


class LoginResponse(BaseModel):
    """Session opened for an authenticated user."""

    session_id: str
    user: UserProfile


class RegisterResponse(BaseModel):
    """Registration result. No session is opened when login is still required."""

    login_required: bool
    session_id: str | None = None
    user: UserProfile


# Game schemas
class BetRequest(BaseModel):
    """Request to place a bet."""

    amount: int = Field(..., ge=1, description="Bet amount")


class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand", "double"]


class CardResponse(BaseModel):
    """Card representation. Face-down cards carry no rank or suit."""

    rank: str | None
    suit: str | None
    hidden: bool = False


class HandResponse(BaseModel):
    """Hand representation."""

    cards: list[CardResponse]
    score: int | None


class RoundResultResponse(BaseModel):
    """Settled round."""

    outcome: Literal["WIN", "LOSE", "PUSH"]
    reason: str
    player_score: int
    dealer_score: int | None


class GameStateResponse(BaseModel):
    """Current table state."""

    state: str
    player_name: str
    chips: int
    dealer_chips: int
    bet: int
    player_hand: HandResponse
    dealer_hand: HandResponse
    result: RoundResultResponse | None
    chip_denominations: list[int]
    can_bet: bool
    can_hit: bool
    can_stand: bool
    can_double: bool
    can_reset: bool
