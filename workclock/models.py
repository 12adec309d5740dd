import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from .entries import shift_order_problem

# "H:MM" / "HH:MM", or empty for a time not recorded yet
TIME_PATTERN = r"^(\d{1,2}:\d{2})?$"

# --- AUTH MODELS ---
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=2)

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    created_at: str

class Token(BaseModel):
    access_token: str
    token_type: str
    user: UserResponse
# -------------------

class ClockActionRequest(BaseModel):
    action: Literal["clock-in", "clock-out", "clock-in-2", "clock-out-2"]
    client_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    location: Optional[str] = None

class ClockStatus(BaseModel):
    status: Literal["idle", "clocked-in", "between-shifts", "clocked-in-2", "done"]
    entry_id: Optional[int] = None
    check_in_1: Optional[str] = None
    check_out_1: Optional[str] = None
    check_in_2: Optional[str] = None
    check_out_2: Optional[str] = None

class SettingsUpdate(BaseModel):
    monthly_salary: Optional[float] = Field(default=None, ge=0)
    workday_hours: Optional[int] = Field(default=None, ge=1, le=24)
    works_saturdays: Optional[bool] = None
    currency: Optional[str] = Field(default=None, min_length=1, max_length=3)

class UserSettings(BaseModel):
    user_id: str
    monthly_salary: float = 0
    workday_hours: int = 9
    works_saturdays: bool = False
    currency: str = "USD"

    model_config = ConfigDict(from_attributes=True)

class WorkEntryCreate(BaseModel):
    date: dt.date
    day_name: Optional[str] = None
    check_in_1: str = Field(min_length=1, pattern=TIME_PATTERN)
    check_out_1: str = Field(min_length=1, pattern=TIME_PATTERN)
    check_in_2: str = Field(default="", pattern=TIME_PATTERN)
    check_out_2: str = Field(default="", pattern=TIME_PATTERN)
    location: str = ""
    notes: str = ""

    @model_validator(mode="after")
    def shift_order(self):
        problem = shift_order_problem(self.model_dump())
        if problem:
            raise ValueError(problem)
        return self

class WorkEntryUpdate(BaseModel):
    date: Optional[dt.date] = None
    day_name: Optional[str] = None
    check_in_1: Optional[str] = Field(default=None, min_length=1, pattern=TIME_PATTERN)
    check_out_1: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    check_in_2: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    check_out_2: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    location: Optional[str] = None
    notes: Optional[str] = None

class WorkEntry(BaseModel):
    id: int
    user_id: str
    date: dt.date
    day_name: str
    check_in_1: str
    check_out_1: str
    check_in_2: str
    check_out_2: str
    shift1_minutes: int
    shift2_minutes: int
    standard_minutes: int
    overtime_minutes: int
    location: str
    notes: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
