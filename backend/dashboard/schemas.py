from pydantic import BaseModel, EmailStr, Field
from typing import Optional
import datetime as dt

# --- User & Authentication ---

class UserCreate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

# --- Admin payloads ---

class MetricRecordCreate(BaseModel):
    # all optional so that absence is reported as a 400 with the field list
    date: Optional[dt.date] = None
    revenue: Optional[float] = None
    units_sold: Optional[int] = None
    cost_of_goods: Optional[float] = None
    product_category: Optional[str] = None
    region: Optional[str] = None
    profit: Optional[float] = None  # ignored, recomputed server-side

class GenerateDataRequest(BaseModel):
    records: int = Field(default=50, ge=1, le=10000)
    scenario: str = "normal"

class ScenarioRequest(BaseModel):
    scenario: Optional[str] = None

class ModifyDataRequest(BaseModel):
    revenueMultiplier: float = 1.0
    profitMultiplier: float = 1.0
    category: Optional[str] = None
    region: Optional[str] = None
