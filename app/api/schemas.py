from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

class PersonalUpdate(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    countryCode: Optional[str] = None
    zipCode: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    street: Optional[str] = None
    additional: Optional[str] = None

class CodeEntry(BaseModel):
    code: str = Field(default="", max_length=16)

class AccountUpdate(BaseModel):
    password: Optional[str] = None
    confirmPassword: Optional[str] = None

class PaymentUpdate(BaseModel):
    cardHolderName: Optional[str] = None
    cardNumber: Optional[str] = None
    expiry: Optional[str] = None
    cvv: Optional[str] = None
    termsAccepted: Optional[bool] = None

class WizardResponse(BaseModel):
    status: str = "success"
    ok: bool = True
    wizard: Dict[str, Any]

class CountryOut(BaseModel):
    code: str
    name: str
    prefix: str
    mask: str
    example: str

class CountriesResponse(BaseModel):
    countries: List[CountryOut]
