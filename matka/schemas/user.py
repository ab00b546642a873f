from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

class LoginIn(BaseModel):
    mobileNumber: str
    password: str

class SignupIn(BaseModel):
    name: str = Field(min_length=1)
    mobileNumber: str
    password: str = Field(min_length=6)

class ChangePasswordIn(BaseModel):
    currentPassword: str
    newPassword: str = Field(min_length=6)

class BankDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    accountHolderName: Optional[str] = None
    accountNumber: Optional[str] = None
    ifscCode: Optional[str] = None
    bankName: Optional[str] = None

class BankDetailsIn(BaseModel):
    accountHolderName: str = Field(min_length=1, max_length=100)
    accountNumber: str = Field(min_length=1, max_length=50)
    confirmAccountNumber: str = Field(min_length=1, max_length=50)
    ifscCode: str = Field(min_length=1, max_length=20)
    bankName: str = Field(min_length=1, max_length=100)

class PaymentDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    phonepe: Optional[str] = None
    googlePay: Optional[str] = None
    paytm: Optional[str] = None

class UserOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = Field(None, alias="_id")
    name: Optional[str] = None
    mobileNumber: Optional[str] = None
    balance: float = 0
    isActive: Optional[bool] = None
    bankDetails: Optional[BankDetails] = None
    paymentDetails: Optional[PaymentDetails] = None

class SessionOut(BaseModel):
    authenticated: bool
    user: Optional[UserOut] = None
