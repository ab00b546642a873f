from typing import List, Optional
from pydantic import BaseModel, Field

class FundRequestIn(BaseModel):
    amount: int = Field(gt=0)
    method: str = "UPI"          # UPI | QR

class FundRequestOut(BaseModel):
    ok: bool
    transaction_id: Optional[str] = None
    upi_link: Optional[str] = None
    payment_method: Optional[str] = None
    message: str = ""

class WithdrawIn(BaseModel):
    amount: str | float | int = ""
    method: str = ""             # bank | phonepe | googlepay | paytm

class WithdrawMethod(BaseModel):
    id: str
    name: str
    details: str

class WithdrawOut(BaseModel):
    ok: bool
    message: str

class Transaction(BaseModel):
    type: str
    title: str
    amount: float
    status: Optional[str] = None
    date: Optional[str] = None

class WalletStatementResp(BaseModel):
    tab: str
    transactions: List[Transaction]

class EnquiryIn(BaseModel):
    message: str
