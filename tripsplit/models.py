from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Currency = Literal["USD", "BDT"]


# ------------------ PEOPLE ------------------
class Person(BaseModel):
    name: str
    weight: int = 1   # a couple sharing one slot counts as 2


# ------------------ EXPENSES ------------------
class ExpenseItem(BaseModel):
    description: str
    amount: float
    consumers: List[str] = []


class Expense(BaseModel):
    id: str
    description: str
    amount: float
    payer: str
    consumers: List[str] = []
    items: Optional[List[ExpenseItem]] = None


class ExpenseIn(BaseModel):
    id: Optional[str] = None
    description: str
    amount: float
    payer: str
    consumers: List[str] = []
    items: Optional[List[ExpenseItem]] = None


# ------------------ SETTLEMENT ------------------
class IndividualCost(BaseModel):
    person: str
    cost: float


class Transaction(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    amount: float


class Settlement(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_cost: float = Field(alias="totalCost")
    individual_costs: List[IndividualCost] = Field(alias="individualCosts")
    transactions: List[Transaction]


class CalculateIn(BaseModel):
    people: List[Person] = []
    expenses: List[Expense] = []


# ------------------ TRIPS ------------------
class Trip(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    currency: Currency = "BDT"
    people: List[Person] = []
    expenses: List[Expense] = []
    created_at: int = Field(alias="createdAt")   # ms since epoch
    updated_at: int = Field(alias="updatedAt")


class TripIn(BaseModel):
    name: str
    currency: Currency = "BDT"


# ------------------ SHARING ------------------
class ShareData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    trip: Trip
    created_at: int = Field(alias="createdAt")
    expires_at: int = Field(alias="expiresAt")


class ShareIn(BaseModel):
    trip: Optional[dict] = None


class ImportIn(BaseModel):
    d: str


class CompressedSizeInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_size: int = Field(alias="originalSize")
    compressed_size: int = Field(alias="compressedSize")
    ratio: float
