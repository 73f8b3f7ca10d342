from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional, Dict


class BillType(str, Enum):
    SHARED = "SHARED"
    PRIVATE = "PRIVATE"


class MemberCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Display name, unique within the workspace")


class MemberResponse(BaseModel):
    id: str
    name: str
    created_at: str


class Bill(BaseModel):
    amount: float = Field(..., ge=0, allow_inf_nan=False, description="Amount of the bill")
    payer: str = Field(..., description="Name of the member who paid")
    type: BillType = Field(BillType.SHARED, description="SHARED splits across everyone, PRIVATE across beneficiaries")
    beneficiaries: List[str] = Field(default_factory=list, description="Names the bill is split between (PRIVATE only)")
    is_settled: bool = Field(False, description="Already paid back outside the app")
    description: Optional[str] = Field(None, max_length=200, description="What the bill was for")

    @model_validator(mode="after")
    def check_beneficiaries(self):
        if self.type == BillType.PRIVATE and not self.beneficiaries:
            raise ValueError("PRIVATE bills need at least one beneficiary")
        return self


class ExpenseResponse(Bill):
    id: str
    created_at: str


class BalanceStats(BaseModel):
    shared_paid: float
    private_paid: float
    total_paid: float
    shared_consumed: int
    private_consumed: int
    total_consumed: int


class DebtTransaction(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(..., alias="from")
    to: str
    amount: int


class CalculationRequest(BaseModel):
    members: List[str]
    bills: List[Bill]


class SettlementRequest(BaseModel):
    balances: Dict[str, float]


class BalanceResult(BaseModel):
    balances: Dict[str, int]
    stats: Dict[str, BalanceStats]
    private_balances: Dict[str, int]
    warnings: List[str] = []


class PrivateMatrix(BaseModel):
    matrix: Dict[str, Dict[str, int]]
    totals: Dict[str, int]


class PrivateMatrixResult(PrivateMatrix):
    warnings: List[str] = []


class SettlementResult(BaseModel):
    balances: Dict[str, int]
    stats: Dict[str, BalanceStats]
    private_balances: Dict[str, int]
    private_matrix: PrivateMatrix
    global_debts: List[DebtTransaction]
    private_debts: List[DebtTransaction]
    warnings: List[str] = []
