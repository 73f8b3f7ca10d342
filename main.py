from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from typing import List, Dict
from datetime import datetime
import itertools
import logging

import config
from models import (
    BalanceResult,
    Bill,
    CalculationRequest,
    DebtTransaction,
    ExpenseResponse,
    MemberCreate,
    MemberResponse,
    PrivateMatrixResult,
    SettlementRequest,
    SettlementResult,
)
from settlement_optimizer import SettlementOptimizer

# Configure logging
logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=config.API_TITLE,
    description=config.API_DESCRIPTION,
    version=config.API_VERSION
)

# CORS middleware to allow frontend connections
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mock database (in production, use a real database)
members_db = {}
expenses_db = {}

# Ids are never reused, even after deletes
member_ids = itertools.count(1)
expense_ids = itertools.count(1)


def _member_names() -> List[str]:
    return [member["name"] for member in members_db.values()]


def _bills_from_request(request: CalculationRequest) -> List[dict]:
    return [bill.model_dump() for bill in request.bills]


# ===== CALCULATION ENDPOINTS =====
@app.get("/")
async def root():
    return {"message": "SplitSheet API"}

@app.post("/calculate", response_model=SettlementResult)
async def calculate(request: CalculationRequest):
    """Balances, private matrix and settlement plans for the given roster and bills"""
    result = SettlementOptimizer.optimize_settlements(request.members, _bills_from_request(request))
    logger.info(
        f"Calculated {len(request.bills)} bills for {len(request.members)} members: "
        f"{len(result['global_debts'])} global and {len(result['private_debts'])} private transfers"
    )
    return result

@app.post("/balances", response_model=BalanceResult)
async def calculate_balances(request: CalculationRequest):
    """Net balances and paid/consumed statistics"""
    return SettlementOptimizer.calculate_balances(request.members, _bills_from_request(request))

@app.post("/private-matrix", response_model=PrivateMatrixResult)
async def calculate_private_matrix(request: CalculationRequest):
    """Who paid how much for whom on private bills"""
    return SettlementOptimizer.calculate_private_matrix(request.members, _bills_from_request(request))

@app.post("/settlements", response_model=List[DebtTransaction])
async def calculate_settlements(request: SettlementRequest):
    """Transfers that settle the given balances"""
    return SettlementOptimizer.minimize_transactions(request.balances)


# ===== WORKSPACE ENDPOINTS =====
def _check_bill_members(expense: Bill):
    names = _member_names()

    if expense.payer not in names:
        raise HTTPException(status_code=400, detail=f"Member {expense.payer} does not exist")

    for name in expense.beneficiaries:
        if name not in names:
            raise HTTPException(status_code=400, detail=f"Member {name} does not exist")

def _get_member(member_id: str) -> dict:
    if member_id not in members_db:
        raise HTTPException(status_code=404, detail="Member not found")
    return members_db[member_id]

def _get_expense(expense_id: str) -> dict:
    if expense_id not in expenses_db:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expenses_db[expense_id]

@app.post("/members/", response_model=MemberResponse)
async def create_member(member: MemberCreate):
    """Add a member to the workspace"""
    if member.name in _member_names():
        raise HTTPException(status_code=400, detail=f"Member {member.name} already exists")

    member_id = str(next(member_ids))
    members_db[member_id] = {
        "id": member_id,
        "name": member.name,
        "created_at": datetime.now().isoformat()
    }
    logger.info(f"Added member {member.name}")
    return members_db[member_id]

@app.get("/members/", response_model=Dict[str, MemberResponse])
async def list_members():
    """List all members"""
    return members_db

@app.put("/members/{member_id}", response_model=MemberResponse)
async def rename_member(member_id: str, member: MemberCreate):
    """Rename a member and the bills that refer to them"""
    stored = _get_member(member_id)
    old_name = stored["name"]

    if member.name == old_name:
        return stored
    if member.name in _member_names():
        raise HTTPException(status_code=400, detail=f"Member {member.name} already exists")

    stored["name"] = member.name
    for expense in expenses_db.values():
        if expense["payer"] == old_name:
            expense["payer"] = member.name
        expense["beneficiaries"] = [
            member.name if name == old_name else name for name in expense["beneficiaries"]
        ]

    logger.info(f"Renamed member {old_name} to {member.name}")
    return stored

@app.delete("/members/{member_id}", response_model=MemberResponse)
async def delete_member(member_id: str):
    """Remove a member; their bills stay and are skipped as unknown"""
    _get_member(member_id)
    member = members_db.pop(member_id)
    logger.info(f"Removed member {member['name']}")
    return member

@app.post("/expenses/", response_model=ExpenseResponse)
async def create_expense(expense: Bill):
    """Record a new bill"""
    _check_bill_members(expense)

    expense_id = str(next(expense_ids))
    expenses_db[expense_id] = {
        "id": expense_id,
        **expense.model_dump(),
        "created_at": datetime.now().isoformat()
    }
    return expenses_db[expense_id]

@app.get("/expenses/", response_model=Dict[str, ExpenseResponse])
async def list_expenses():
    """List all bills"""
    return expenses_db

@app.get("/expenses/{expense_id}", response_model=ExpenseResponse)
async def get_expense(expense_id: str):
    """Get bill details"""
    return _get_expense(expense_id)

@app.put("/expenses/{expense_id}", response_model=ExpenseResponse)
async def update_expense(expense_id: str, expense: Bill):
    """Edit a bill's amount, payer, type, beneficiaries or description"""
    stored = _get_expense(expense_id)
    _check_bill_members(expense)

    # Settled state only changes through /settle and /unsettle
    stored.update(expense.model_dump(exclude={"is_settled"}))
    logger.info(f"Updated expense {expense_id}")
    return stored

@app.delete("/expenses/{expense_id}", response_model=ExpenseResponse)
async def delete_expense(expense_id: str):
    """Delete a bill"""
    _get_expense(expense_id)
    return expenses_db.pop(expense_id)

@app.post("/expenses/{expense_id}/settle", response_model=ExpenseResponse)
async def settle_expense(expense_id: str):
    """Mark a bill as paid back"""
    return _set_settled(expense_id, True)

@app.post("/expenses/{expense_id}/unsettle", response_model=ExpenseResponse)
async def unsettle_expense(expense_id: str):
    """Put a settled bill back into the balances"""
    return _set_settled(expense_id, False)

def _set_settled(expense_id: str, settled: bool) -> dict:
    stored = _get_expense(expense_id)
    stored["is_settled"] = settled
    logger.info(f"Expense {expense_id} marked {'settled' if settled else 'unsettled'}")
    return stored

@app.get("/summary", response_model=SettlementResult)
async def get_summary():
    """Balances and settlement plans over all stored bills"""
    return SettlementOptimizer.optimize_settlements(_member_names(), list(expenses_db.values()))

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
