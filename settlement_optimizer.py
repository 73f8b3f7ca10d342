from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Any
import logging

from models import BillType

logger = logging.getLogger(__name__)

# Balances within this distance of zero are treated as settled
SETTLEMENT_THRESHOLD = 1

STAT_FIELDS = (
    "shared_paid",
    "private_paid",
    "total_paid",
    "shared_consumed",
    "private_consumed",
    "total_consumed",
)


def round_amount(value) -> int:
    """Round to the nearest whole unit, halves away from zero"""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _unknown_payer_message(index: int, bill: Dict[str, Any]) -> str:
    # Stored bills carry an id; caller-supplied ones are named by position
    label = f"id {bill['id']}" if bill.get("id") is not None else f"#{index}"
    return f'Skipped bill {label}: payer "{bill["payer"]}" is not in the members list.'


class SettlementOptimizer:
    @staticmethod
    def calculate_balances(members: List[str], bills: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Calculate net balance and paid/consumed statistics for each member

        Settled bills still count towards the paid and consumed statistics
        but are left out of the balances. Bills paid by someone outside ``members`` are
        skipped and reported in ``warnings``.

        Returns:
            Dictionary with ``balances``, ``stats``, ``private_balances``
            and ``warnings``
        """
        balances = {}
        private_balances = {}
        stats = {}
        warnings = []

        for member in members:
            balances[member] = 0
            private_balances[member] = 0
            stats[member] = {field: 0 for field in STAT_FIELDS}

        for index, bill in enumerate(bills):
            payer = bill["payer"]
            amount = bill["amount"]
            bill_type = bill["type"]
            settled = bill.get("is_settled", False)

            if payer not in balances:
                message = _unknown_payer_message(index, bill)
                logger.warning(message)
                warnings.append(message)
                continue

            # Paid and consumed stats are tracked even for settled bills
            stats[payer]["total_paid"] += amount
            if bill_type == BillType.SHARED:
                stats[payer]["shared_paid"] += amount
            else:
                stats[payer]["private_paid"] += amount

            if not settled:
                balances[payer] += amount
                if bill_type == BillType.PRIVATE:
                    private_balances[payer] += amount

            if bill_type == BillType.SHARED:
                beneficiaries = list(members)
            else:
                requested = bill.get("beneficiaries") or []
                beneficiaries = [name for name in requested if name in balances]
                if len(beneficiaries) < len(requested):
                    logger.debug(
                        f"Dropped unknown beneficiaries {sorted(set(requested) - set(beneficiaries))} "
                        f"from bill paid by {payer}"
                    )

            if not beneficiaries:
                continue

            split_amount = amount / len(beneficiaries)

            for person in beneficiaries:
                stats[person]["total_consumed"] += split_amount
                if bill_type == BillType.SHARED:
                    stats[person]["shared_consumed"] += split_amount
                else:
                    stats[person]["private_consumed"] += split_amount

                if settled:
                    continue

                balances[person] -= split_amount
                if bill_type == BillType.PRIVATE:
                    private_balances[person] -= split_amount

        # Paid fields are exact sums and stay unrounded
        for person in balances:
            balances[person] = round_amount(balances[person])
            private_balances[person] = round_amount(private_balances[person])
            for field in ("shared_consumed", "private_consumed", "total_consumed"):
                stats[person][field] = round_amount(stats[person][field])

        return {
            "balances": balances,
            "stats": stats,
            "private_balances": private_balances,
            "warnings": warnings,
        }

    @staticmethod
    def calculate_private_matrix(members: List[str], bills: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Calculate who paid how much for whom, over unsettled private bills only.

        ``matrix[payer][beneficiary]`` is what the beneficiary owes the payer.
        The diagonal holds each payer's own share and is left in place.
        ``totals[payer]`` is the full amount of the private bills they paid.
        """
        matrix = {}
        totals = {}
        warnings = []

        for payer in members:
            matrix[payer] = {beneficiary: 0 for beneficiary in members}
            totals[payer] = 0

        for index, bill in enumerate(bills):
            if bill["type"] != BillType.PRIVATE or bill.get("is_settled", False):
                continue

            payer = bill["payer"]
            amount = bill["amount"]

            if payer not in matrix:
                message = _unknown_payer_message(index, bill)
                logger.warning(message)
                warnings.append(message)
                continue

            beneficiaries = [name for name in (bill.get("beneficiaries") or []) if name in matrix]
            if not beneficiaries:
                logger.debug(f"Skipping private bill paid by {payer}: no known beneficiaries")
                continue

            totals[payer] += amount

            split_amount = amount / len(beneficiaries)
            for person in beneficiaries:
                matrix[payer][person] += split_amount

        for payer in matrix:
            totals[payer] = round_amount(totals[payer])
            for beneficiary in matrix[payer]:
                matrix[payer][beneficiary] = round_amount(matrix[payer][beneficiary])

        return {"matrix": matrix, "totals": totals, "warnings": warnings}

    @staticmethod
    def minimize_transactions(balances: Dict[str, float]) -> List[Dict[str, Any]]:
        """Match the largest debtors with the largest creditors to settle balances"""
        debts = []

        debtors = []
        creditors = []

        for person, balance in balances.items():
            if balance < -SETTLEMENT_THRESHOLD:
                debtors.append([person, balance])
            elif balance > SETTLEMENT_THRESHOLD:
                creditors.append([person, balance])

        # Most negative debtor first, largest creditor first
        debtors.sort(key=lambda x: x[1])
        creditors.sort(key=lambda x: x[1], reverse=True)

        i = j = 0
        while i < len(debtors) and j < len(creditors):
            debtor = debtors[i]
            creditor = creditors[j]

            transfer_amount = min(abs(debtor[1]), creditor[1])
            debts.append({
                "from": debtor[0],
                "to": creditor[0],
                "amount": round_amount(transfer_amount),
            })

            debtor[1] += transfer_amount
            creditor[1] -= transfer_amount

            if abs(debtor[1]) < SETTLEMENT_THRESHOLD:
                i += 1
            if creditor[1] < SETTLEMENT_THRESHOLD:
                j += 1

        return debts

    @staticmethod
    def optimize_settlements(members: List[str], bills: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Main method: balances, private matrix and both settlement plans for one sheet"""
        balance_data = SettlementOptimizer.calculate_balances(members, bills)
        matrix_data = SettlementOptimizer.calculate_private_matrix(members, bills)

        warnings = []
        for message in balance_data["warnings"] + matrix_data["warnings"]:
            if message not in warnings:
                warnings.append(message)

        return {
            "balances": balance_data["balances"],
            "stats": balance_data["stats"],
            "private_balances": balance_data["private_balances"],
            "private_matrix": {
                "matrix": matrix_data["matrix"],
                "totals": matrix_data["totals"],
            },
            "global_debts": SettlementOptimizer.minimize_transactions(balance_data["balances"]),
            "private_debts": SettlementOptimizer.minimize_transactions(balance_data["private_balances"]),
            "warnings": warnings,
        }
