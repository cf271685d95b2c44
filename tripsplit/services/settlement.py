# settlement.py

import math
from typing import Dict, Iterable, List, Tuple

from tripsplit.models import Expense, IndividualCost, Person, Settlement, Transaction

# Balances closer to zero than this count as settled
SETTLED_THRESHOLD = 0.01


def round_half_up(value: float) -> float:
    """Nearest integer, halves toward +infinity. inf and nan pass through."""
    if not math.isfinite(value):
        return value
    floor = math.floor(value)
    return floor + (1 if value - floor >= 0.5 else 0)


def round_to_cents(value: float) -> float:
    """Round to 2 decimals, halves going up (round(x * 100) / 100)."""
    if not math.isfinite(value):
        return value
    scaled = value * 100
    if not math.isfinite(scaled):
        # too large to carry cents anyway
        return value
    return round_half_up(scaled) / 100


def calculate_settlement(people: List[Person], expenses: List[Expense]) -> Settlement:
    """
    Split the trip's expenses among people by weight and work out who pays whom.

    - Each expense (or each of its items, when itemized) is shared among its
      consumers in proportion to their weight. Unknown names weigh 1.
    - The payer of record is always the expense-level payer.
    - Internals use floats; only the returned values are rounded to cents.
    """
    if not people:
        return Settlement(total_cost=0, individual_costs=[], transactions=[])

    total_cost, paid, owes = _accumulate(people, expenses)

    individual_costs = [
        IndividualCost(person=p.name, cost=round_to_cents(owes.get(p.name, 0.0)))
        for p in people
    ]

    return Settlement(
        total_cost=round_to_cents(total_cost),
        individual_costs=individual_costs,
        transactions=generate_transactions(_balances(people, paid, owes)),
    )


def net_balances(people: List[Person], expenses: List[Expense]) -> Dict[str, float]:
    """Unrounded paid minus owed for every roster person."""
    _, paid, owes = _accumulate(people, expenses)
    return _balances(people, paid, owes)


def _accumulate(
    people: List[Person], expenses: List[Expense]
) -> Tuple[float, Dict[str, float], Dict[str, float]]:
    weights = {p.name: p.weight for p in people}

    # --- Step 1: What each person paid and owes (consumed) ---
    owes = {p.name: 0.0 for p in people}
    paid = {p.name: 0.0 for p in people}
    total_cost = 0.0

    for expense in expenses:
        total_cost += expense.amount
        paid[expense.payer] = paid.get(expense.payer, 0.0) + expense.amount

        if expense.items:
            for item in expense.items:
                _distribute_amount(item.amount, item.consumers, weights, owes)
        else:
            _distribute_amount(expense.amount, expense.consumers, weights, owes)

    return total_cost, paid, owes


def _balances(people, paid, owes) -> Dict[str, float]:
    # --- Step 2: Net balances (positive = to receive, negative = to pay) ---
    balances = {}
    for p in people:
        balances[p.name] = paid.get(p.name, 0.0) - owes.get(p.name, 0.0)
    return balances


def _distribute_amount(
    amount: float,
    consumers: Iterable[str],
    weights: Dict[str, int],
    owes: Dict[str, float],
) -> None:
    consumers = list(consumers)
    total_weight = sum(weights.get(name) or 1 for name in consumers)
    if total_weight == 0:
        return

    for name in consumers:
        weight = weights.get(name) or 1
        owes[name] = owes.get(name, 0.0) + amount * weight / total_weight


def generate_transactions(balances: Dict[str, float]) -> List[Transaction]:
    """
    Greedy netting: repeatedly settle the largest creditor against the
    largest debtor. Equal amounts keep their balance-map order.
    """
    creditors = []
    debtors = []
    for name, balance in balances.items():
        rounded = round_to_cents(balance)
        if rounded > SETTLED_THRESHOLD:
            creditors.append({"name": name, "amount": rounded})
        elif rounded < -SETTLED_THRESHOLD:
            debtors.append({"name": name, "amount": -rounded})   # stored positive

    creditors.sort(key=lambda x: -x["amount"])
    debtors.sort(key=lambda x: -x["amount"])

    transactions = []
    ci = di = 0
    while ci < len(creditors) and di < len(debtors):
        creditor = creditors[ci]
        debtor = debtors[di]

        amount = min(creditor["amount"], debtor["amount"])
        if amount > SETTLED_THRESHOLD:
            transactions.append(Transaction(
                from_=debtor["name"],
                to=creditor["name"],
                amount=round_to_cents(amount),
            ))

        creditor["amount"] -= amount
        debtor["amount"] -= amount

        if creditor["amount"] < SETTLED_THRESHOLD:
            ci += 1
        if debtor["amount"] < SETTLED_THRESHOLD:
            di += 1

    return transactions
