import uuid

from tripsplit.errors import ExpenseNotFound
from tripsplit.models import Expense, ExpenseIn, Trip
from tripsplit.services.validation import validate_expense


def _to_expense(expense: ExpenseIn, expense_id: str) -> Expense:
    return Expense(
        id=expense_id,
        description=expense.description,
        amount=expense.amount,
        payer=expense.payer,
        consumers=expense.consumers,
        items=expense.items,
    )


def add_expense(store, trip_id: str, expense: ExpenseIn) -> Trip:
    trip = store.require_trip(trip_id)
    expense = validate_expense(expense)
    new = _to_expense(expense, expense.id or str(uuid.uuid4()))
    return store.save_trip(trip.model_copy(update={"expenses": trip.expenses + [new]}))


def update_expense(store, trip_id: str, expense_id: str, expense: ExpenseIn) -> Trip:
    trip = store.require_trip(trip_id)
    if not any(e.id == expense_id for e in trip.expenses):
        raise ExpenseNotFound(expense_id)

    updated = _to_expense(validate_expense(expense), expense_id)
    expenses = [updated if e.id == expense_id else e for e in trip.expenses]
    return store.save_trip(trip.model_copy(update={"expenses": expenses}))


def remove_expense(store, trip_id: str, expense_id: str) -> Trip:
    trip = store.require_trip(trip_id)
    expenses = [e for e in trip.expenses if e.id != expense_id]
    if len(expenses) == len(trip.expenses):
        raise ExpenseNotFound(expense_id)
    return store.save_trip(trip.model_copy(update={"expenses": expenses}))
