from typing import List

from tripsplit.errors import InvalidTripData
from tripsplit.models import ExpenseIn, ExpenseItem, Person

# Items may differ from the expense total by rounding noise only
ITEMS_TOLERANCE = 0.01


def validate_person(person: Person, existing_names: List[str]) -> Person:
    """Check a person before it joins a trip; returns it with a trimmed name."""
    name = person.name.strip()
    if not name:
        raise InvalidTripData("Name is required")
    if name in existing_names:
        raise InvalidTripData("A person with this name already exists")
    if person.weight < 1:
        raise InvalidTripData("Count must be at least 1")
    return Person(name=name, weight=person.weight)


def validate_expense(expense: ExpenseIn) -> ExpenseIn:
    """
    Reject expenses the settlement engine would silently mis-handle.
    An empty items list is normalized to None.
    """
    description = expense.description.strip()
    if not description:
        raise InvalidTripData("Description is required")

    if expense.amount <= 0:
        raise InvalidTripData("Amount must be a positive number")

    if not expense.payer:
        raise InvalidTripData("Please select who paid")

    if not expense.consumers:
        raise InvalidTripData("Please select at least one person")

    items = expense.items or None
    if items:
        items_total = sum(item.amount for item in items)
        if abs(items_total - expense.amount) > ITEMS_TOLERANCE:
            raise InvalidTripData(
                f"Items total ({items_total:.2f}) doesn't match "
                f"expense amount ({expense.amount:.2f})"
            )
        for item in items:
            if not item.description.strip() or item.amount <= 0 or not item.consumers:
                raise InvalidTripData(
                    "All items must have description, amount, and at least one person"
                )
        items = [
            ExpenseItem(description=i.description.strip(), amount=i.amount, consumers=i.consumers)
            for i in items
        ]

    return expense.model_copy(update={"description": description, "items": items})
