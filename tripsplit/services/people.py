from tripsplit.errors import PersonNotFound
from tripsplit.models import Person, Trip
from tripsplit.services.validation import validate_person


def rename_in_expenses(expenses, old_name, new_name):
    """Follow a rename through payers and every consumer list."""
    def rename(names):
        return [new_name if n == old_name else n for n in names]

    renamed = []
    for e in expenses:
        items = None
        if e.items is not None:
            items = [i.model_copy(update={"consumers": rename(i.consumers)}) for i in e.items]
        renamed.append(e.model_copy(update={
            "payer": new_name if e.payer == old_name else e.payer,
            "consumers": rename(e.consumers),
            "items": items,
        }))
    return renamed


def drop_from_expenses(expenses, name):
    """Remove a name from consumer lists; the payer of record is kept."""
    def drop(names):
        return [n for n in names if n != name]

    dropped = []
    for e in expenses:
        items = None
        if e.items is not None:
            items = [i.model_copy(update={"consumers": drop(i.consumers)}) for i in e.items]
        dropped.append(e.model_copy(update={"consumers": drop(e.consumers), "items": items}))
    return dropped


def _check_index(trip: Trip, index: int):
    if index < 0 or index >= len(trip.people):
        raise PersonNotFound(index)


def add_person(store, trip_id: str, person: Person) -> Trip:
    trip = store.require_trip(trip_id)
    person = validate_person(person, [p.name for p in trip.people])
    return store.save_trip(trip.model_copy(update={"people": trip.people + [person]}))


def update_person(store, trip_id: str, index: int, person: Person) -> Trip:
    trip = store.require_trip(trip_id)
    _check_index(trip, index)

    old_name = trip.people[index].name
    others = [p.name for i, p in enumerate(trip.people) if i != index]
    person = validate_person(person, others)

    people = list(trip.people)
    people[index] = person
    expenses = trip.expenses
    if old_name != person.name:
        expenses = rename_in_expenses(expenses, old_name, person.name)

    return store.save_trip(trip.model_copy(update={"people": people, "expenses": expenses}))


def remove_person(store, trip_id: str, index: int) -> Trip:
    trip = store.require_trip(trip_id)
    _check_index(trip, index)

    name = trip.people[index].name
    people = [p for i, p in enumerate(trip.people) if i != index]
    expenses = drop_from_expenses(trip.expenses, name)

    return store.save_trip(trip.model_copy(update={"people": people, "expenses": expenses}))
