from fastapi import HTTPException


class TripNotFound(HTTPException):
    def __init__(self, trip_id: str):
        super().__init__(status_code=404, detail=f"Trip {trip_id} not found")


class PersonNotFound(HTTPException):
    def __init__(self, index: int):
        super().__init__(status_code=404, detail=f"No person at position {index}")


class ExpenseNotFound(HTTPException):
    def __init__(self, expense_id: str):
        super().__init__(status_code=404, detail=f"Expense {expense_id} not found")


class ShareNotFound(HTTPException):
    def __init__(self):
        super().__init__(status_code=404, detail="Share not found")


class ShareExpired(HTTPException):
    def __init__(self):
        super().__init__(status_code=404, detail="This share link has expired")


class InvalidTripData(HTTPException):
    def __init__(self, message: str):
        super().__init__(status_code=400, detail=message)


class ImportFailed(HTTPException):
    def __init__(self, message: str = "Failed to import trip data"):
        super().__init__(status_code=400, detail=message)
