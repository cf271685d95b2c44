import asyncio
import time
import traceback

import psycopg2
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from tripsplit import config
from tripsplit.database import Database
from tripsplit.errors import TripNotFound
from tripsplit.models import (
    CalculateIn, ExpenseIn, ImportIn, Person, Settlement, ShareIn, TripIn
)
from tripsplit.services import compression, expenses, people, reports
from tripsplit.services.settlement import calculate_settlement
from tripsplit.services.share import ShareStore, share_url
from tripsplit.services.trips import TripStore, now_ms

router = APIRouter()


# ================================================
# 🔌 DEPENDENCIES
# ================================================
def get_trip_store(request: Request) -> TripStore:
    return request.app.state.trip_store


def get_share_store(request: Request) -> ShareStore:
    return request.app.state.share_store


# ================================================
# 🏁 HEALTH CHECK
# ================================================
@router.get("/")
def home():
    return {"message": "✅ Trip Split Backend Running"}


@router.get("/api/health")
def health():
    return {"status": "ok", "timestamp": now_ms()}


# ================================================
# 🧮 STATELESS SETTLEMENT
# ================================================
@router.post("/calculate", response_model=Settlement)
def calculate(data: CalculateIn):
    """Settle arbitrary people/expenses without touching storage."""
    return calculate_settlement(data.people, data.expenses)


# ================================================
# 🧳 TRIPS
# ================================================
@router.post("/add_trip")
def add_trip(trip: TripIn, store: TripStore = Depends(get_trip_store)):
    new_trip = store.create_trip(trip.name.strip() or "Untitled Trip", trip.currency)
    return {"message": "Trip created successfully", "trip": new_trip}


@router.get("/trips")
def get_trips(store: TripStore = Depends(get_trip_store)):
    return {"trips": store.get_all_trips()}


@router.get("/trip/{trip_id}")
def get_trip(trip_id: str, store: TripStore = Depends(get_trip_store)):
    return store.require_trip(trip_id)


@router.delete("/delete_trip/{trip_id}")
def delete_trip(trip_id: str, store: TripStore = Depends(get_trip_store)):
    if not store.delete_trip(trip_id):
        raise TripNotFound(trip_id)
    return {"message": f"Trip {trip_id} deleted successfully."}


# ================================================
# 👥 PEOPLE / 💰 EXPENSES
# ================================================
@router.post("/add_person/{trip_id}")
def add_person(trip_id: str, person: Person, store: TripStore = Depends(get_trip_store)):
    trip = people.add_person(store, trip_id, person)
    return {"message": "Person added successfully", "trip": trip}


@router.put("/update_person/{trip_id}/{index}")
def update_person(trip_id: str, index: int, person: Person, store: TripStore = Depends(get_trip_store)):
    trip = people.update_person(store, trip_id, index, person)
    return {"message": "Person updated successfully", "trip": trip}


@router.delete("/delete_person/{trip_id}/{index}")
def delete_person(trip_id: str, index: int, store: TripStore = Depends(get_trip_store)):
    trip = people.remove_person(store, trip_id, index)
    return {"message": "Person removed successfully", "trip": trip}


@router.post("/add_expense/{trip_id}")
def add_expense(trip_id: str, expense: ExpenseIn, store: TripStore = Depends(get_trip_store)):
    trip = expenses.add_expense(store, trip_id, expense)
    return {"message": "Expense added successfully", "trip": trip}


@router.put("/update_expense/{trip_id}/{expense_id}")
def update_expense(trip_id: str, expense_id: str, expense: ExpenseIn,
                   store: TripStore = Depends(get_trip_store)):
    trip = expenses.update_expense(store, trip_id, expense_id, expense)
    return {"message": "Expense updated successfully", "trip": trip}


@router.delete("/delete_expense/{trip_id}/{expense_id}")
def delete_expense(trip_id: str, expense_id: str, store: TripStore = Depends(get_trip_store)):
    trip = expenses.remove_expense(store, trip_id, expense_id)
    return {"message": "Expense deleted successfully", "trip": trip}


# ================================================
# 📊 SETTLEMENT / REPORTS
# ================================================
@router.get("/settlement/{trip_id}", response_model=Settlement)
def get_settlement(trip_id: str, store: TripStore = Depends(get_trip_store)):
    """Recomputed on every call; nothing is cached."""
    trip = store.require_trip(trip_id)
    return calculate_settlement(trip.people, trip.expenses)


@router.get("/report/{trip_id}")
def get_report(trip_id: str, share_id: str = None, store: TripStore = Depends(get_trip_store)):
    trip = store.require_trip(trip_id)
    qr_target = share_url(share_id) if share_id else f"{config.FRONTEND_BASE_URL}/trip/{trip.id}"
    pdf = reports.generate_settlement_pdf(trip, qr_target)
    filename = f"Trip_{trip.id}_Settlement_Report.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ================================================
# 🔗 SHARING (server-less link + share service)
# ================================================
@router.get("/export/{trip_id}")
def export_trip(trip_id: str, store: TripStore = Depends(get_trip_store)):
    trip = store.require_trip(trip_id)
    compressed, info = compression.compress_and_measure(trip)
    data = compression.to_base64url(compressed)
    return {
        "d": data,
        "url": f"{config.FRONTEND_BASE_URL}/import?d={data}",
        "info": info,
    }


@router.post("/import")
def import_trip(payload: ImportIn, store: TripStore = Depends(get_trip_store)):
    trip = compression.decode_trip(payload.d)
    trip = store.import_trip(trip)
    return {"message": "Trip imported successfully", "trip": trip}


@router.post("/api/share")
def create_share(body: ShareIn, shares: ShareStore = Depends(get_share_store)):
    share = shares.create_share(body.trip)
    return {"id": share.id, "expiresAt": share.expires_at, "url": share_url(share.id)}


@router.get("/api/share/{share_id}")
def get_shared_trip(share_id: str, shares: ShareStore = Depends(get_share_store)):
    return {"trip": shares.get_shared_trip(share_id)}


# ================================================
# 🧹 BACKGROUND CLEANUP
# ================================================
async def cleanup_expired_shares(shares: ShareStore, interval: int):
    while True:
        await asyncio.sleep(interval)
        try:
            cleaned = await run_in_threadpool(shares.cleanup_expired)
        except psycopg2.Error as e:
            print(f"❌ Share cleanup failed: {e}")
            continue
        if cleaned > 0:
            print(f"🧹 Cleaned up {cleaned} expired shares")


# ================================================
# 🏗️ APP FACTORY
# ================================================
def create_app(trip_store=None, share_store=None, database=None) -> FastAPI:
    """
    Build the API. Stores may be injected (tests); otherwise both are backed
    by one Database whose pool is opened on startup and closed on shutdown.
    """
    app = FastAPI(title="Trip Split API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    if trip_store is None or share_store is None:
        database = database or Database()
        trip_store = trip_store or TripStore(database)
        share_store = share_store or ShareStore(database)

    app.state.database = database
    app.state.trip_store = trip_store
    app.state.share_store = share_store
    app.state.cleanup_task = None

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Logs:
          ✅ All requests (if in development)
          ⚠️ Only slow (>500ms) or failed ones in production
        """
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            print(f"❌ ERROR {request.method} {request.url.path} ({process_time:.2f} ms): {e}")
            raise

        process_time = (time.time() - start_time) * 1000
        status = response.status_code

        if config.IS_DEV or process_time > 500 or status >= 400:
            query = f"?{request.url.query}" if request.url.query else ""
            print(
                f"{'⚠️' if process_time > 500 else '✅'} "
                f"{request.method} {request.url.path}{query} "
                f"→ {status} ({process_time:.2f} ms)"
            )

        return response

    @app.exception_handler(psycopg2.Error)
    async def database_error(request: Request, exc: psycopg2.Error):
        print(f"❌ Database error in {request.method} {request.url.path}:")
        traceback.print_exc()
        return JSONResponse(status_code=500, content={"detail": "Database error"})

    @app.on_event("startup")
    async def on_startup():
        if app.state.database is not None:
            app.state.database.open()
            app.state.database.initialize()
        app.state.cleanup_task = asyncio.create_task(
            cleanup_expired_shares(app.state.share_store, config.SHARE_CLEANUP_INTERVAL)
        )

    @app.on_event("shutdown")
    async def on_shutdown():
        if app.state.cleanup_task is not None:
            app.state.cleanup_task.cancel()
        if app.state.database is not None:
            app.state.database.close()

    app.include_router(router)
    return app


app = create_app()
