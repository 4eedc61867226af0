import logging
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import (
    SESSION_COOKIE,
    AuthenticationFailed,
    AuthService,
    UserSession,
    generate_csrf_token,
    issue_session_token,
    read_session_token,
    validate_csrf_token,
)
from autocomplete import AutocompleteService
from config import get_settings
from database import SessionLocal, session_scope
from models import MainCategory, Purchase, RevenueEntry, RevenuePeriod, Transaction
from periods import Window, month_options
from reports import ReportService
from schemas import (
    LoginIn,
    PasswordChangeIn,
    PurchaseBatchIn,
    RevenueBatchIn,
    TransactionIn,
)
from services import PurchaseService, RevenueService, TransactionService
from store import RecordNotFound

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Daybook")


def format_amount(value: float) -> str:
    currency = get_settings().currency
    return f"{value:,.0f}".replace(",", " ") + f" {currency}"


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@app.on_event("startup")
def startup_event():
    settings = get_settings()
    if settings.admin_email and settings.admin_password:
        with session_scope() as session:
            AuthService(session).ensure_user(
                settings.admin_email, settings.admin_password
            )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400, content={"detail": jsonable_encoder(exc.errors())}
    )


def current_user(request: Request) -> UserSession:
    user = read_session_token(request.cookies.get(SESSION_COOKIE))
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def csrf_protected(request: Request, user: UserSession = Depends(current_user)):
    token = request.headers.get("X-CSRF-Token", "")
    if not validate_csrf_token(token, user.user_id):
        raise HTTPException(status_code=400, detail="Invalid CSRF token")
    return user


def ref_date_from_request(request: Request) -> Optional[date]:
    raw = request.query_params.get("date")
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def window_out(window: Window) -> dict[str, str]:
    return {
        "slug": window.slug,
        "start": window.start.isoformat(),
        "end": window.end.isoformat(),
    }


def totals_out(totals: dict[str, float]) -> dict[str, object]:
    out: dict[str, object] = dict(totals)
    for key, value in totals.items():
        out[f"{key}_display"] = format_amount(value)
    return out


def transaction_out(txn: Transaction) -> dict[str, object]:
    return {
        "id": txn.id,
        "date": txn.date.isoformat(),
        "main_category": txn.main_category.value,
        "subcategory": txn.subcategory,
        "description": txn.description,
        "amount": txn.amount,
    }


def purchase_out(purchase: Purchase) -> dict[str, object]:
    return {
        "id": purchase.id,
        "date": purchase.date.isoformat(),
        "item_name": purchase.item_name,
        "quantity": purchase.quantity,
        "unit": purchase.unit.value,
        "unit_price": purchase.unit_price,
        "total_price": purchase.total_price,
    }


def revenue_out(entry: RevenueEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "date": entry.date.isoformat(),
        "period": entry.period.value,
        "subcategory": entry.subcategory,
        "amount": entry.amount,
        "description": entry.description,
    }


def _save_failed(action: str) -> HTTPException:
    logger.exception(f"Error during {action}")
    return HTTPException(status_code=500, detail=f"Could not complete {action}")


@app.post("/login")
def login(data: LoginIn, response: Response, db: Session = Depends(get_db)):
    try:
        user = AuthService(db).authenticate(data.email, data.password)
    except AuthenticationFailed as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    response.set_cookie(
        SESSION_COOKIE,
        issue_session_token(user),
        max_age=get_settings().session_hours * 3600,
        httponly=True,
        samesite="lax",
    )
    return {"email": user.email, "csrf_token": generate_csrf_token(user.id)}


@app.post("/logout")
def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE)
    return {"ok": True}


@app.get("/me")
def me(user: UserSession = Depends(current_user)):
    return {"email": user.email, "csrf_token": generate_csrf_token(user.user_id)}


@app.post("/me/password")
def change_password(
    data: PasswordChangeIn,
    user: UserSession = Depends(csrf_protected),
    db: Session = Depends(get_db),
):
    try:
        AuthService(db).change_password(user.user_id, data)
    except AuthenticationFailed as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise _save_failed("password change") from exc
    return Response(status_code=204)


@app.get("/api/transactions")
def list_transactions(
    user: UserSession = Depends(current_user), db: Session = Depends(get_db)
):
    return {"items": [transaction_out(t) for t in TransactionService(db).list_all()]}


@app.post("/api/transactions", status_code=201)
def create_transaction(
    data: TransactionIn,
    user: UserSession = Depends(csrf_protected),
    db: Session = Depends(get_db),
):
    try:
        txn = TransactionService(db).create(data)
    except SQLAlchemyError as exc:
        raise _save_failed("transaction insert") from exc
    return transaction_out(txn)


@app.post("/api/transactions/{transaction_id}/delete")
def delete_transaction(
    transaction_id: int,
    user: UserSession = Depends(csrf_protected),
    db: Session = Depends(get_db),
):
    try:
        TransactionService(db).delete(transaction_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise _save_failed("transaction delete") from exc
    return Response(status_code=204)


@app.get("/api/purchases")
def list_purchases(
    user: UserSession = Depends(current_user), db: Session = Depends(get_db)
):
    return {"items": [purchase_out(p) for p in PurchaseService(db).list_all()]}


@app.post("/api/purchases", status_code=201)
def create_purchases(
    data: PurchaseBatchIn,
    user: UserSession = Depends(csrf_protected),
    db: Session = Depends(get_db),
):
    try:
        created = PurchaseService(db).create_batch(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise _save_failed("purchase insert") from exc
    return {"items": [purchase_out(p) for p in created]}


@app.post("/api/purchases/{purchase_id}/delete")
def delete_purchase(
    purchase_id: int,
    user: UserSession = Depends(csrf_protected),
    db: Session = Depends(get_db),
):
    try:
        PurchaseService(db).delete(purchase_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise _save_failed("purchase delete") from exc
    return Response(status_code=204)


@app.get("/api/revenue")
def list_revenue(
    request: Request,
    user: UserSession = Depends(current_user),
    db: Session = Depends(get_db),
):
    period = None
    period_param = request.query_params.get("period")
    if period_param:
        try:
            period = RevenuePeriod(period_param)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    entries = RevenueService(db).list_all(period)
    return {"items": [revenue_out(e) for e in entries]}


@app.post("/api/revenue", status_code=201)
def create_revenue(
    data: RevenueBatchIn,
    user: UserSession = Depends(csrf_protected),
    db: Session = Depends(get_db),
):
    try:
        created = RevenueService(db).create_batch(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise _save_failed("revenue insert") from exc
    return {"items": [revenue_out(e) for e in created]}


@app.post("/api/revenue/{entry_id}/delete")
def delete_revenue(
    entry_id: int,
    user: UserSession = Depends(csrf_protected),
    db: Session = Depends(get_db),
):
    try:
        RevenueService(db).delete(entry_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        raise _save_failed("revenue delete") from exc
    return Response(status_code=204)


@app.get("/api/suggestions/subcategories")
def subcategory_suggestions(
    request: Request,
    user: UserSession = Depends(current_user),
    db: Session = Depends(get_db),
):
    kind = request.query_params.get("kind", "transaction")
    query = request.query_params.get("q")
    service = AutocompleteService(db)
    try:
        if kind == "transaction":
            main_category = MainCategory(
                request.query_params.get("main_category", "expense")
            )
            items = service.transaction_subcategories(main_category, query)
        elif kind == "revenue":
            period = RevenuePeriod(request.query_params.get("period", "morning"))
            items = service.revenue_subcategories(period, query)
        else:
            raise ValueError(f"Unknown suggestion kind: {kind}")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"items": items}


@app.get("/api/suggestions/purchases")
def purchase_suggestions(
    request: Request,
    user: UserSession = Depends(current_user),
    db: Session = Depends(get_db),
):
    query = request.query_params.get("q")
    return {"items": AutocompleteService(db).purchase_items(query)}


@app.get("/api/dashboard")
def dashboard(
    request: Request,
    user: UserSession = Depends(current_user),
    db: Session = Depends(get_db),
):
    ref = ref_date_from_request(request)
    data = ReportService(db).dashboard(ref)
    data["window"] = window_out(data["window"])
    data["totals"] = totals_out(data["totals"])
    return data


@app.get("/api/reports")
def reports(
    request: Request,
    user: UserSession = Depends(current_user),
    db: Session = Depends(get_db),
):
    ref = ref_date_from_request(request)
    mode = request.query_params.get("mode", "weekly")
    try:
        data = ReportService(db).report(mode, ref)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    data["window"] = window_out(data["window"])
    data["totals"] = totals_out(data["totals"])
    return data


@app.get("/api/reports/months")
def report_months(user: UserSession = Depends(current_user)):
    return {"items": month_options()}
