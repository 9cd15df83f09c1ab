"""
HTTP surface for tournament alerts.

Dispatch and lifecycle endpoints answer with JSON; the unsubscribe endpoint
answers with an HTML page because it is opened straight from an email.

Run locally:
    uv run uvicorn api.main:app --reload
"""

import os
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import BaseModel, ConfigDict, Field

from api.pages import error_page, unsubscribed_page
from notifications.digest_builder import FRONTEND_BASE_URL
from notifications.dispatcher import run_digest_cycle, run_instant_alerts
from notifications.error_logger import log_notification_error
from notifications.subscriptions import (
    create_alert,
    manage_alerts,
    unsubscribe,
    verify_alert,
)
from shared.errors import AlertError

app = FastAPI(title="Football Tournaments UK Alerts")

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ALLOW_ORIGINS", FRONTEND_BASE_URL).split(","),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


class DigestRequest(BaseModel):
    frequency: Optional[str] = None


class InstantRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tournament_id: Optional[str] = Field(None, alias="tournamentId")
    action: str = "created"


class CreateAlertRequest(BaseModel):
    email: Optional[str] = None
    filters: Any = None
    frequency: Optional[str] = None
    source: Optional[str] = "filters"


class VerifyRequest(BaseModel):
    token: Optional[str] = None


class ManageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: Optional[str] = None
    management_token: Optional[str] = Field(None, alias="managementToken")
    alert_id: Optional[str] = Field(None, alias="alertId")
    updates: Optional[Dict[str, Any]] = None


def _json_call(endpoint: str, call: Callable[[], Any], status_code: int = 200) -> JSONResponse:
    """Run a handler body, mapping alert errors to their status codes."""
    try:
        return JSONResponse(call(), status_code=status_code)
    except AlertError as e:
        return JSONResponse({"error": str(e)}, status_code=e.status_code)
    except Exception as e:
        error_file = log_notification_error(
            error_type="api", error_message=str(e), context={"endpoint": endpoint}
        )
        print(f"✗ Error in {endpoint}. Details logged to: {error_file}")
        return JSONResponse({"error": "Internal server error"}, status_code=500)


@app.post("/alerts/digest")
def digest(request: DigestRequest) -> JSONResponse:
    return _json_call(
        "alerts-digest", lambda: run_digest_cycle(request.frequency).to_dict()
    )


@app.post("/alerts/instant")
def instant(request: InstantRequest) -> JSONResponse:
    return _json_call(
        "alerts-instant",
        lambda: run_instant_alerts(request.tournament_id, action=request.action).to_dict(),
    )


@app.post("/alerts")
def create(request: CreateAlertRequest) -> JSONResponse:
    def _create() -> Dict[str, Any]:
        alert = create_alert(
            request.email, request.filters, request.frequency, request.source
        )
        return {
            "success": True,
            "message": "Alert created successfully. Please check your email to verify.",
            "alertId": alert.id,
        }

    return _json_call("alerts", _create, status_code=201)


@app.get("/alerts/verify")
def verify_redirect(token: Optional[str] = None):
    """Email links land here; the frontend page performs the POST."""
    if not token:
        return JSONResponse(
            {"status": "error", "message": "Token is required"}, status_code=400
        )
    return RedirectResponse(
        f"{FRONTEND_BASE_URL}/alerts/verify?{urlencode({'token': token})}",
        status_code=302,
        headers={"Cache-Control": "no-store"},
    )


@app.post("/alerts/verify")
def verify(request: VerifyRequest) -> JSONResponse:
    try:
        outcome = verify_alert(request.token)
    except AlertError as e:
        return JSONResponse(
            {"status": "error", "message": str(e)},
            status_code=e.status_code,
            headers={"Cache-Control": "no-store"},
        )

    alert = outcome["alert"]
    message = (
        "Your tournament alerts are already active!"
        if outcome["status"] == "already_verified"
        else "Tournament alerts activated successfully!"
    )
    return JSONResponse(
        {
            "status": outcome["status"],
            "message": message,
            "alert": {
                "id": alert.id,
                "frequency": alert.frequency.value,
                "management_token": alert.management_token,
            },
        },
        headers={"Cache-Control": "no-store"},
    )


@app.post("/alerts/manage")
def manage(request: ManageRequest) -> JSONResponse:
    return _json_call(
        "alerts-manage",
        lambda: manage_alerts(
            request.management_token, request.action, request.alert_id, request.updates
        ),
    )


@app.get("/alerts/unsubscribe", response_class=HTMLResponse)
def unsubscribe_page(
    token: Optional[str] = None,
    alert_id: Optional[str] = None,
    alert_id_camel: Optional[str] = Query(None, alias="alertId"),
) -> HTMLResponse:
    try:
        outcome = unsubscribe(token, alert_id or alert_id_camel)
    except AlertError as e:
        titles = {400: "Invalid Link", 404: "Alert Not Found"}
        title = titles.get(e.status_code, "Unsubscribe Failed")
        return HTMLResponse(error_page(title, str(e)), status_code=e.status_code)
    except Exception as e:
        error_file = log_notification_error(
            error_type="api", error_message=str(e), context={"endpoint": "alerts-unsubscribe"}
        )
        print(f"✗ Error in alerts-unsubscribe. Details logged to: {error_file}")
        return HTMLResponse(
            error_page(
                "Something went wrong",
                "We encountered an error processing your request. Please try again later.",
            ),
            status_code=500,
        )

    return HTMLResponse(unsubscribed_page(outcome["scope"]))
