# =============================================================================
# Technical SEO Checklist: FastAPI Backend
# =============================================================================
# Editable inspection checklist + Gemini-drafted remediation plans
#
#   Analysis table       bundled inspection elements, scored and annotated
#   Implementation view  rows below target score, ranked by severity
#   Recommendations      POST /api/recommend proxies one row to Gemini
#   Exports              CSV for both views, PDF for the checklist
#
# Run:  python main.py
# Test: curl http://localhost:8000/health
# =============================================================================

import logging
import os
from datetime import datetime
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from bundled_template import BUNDLED_TEMPLATE
from checklist import (
    IMPLEMENTER_OPTIONS,
    INCLUDE_NA_IN_IMPLEMENTATION,
    ISSUE_CATEGORY_OPTIONS,
    SCORE_OPTIONS,
    TARGET_SCORE,
    auto_prioritize,
    filter_rows,
    implementation_rows,
    run_self_checks,
)
from config import Settings, load_settings
from csv_export import ANALYSIS_FILENAME, CHECKLIST_FILENAME, build_csv
from database import DatasetStore, SnapshotSlot, init_db, make_engine, make_session_factory
from pdf_export import build_checklist_pdf
from recommend import RecommendOutcome, RecommendRequest, generate_recommendation

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger("seo-checklist")

settings = load_settings()

# Written into a row at target score without calling the model
TARGET_REACHED_ROW_TEXT = (
    "No action needed. This inspection element meets best practices. "
    f"Continue to monitor and keep parity with Target Score {TARGET_SCORE}."
)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Technical SEO Checklist API",
    version="1.0.0",
    description="Inspection checklist with Gemini-drafted recommendations",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_store: Optional[DatasetStore] = None


def get_settings() -> Settings:
    return settings


def get_store() -> DatasetStore:
    """The process-wide dataset, created and loaded on first use."""
    global _store
    if _store is None:
        engine = make_engine(settings.database_url)
        init_db(engine)
        _store = DatasetStore(SnapshotSlot(make_session_factory(engine)))
        _store.load()
    return _store


@app.on_event("startup")
async def startup_event():
    store = get_store()
    logger.info(f"Checklist ready: {len(store.rows)} rows from {store.source}")


# =============================================================================
# Request models
# =============================================================================

class FieldUpdate(BaseModel):
    field: str
    value: Any = None


def _csv_response(text: str, filename: str) -> Response:
    return Response(
        content=text.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# =============================================================================
# Recommendation proxy
# =============================================================================

@app.post("/api/recommend")
async def recommend(request: Request, settings: Settings = Depends(get_settings)):
    """Draft a remediation plan for one inspection row. Always returns {"recommendation": ...}."""
    try:
        data = await request.json()
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        body = RecommendRequest(**data)
    except Exception as e:
        logger.error(f"Bad recommendation request: {e}")
        outcome = RecommendOutcome(500, f"Server error: {e}")
    else:
        outcome = await generate_recommendation(body, settings)
    return JSONResponse(outcome.as_body(), status_code=outcome.status_code)


# =============================================================================
# Analysis table
# =============================================================================

@app.get("/rows")
def list_rows(q: str = "", category: str = "all", store: DatasetStore = Depends(get_store)):
    """Rows filtered by category (or "all") and a free-text query."""
    rows = filter_rows(store.rows, q=q, category=category)
    return {"source": store.source, "count": len(rows), "rows": rows}


@app.patch("/rows/{row_id}")
def update_row(row_id: int, body: FieldUpdate, store: DatasetStore = Depends(get_store)):
    """Edit one field of one row. Unknown row ids are ignored."""
    found = store.get(row_id) is not None
    try:
        store.update(row_id, body.field, body.value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "ok": True,
        "updated": found,
        "row": store.get(row_id),
        "persisted": store.last_persist.ok,
    }


@app.post("/rows/reset")
def reset_rows(store: DatasetStore = Depends(get_store)):
    """Discard all edits and reload the bundled template."""
    rows = store.reset()
    logger.info(f"Dataset reset to bundled template ({len(rows)} rows)")
    return {"source": store.source, "count": len(rows), "persisted": store.last_persist.ok}


@app.post("/rows/auto-prioritize")
def auto_prioritize_rows(
    include_na: bool = INCLUDE_NA_IN_IMPLEMENTATION,
    store: DatasetStore = Depends(get_store),
):
    """Rewrite priorities of the implementation rows by descending severity."""
    store.replace(auto_prioritize(store.rows, include_na=include_na))
    checklist = implementation_rows(store.rows, include_na=include_na)
    return {"count": len(checklist), "rows": checklist, "persisted": store.last_persist.ok}


@app.post("/rows/{row_id}/recommendation")
async def generate_row_recommendation(
    row_id: int,
    store: DatasetStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Generate a recommendation for a stored row and write it back into the row."""
    row = store.get(row_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Row not found")

    if row.get("score") == TARGET_SCORE:
        text, status_code = TARGET_REACHED_ROW_TEXT, 200
    else:
        outcome = await generate_recommendation(
            RecommendRequest(
                analysis=row.get("analysis") or "",
                score=row.get("score") or "",
                element=row.get("inspectionElement") or "",
                category=row.get("issueCategory") or "",
                subcategory=row.get("issueSubCategory") or "",
            ),
            settings,
        )
        text = outcome.recommendation or "No recommendation returned."
        status_code = outcome.status_code

    store.update(row_id, "recommendations", text)
    return JSONResponse(
        {
            "id": row_id,
            "recommendation": text,
            "row": store.get(row_id),
            "persisted": store.last_persist.ok,
        },
        status_code=status_code,
    )


# =============================================================================
# Implementation checklist
# =============================================================================

@app.get("/checklist")
def get_checklist(
    include_na: bool = INCLUDE_NA_IN_IMPLEMENTATION,
    store: DatasetStore = Depends(get_store),
):
    """Rows still below target score, ordered by priority then severity."""
    rows = implementation_rows(store.rows, include_na=include_na)
    return {"target_score": TARGET_SCORE, "count": len(rows), "rows": rows}


# =============================================================================
# Exports
# =============================================================================

@app.get("/export/analysis.csv")
def export_analysis_csv(store: DatasetStore = Depends(get_store)):
    return _csv_response(build_csv(store.rows), ANALYSIS_FILENAME)


@app.get("/export/checklist.csv")
def export_checklist_csv(
    include_na: bool = INCLUDE_NA_IN_IMPLEMENTATION,
    store: DatasetStore = Depends(get_store),
):
    rows = implementation_rows(store.rows, include_na=include_na)
    return _csv_response(build_csv(rows), CHECKLIST_FILENAME)


@app.get("/export/checklist.pdf")
def export_checklist_pdf(
    include_na: bool = INCLUDE_NA_IN_IMPLEMENTATION,
    store: DatasetStore = Depends(get_store),
):
    """Printable implementation checklist."""
    rows = implementation_rows(store.rows, include_na=include_na)
    try:
        pdf_bytes = build_checklist_pdf(rows)
    except Exception as e:
        logger.error(f"Checklist PDF generation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="PDF generation failed")

    filename = f"Implementation_Checklist_{datetime.now():%Y%m%d}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# =============================================================================
# Options, diagnostics, health & info
# =============================================================================

@app.get("/options")
def options():
    return {
        "scores": SCORE_OPTIONS,
        "target_score": TARGET_SCORE,
        "implementers": IMPLEMENTER_OPTIONS,
        "issue_categories": ISSUE_CATEGORY_OPTIONS,
    }


@app.get("/self-checks")
def self_checks(store: DatasetStore = Depends(get_store)):
    results = run_self_checks(store.source, BUNDLED_TEMPLATE)
    return {
        "ok": all(r["status"] == "pass" for r in results),
        "results": results,
    }


@app.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "timestamp": datetime.now().isoformat(),
        "api_key_set": settings.has_credential,
    }


@app.get("/info")
async def info(settings: Settings = Depends(get_settings)):
    return {
        "name": "Technical SEO Checklist API",
        "version": "1.0.0",
        "model": settings.gemini_model,
        "safety_threshold": settings.safety_threshold,
        "endpoints": {
            "recommend": "POST /api/recommend",
            "rows": "GET /rows",
            "update_row": "PATCH /rows/{row_id}",
            "reset": "POST /rows/reset",
            "auto_prioritize": "POST /rows/auto-prioritize",
            "row_recommendation": "POST /rows/{row_id}/recommendation",
            "checklist": "GET /checklist",
            "export_analysis_csv": "GET /export/analysis.csv",
            "export_checklist_csv": "GET /export/checklist.csv",
            "export_checklist_pdf": "GET /export/checklist.pdf",
            "health": "GET /health",
        },
    }


# =============================================================================
# Run
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)
