"""FastAPI main application for Employee Attrition Analyzer."""

import logging
import os
import traceback
from datetime import datetime
from typing import Dict, List

from fastapi import FastAPI, File, UploadFile, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv
import numpy as np

from attrition.bulk import aggregate, build_summary, summary_frame
from attrition.explain import predict
from attrition.models import (
    BulkRow,
    BulkSummaryEntry,
    EmployeeForm,
    PredictionResult,
    UploadResponse,
)
from attrition.parsers import IntakeError, ParseError, read_upload

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

app = FastAPI(title="Employee Attrition Analyzer", version="1.0.0")

# CORS configuration
allow_origins = os.getenv('ALLOW_ORIGINS', '*').split(',')
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler_json(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions and return JSON."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler_json(request: Request, exc: RequestValidationError):
    """Handle validation errors and return JSON."""
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder({"detail": exc.errors(), "body": exc.body})
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions and return JSON."""
    logger.exception("Unhandled error on %s", request.url.path)
    error_detail = str(exc)
    if os.getenv('DEBUG', 'False').lower() == 'true':
        error_detail = f"{str(exc)}\n\n{traceback.format_exc()}"

    return JSONResponse(
        status_code=500,
        content={
            "detail": f"Internal server error: {error_detail}",
            "type": type(exc).__name__
        }
    )


# Configuration
MAX_UPLOAD_SIZE_MB = int(os.getenv('MAX_UPLOAD_SIZE_MB', '5'))
MAX_UPLOAD_SIZE = MAX_UPLOAD_SIZE_MB * 1024 * 1024

_seed = os.getenv('BULK_RANDOM_SEED')
BULK_RANDOM_SEED = int(_seed) if _seed else None

# In-memory storage for the latest bulk upload (session-based)
results_cache: Dict[str, List[BulkSummaryEntry]] = {}


def make_rng() -> np.random.Generator:
    """Random source for bulk fields the upload does not supply."""
    return np.random.default_rng(BULK_RANDOM_SEED)


def latest_results() -> List[BulkSummaryEntry]:
    if not results_cache:
        raise HTTPException(status_code=404, detail="No results available")
    return results_cache[max(results_cache.keys())]


@app.get("/", response_class=HTMLResponse)
async def root():
    """Landing page."""
    return HTMLResponse(content="<h1>Employee Attrition Analyzer</h1><p>POST /predict or /upload to get started.</p>")


@app.get("/health")
async def health_check():
    """Health check endpoint to test server connectivity."""
    return JSONResponse(content={"status": "ok", "message": "Server is running"})


@app.post("/predict", response_model=PredictionResult)
async def predict_employee(form: EmployeeForm):
    """Score one manually entered employee."""
    return predict(form.to_record())


@app.post("/upload", response_model=UploadResponse)
async def upload_file(file: UploadFile = File(...)):
    """Upload and score a CSV of employees."""
    file_bytes = await file.read()
    if len(file_bytes) > MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {MAX_UPLOAD_SIZE_MB}MB"
        )

    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Please upload a CSV file (.csv)"
        )

    try:
        parsed = read_upload(file_bytes)
    except IntakeError as e:
        logger.warning("Upload of %s unreadable: %s", file.filename, e)
        results_cache.clear()
        raise HTTPException(status_code=400, detail=str(e))
    except ParseError as e:
        logger.warning("Upload of %s had no data: %s", file.filename, e)
        results_cache.clear()
        raise HTTPException(status_code=400, detail=str(e))

    rows = [BulkRow.from_record(record) for record in parsed.records]
    results = aggregate(rows, rng=make_rng())
    summary = build_summary(results)

    # A newer upload supersedes whatever was held before
    results_cache.clear()
    results_cache[datetime.now().isoformat()] = results

    message = f"Successfully processed {parsed.processed_rows} employees"
    if parsed.truncated:
        message += f" (first {parsed.processed_rows} of {parsed.total_rows} rows)"

    return UploadResponse(
        success=True,
        message=message,
        total_rows=parsed.total_rows,
        processed_rows=parsed.processed_rows,
        results=results,
        summary=summary
    )


@app.get("/results")
async def get_results():
    """Get the last processed results."""
    results = latest_results()
    return {
        'session_id': max(results_cache.keys()),
        'results': [r.model_dump(mode="json") for r in results],
        'summary': build_summary(results)
    }


@app.get("/results/{employee_id}", response_model=PredictionResult)
async def get_employee_result(employee_id: str):
    """Return the stored prediction for one row of the latest upload."""
    for entry in latest_results():
        if entry.employee_id == employee_id:
            return entry.prediction
    raise HTTPException(status_code=404, detail=f"Employee {employee_id} not found in latest results")


@app.delete("/results")
async def clear_results():
    """Forget the current upload."""
    results_cache.clear()
    return {"success": True}


@app.get("/download.csv")
async def download_csv():
    """Download the latest bulk results as CSV."""
    results = latest_results()
    session_id = max(results_cache.keys())
    csv_text = summary_frame(results).to_csv(index=False)

    return StreamingResponse(
        iter([csv_text]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=attrition_results_{session_id[:10]}.csv"
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
