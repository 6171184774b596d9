from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import Field

from ask_data.config import settings
from ask_data.core import pipeline
from ask_data.core.export import export_filename, to_csv
from ask_data.core.filters import apply_filters, build_available_filters
from ask_data.models import CamelModel, ColumnDescriptor, ResultFilter
from ask_data.utils.exceptions import AppException, DatasetNotFoundError, FileProcessingError
from ask_data.utils.logger import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs"
)


# --- Request Models ---

class QueryRequest(CamelModel):
    query: str
    dataset_id: str


class ChartRequest(CamelModel):
    original_query: str
    data: List[Dict[str, Any]]
    schema_: List[ColumnDescriptor] = Field(default_factory=list, alias="schema")
    chart_type: Optional[str] = None


class FilterRequest(CamelModel):
    dataset_id: str
    data: Optional[List[Dict[str, Any]]] = None
    filters: List[ResultFilter] = Field(default_factory=list)


class ExportRequest(CamelModel):
    data: List[Dict[str, Any]]
    name: str = "analysis-results"


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(f"{request.url.path} failed: {exc.message}")
    content = {"success": False, "error": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "online", "message": f"{settings.APP_NAME} API is running"}


@app.post("/upload")
async def upload_csv(file: UploadFile = File(...)):
    """
    Uploads a CSV file, infers its schema and stores it for querying.
    """
    logger.info(f"Received file upload: {file.filename}")
    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise FileProcessingError(f"File exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit.")
    return pipeline.process_csv(content, file.filename or "upload.csv")


@app.get("/samples/{name}")
def load_sample(name: str):
    """Loads one of the bundled demo datasets."""
    return pipeline.load_sample(name)


@app.post("/query")
def ask_query(payload: QueryRequest):
    """
    Accepts a natural language question about a stored dataset.
    Expected Payload: {"query": "total cost by indication", "datasetId": "..."}
    """
    return pipeline.process_query(payload.query, payload.dataset_id)


@app.post("/chart")
def generate_chart(payload: ChartRequest):
    """Generates a chart spec for a query result, with a fixed-chart fallback."""
    return pipeline.generate_chart(
        payload.original_query, payload.data, payload.schema_, payload.chart_type
    )


@app.post("/filters")
def filters(payload: FilterRequest):
    """
    Lists the filters available for a dataset and applies the given ones
    to `data` (or to the dataset rows when no data is sent).
    """
    dataset = pipeline.default_store.get(payload.dataset_id)
    if dataset is None:
        raise DatasetNotFoundError()

    available = build_available_filters(dataset.rows, dataset.schema_)
    rows = payload.data if payload.data is not None else dataset.rows
    filtered = apply_filters(rows, payload.filters)
    return {
        "success": True,
        "availableFilters": [f.model_dump(by_alias=True) for f in available],
        "data": filtered,
        "rowCount": len(filtered),
    }


@app.post("/export")
def export_csv(payload: ExportRequest):
    """Returns result rows as a downloadable CSV file."""
    filename = export_filename(payload.name, "csv")
    return Response(
        content=to_csv(payload.data),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
