from pydantic import BaseModel


class ErrorResponse(BaseModel):
    detail: str
    code: str = "internal_error"
    trace_id: str


class HealthResponse(BaseModel):
    status: str = "ok"
    rewrite_service: bool = False
