# wholesale_orders/main.py

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
import uvicorn
from dotenv import load_dotenv
from contextlib import asynccontextmanager

from wholesale_orders.utils.log import Log
from wholesale_orders.utils.database import init_db
from wholesale_orders.middleware.db_middleware import DBSessionMiddleware
from wholesale_orders.errors import OrderError, ValidationError

# ─── environment ───
load_dotenv()

boot_log = Log()


# ────────────── Lifespan ──────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    boot_log.log_info_sync(target="startup", message="lifespan: startup")

    await init_db()
    boot_log.log_info_sync(target="startup", message="Database ready")

    app.state.log = Log()
    await app.state.log.log_info(target="startup", message="Async log ready")

    yield

    await app.state.log.log_info(target="shutdown", message="Stopping application")
    await app.state.log.shutdown()
    boot_log.log_info_sync(target="shutdown", message="Log closed")


# ────────────── FastAPI app ──────────────
app = FastAPI(title="Wholesale Orders & Receivables API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# request.state.db
app.add_middleware(DBSessionMiddleware)


@app.exception_handler(OrderError)
async def order_error_handler(request: Request, exc: OrderError):
    log = getattr(request.app.state, "log", None)
    if log is not None:
        await log.log_warning("http", f"{exc.kind}: {exc.message}", {
            "path": request.url.path,
            **exc.data,
        })
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and params get the same {"kind", "detail"} shape as business errors."""
    problems = [
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]
    error = ValidationError("; ".join(problems), {"path": request.url.path})

    log = getattr(request.app.state, "log", None)
    if log is not None:
        await log.log_warning("http", f"{error.kind}: {error.message}", error.data)

    content = error.to_dict()
    content["errors"] = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=error.status_code, content=content)


@app.get("/")
def read_root():
    return {"message": "Wholesale orders API"}


# ────────────── Routers ──────────────
from wholesale_orders.routes import auth, order, installment  # noqa: E402

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(order.router, prefix="/order", tags=["order"])
app.include_router(installment.router, prefix="/installment", tags=["installment"])


# ────────────── uvicorn ──────────────
def run():
    boot_log.log_info_sync(target="startup", message="uvicorn.run")
    uvicorn.run(
        "wholesale_orders.main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
    )


if __name__ == "__main__":
    run()
