"""
Electronics Storefront Backend with OpenTelemetry Instrumentation
"""

import logging
import time
from typing import List

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront import config, schemas
from storefront.database import Base, SessionLocal, engine, get_db
from storefront.errors import (
    Conflict,
    InsufficientStock,
    InvalidStatus,
    NotFound,
    StoreError,
    ValidationError,
)
from storefront.seed import seed_catalog
from storefront.services import OrderPlacementService, ProductService
from storefront.telemetry import http_request_duration_seconds, http_requests_total

logger = logging.getLogger("storefront")

app = FastAPI(
    title="Electronics Storefront API",
    description="Products and orders for the online electronics store, with tracing and metrics",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    return ProductService(db)


def get_order_service(db: Session = Depends(get_db)) -> OrderPlacementService:
    return OrderPlacementService(db)


# ============================================================================
# ERROR HANDLING
# ============================================================================

ERROR_STATUS_CODES = [
    (ValidationError, 400),
    (InvalidStatus, 400),
    (NotFound, 404),
    (InsufficientStock, 409),
    (Conflict, 409),
]


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    status_code = next((code for cls, code in ERROR_STATUS_CODES if isinstance(exc, cls)), 400)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": exc.kind, **exc.context()},
    )


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Storage unavailable, please retry", "error": "storage_error"},
    )


# ============================================================================
# METRICS
# ============================================================================

@app.middleware("http")
async def record_request_metrics(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    http_requests_total.labels(method=request.method, endpoint=endpoint, status=str(response.status_code)).inc()
    duration = time.time() - start_time
    http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(duration)
    return response


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "storefront-backend"}


@app.get("/metrics")
async def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Error bodies documented in the OpenAPI schema
NOT_FOUND = {404: {"model": schemas.ErrorResponse}}
BAD_REQUEST = {400: {"model": schemas.ErrorResponse}}
CONFLICT = {409: {"model": schemas.ErrorResponse}}
STORAGE_ERROR = {500: {"model": schemas.ErrorResponse}}

Skip = Query(0, ge=0, le=2**31 - 1)
Limit = Query(100, ge=1, le=1000)


# ============================================================================
# PRODUCTS
# ============================================================================

@app.get("/api/products", response_model=List[schemas.Product])
def list_products(skip: int = Skip, limit: int = Limit, service: ProductService = Depends(get_product_service)):
    return service.list_products(skip=skip, limit=limit)


@app.get("/api/products/category/{category}", response_model=List[schemas.Product])
def list_products_by_category(category: str, service: ProductService = Depends(get_product_service)):
    return service.list_by_category(category)


@app.get("/api/products/{product_id}", response_model=schemas.Product, responses=NOT_FOUND)
def get_product(product_id: int, service: ProductService = Depends(get_product_service)):
    return service.get_product(product_id)


@app.post("/api/products", response_model=schemas.Product, status_code=201, responses={**BAD_REQUEST, **CONFLICT})
def create_product(product: schemas.ProductCreate, service: ProductService = Depends(get_product_service)):
    return service.create_product(product)


@app.put(
    "/api/products/{product_id}",
    response_model=schemas.Product,
    responses={**BAD_REQUEST, **NOT_FOUND, **CONFLICT},
)
def update_product(
    product_id: int,
    product: schemas.ProductUpdate,
    service: ProductService = Depends(get_product_service),
):
    return service.update_product(product_id, product)


@app.delete("/api/products/{product_id}", status_code=204, responses=NOT_FOUND)
def delete_product(product_id: int, service: ProductService = Depends(get_product_service)):
    service.delete_product(product_id)
    return Response(status_code=204)


# ============================================================================
# ORDERS
# ============================================================================

@app.get("/api/orders", response_model=List[schemas.Order])
def list_orders(skip: int = Skip, limit: int = Limit, service: OrderPlacementService = Depends(get_order_service)):
    return service.list_orders(skip=skip, limit=limit)


@app.get("/api/orders/user/{user_id}", response_model=List[schemas.Order])
def list_orders_by_user(user_id: str, service: OrderPlacementService = Depends(get_order_service)):
    return service.list_orders_by_user(user_id)


@app.get("/api/orders/{order_id}", response_model=schemas.Order, responses=NOT_FOUND)
def get_order(order_id: int, service: OrderPlacementService = Depends(get_order_service)):
    return service.get_order(order_id)


@app.post(
    "/api/orders",
    response_model=schemas.Order,
    status_code=201,
    responses={**BAD_REQUEST, **NOT_FOUND, **CONFLICT, **STORAGE_ERROR},
)
def place_order(order: schemas.OrderCreate, service: OrderPlacementService = Depends(get_order_service)):
    return service.place_order(order)


@app.put("/api/orders/{order_id}/status", response_model=schemas.Order, responses={**BAD_REQUEST, **NOT_FOUND})
def update_order_status(
    order_id: int,
    update: schemas.OrderStatusUpdate,
    service: OrderPlacementService = Depends(get_order_service),
):
    return service.update_order_status(order_id, update.status)


FastAPIInstrumentor.instrument_app(app)


@app.on_event("startup")
async def startup_event():
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    Base.metadata.create_all(bind=engine)
    if config.SEED_CATALOG:
        db = SessionLocal()
        try:
            seed_catalog(db)
        finally:
            db.close()
    logger.info("Storefront backend started")
    logger.info("OpenTelemetry instrumentation active, Prometheus metrics at /metrics")
