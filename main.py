# main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from storefront.routers import auth_router, cart_router, discount_router, orders_router, admin_router
from storefront.core.db import init_models
from storefront.core.logging_config import setup_logging
from storefront.middleware.request_logger import RequestLoggerMiddleware

setup_logging()

app = FastAPI(
    title="Storefront API",
    description="FastAPI backend for cart pricing, discount codes and orders",
    version="0.1.0"
)
# CORS setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # adjust for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggerMiddleware)

# Health check endpoint
@app.get("/", tags=["Health"])
async def health_check():
    return {"status": "ok", "message": "Backend is running"}

# Register routers
app.include_router(auth_router)
app.include_router(cart_router)
app.include_router(discount_router)
app.include_router(orders_router)
app.include_router(admin_router)


@app.on_event("startup")
async def on_startup():
    await init_models()
