"""
Storefront Cart API - Main FastAPI Application

Single entry point for cart endpoints.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.routers import cart_router


# ==================== FASTAPI APP ====================

app = FastAPI(
    title="Storefront Cart",
    description="Shopping bag with inventory reservation",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cart_router, prefix="/api")


# ==================== HEALTH CHECK ====================

@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "storefront-cart"}
