import os
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import models  # noqa: F401
from core.config import settings
from core.db import Base, engine
from routes.auth import router as auth_router
from routes.banners import router as banners_router
from routes.categories import router as categories_router
from routes.orders import router as orders_router
from routes.payment_conditions import router as payment_conditions_router
from routes.products import router as products_router
from routes.sellers import router as sellers_router
from routes.settings import router as settings_router
from routes.upload import router as upload_router

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Ensure tables exist (no migrations for the direct-database backend)
Base.metadata.create_all(bind=engine)

api = APIRouter(prefix="/api")
api.include_router(products_router)
api.include_router(categories_router)
api.include_router(settings_router)
api.include_router(banners_router)
api.include_router(payment_conditions_router)
api.include_router(sellers_router)
api.include_router(orders_router)
api.include_router(upload_router)
api.include_router(auth_router)


@api.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "mode": "postgres"}


app.include_router(api)

# Serve uploaded images
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
    )
