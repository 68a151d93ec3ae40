"""
Main FastAPI application
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eatme.config import get_settings
from eatme.database import engine, create_tables, AsyncSessionLocal
from eatme.exceptions import EatMeError
from eatme.services.vocabulary import seed_vocabularies
from eatme.utils.logger import configure_logging
from eatme.api import ingredients, dishes, dish_categories, restaurants, discovery

settings = get_settings()
configure_logging()
logger = logging.getLogger("eatme.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info("Database tables created")

    # Seed allergen / dietary tag / dish category vocabularies if empty
    async with AsyncSessionLocal() as session:
        await seed_vocabularies(session)

    yield

    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EatMeError)
async def eatme_error_handler(request: Request, exc: EatMeError):
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.http_status}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


# Include routers
app.include_router(ingredients.router, prefix="/api/ingredients", tags=["Ingredients"])
app.include_router(dishes.router, prefix="/api/dishes", tags=["Dishes"])
app.include_router(dish_categories.router, prefix="/api/dish-categories", tags=["Dish Categories"])
app.include_router(restaurants.router, prefix="/api/restaurants", tags=["Restaurants"])
app.include_router(discovery.router, prefix="/api/discovery", tags=["Discovery"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "eatme.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
