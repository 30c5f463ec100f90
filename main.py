from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from apis import auth, menu, menu_items, seo
from settings import settings, logger

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

# CORS middleware for development
if settings.ENVIRONMENT == "development":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["*"],
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log unexpected failures and answer with a generic 500."""
    logger.exception("Unhandled exception", extra={
        "method": request.method,
        "path": request.url.path,
        "error_type": exc.__class__.__name__
    })
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(auth.router, prefix="/api")
app.include_router(menu.router, prefix="/api")
app.include_router(menu.structure_router, prefix="/api")
app.include_router(menu_items.router, prefix="/api")
app.include_router(seo.router, prefix="/api")


@app.get("/api/health")
async def root():
    """API health check."""
    return {"message": f"{settings.PROJECT_NAME} is running"}
