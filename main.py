from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from apis import boards, buckets, cards, labels, dashboard, preferences, websockets
from settings import APP_NAME, ENVIRONMENT, FRONTEND_ORIGINS
from store.events import change_feed
from ws_service.manager import manager

app = FastAPI(
    title=APP_NAME,
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

# CORS middleware for development
if ENVIRONMENT == "development":
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
        allow_origins=FRONTEND_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

app.include_router(boards.router, prefix="/api")
app.include_router(buckets.router, prefix="/api")
app.include_router(cards.router, prefix="/api")
app.include_router(labels.router, prefix="/api")
app.include_router(dashboard.router, prefix="/api")
app.include_router(preferences.router, prefix="/api")
app.include_router(websockets.router, prefix="/api")

# Push every store mutation to connected WebSocket clients
change_feed.subscribe(manager.publish_change)


@app.get("/api/health")
async def root():
    """API health check."""
    return {"message": f"{APP_NAME} is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
