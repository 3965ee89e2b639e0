from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from consulta.api.routers.orders import router as orders_router
from consulta.core.config import settings
from consulta.core.flow_logging import configure_logging

configure_logging()

app = FastAPI(title="Consulta R2PP API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS.split(",") if settings.CORS_ALLOW_ORIGINS else ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(orders_router)


@app.get("/health")
def health():
    return {"status": "up"}
