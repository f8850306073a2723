from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trackchain.config import settings
from trackchain.lifespan import lifespan
from trackchain.middleware.exceptions import register_exception_handlers
from trackchain.routers import batches, health, products, stakeholders, verifications

app = FastAPI(
    title="TrackChain",
    description="Supply-chain provenance ledger: products, custody, verifications and recalls",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(stakeholders.router, prefix="/api/stakeholders", tags=["stakeholders"])
app.include_router(batches.router, prefix="/api/batches", tags=["batches"])
app.include_router(products.router, prefix="/api/products", tags=["products"])
app.include_router(verifications.router, prefix="/api", tags=["verifications"])
