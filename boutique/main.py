from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from boutique.api.v1 import auth, balance, expense, order, report, transaction, user
from boutique.common.error_handlers import register_error_handlers
from boutique.core.config import settings
from boutique.core.database import init_db
from boutique.logger_config import logger
from boutique.storage import InMemoryStorage


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.STORAGE_BACKEND == "memory":
        app.state.storage = InMemoryStorage()
        if settings.DEMO_DATA:
            from boutique.seed import seed_demo_data

            seed_demo_data(app.state.storage)
        logger.info("Using in-memory storage")
    else:
        init_db()
        logger.info("Database tables ready")
    yield


app = FastAPI(title="Boutique Manager", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Register API routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["authentication"])
app.include_router(user.router, prefix="/api/v1/users", tags=["users"])
app.include_router(order.router, prefix="/api/v1/orders", tags=["orders"])
app.include_router(expense.router, prefix="/api/v1/expenses", tags=["expenses"])
app.include_router(
    transaction.router, prefix="/api/v1/transactions", tags=["transactions"])
app.include_router(balance.router, prefix="/api/v1/balances", tags=["balances"])
app.include_router(report.router, prefix="/api/v1/reports", tags=["reports"])


@app.get("/")
def read_root():
    return {"message": "Welcome to the Boutique Manager APIs!"}
