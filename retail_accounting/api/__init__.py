"""
Retail Accounting API Application Factory
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .tenants import router as tenants_router
from .accounts import router as accounts_router
from .sources import invoices_router, bonds_router, expenses_router
from .ledger import router as ledger_router
from .reporting import router as reporting_router
from .printing import router as printing_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Retail Accounting API",
        description="Multi-store retail bookkeeping with a derived double-entry ledger",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(tenants_router, prefix="/tenants", tags=["Tenants"])
    app.include_router(accounts_router, prefix="/accounts", tags=["Accounts"])
    app.include_router(invoices_router, prefix="/invoices", tags=["Invoices"])
    app.include_router(bonds_router, prefix="/bonds", tags=["Bonds"])
    app.include_router(expenses_router, prefix="/expenses", tags=["Expenses"])
    app.include_router(ledger_router, prefix="/ledger", tags=["Ledger"])
    app.include_router(reporting_router, prefix="/reports", tags=["Reports"])
    app.include_router(printing_router, prefix="/print", tags=["Print"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "retail_accounting_api",
            "version": "1.0.0"
        }

    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Retail Accounting API",
            "version": "1.0.0",
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "tenants": "/tenants",
                "accounts": "/accounts",
                "invoices": "/invoices",
                "bonds": "/bonds",
                "expenses": "/expenses",
                "ledger": "/ledger",
                "reports": "/reports",
                "print": "/print",
            }
        }

    return app


app = create_app()
