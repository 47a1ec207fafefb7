"""
FastAPI backend for stepcalc.

Stateless HTTP front end for the step-by-step calculator:
- One fresh Solver session per request
- Structured logging
- Calculator errors mapped to 422 responses
"""

from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stepcalc.core.config import settings
from stepcalc.core.logging import get_context_logger, setup_logging

from .handlers import register_error_handlers
from .schemas import (
    DerivativeRequest,
    ExpressionRequest,
    FunctionInfo,
    StepsResponse,
    TaylorRequest,
    TextResponse,
    ValueResponse,
)
from .services import CalculatorService

# Setup logging
setup_logging()
logger = get_context_logger(__name__, component="api")


# Lifecycle management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info(
        "Starting stepcalc API",
        extra_data={
            "environment": settings.ENVIRONMENT,
            "debug": settings.DEBUG
        }
    )
    yield
    logger.info("Shutting down stepcalc API")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Step-by-step expression calculator with truncation, rounding and direction control",
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan
)

# Register error handlers
register_error_handlers(app)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependency injection
def get_calculator_service() -> CalculatorService:
    """Get calculator service instance"""
    return CalculatorService(settings)


# API Routes

@app.get("/")
async def read_root():
    """API root endpoint"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "endpoints": {
            "solve": "/solve",
            "steps": "/solve/steps",
            "text": "/solve/text",
            "derivative": "/derivative",
            "taylor": "/taylor",
            "functions": "/functions",
            "health": "/health"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT
    }


@app.get("/functions", response_model=List[FunctionInfo])
def list_functions(service: CalculatorService = Depends(get_calculator_service)):
    """List built-in functions with their argument counts"""
    return service.functions()


@app.post("/solve", response_model=ValueResponse)
def solve(request: ExpressionRequest, service: CalculatorService = Depends(get_calculator_service)):
    """
    Evaluate an expression.

    Calculator errors (malformed input, domain errors, division by zero...)
    are returned as 422 with the error type and message.
    """
    return service.solve(request)


@app.post("/solve/steps", response_model=StepsResponse)
def solve_with_steps(request: ExpressionRequest, service: CalculatorService = Depends(get_calculator_service)):
    """
    Evaluate an expression and return every calculation step.

    Always 200 for a valid request: a failing expression yields an
    ``Error: ...`` step and null results.
    """
    return service.solve_with_steps(request)


@app.post("/solve/text", response_model=TextResponse)
def solve_to_string(request: ExpressionRequest, service: CalculatorService = Depends(get_calculator_service)):
    """Evaluate an expression and return the rendered result or error text"""
    return service.solve_to_string(request)


@app.post("/derivative", response_model=ValueResponse)
def derivative(request: DerivativeRequest, service: CalculatorService = Depends(get_calculator_service)):
    """Numerical derivative of an expression at a point"""
    return service.derivative(request)


@app.post("/taylor", response_model=ValueResponse)
def taylor(request: TaylorRequest, service: CalculatorService = Depends(get_calculator_service)):
    """Taylor series approximation of an expression"""
    return service.taylor(request)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "stepcalc_api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
