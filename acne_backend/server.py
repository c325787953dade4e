import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI
from starlette.middleware.cors import CORSMiddleware

from .acne_types import ACNE_DESCRIPTIONS, get_acne_description
from .aggregator import PredictionAggregator
from .config import Settings
from .consensus import CLASSIFIER, DETECTOR, GENERATIVE, ConsensusResult
from .models import (
    AdapterLabels,
    NoDetectionResponse,
    PredictRequest,
    PredictResponse,
    TreatmentPlan,
    TreatmentRequest,
)
from .outcomes import InvalidImageError
from .treatment import TreatmentPlanner

settings = Settings.from_env()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _adapter_labels(result: ConsensusResult) -> AdapterLabels:
    return AdapterLabels(
        detector=result.per_adapter_labels[DETECTOR],
        direct_classifier=result.per_adapter_labels[CLASSIFIER],
        generative=result.per_adapter_labels[GENERATIVE],
    )


def create_app(
    app_settings: Optional[Settings] = None,
    aggregator: Optional[PredictionAggregator] = None,
    planner: Optional[TreatmentPlanner] = None,
) -> FastAPI:
    """
    Build the API. Clients for the external sources are created on startup
    from `app_settings` unless a ready aggregator / planner is supplied.
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        http_client = None
        openai_client = None
        if aggregator is None or planner is None:
            http_client = httpx.AsyncClient()
            if app_settings.openai_api_key:
                openai_client = AsyncOpenAI(api_key=app_settings.openai_api_key, max_retries=0)
            else:
                logger.warning("OPENAI_API_KEY not set; generative classifier and plan generation disabled")

        app.state.aggregator = aggregator or PredictionAggregator.from_settings(
            app_settings, http_client, openai_client
        )
        app.state.planner = planner or TreatmentPlanner(
            openai_client,
            model=app_settings.openai_plan_model,
            timeout=app_settings.timeout_for('treatment_plan'),
        )
        yield
        logger.info("Shutting down...")
        if http_client is not None:
            await http_client.aclose()
        if openai_client is not None:
            await openai_client.close()

    app = FastAPI(title="Acne Analysis API", version="1.0.0", lifespan=lifespan)
    api_router = APIRouter(prefix="/api")

    # 422 is reserved for NO_ACNE, so malformed bodies are plain 400s
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": {"error": "Invalid request", "details": jsonable_encoder(exc.errors())}},
        )

    # ==================== PREDICTION ROUTES ====================

    @api_router.post(
        "/predict-acne",
        response_model=PredictResponse,
        responses={422: {"model": NoDetectionResponse}},
    )
    async def predict_acne(body: PredictRequest, request: Request):
        """
        Run every classifier on the uploaded image and return the merged verdict.

        422 with error NO_ACNE means the image should be re-uploaded; the
        submitted profile is echoed back so the client can keep it.
        """
        if not body.image_data:
            raise HTTPException(status_code=400, detail={"error": "Image data is required"})

        try:
            result = await request.app.state.aggregator.predict(body.image_data)
        except InvalidImageError as e:
            logger.warning(f"Rejected image: {e}")
            raise HTTPException(status_code=400, detail={"error": "Invalid image", "details": str(e)})
        except Exception as e:
            logger.exception("Fatal route error")
            raise HTTPException(
                status_code=500,
                detail={"error": "Failed to predict acne type", "details": str(e)},
            )

        if result.no_detection:
            payload = NoDetectionResponse(
                per_adapter_labels=_adapter_labels(result),
                api_errors=result.per_adapter_errors,
                profile=body.profile,
            )
            return JSONResponse(status_code=422, content=payload.model_dump(by_alias=True))

        return PredictResponse(
            prediction=result.final_label,
            description=get_acne_description(result.final_label),
            severity=result.severity_label,
            severity_num=result.severity_grade,
            severity_defaulted=result.severity_defaulted,
            decided_by=result.decided_by,
            per_adapter_labels=_adapter_labels(result),
            api_errors=result.per_adapter_errors,
        )

    @api_router.get("/acne-types")
    async def get_acne_types():
        return [
            {'name': name, 'description': description}
            for name, description in ACNE_DESCRIPTIONS.items()
        ]

    # ==================== TREATMENT ROUTES ====================

    @api_router.post("/generate-treatment", response_model=TreatmentPlan)
    async def generate_treatment(body: TreatmentRequest, request: Request):
        """Always answers with a complete plan; `isUsingFallback` flags degraded quality."""
        if not body.acne_type or not body.acne_type.strip():
            raise HTTPException(status_code=400, detail={"error": "Acne type is required"})

        return await request.app.state.planner.generate_plan(
            body.acne_type,
            skin_type=body.skin_type or "Normal",
            mode=body.mode,
        )

    # ==================== HEALTH CHECK ====================

    @api_router.get("/")
    async def root():
        return {"message": "Acne Analysis API", "version": "1.0.0"}

    @api_router.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "sources": {
                "detector": bool(app_settings.detector_url),
                "classifier": bool(app_settings.classifier_url),
                "generative": bool(app_settings.openai_api_key),
                "grader": bool(app_settings.grader_url),
            },
        }

    # Include router
    app.include_router(api_router)

    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()
