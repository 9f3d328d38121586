"""FastAPI surface over the neural-qa client."""

from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from neural_qa.core.logging import get_logger, setup_logging
from neural_qa.core.metrics import RequestMetrics
from neural_qa.core.middleware import ObservabilityMiddleware
from neural_qa.core.qa_client import NeuralQAClient
from neural_qa.core.schemas import ClaimRequest, MutationRequest, QAQuery

setup_logging()
logger = get_logger(__name__)


def get_client(request: Request) -> NeuralQAClient:
    """The app's client, built from env settings on first use."""
    if request.app.state.qa_client is None:
        request.app.state.qa_client = NeuralQAClient()
    return request.app.state.qa_client


def create_app(client: Optional[NeuralQAClient] = None) -> FastAPI:
    """Build the app around one client; its display state is shared by all requests.

    Without `client`, settings are read on the first request that needs them,
    so importing this module never touches the environment.
    """
    request_metrics = RequestMetrics()

    app = FastAPI(title="Neural QA", version="1.0.0")
    app.add_middleware(ObservabilityMiddleware, metrics=request_metrics)
    app.state.qa_client = client
    app.state.request_metrics = request_metrics

    @app.get("/health")
    async def health() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse({"status": "ok", "service": "neural-qa"})

    @app.get("/metrics")
    async def get_metrics(qa_client: NeuralQAClient = Depends(get_client)) -> JSONResponse:
        return JSONResponse(
            {**request_metrics.snapshot(), "client": qa_client.metrics.snapshot()}
        )

    @app.get("/state")
    async def get_state(qa_client: NeuralQAClient = Depends(get_client)) -> JSONResponse:
        return JSONResponse(
            qa_client.state.model_dump(mode="json", by_alias=True, exclude_none=True)
        )

    @app.post("/ask")
    async def ask(
        query: QAQuery, qa_client: NeuralQAClient = Depends(get_client)
    ) -> JSONResponse:
        """Answer a question; degraded answers are still 200."""
        response = await qa_client.ask_question(query.question, query.context)
        return JSONResponse(response.to_wire())

    @app.post("/mutation")
    async def mutation(
        request: MutationRequest, qa_client: NeuralQAClient = Depends(get_client)
    ) -> JSONResponse:
        response = await qa_client.query_mutation(
            request.target, request.mutation_type, request.context
        )
        return JSONResponse(response.to_wire())

    @app.post("/validate")
    async def validate(
        request: ClaimRequest, qa_client: NeuralQAClient = Depends(get_client)
    ) -> JSONResponse:
        validation = await qa_client.validate_claim(request.claim)
        return JSONResponse(validation.model_dump(by_alias=True, exclude_none=True))

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Neural QA...")
    uvicorn.run(app, host="0.0.0.0", port=7860)
