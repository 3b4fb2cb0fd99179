from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from chat_relay.core.config import settings
from chat_relay.core.logging import get_logger, log_shutdown_info, log_startup_info
from chat_relay.models.request import ChatRequest
from chat_relay.models.response import ChatResponse, ErrorResponse, HealthCheckResponse
from chat_relay.services.chat_service import ChatService, get_chat_service
from chat_relay.utils.guards import describe_request_errors

logger = get_logger(__name__)

INTERNAL_ERROR = "Internal server error"
STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = describe_request_errors(exc.errors())
    logger.info(f"Rejected request to {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})


@app.on_event("startup")
async def startup_event():
    log_startup_info()
    if settings.RAG_ENABLED:
        from chat_relay.rag.embeddings import get_embedding_client

        # Load the embedding model before the first request needs it
        get_embedding_client()
    logger.info("Application startup completed")


@app.on_event("shutdown")
async def shutdown_event():
    if settings.RAG_ENABLED:
        from chat_relay.rag.vector_store import close_vector_store_pool

        close_vector_store_pool()
    log_shutdown_info()


@app.get("/health", response_model=HealthCheckResponse)
async def health():
    """Health check endpoint: reports configured provider and retrieval mode."""
    return HealthCheckResponse(
        status="ok",
        llm_type=settings.LLM_TYPE,
        model_name=settings.LLM_MODEL_NAME,
        rag_enabled=settings.RAG_ENABLED,
        collection=settings.CHROMA_COLLECTION_NAME if settings.RAG_ENABLED else None,
    )


@app.post("/api/chat", response_model=ChatResponse, responses=ERROR_RESPONSES)
def chat(payload: ChatRequest, chat_service: ChatService = Depends(get_chat_service)):
    """Non-streaming chat endpoint: returns the whole reply as JSON."""
    try:
        reply = chat_service.generate_reply(payload.messages)
    except Exception as e:
        logger.error(f"Error in /api/chat: {e}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
    return ChatResponse(reply=reply)


@app.post("/api/stream", responses=ERROR_RESPONSES)
def chat_stream(payload: ChatRequest, chat_service: ChatService = Depends(get_chat_service)):
    """
    Streaming chat endpoint: relays reply deltas as a raw UTF-8 text body.

    Errors before the first byte produce a JSON error envelope. Once the
    body has started, an upstream failure cuts the response short.
    """
    try:
        relay = chat_service.open_stream(payload.messages)
    except Exception as e:
        logger.error(f"Error in /api/stream: {e}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
    return StreamingResponse(relay, media_type=STREAM_MEDIA_TYPE)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "chat_relay.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
    )
