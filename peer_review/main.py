from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from peer_review.api.assignments import router as assignments_router
from peer_review.api.audit import router as audit_router
from peer_review.api.health import router as health_router
from peer_review.api.review_assignments import router as review_assignments_router
from peer_review.api.reviews import router as reviews_router
from peer_review.api.root import router as root_router
from peer_review.api.texts import router as texts_router
from peer_review.api.users import router as users_router
from peer_review.core.config import settings
from peer_review.core.errors import PeerReviewError
from peer_review.core.logging import get_logger, setup_logger

setup_logger()
logger = get_logger(__name__)

app = FastAPI(title="Peer Review")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PeerReviewError)
def handle_peer_review_error(request: Request, exc: PeerReviewError):
    # Business-rule rejections are reported to the caller, never retried
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(root_router)
app.include_router(health_router)
app.include_router(assignments_router)
app.include_router(texts_router)
app.include_router(review_assignments_router)
app.include_router(reviews_router)
app.include_router(users_router)
app.include_router(audit_router)
