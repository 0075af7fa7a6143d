"""Main application entry point for the Forum Shield service.

This module initializes the FastAPI application, configures middleware,
and defines the API endpoints. Every user-supplied text field passes through
the content-safety pipeline before it is stored, and every stored text field
is sanitized again before it is returned.
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional, Tuple

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware

# Local imports
from shield_app.config import settings
from shield_app.dbconnect import close_mongo_connection, connect_to_mongo, get_database
from shield_app.policy import policy
from shield_app.schemas import (
    CommentListResponse,
    CommentOut,
    ContentRequest,
    PostListResponse,
    PostOut,
    PostSummary,
    ProbeResponse,
    ReloadResponse,
)
from shield_engines.errors import ShieldError
from shield_engines.instances import Services, initialize_services, shutdown_services
from shield_engines.pipeline_engine import ContentSubmission

# Setup Logger
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("shield.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manages application lifecycle resources.

    - **Startup**: Builds the content-safety engines (loading the banned-term
      list) and opens the database connection.
    - **Shutdown**: Closes the database pool and tears the engines down.
    """
    # 1. Startup
    logger.info("🚀 Forum Shield starting up...")
    app.state.services = initialize_services(settings.FILTER_WORDS_PATH, policy.allow_list)
    await connect_to_mongo()

    yield

    # 2. Shutdown
    logger.info("🛑 Forum Shield shutting down...")
    await close_mongo_connection()
    shutdown_services(app.state.services)


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)


def get_services(request: Request) -> Services:
    """Hands the application's engine set to a request handler."""
    return request.app.state.services


def client_metadata(request: Request) -> Tuple[Optional[str], Optional[str]]:
    """Returns (ip_address, user_agent) for storage alongside a submission."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.headers.get("x-real-ip")
    if not ip_address and request.client:
        ip_address = request.client.host
    return ip_address, request.headers.get("user-agent")


def page_window(page: int, per_page: Optional[int]) -> Tuple[int, int]:
    """Resolves pagination parameters into (page_size, offset)."""
    page_size = per_page or policy.default_page_size
    page_size = min(page_size, policy.max_page_size)
    return page_size, (page - 1) * page_size


def parse_post_id(post_id: str) -> str:
    try:
        return str(uuid.UUID(post_id))
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid post ID format")


async def run_pipeline(services: Services, content: str, max_length: int) -> str:
    """Validates one text field and runs it through the write path.

    Raises:
        HTTPException (400): If the content is blank or too long.
    """
    try:
        submission = ContentSubmission(text=content, max_length=max_length).check()
    except ValueError as ve:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(ve))

    # CPU-bound -> thread
    result = await asyncio.to_thread(services.pipeline.submit, submission)
    return result.text


def render_post(services: Services, doc: dict) -> dict:
    doc = services.pipeline.render_document(doc)
    return {"id": doc["_id"], "content": doc["content"], "created_at": doc["created_at"]}


def render_comment(services: Services, doc: dict) -> dict:
    doc = services.pipeline.render_document(doc)
    return {
        "id": doc["_id"],
        "post_id": doc["post_id"],
        "content": doc["content"],
        "created_at": doc["created_at"],
    }


@app.get("/health")
async def health_check(services: Services = Depends(get_services)):
    """Returns the operational status of the service."""
    snapshot = services.term_store.current()
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc),
        "terms": len(snapshot),
        "terms_version": snapshot.version,
    }


# --- Filter administration ---

@app.post("/api/filter/reload", response_model=ReloadResponse)
async def reload_filter(services: Services = Depends(get_services)):
    """Reloads the banned-term list from disk without restarting the server.

    On failure the previous list stays in effect.
    """
    try:
        count = await asyncio.to_thread(services.term_store.reload)
    except ShieldError as e:
        logger.error(f"❌ Banned term reload failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to reload banned term list: {e}",
        )

    return ReloadResponse(success=True, message="Banned term list reloaded", count=count)


@app.post("/api/filter/test", response_model=ProbeResponse)
async def test_filter(body: ContentRequest, services: Services = Depends(get_services)):
    """Shows what the pipeline does to `content` without storing anything."""
    result = await asyncio.to_thread(services.pipeline.probe, body.content)
    return ProbeResponse(**result)


# --- Posts ---

@app.get("/api/posts", response_model=PostListResponse)
async def list_posts(
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1),
    services: Services = Depends(get_services),
    database=Depends(get_database),
):
    """Lists posts newest first, each with its comment count."""
    page_size, offset = page_window(page, per_page)

    total = await database["posts"].count_documents({})
    cursor = database["posts"].find({}).sort("created_at", -1).skip(offset).limit(page_size)
    docs = await cursor.to_list(length=page_size)

    posts = []
    for doc in docs:
        summary = render_post(services, doc)
        summary["comments_count"] = await database["comments"].count_documents({"post_id": doc["_id"]})
        posts.append(PostSummary(**summary))

    return PostListResponse(posts=posts, total=total, page=page, page_size=page_size)


@app.post("/api/posts", response_model=PostOut)
async def create_post(
    body: ContentRequest,
    request: Request,
    services: Services = Depends(get_services),
    database=Depends(get_database),
):
    """Creates a post from masked and sanitized content."""
    try:
        content = await run_pipeline(services, body.content, policy.post_max_chars)
        ip_address, user_agent = client_metadata(request)

        doc = {
            "_id": str(uuid.uuid4()),
            "content": content,
            "created_at": datetime.now(timezone.utc),
            "ip_address": ip_address,
            "user_agent": user_agent,
        }
        await database["posts"].insert_one(doc)
        logger.info(f"📝 Post created: {doc['_id']}")

        return render_post(services, doc)

    except HTTPException as he:
        raise he
    except Exception as e:
        logger.error(f"❌ Post creation failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal processing failed.",
        )


@app.get("/api/posts/{post_id}", response_model=PostOut)
async def get_post(
    post_id: str,
    services: Services = Depends(get_services),
    database=Depends(get_database),
):
    """Returns one post."""
    doc = await database["posts"].find_one({"_id": parse_post_id(post_id)})
    if not doc:
        raise HTTPException(status_code=404, detail="Post not found")
    return render_post(services, doc)


# --- Comments ---

@app.get("/api/posts/{post_id}/comments", response_model=CommentListResponse)
async def list_comments(
    post_id: str,
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1),
    services: Services = Depends(get_services),
    database=Depends(get_database),
):
    """Lists a post's comments oldest first."""
    post_id = parse_post_id(post_id)
    if not await database["posts"].find_one({"_id": post_id}):
        raise HTTPException(status_code=404, detail="Post not found")

    page_size, offset = page_window(page, per_page)
    query = {"post_id": post_id}

    total = await database["comments"].count_documents(query)
    cursor = database["comments"].find(query).sort("created_at", 1).skip(offset).limit(page_size)
    docs = await cursor.to_list(length=page_size)

    return CommentListResponse(
        comments=[CommentOut(**render_comment(services, doc)) for doc in docs],
        total=total,
        page=page,
        page_size=page_size,
    )


@app.post("/api/posts/{post_id}/comments", response_model=CommentOut)
async def create_comment(
    post_id: str,
    body: ContentRequest,
    request: Request,
    services: Services = Depends(get_services),
    database=Depends(get_database),
):
    """Adds a comment to an existing post."""
    post_id = parse_post_id(post_id)
    try:
        if not await database["posts"].find_one({"_id": post_id}):
            raise HTTPException(status_code=404, detail="Post not found")

        content = await run_pipeline(services, body.content, policy.comment_max_chars)
        ip_address, user_agent = client_metadata(request)

        doc = {
            "_id": str(uuid.uuid4()),
            "post_id": post_id,
            "content": content,
            "created_at": datetime.now(timezone.utc),
            "ip_address": ip_address,
            "user_agent": user_agent,
        }
        await database["comments"].insert_one(doc)
        logger.info(f"💬 Comment {doc['_id']} added to post {post_id}")

        return render_comment(services, doc)

    except HTTPException as he:
        raise he
    except Exception as e:
        logger.error(f"❌ Comment creation failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal processing failed.",
        )


def run():
    """Console entry point: serves the API with uvicorn."""
    uvicorn.run(
        "shield_app.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
