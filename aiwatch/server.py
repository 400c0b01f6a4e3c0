"""
AIWatch Server

FastAPI server for Slack webhooks and scheduled job triggers.

Endpoints:
- POST /slack/events: Slack Events API endpoint (live ingestion)
- POST /jobs/poll: Poll cycle trigger (short cadence)
- POST /jobs/summary: Summary cycle trigger (long cadence)
- GET /health: Health check

Webhook pipeline:
1. Verify signature (v0 HMAC, 5 minute freshness window)
2. Answer url_verification handshakes
3. Parse the event into a Message
4. Score, deduplicate and store via the live ingestor
"""

import json
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Header
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .common.config import load_config, resolve_config_secrets, validate_config
from .common.errors import ConfigError
from .runtime import Runtime, build_runtime, run_poll_job, run_summary_job

logger = logging.getLogger("aiwatch.server")


def create_app(runtime: Optional[Runtime] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        runtime: Pre-wired runtime. When omitted the lifespan hook loads the
            config and builds one at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.runtime is None:
            logger.info("Starting up...")
            config = resolve_config_secrets(load_config())
            validate_config(config, "webhook")
            app.state.runtime = build_runtime(config)
            logger.info(
                "Ready to receive events (watching %d channels)",
                len(config.slack.watched_channels),
            )
        yield
        logger.info("Shutting down...")

    app = FastAPI(
        title="AIWatch",
        description="AI conversation digests for Slack workspaces",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint"""
        rt: Optional[Runtime] = request.app.state.runtime
        return {
            "status": "healthy",
            "service": "aiwatch",
            "initialized": rt is not None,
            "watched_channels": len(rt.config.slack.watched_channels) if rt else 0,
            "oracle_available": bool(rt and rt.oracle.is_available),
            "poll_schedule": rt.config.collector.poll_schedule if rt else None,
            "summary_schedule": rt.config.summarizer.summary_schedule if rt else None,
        }

    @app.post("/slack/events")
    async def slack_events(
        request: Request,
        x_slack_signature: Optional[str] = Header(None),
        x_slack_request_timestamp: Optional[str] = Header(None),
    ):
        """
        Handle Slack webhook events.

        This is the main entry point for the live path.
        """
        rt: Optional[Runtime] = request.app.state.runtime
        if rt is None:
            return JSONResponse({"error": "Handler not initialized"}, status_code=503)

        try:
            body = await request.body()

            if not rt.slack_handler.verify_signature(
                body,
                x_slack_signature or "",
                x_slack_request_timestamp or "",
            ):
                return JSONResponse({"error": "Invalid signature"}, status_code=401)

            try:
                data = json.loads(body)
            except json.JSONDecodeError:
                return JSONResponse({"error": "Invalid JSON"}, status_code=400)
            if not isinstance(data, dict):
                return JSONResponse({"error": "Invalid JSON"}, status_code=400)

            if rt.slack_handler.is_url_verification(data):
                return JSONResponse({"challenge": rt.slack_handler.get_challenge(data)})

            message = await rt.slack_handler.parse_event(data)
            if message and rt.slack_handler.should_process(message):
                await run_in_threadpool(rt.live_ingestor.handle, message)

            return JSONResponse({"ok": True})
        except Exception:
            logger.exception("Error processing event")
            return JSONResponse({"error": "Internal server error"}, status_code=500)

    @app.post("/jobs/poll")
    async def poll_job(request: Request):
        """Run one poll cycle"""
        return await _run_job(request, "poll", run_poll_job)

    @app.post("/jobs/summary")
    async def summary_job(request: Request):
        """Run one summary cycle"""
        return await _run_job(request, "summary", run_summary_job)

    return app


async def _run_job(request: Request, job: str, fn) -> JSONResponse:
    rt: Optional[Runtime] = request.app.state.runtime
    if rt is None:
        return JSONResponse({"error": "Runtime not initialized"}, status_code=503)
    try:
        validate_config(rt.config, job)
    except ConfigError as e:
        return JSONResponse({"error": str(e), "missing": e.missing}, status_code=500)

    status_code, body = await run_in_threadpool(fn, rt)
    return JSONResponse(body, status_code=status_code)


app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the AIWatch server"""
    import uvicorn
    from dotenv import load_dotenv

    load_dotenv()
    logging.basicConfig(
        level=os.getenv("AIWATCH_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()
    port = config.collector.webhook_port

    logger.info("Starting server on port %d", port)
    uvicorn.run(
        "aiwatch.server:app",
        host="0.0.0.0",
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
