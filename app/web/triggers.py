"""
Scheduled trigger server.

An external scheduler calls GET /api/<job> with
"Authorization: Bearer <CRON_SECRET>". Each call runs one job to
completion and answers with its summary.
"""

import asyncio

from aiohttp import web
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.settings import settings
from app.services.distribution.runner import JOBS, Job
from app.utils.datetime_utils import Clock
from app.utils.exceptions import UnauthorizedError
from app.utils.security import require_trigger_secret

SESSION_MAKER_KEY = web.AppKey("session_maker", async_sessionmaker)
CRON_SECRET_KEY = web.AppKey("cron_secret", str)
CLOCK_KEY = web.AppKey("clock", object)
TIMEOUT_KEY = web.AppKey("timeout", float)


def make_job_handler(name: str, job: Job):
    """
    Build the handler of one job endpoint.

    Responses:
        200 {"success": true, "job": name, "result": {...}}
        401 {"success": false, "error": "Unauthorized"}
        500 {"success": false, "error": "..."}
    """

    async def handler(request: web.Request) -> web.Response:
        app = request.app
        try:
            require_trigger_secret(
                request.headers.get("Authorization"), app[CRON_SECRET_KEY]
            )
        except UnauthorizedError:
            logger.warning(
                f"Unauthorized trigger call for {name}",
                extra={"job": name, "remote": request.remote},
            )
            return web.json_response({"success": False, "error": "Unauthorized"}, status=401)

        try:
            result = await asyncio.wait_for(
                job(app[SESSION_MAKER_KEY], app[CLOCK_KEY]),
                timeout=app[TIMEOUT_KEY],
            )
        except TimeoutError:
            logger.error(
                f"Job {name} timed out after {app[TIMEOUT_KEY]}s",
                extra={"job": name},
            )
            return web.json_response(
                {"success": False, "error": f"Job {name} timed out"}, status=500
            )
        except Exception as e:
            logger.exception(f"Job {name} failed", extra={"job": name, "error": str(e)})
            return web.json_response({"success": False, "error": str(e)}, status=500)

        return web.json_response({"success": True, "job": name, "result": result})

    return handler


async def liveness_handler(request: web.Request) -> web.Response:
    """Liveness check endpoint."""
    return web.json_response({"status": "alive", "alive": True})


def create_app(
    session_maker: async_sessionmaker[AsyncSession] | None = None,
    cron_secret: str | None = None,
    clock: Clock | None = None,
    timeout_seconds: float | None = None,
) -> web.Application:
    """
    Create the trigger application.

    Args:
        session_maker: Session factory, the application default if None
        cron_secret: Trigger secret, settings.cron_secret if None
        clock: Clock passed to the jobs, system clock if None
        timeout_seconds: Per-call job timeout
    """
    if session_maker is None:
        from app.config.database import async_session_maker

        session_maker = async_session_maker

    app = web.Application()
    app[SESSION_MAKER_KEY] = session_maker
    app[CRON_SECRET_KEY] = cron_secret if cron_secret is not None else (settings.cron_secret or "")
    app[CLOCK_KEY] = clock
    app[TIMEOUT_KEY] = float(timeout_seconds or settings.distribution_timeout_seconds)

    app.router.add_get("/liveness", liveness_handler)
    for name, job in JOBS.items():
        app.router.add_get(f"/api/{name}", make_job_handler(name, job))
    return app


def main() -> None:
    """Run the trigger server until interrupted."""
    from app.utils.logging import setup_logging

    setup_logging("trigger server")
    if not settings.cron_secret:
        logger.warning("CRON_SECRET is not set, every trigger call will be rejected")

    web.run_app(
        create_app(),
        host=settings.trigger_server_host,
        port=settings.trigger_server_port,
    )


if __name__ == "__main__":
    main()
