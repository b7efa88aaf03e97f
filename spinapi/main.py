import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from mangum import Mangum
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from spinapi import containers
from spinapi.config import settings
from spinapi.core.exception_handlers import (
    handle_base_api_exception,
    handle_http_exception,
    handle_service_exception,
    handle_unexpected_error,
    handle_validation_error,
)
from spinapi.core.exceptions import BaseAPIException, ServiceException
from spinapi.logging_config import setup_logging
from spinapi.routers import (
    agent_router,
    auth_router,
    health_router,
    point_router,
    realtime_router,
    report_router,
    reward_router,
    spin_router,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    load_dotenv("spinapi/.env")
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
        logger.info(f"Response: {response.status_code}")
        return response

    # 구체적인 예외부터 등록
    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(ServiceException, handle_service_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get("/")
    def hello() -> dict:
        return {"message": f"{settings.APP_NAME} is running"}

    app.include_router(health_router.router)
    for module in (
        auth_router,
        agent_router,
        spin_router,
        point_router,
        realtime_router,
        reward_router,
        report_router,
    ):
        app.include_router(module.router, prefix=settings.API_V1_STR)

    return app


app = create_app()

handler = Mangum(app)
