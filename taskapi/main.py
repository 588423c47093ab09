import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from taskapi.auth.jwt_handler import TokenCodec
from taskapi.auth.passwords import PasswordHasher
from taskapi.core.config import Settings, validate_runtime_config
from taskapi.core.handlers import register_exception_handlers
from taskapi.core.logging_config import configure_logging
from taskapi.database import Base, build_engine, build_session_factory, check_connection, connect_with_retry
from taskapi.models import task, user  # noqa: F401
from taskapi.routes import auth_routes, task_routes

API_NAME = 'Tasks API'
API_VERSION = '1.0.0'

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    validate_runtime_config(settings)
    configure_logging(settings)

    engine = build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await run_in_threadpool(
            connect_with_retry,
            engine,
            settings.db_connect_retries,
            settings.db_connect_retry_delay,
        )
        await run_in_threadpool(Base.metadata.create_all, engine)
        logger.info('Database ready, environment: %s', settings.app_env)
        yield
        engine.dispose()
        logger.info('Database connection closed')

    app = FastAPI(title=API_NAME, version=API_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_codec = TokenCodec(settings)
    app.state.password_hasher = PasswordHasher(settings.bcrypt_rounds)
    app.state.started_at = time.monotonic()

    register_exception_handlers(app)

    @app.get('/')
    def root():
        return {
            'name': API_NAME,
            'version': API_VERSION,
            'description': 'REST API for task management with JWT authentication',
            'health': '/health',
            'endpoints': {
                'auth': {
                    'register': 'POST /api/auth/register',
                    'login': 'POST /api/auth/login',
                    'refresh': 'POST /api/auth/refresh',
                    'profile': 'GET /api/auth/profile',
                    'updateProfile': 'PUT /api/auth/profile',
                },
                'tasks': {
                    'list': 'GET /api/tasks',
                    'get': 'GET /api/tasks/:id',
                    'create': 'POST /api/tasks',
                    'update': 'PUT /api/tasks/:id',
                    'delete': 'DELETE /api/tasks/:id',
                    'statistics': 'GET /api/tasks/statistics',
                },
            },
        }

    @app.get('/health')
    def health(request: Request):
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            check_connection(request.app.state.engine)
        except SQLAlchemyError:
            logger.exception('Health check failed')
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={
                    'success': False,
                    'status': 'unhealthy',
                    'timestamp': timestamp,
                    'error': 'Database connection failed',
                },
            )

        return {
            'success': True,
            'status': 'healthy',
            'timestamp': timestamp,
            'uptime': round(time.monotonic() - request.app.state.started_at, 3),
            'environment': settings.app_env,
            'database': 'connected',
        }

    app.include_router(auth_routes.router, prefix='/api/auth')
    app.include_router(task_routes.router, prefix='/api/tasks')

    return app


def run() -> None:
    settings = Settings.from_env()
    app = create_app(settings)
    logger.info('Server listening on http://%s:%s', settings.host, settings.port)
    # uvicorn stops accepting connections on SIGINT/SIGTERM and lets in-flight requests finish.
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == '__main__':
    run()
