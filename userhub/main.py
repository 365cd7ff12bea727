import logging
import time

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from userhub.core import config
from userhub.core.logging_config import setup_logging
from userhub.database import Database
from userhub.errors import StorageError
from userhub.routes import auth_routes, demo_routes, user_routes
from userhub.stores.base import UserStore
from userhub.stores.json_file import JsonFileUserStore
from userhub.stores.sql import SqlUserStore

logger = logging.getLogger(__name__)


def build_user_store(backend: str, database: Database, users_file_path: str) -> UserStore:
    if backend == 'file':
        return JsonFileUserStore(users_file_path)
    if backend == 'database':
        return SqlUserStore(database.SessionLocal)
    raise ValueError(f'Unknown user store backend: {backend}')


def format_validation_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get('loc', ()) if part != 'body']
        errors.append({'field': '.'.join(location), 'message': error.get('msg', 'Invalid value')})
    return errors


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={'errors': format_validation_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception('Unhandled error on %s %s', request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={'error': 'Internal server error'},
        )


def register_middleware(app: FastAPI) -> None:
    @app.middleware('http')
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers['X-Process-Time'] = f'{elapsed:.4f}'
        logger.info('%s %s -> %s (%.3fs)', request.method, request.url.path, response.status_code, elapsed)
        return response


def create_app(
    database_url: str | None = None,
    users_file_path: str | None = None,
    store_backend: str | None = None,
) -> FastAPI:
    config.validate_runtime_config()
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)

    database = Database(database_url or config.DATABASE_URL)
    backend = store_backend or config.USER_STORE_BACKEND

    app = FastAPI(title='User API')
    app.state.database = database
    app.state.user_store = build_user_store(backend, database, users_file_path or config.USERS_FILE_PATH)
    app.state.db_user_store = SqlUserStore(database.SessionLocal)

    @app.on_event('startup')
    def initialize_storage() -> None:
        try:
            database.create_schema()
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL.')
        try:
            app.state.user_store.initialize()
        except StorageError:
            logger.exception('User store initialization failed.')
        logger.info('Serving users from the %s store', backend)

    @app.on_event('shutdown')
    def close_storage() -> None:
        database.dispose()

    register_middleware(app)
    register_error_handlers(app)

    app.include_router(demo_routes.router)
    app.include_router(user_routes.router)
    app.include_router(auth_routes.router)
    return app


def main() -> None:
    uvicorn.run(create_app(), host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == '__main__':
    main()
