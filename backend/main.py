import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from backend.core import config
from backend.database import Database
from backend.routes import (
    admin_routes,
    application_routes,
    auth_routes,
    payment_routes,
    tuition_routes,
    tutor_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start
            logger.error('%s %s -> failed (%.3fs)', request.method, request.url.path, duration)
            raise
        duration = time.perf_counter() - start
        logger.info('%s %s -> %s (%.3fs)', request.method, request.url.path, response.status_code, duration)
        return response


app = FastAPI(title='eTuitionBD API')

app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.CLIENT_URL],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={'message': exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'message': 'Invalid request', 'error': jsonable_encoder(exc.errors())},
    )


@app.exception_handler(PyMongoError)
async def database_exception_handler(request: Request, exc: PyMongoError):
    logger.exception('Database error on %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'message': 'Server error', 'error': str(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'message': 'Server error', 'error': str(exc)},
    )


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    app.state.db = Database.connect(config.DB_URI, config.DB_NAME)
    try:
        app.state.db.ensure_indexes()
    except PyMongoError:
        logger.exception('Database initialization failed. Check DB_URI and MongoDB credentials.')


@app.on_event('shutdown')
def close_database() -> None:
    db = getattr(app.state, 'db', None)
    if db is not None:
        db.close()


@app.get('/', response_class=PlainTextResponse)
def root():
    return 'eTuitionBD Server is running'


app.include_router(auth_routes.router, prefix='/api/auth')
app.include_router(tuition_routes.router, prefix='/api')
app.include_router(application_routes.router, prefix='/api')
app.include_router(tutor_routes.router, prefix='/api')
app.include_router(payment_routes.router, prefix='/api')
app.include_router(admin_routes.router, prefix='/api/admin')


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(app, host='0.0.0.0', port=config.PORT)
