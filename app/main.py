from contextlib import asynccontextmanager
import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.trace import get_current_span
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.context import AppContext
from app.api.routes.dashboard import router as dashboard_router
from app.api.routes.health import router as health_router
from app.api.routes.listings import router as listings_router
from app.api.routes.notifications import router as notifications_router
from app.api.routes.reviews import router as reviews_router
from app.api.routes.subscriptions import router as subscriptions_router
from app.api.routes.support import router as support_router
from app.api.routes.users import router as users_router
from app.utils.envelopes import api_success, api_error
from app.utils.exceptions import AppException


logging.basicConfig(level=settings.LOG_LEVEL.upper())
_logger = logging.getLogger("marketplace.api")


def _trace_id() -> Optional[str]:
	_current_span = get_current_span()
	trace_id_int = _current_span.get_span_context().trace_id if _current_span else 0
	return f"{trace_id_int:032x}" if trace_id_int else None


def _configure_telemetry(app: FastAPI) -> None:
	# Telemetry / Azure Monitor (optional)
	try:
		if settings.ENABLE_APP_INSIGHTS and settings.AZURE_MONITOR_CONN_STR:
			from azure.monitor.opentelemetry import configure_azure_monitor
			from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
			from opentelemetry.instrumentation.logging import LoggingInstrumentor

			configure_azure_monitor(
				connection_string=settings.AZURE_MONITOR_CONN_STR,
				sampling_ratio=settings.SAMPLING_RATIO,
			)
			# Include trace/span ids in stdlib logging records
			LoggingInstrumentor().instrument(set_logging_format=True)
			# Instrument FastAPI to automatically capture request traces/metrics
			FastAPIInstrumentor.instrument_app(app)
			_logger.info("Azure Monitor telemetry is enabled")
	except Exception as telemetry_exc:
		# Do not block app startup if telemetry fails
		_logger.warning("Failed to initialize Azure Monitor telemetry: %s", telemetry_exc)


def create_app(context: Optional[AppContext] = None) -> FastAPI:
	context = context or AppContext(settings)

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		await context.init()
		try:
			yield
		finally:
			await context.dispose()

	app = FastAPI(title=context.settings.APP_NAME, lifespan=lifespan)
	app.state.context = context
	_configure_telemetry(app)

	# CORS (mobile clients and the admin web app)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=["*"],
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)

	# Normalize API prefix (must not end with '/')
	api_prefix = context.settings.API_PREFIX.rstrip("/")

	app.include_router(health_router)
	app.include_router(subscriptions_router, prefix=api_prefix)
	app.include_router(users_router, prefix=api_prefix)
	app.include_router(listings_router, prefix=api_prefix)
	app.include_router(reviews_router, prefix=api_prefix)
	app.include_router(dashboard_router, prefix=api_prefix)
	app.include_router(notifications_router, prefix=api_prefix)
	app.include_router(support_router, prefix=api_prefix)

	# Structured request logging (includes trace correlation where available)
	@app.middleware("http")
	async def request_logging_middleware(request: Request, call_next):
		start_time = time.perf_counter()
		client_ip: Optional[str] = request.headers.get("x-forwarded-for") or (request.client.host if request.client else None)
		user_agent: Optional[str] = request.headers.get("user-agent")
		status_code: Optional[int] = None
		try:
			response = await call_next(request)
			status_code = response.status_code
			return response
		except Exception:
			# Log here as well; handler below will also run
			_logger.exception(
				"Unhandled exception during request",
				extra={
					"http.method": request.method,
					"http.route": request.url.path,
					"net.peer.ip": client_ip,
					"http.user_agent": user_agent,
					"trace_id": _trace_id(),
				},
			)
			raise
		finally:
			elapsed_ms = (time.perf_counter() - start_time) * 1000.0
			_logger.info(
				"HTTP request",
				extra={
					"http.method": request.method,
					"http.route": request.url.path,
					"http.status_code": status_code,
					"http.duration_ms": round(elapsed_ms, 2),
					"net.peer.ip": client_ip,
					"http.user_agent": user_agent,
					"trace_id": _trace_id(),
				},
			)

	@app.exception_handler(AppException)
	async def app_exception_handler(request: Request, exc: AppException):
		log = _logger.warning if exc.status_code < 500 else _logger.error
		log(
			"Request failed: %s",
			exc.code,
			extra={"http.method": request.method, "http.route": request.url.path, "trace_id": _trace_id()},
		)
		return JSONResponse(
			status_code=exc.status_code,
			content=jsonable_encoder(api_error(code=exc.code, message=exc.message, details=exc.details)),
		)

	@app.exception_handler(StarletteHTTPException)
	async def http_exception_handler(request: Request, exc: StarletteHTTPException):
		return JSONResponse(
			status_code=exc.status_code,
			content=api_error(code=f"HTTP_{exc.status_code}", message=str(exc.detail)),
			headers=getattr(exc, "headers", None),
		)

	@app.exception_handler(RequestValidationError)
	async def validation_exception_handler(request: Request, exc: RequestValidationError):
		return JSONResponse(
			status_code=422,
			content=jsonable_encoder(
				api_error(code="VALIDATION_ERROR", message="Request validation failed", details=exc.errors())
			),
		)

	@app.exception_handler(Exception)
	async def unhandled_exception_handler(request: Request, exc: Exception):
		trace_id = _trace_id()
		_logger.exception(
			"Unhandled exception",
			extra={
				"http.method": request.method,
				"http.route": request.url.path,
				"trace_id": trace_id,
			},
		)
		return JSONResponse(
			status_code=500,
			content=api_error(
				code="INTERNAL_SERVER_ERROR",
				message="An unexpected error occurred",
				details={"trace_id": trace_id} if trace_id else None,
			),
		)

	@app.get("/")
	async def root():
		return api_success({"service": context.settings.APP_NAME, "status": "ok"})

	return app


app = create_app()
