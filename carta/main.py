"""
FastAPI Application Entry Point

Carta Digital - menu management and table ordering.

Endpoints:
    - GET  /: Resolved view (admin / customer) for the query parameters
    - GET  /menu: Customer digital menu (HTML)
    - GET  /health: System health check
    - GET  /api/menu: Staff menu
    - POST /api/menu/items: Add a dish
    - PATCH /api/menu/items/{id}/price: Set a price
    - POST /api/menu/items/{id}/availability: Toggle sold out
    - POST /api/menu/reset: Restore the original menu
    - GET  /api/menu/status: Sold-out report
    - POST /api/commands: Run a typed or spoken command
    - POST /webhook/voice: Speech-to-text transcript webhook
    - GET  /api/public/menu: Available dishes grouped by category
    - POST /api/public/orders: Customer order submission
    - GET  /api/orders, PATCH /api/orders/{id}/status, DELETE /api/orders/{id}
    - GET  /api/notifications: Recent toasts and announcements
    - GET  /api/share-link: Customer link for a table
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from carta.application import Application
from carta.core.config import Settings, get_settings, setup_logging
from carta.links import build_share_link, resolve_view
from carta.menu import AddItem, Category, ResetToDefaults, SetPrice, ToggleAvailability, build_status_report
from carta.orders import OrderValidationError
from carta.schemas import (
    CommandRequest,
    CommandResponse,
    ErrorResponse,
    HealthResponse,
    MenuItemCreate,
    MenuItemSchema,
    MenuSection,
    NotificationSchema,
    Order,
    OrderCreateRequest,
    OrderCreateResponse,
    OrderStatusUpdate,
    PriceUpdate,
    PublicMenuResponse,
    ShareLinkResponse,
    StatusReportResponse,
    ViewResponse,
)
from carta.services.storage import RemoteStoreError
from carta.services.voice import VoiceWebhookPayload, VoiceWebhookResponse

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def get_application(request: Request) -> Application:
    return request.app.state.application


def _menu_payload(items) -> list[MenuItemSchema]:
    return [MenuItemSchema.from_item(item) for item in items]


def _sections(items) -> list[MenuSection]:
    """Available items grouped by category, in category order."""
    sections = []
    for category in Category:
        grouped = [item for item in items if item.available and item.category == category]
        if grouped:
            sections.append(MenuSection(category=category, items=_menu_payload(grouped)))
    return sections


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI app; one Application container per app instance."""
    settings = settings or get_settings()

    # =========================================================================
    # APPLICATION LIFECYCLE
    # =========================================================================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info(f"Starting {settings.app_name}")
        logger.info(f"   Version: {settings.app_version}")
        logger.info(f"   Environment: {settings.env_mode.value}")
        logger.info(f"   Storage: {settings.storage_backend.value}")
        logger.info("=" * 60)

        missing = settings.validate_backend_config()
        if missing:
            logger.warning(f"Missing backend config: {missing}")

        application = Application(settings)
        app.state.application = application
        await application.start()
        logger.info("Application ready")

        yield

        logger.info("Shutting down...")
        await application.stop()
        logger.info("Cleanup complete")

    app = FastAPI(
        title=settings.app_name,
        description="Menu management with Spanish voice commands and live table ordering.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # ROOT & HEALTH ENDPOINTS
    # =========================================================================

    @app.get("/", response_model=ViewResponse, tags=["Root"])
    async def root(request: Request) -> ViewResponse:
        """Which view a link opens: `?view=customer&mesa=5`."""
        selection = resolve_view(request.query_params)
        return ViewResponse(
            app=settings.app_name,
            version=settings.app_version,
            view=selection.view.value,
            table_number=selection.table_number,
        )

    @app.get("/menu", response_class=HTMLResponse, tags=["Customer"])
    async def customer_page(request: Request) -> HTMLResponse:
        """Customer digital menu, the page the table QR code points to."""
        application = get_application(request)
        selection = resolve_view(request.query_params)
        return templates.TemplateResponse(
            request,
            "menu.html",
            {
                "restaurant": settings.restaurant_name,
                "currency": settings.currency_symbol,
                "table_number": selection.table_number,
                "sections": _sections(application.customer_menu()),
            },
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request) -> HealthResponse:
        application = get_application(request)

        remote_ok = True
        if application.remote is not None:
            try:
                remote_ok = await application.remote.health_check()
            except Exception as e:
                logger.error(f"Remote health check failed: {e}")
                remote_ok = False

        return HealthResponse(
            status="healthy" if remote_ok else "degraded",
            storage=application.storage_name,
            remote_ok=remote_ok,
            menu_items=len(application.store.items),
            orders=len(application.orders_listener.items),
            timestamp=datetime.now(),
        )

    # =========================================================================
    # STAFF MENU ENDPOINTS
    # =========================================================================

    @app.get("/api/menu", response_model=list[MenuItemSchema], tags=["Menu"])
    async def get_menu(request: Request) -> list[MenuItemSchema]:
        return _menu_payload(get_application(request).store.items)

    @app.post("/api/menu/items", response_model=MenuItemSchema, status_code=201, tags=["Menu"])
    async def add_menu_item(body: MenuItemCreate, request: Request) -> MenuItemSchema:
        application = get_application(request)
        items = application.store.dispatch(
            AddItem(
                name=body.name,
                category=body.category,
                price=body.price,
                description=body.description,
                image=body.image,
                available=body.available,
            )
        )
        application.notifier.success(f"¡{body.name} añadido a la carta!")
        return MenuItemSchema.from_item(items[-1])

    @app.patch("/api/menu/items/{item_id}/price", response_model=MenuItemSchema, tags=["Menu"])
    async def set_item_price(item_id: int, body: PriceUpdate, request: Request) -> MenuItemSchema:
        application = get_application(request)
        if application.store.get(item_id) is None:
            raise HTTPException(status_code=404, detail=f"Menu item {item_id} not found")
        application.store.dispatch(SetPrice(item_id=item_id, price=body.price))
        return MenuItemSchema.from_item(application.store.get(item_id))

    @app.post("/api/menu/items/{item_id}/availability", response_model=MenuItemSchema, tags=["Menu"])
    async def toggle_item_availability(item_id: int, request: Request) -> MenuItemSchema:
        """Sold-out switch on the dashboard card; goes through the same intent as the voice command."""
        application = get_application(request)
        item = application.store.get(item_id)
        if item is None:
            raise HTTPException(status_code=404, detail=f"Menu item {item_id} not found")
        application.store.dispatch(ToggleAvailability(name=item.name))
        return MenuItemSchema.from_item(application.store.get(item_id))

    @app.post("/api/menu/reset", response_model=list[MenuItemSchema], tags=["Menu"])
    async def reset_menu(request: Request) -> list[MenuItemSchema]:
        return _menu_payload(get_application(request).store.dispatch(ResetToDefaults()))

    @app.get("/api/menu/status", response_model=StatusReportResponse, tags=["Menu"])
    async def menu_status(request: Request) -> StatusReportResponse:
        items = get_application(request).store.items
        sold_out = sum(1 for item in items if not item.available)
        return StatusReportResponse(
            message=build_status_report(items),
            available=len(items) - sold_out,
            sold_out=sold_out,
        )

    # =========================================================================
    # COMMAND ENDPOINTS
    # =========================================================================

    @app.post("/api/commands", response_model=CommandResponse, tags=["Commands"])
    async def run_command(body: CommandRequest, request: Request) -> CommandResponse:
        """
        Run one utterance. Unrecognized input is not an error: it comes
        back with kind "ignored" and the menu unchanged.
        """
        application = get_application(request)
        outcome = application.interpreter.execute(body.utterance)
        return CommandResponse(
            kind=outcome.kind.value,
            utterance=outcome.utterance,
            intent=type(outcome.intent).__name__ if outcome.intent is not None else None,
            message=outcome.message,
            menu=_menu_payload(application.store.items),
        )

    @app.post("/webhook/voice", tags=["Voice Webhook"])
    async def voice_webhook(request: Request) -> dict[str, Any]:
        """Transcript webhook; only final user transcripts are executed."""
        payload_dict = await request.json()
        logger.info(f"Voice webhook received: {payload_dict.get('type', 'unknown')}")

        try:
            payload = VoiceWebhookPayload(**payload_dict)
        except Exception as e:
            logger.error(f"Failed to parse voice payload: {e}")
            return VoiceWebhookResponse(status="error", message="Invalid payload format").model_dump()

        response = get_application(request).voice.handle_webhook(payload)
        return response.model_dump()

    # =========================================================================
    # CUSTOMER ENDPOINTS
    # =========================================================================

    @app.get("/api/public/menu", response_model=PublicMenuResponse, tags=["Customer"])
    async def public_menu(
        request: Request,
        mesa: Optional[str] = Query(None, description="Table number from the shared link"),
    ) -> PublicMenuResponse:
        application = get_application(request)
        return PublicMenuResponse(
            restaurant=settings.restaurant_name,
            currency=settings.currency_symbol,
            table_number=mesa,
            sections=_sections(application.customer_menu()),
        )

    @app.post(
        "/api/public/orders",
        response_model=OrderCreateResponse,
        status_code=201,
        responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
        tags=["Customer"],
    )
    async def submit_order(body: OrderCreateRequest, request: Request) -> OrderCreateResponse:
        application = get_application(request)
        order = await application.orders.submit(body.table_number, body.items, application.customer_menu())
        return OrderCreateResponse(
            success=True,
            message="La cocina ya está preparando tu orden.",
            order=order,
        )

    # =========================================================================
    # ORDER ENDPOINTS (STAFF)
    # =========================================================================

    @app.get("/api/orders", response_model=list[Order], tags=["Orders"])
    async def list_orders(request: Request) -> list[Order]:
        return await get_application(request).orders.list_orders()

    @app.patch("/api/orders/{order_id}/status", tags=["Orders"])
    async def update_order_status(order_id: str, body: OrderStatusUpdate, request: Request) -> dict[str, Any]:
        await get_application(request).orders.update_status(order_id, body.status)
        return {"success": True, "order_id": order_id, "status": body.status.value}

    @app.delete("/api/orders/{order_id}", tags=["Orders"])
    async def delete_order(order_id: str, request: Request) -> dict[str, Any]:
        await get_application(request).orders.delete(order_id)
        return {"success": True, "order_id": order_id}

    # =========================================================================
    # MISC ENDPOINTS
    # =========================================================================

    @app.get("/api/notifications", response_model=list[NotificationSchema], tags=["Notifications"])
    async def recent_notifications(
        request: Request,
        limit: int = Query(20, ge=1, le=200),
    ) -> list[NotificationSchema]:
        notifications = get_application(request).notifier.recent(limit)
        return [NotificationSchema(**n.to_dict()) for n in notifications]

    @app.get("/api/share-link", response_model=ShareLinkResponse, tags=["Customer"])
    async def share_link(table: Optional[str] = Query(None)) -> ShareLinkResponse:
        table_number = table.strip() if table and table.strip() else None
        return ShareLinkResponse(
            url=build_share_link(f"{settings.public_base_url.rstrip('/')}/menu", table_number),
            view="customer",
            table_number=table_number,
        )

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.exception_handler(OrderValidationError)
    async def order_validation_handler(request: Request, exc: OrderValidationError) -> JSONResponse:
        status_code = 422 if exc.code == "missing_table" else 400
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=exc.code, detail=exc.message).model_dump(),
        )

    @app.exception_handler(RemoteStoreError)
    async def remote_error_handler(request: Request, exc: RemoteStoreError) -> JSONResponse:
        return JSONResponse(
            status_code=502,
            content=ErrorResponse(error="remote_store_error", detail=str(exc)).model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Internal Server Error",
                detail=str(exc) if settings.debug else "An unexpected error occurred",
            ).model_dump(),
        )

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "carta.main:app",
        host=_settings.api_host,
        port=_settings.api_port,
        reload=_settings.debug,
    )
