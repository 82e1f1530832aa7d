# main.py
from typing import Any, Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.app_config import AppConfig
from config.logging_config import configure_logging
from middleware.request_logging import RequestLoggingMiddleware
from routers.ai_chat_routes import router as ai_chat_router
from routers.ai_routes import router as ai_router
from routers.message_routes import router as message_router
from routers.report_routes import router as report_router
from routers.scenario_routes import router as scenario_router
from services.ai.chat.chat_orchestrator import ChatOrchestrator
from services.ai.portfolio.portfolio_insights_service import PortfolioInsightsService
from services.messages.message_store import MessageStore
from services.openai.client import openai_factory_for
from services.scenarios.active_scenario import ActiveScenario


def create_app(
    config: Optional[AppConfig] = None,
    openai_factory: Optional[Callable[[], Any]] = None,
) -> FastAPI:
    cfg = config or AppConfig.from_env()

    app = FastAPI(title="Portfolio Chat Backend")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    active = ActiveScenario(cfg.default_scenario_id)
    llm_factory = openai_factory or openai_factory_for(cfg)
    app.state.config = cfg
    app.state.active_scenario = active
    app.state.chat_orchestrator = ChatOrchestrator(
        data_dir=cfg.data_dir,
        openai_factory=llm_factory,
        get_active_scenario_id=active.get,
        model=cfg.openai_model,
        max_tokens=cfg.openai_max_tokens,
    )
    app.state.insights_service = PortfolioInsightsService(openai_factory=llm_factory, model=cfg.openai_model)
    app.state.message_store = MessageStore.from_data_dir(cfg.data_dir)

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "openaiConfigured": cfg.openai_configured}

    # Include routers
    app.include_router(scenario_router, prefix="/api")
    app.include_router(ai_chat_router, prefix="/api/ai")
    app.include_router(ai_router, prefix="/api/ai")
    app.include_router(message_router, prefix="/api/messages")
    app.include_router(report_router, prefix="/reports/mock")

    return app


configure_logging()
app = create_app()
