from __future__ import annotations  # FastAPI server exposing quick and deep assessments

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agents.next_step import NextStepAgent
from agents.question_selector import QuestionSelectorAgent
from agents.tag_extractor import TagExtractorAgent
from agents.types import NextStepDecision, SelectorChoice, TagResult
from api import routes
from config import AppConfig, LlmRoute, bind_model, load_config, resolve_registry, settings
from config.registry import NEXT_STEP_KEY, SELECTOR_KEY, TAGS_KEY
from flow_manager.router import SELECTOR_OPTIONS
from graph.build import DeepInterview
from storage.migrate import migrate


logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).resolve().parent / "app_config.json"
MODEL_SCHEMAS = {
    SELECTOR_KEY: SelectorChoice,
    NEXT_STEP_KEY: NextStepDecision,
    TAGS_KEY: TagResult,
}


def _bounded(route: LlmRoute) -> LlmRoute:  # Cap each route at the engine-wide call timeout
    return route.model_copy(update={"timeout_s": min(route.timeout_s, settings.LLM_TIMEOUT_S)})


def wire_models(config_path: Path = CONFIG_PATH) -> AppConfig:
    """Bind the selector, next-step and tagger agents from the route config."""

    cfg = load_config(config_path)
    resolved = resolve_registry(cfg, MODEL_SCHEMAS)
    selector_route, _ = resolved[SELECTOR_KEY]
    next_route, _ = resolved[NEXT_STEP_KEY]
    tags_route, _ = resolved[TAGS_KEY]
    bind_model(SELECTOR_KEY, QuestionSelectorAgent(_bounded(selector_route), SELECTOR_OPTIONS))
    bind_model(NEXT_STEP_KEY, NextStepAgent(_bounded(next_route)))
    bind_model(TAGS_KEY, TagExtractorAgent(_bounded(tags_route)))
    logger.info(
        "models wired selector=%s next_step=%s tagger=%s",
        selector_route.name,
        next_route.name,
        tags_route.name,
    )
    return cfg


def create_app(config_path: Optional[Path] = None) -> FastAPI:
    cfg = wire_models(config_path or CONFIG_PATH)
    migrate()
    routes.configure(interview=DeepInterview(cfg=cfg.orchestrator))

    application = FastAPI(title="Assessment API")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"]
    )
    application.include_router(routes.router)
    application.include_router(routes.deep_router)
    return application


app = create_app()
