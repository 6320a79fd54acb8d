import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from sdml_lint.config import EngineConfig, load_config
from sdml_lint.registry import list_supported_languages
from sdml_lint.runner import LintRunner
from sdml_lint.schema import ENGINE_VERSION, batch_to_json
from sdml_lint.table import RuleTable
from sdml_lint.types import ConfigError, LintRequest

from .models import LintRequestModel, LintResponse, RuleTableModel, RuleTableUpdate
from .settings import settings

logger = logging.getLogger(__name__)

_runner: Optional[LintRunner] = None


def get_runner() -> LintRunner:
    """The process-wide runner, created from settings on first use."""
    global _runner
    if _runner is None:
        config = load_config(settings.config_path) if settings.config_path else EngineConfig()
        _runner = LintRunner(config=config)
        logger.info(f"Lint runner ready with {len(_runner.table)} rules")
    return _runner


def reset_runner(runner: Optional[LintRunner] = None) -> None:
    """Swap the process-wide runner (mainly for testing)."""
    global _runner
    _runner = runner


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the rule table at startup so config errors surface immediately."""
    if settings.debug:
        logging.basicConfig(level=logging.DEBUG)
    try:
        get_runner()
    except ConfigError as e:
        logger.error(f"[startup] Failed to load rule configuration: {e}")
        raise
    yield


app = FastAPI(
    title="sdml-lint: structural lint over tree-sitter",
    lifespan=lifespan
)

# If no origins configured, allow localhost for development
allowed_origins = settings.allowed_origins if settings.allowed_origins else [
    "http://localhost",
    "http://127.0.0.1",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["Content-Type"],
)


@app.get("/health")
def health():
    """
    Health check endpoint.
    Used by editors and orchestrators to see whether the engine is up.
    """
    runner = get_runner()
    return {
        "status": "ok",
        "version": ENGINE_VERSION,
        "languages": list_supported_languages(),
        "rules": len(runner.table),
        "timestamp": int(time.time()),
    }


@app.get("/rules", response_model=RuleTableModel)
def get_rules():
    """Return the current rule table in order."""
    return {"rules": get_runner().table.to_dicts()}


@app.put("/rules", response_model=RuleTableModel)
def replace_rules(update: RuleTableUpdate = Body(...)):
    """
    Replace the whole rule table.

    The new table takes effect for runs that start after this call returns;
    runs already in flight finish with the table they started with.
    """
    if not settings.allow_rule_updates:
        raise HTTPException(status_code=403, detail="Rule updates are disabled")

    try:
        table = RuleTable.from_dicts([rule.model_dump(exclude_none=True) for rule in update.rules])
        table = table.with_severities(update.rule_severities)
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    get_runner().replace_table(table)
    return {"rules": table.to_dicts()}


@app.post("/lint", response_model=LintResponse)
def lint_document(req: LintRequestModel = Body(...)):
    """
    Lint one document version and return its diagnostic batch.

    A document whose tree can't be obtained (unknown language, grammar not
    installed) comes back with status "failed" and no diagnostics.
    """
    batch = get_runner().lint(LintRequest(
        path=req.path,
        text=req.text,
        version=req.version,
        language=req.language,
    ))
    return batch_to_json(batch)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("sdml_server.main:app", host="127.0.0.1", port=8000, reload=True)
