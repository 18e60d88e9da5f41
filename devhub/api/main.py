from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from devhub.api.deps import status_for
from devhub.api.routes.intelligence import router as intelligence_router
from devhub.api.routes.meetings import router as meetings_router
from devhub.api.routes.review import router as review_router
from devhub.api.routes.workflows import router as workflows_router
from devhub.config import get_settings
from devhub.errors import DevHubError

app = FastAPI(
    title="DevHub Intelligence API",
    description="LLM-assisted meeting analysis, code review, development intelligence and workflows",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_origin_regex=r"http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(meetings_router)
app.include_router(review_router)
app.include_router(intelligence_router)
app.include_router(workflows_router)


@app.exception_handler(DevHubError)
async def devhub_error_handler(request: Request, exc: DevHubError) -> JSONResponse:
    # Raised when a dependency cannot be built, e.g. a missing ANTHROPIC_API_KEY.
    return JSONResponse(status_code=status_for(exc.kind), content=exc.to_dict())


@app.get("/health")
async def health() -> dict[str, object]:
    settings = get_settings()
    return {
        "status": "healthy",
        "integrations": {
            "llm": settings.llm_enabled,
            "github": settings.github_enabled,
            "jira": settings.jira_enabled,
        },
    }
