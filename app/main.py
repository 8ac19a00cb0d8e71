from prometheus_fastapi_instrumentator import Instrumentator

from app.core.logging import configure_logging
from app.core.config import settings
from . import app as registry_app

configure_logging(settings.LOG_LEVEL)
app = registry_app
instrumentator = Instrumentator().instrument(app)
instrumentator.expose(app, include_in_schema=False)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)
