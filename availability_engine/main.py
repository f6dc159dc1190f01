import logging

from fastapi import FastAPI

from availability_engine.api.v1.availability import router as availability_router
from availability_engine.core.config import settings

CONTEXT_KEYS = (
    "host_id",
    "integration_id",
    "provider",
    "calendar_id",
    "rule_id",
    "kind",
    "date",
    "event_id",
    "title",
    "start",
    "end",
    "status",
    "slot_count",
    "removed",
    "conflict_count",
    "checked",
    "failed",
    "event_count",
    "pages",
    "error",
)


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Availability Engine", version="1.0.0")

app.include_router(availability_router, prefix="/api/v1", tags=["availability"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
