import logging

from fastapi import FastAPI

from vetintake.api.v1.intake import router as intake_router
from vetintake.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in (
            "session_id",
            "from_page",
            "to_page",
            "page",
            "action",
            "client_type",
            "pet_count",
            "doctor_id",
            "slot_count",
            "status",
            "path",
            "reason",
            "error",
        ):
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

app = FastAPI(title="Veterinary Appointment Intake", version="1.0.0")

app.include_router(intake_router, prefix="/v1/intake", tags=["intake"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
