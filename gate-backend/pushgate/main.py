from fastapi import FastAPI

from pushgate.actions.registry import init_processors
from pushgate.api.routes import router
from pushgate.core.config import get_settings

app = FastAPI(title="Push Gate Backend", version="0.1.0")
app.include_router(router)


@app.on_event("startup")
async def _startup():
    init_processors()
    settings = get_settings()
    print(
        f"[startup] pre-receive hook={settings.pre_receive_hook_path} "
        f"base_dir={settings.base_dir} timeout={settings.hook_timeout_seconds}",
        flush=True,
    )


@app.get("/health")
async def health():
    return {"ok": True}
