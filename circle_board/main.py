import logging

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .db import Base, engine
from .errors import AppError
from . import models  # noqa: F401  テーブル定義を Base に登録
from .api.deps import get_db_dep, storage
from .api.v1 import api_router as api_v1_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# モデルからテーブル作成（開発用）
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Circle Board API",
    version="0.1.0",
    debug=settings.debug,
)

# アップロードした画像を静的ファイルとして公開
app.mount(
    "/storage",
    StaticFiles(directory=str(storage.root)),
    name="storage",
)

app.include_router(api_v1_router, prefix="/api")


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/")
def read_root():
    return {"message": "Circle Board API is running"}


@app.get("/health")
def health_check(db: Session = Depends(get_db_dep)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="database unavailable")
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
