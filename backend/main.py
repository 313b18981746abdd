# backend/main.py
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

load_dotenv()

from config import settings
from database import init_db

from routes.auth import router as auth_router
from routes.admin import router as admin_router
from routes.logs import router as logs_router
from routes.settings import router as settings_router
from routes.catalog import router as catalog_router
from routes.products import router as products_router
from routes.promotions import router as promotions_router
from routes.clients import router as clients_router
from routes.sales import router as sales_router
from routes.quotes import router as quotes_router
from routes.register import router as register_router
from routes.team import router as team_router
from routes.reports import router as reports_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

init_db()

app = FastAPI(title="Atelier POS API", version="1.0.0")

# Product images are served from the upload directory
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(logs_router)
app.include_router(settings_router)
app.include_router(catalog_router)
app.include_router(products_router)
app.include_router(promotions_router)
app.include_router(clients_router)
app.include_router(sales_router)
app.include_router(quotes_router)
app.include_router(register_router)
app.include_router(team_router)
app.include_router(reports_router)


@app.get("/")
def read_root():
    return {"message": "Atelier POS API is running"}
