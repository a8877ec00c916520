# main.py
"""
Point d'entrée de l'API Quizlab.
Enregistre les modules via leurs routers.

Architecture : modules verticaux (schemas / service / repository / router)
+ engine pur (définition, scoring, catalogue).
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from quizlab.core.config import settings
from quizlab.core.logging_config import setup_logging

from quizlab.modules.quiz.router import router as quiz_router

setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quiz_router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
