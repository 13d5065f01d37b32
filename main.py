import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.requests import Request

from config import settings
from loader import FilmLoader
from models import Film, Loading

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def _status(loader: FilmLoader) -> dict:
    state = loader.state
    return {
        "state": state.kind,
        "message": getattr(state, "message", None),
        "count": len(loader.films),
    }


def _row(film: Film) -> dict:
    return {"id": film.id, "title": film.title, "banner_url": film.banner_url}


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.loader = FilmLoader(settings.films_endpoint)
    app.state.loader.fetch()
    yield
    await app.state.loader.aclose()


app = FastAPI(lifespan=lifespan)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/status")
async def status(request: Request):
    return _status(request.app.state.loader)


@app.get("/films")
async def list_films(request: Request):
    loader: FilmLoader = request.app.state.loader
    return {**_status(loader), "films": [_row(film) for film in loader.films]}


@app.get("/films/{film_id}")
async def film_detail(film_id: str, request: Request):
    loader: FilmLoader = request.app.state.loader
    film = next((f for f in loader.films if f.id == film_id), None)
    if film is None:
        raise HTTPException(status_code=404, detail="Film not found")
    return {
        **film.model_dump(),
        "banner_url": film.banner_url,
        "details": [{"label": label, "value": value} for label, value in film.details()],
    }


@app.post("/refresh")
async def refresh(request: Request):
    loader: FilmLoader = request.app.state.loader
    if isinstance(loader.state, Loading):
        return {"status": "already_running"}

    logger.info("Manual refresh requested")
    loader.fetch()
    return {"status": "started"}
