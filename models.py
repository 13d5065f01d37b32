from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError


class Film(BaseModel):
    """One film entry as served by the Ghibli API."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    original_title: Optional[str] = None
    original_title_romanised: Optional[str] = None
    description: Optional[str] = None
    director: Optional[str] = None
    producer: Optional[str] = None
    release_date: Optional[str] = None  # year only, e.g. "1986"
    running_time: Optional[str] = None  # minutes
    rt_score: Optional[str] = None
    image: Optional[str] = None  # poster URL
    movie_banner: Optional[str] = None  # banner URL

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Film):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def banner_url(self) -> Optional[str]:
        """Banner for list rows, falling back to the poster."""
        return self.movie_banner or self.image or None

    def details(self) -> list[tuple[str, str]]:
        """Label/value pairs for the detail view. Empty fields are skipped."""
        pairs = [
            ("Release Year", self.release_date),
            ("Running Time", f"{self.running_time} min" if self.running_time else None),
            ("Rotten Tomatoes", self.rt_score),
            ("Director", self.director),
            ("Producer", self.producer),
        ]
        return [(label, value) for label, value in pairs if value]


class Idle(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["idle"] = "idle"


class Loading(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["loading"] = "loading"


class Loaded(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["loaded"] = "loaded"


class Failed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["failed"] = "failed"
    message: str


LoadState = Union[Idle, Loading, Loaded, Failed]


class FilmDecodeError(ValueError):
    """Raised when a payload does not match the film data contract."""


_film_adapter = TypeAdapter(Film)
_films_adapter = TypeAdapter(list[Film])


def _decode_error(exc: ValidationError) -> FilmDecodeError:
    errors = exc.errors()
    first = errors[0]
    location = ".".join(str(part) for part in first["loc"]) or "body"
    return FilmDecodeError(
        f"{len(errors)} problem(s) decoding films, first at {location}: {first['msg']}"
    )


def decode_film(payload: Union[str, bytes]) -> Film:
    """Decode a single JSON object into a Film."""
    try:
        return _film_adapter.validate_json(payload)
    except ValidationError as exc:
        raise _decode_error(exc) from exc


def decode_films(payload: Union[str, bytes]) -> list[Film]:
    """
    Decode a JSON array of film objects.
    All or nothing: one bad element rejects the whole payload.
    """
    try:
        return _films_adapter.validate_json(payload)
    except ValidationError as exc:
        raise _decode_error(exc) from exc


def encode_films(films: list[Film]) -> bytes:
    return _films_adapter.dump_json(list(films))
