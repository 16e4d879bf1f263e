"""DSN parsing for store configuration, with log-safe rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlparse

from .redaction import REDACTED_VALUE, redact_query_params

_BACKENDS = {
    "sqlite": "sqlite",
    "sqlite3": "sqlite",
    "postgres": "postgresql",
    "postgresql": "postgresql",
}


@dataclass
class DSNConfig:
    driver: str
    username: Optional[str]
    password: Optional[str]
    host: Optional[str]
    port: Optional[int]
    database: Optional[str]
    path: str
    query: dict[str, str]

    @property
    def backend(self) -> str | None:
        """Canonical backend for the scheme (``postgres+psycopg`` -> ``postgresql``)."""
        return _BACKENDS.get(self.driver.split("+", 1)[0].lower())

    @property
    def is_memory(self) -> bool:
        """True for a SQLite DSN whose records vanish with the connection."""
        return self.backend == "sqlite" and self.path.lstrip("/") in ("", ":memory:")

    def redacted(self) -> str:
        credentials = ""
        if self.username:
            credentials = self.username
            if self.password:
                credentials += f":{REDACTED_VALUE}"
            credentials += "@"
        location = self.host or ""
        if self.port:
            location += f":{self.port}"

        # Assembled by hand: urlunparse would collapse "sqlite:///path".
        rendered = f"{self.driver}://{credentials}{location}{self.path}"
        if self.query:
            rendered += "?" + urlencode(redact_query_params(self.query))
        return rendered


def parse_dsn(dsn: str) -> DSNConfig:
    parsed = urlparse(dsn)
    return DSNConfig(
        driver=parsed.scheme,
        username=parsed.username,
        password=parsed.password,
        host=parsed.hostname,
        port=parsed.port,
        database=parsed.path.lstrip("/") or None,
        path=parsed.path or "",
        query={key: values[0] for key, values in parse_qs(parsed.query).items()},
    )
