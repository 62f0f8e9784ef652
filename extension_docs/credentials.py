"""Managed secrets for the storage, payment, and deploy services.

Secrets live in ``~/.config/extension-docs/credentials.toml`` under an
``[auth]`` table. Each field of :class:`CredentialSet` is filled from the
first non-empty source: an explicit override, then the environment variables
listed in :data:`ENV_SOURCES`, then the stored file. The merged set can be
written back without disturbing comments in the file.
"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ
from pathlib import Path

import tomlkit

DEFAULT_CREDENTIALS_PATH = Path(
    os.getenv(
        "EXTENSION_DOCS_CREDENTIALS",
        Path.home() / ".config" / "extension-docs" / "credentials.toml",
    )
)

_AUTH_TABLE = "auth"
_SECRET_FILE_MODE = 0o600

ENV_SOURCES: dict[str, tuple[str, ...]] = {
    "aws_access_key_id": ("AWS_ACCESS_KEY_ID",),
    "aws_secret_access_key": ("AWS_SECRET_ACCESS_KEY",),
    "region": ("AWS_DEFAULT_REGION",),
    "s3_endpoint": ("AWS_S3_ENDPOINT",),
    "stripe_secret_key": ("STRIPE_SECRET_KEY",),
    "github_token": ("GITHUB_TOKEN", "GH_TOKEN"),
}


class CredentialError(RuntimeError):
    """A secret the publish needs could not be found."""


@dc.dataclass(slots=True)
class CredentialSet:
    """Resolved secrets for every external service the pipeline talks to."""

    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    region: str | None = None
    s3_endpoint: str | None = None
    stripe_secret_key: str | None = None
    github_token: str | None = None

    def missing(self, *names: str) -> list[str]:
        """Return the subset of ``names`` that have no value."""
        return [name for name in names if not getattr(self, name)]


def _read_document(path: Path) -> tomlkit.TOMLDocument:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return tomlkit.document()
    try:
        return tomlkit.parse(text)
    except tomlkit.exceptions.ParseError as exc:
        msg = f"Unable to parse credentials TOML at {path}"
        raise CredentialError(msg) from exc


def load_stored(path: Path) -> CredentialSet:
    """Return the credentials recorded in ``path``; absent files give an empty set."""
    table = _read_document(path).get(_AUTH_TABLE) or {}
    values = {field: table.get(field) for field in ENV_SOURCES}
    return CredentialSet(**{k: str(v) if v is not None else None for k, v in values.items()})


def save_credentials(
    creds: CredentialSet, *, path: Path = DEFAULT_CREDENTIALS_PATH
) -> None:
    """Write ``creds`` into the ``[auth]`` table of ``path`` and restrict its mode."""
    doc = _read_document(path)
    table = doc.get(_AUTH_TABLE)
    if not isinstance(table, tomlkit.items.Table):
        table = tomlkit.table()
    for field, value in dc.asdict(creds).items():
        if value is None:
            table.pop(field, None)
        else:
            table[field] = value
    doc[_AUTH_TABLE] = table

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    path.chmod(_SECRET_FILE_MODE)


def _from_environment(field: str) -> str | None:
    return next(
        (os.environ[name] for name in ENV_SOURCES[field] if os.environ.get(name)),
        None,
    )


def resolve_credentials(
    *,
    path: Path = DEFAULT_CREDENTIALS_PATH,
    save: bool = False,
    **overrides: str | None,
) -> CredentialSet:
    """Merge ``overrides``, the environment, and the stored credentials file.

    Parameters
    ----------
    path : Path, optional
        Location of the TOML credentials file.
    save : bool, optional
        Write the merged result back to ``path``.
    **overrides : str | None
        Explicit values keyed by :class:`CredentialSet` field name.

    Raises
    ------
    CredentialError
        If the storage key pair cannot be resolved from any source.
    """
    unknown = set(overrides) - set(ENV_SOURCES)
    if unknown:
        msg = f"Unknown credential fields: {', '.join(sorted(unknown))}"
        raise TypeError(msg)

    stored = load_stored(path)
    resolved = CredentialSet(
        **{
            field: overrides.get(field)
            or _from_environment(field)
            or getattr(stored, field)
            for field in ENV_SOURCES
        }
    )
    if resolved.missing("aws_access_key_id", "aws_secret_access_key"):
        msg = (
            "AWS access key and secret key are required. "
            "Set them in the environment or in credentials.toml."
        )
        raise CredentialError(msg)
    if save:
        save_credentials(resolved, path=path)
    return resolved


def as_boto_kwargs(creds: CredentialSet) -> dict[str, typ.Any]:
    """Return keyword arguments for ``boto3.client`` built from ``creds``."""
    kwargs: dict[str, typ.Any] = {
        "aws_access_key_id": creds.aws_access_key_id,
        "aws_secret_access_key": creds.aws_secret_access_key,
    }
    if creds.region:
        kwargs["region_name"] = creds.region
    return kwargs


__all__ = [
    "DEFAULT_CREDENTIALS_PATH",
    "ENV_SOURCES",
    "CredentialError",
    "CredentialSet",
    "as_boto_kwargs",
    "load_stored",
    "resolve_credentials",
    "save_credentials",
]
