"""Pydantic models for the on-disk ``config`` document.

Sparse JSON contract: defaults baked here, the file only needs overrides.
Keys keep the capitalised spelling of the document (``Addresses.API``)
through aliases; Python code uses snake_case attribute names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_API_ADDRESS = "/ip4/127.0.0.1/tcp/5001"
DEFAULT_GATEWAY_ADDRESS = "/ip4/127.0.0.1/tcp/8080"

_SECTION = ConfigDict(frozen=True, populate_by_name=True)


class IdentityConfig(BaseModel):
    """``Identity`` section."""

    model_config = _SECTION

    peer_id: str = Field(default="", alias="PeerID")


class AddressesConfig(BaseModel):
    """``Addresses`` section."""

    model_config = _SECTION

    api: str = Field(default=DEFAULT_API_ADDRESS, alias="API")
    gateway: str = Field(default=DEFAULT_GATEWAY_ADDRESS, alias="Gateway")


class DatastoreConfig(BaseModel):
    """``Datastore`` section.  An empty path means ``<root>/datastore``."""

    model_config = _SECTION

    path: str = Field(default="", alias="Path")


class MigrationsConfig(BaseModel):
    """``Migrations`` section, consumed by the distribution fetcher.

    Empty strings and a zero limit select the fetcher's own defaults;
    a negative limit disables the byte ceiling.
    """

    model_config = _SECTION

    gateway: str = Field(default="", alias="Gateway")
    dist_path: str = Field(default="", alias="DistPath")
    fetch_limit: int = Field(default=0, alias="FetchLimit")
    user_agent: str = Field(default="", alias="UserAgent")


class NodeConfig(BaseModel):
    """Root of the configuration document."""

    model_config = _SECTION

    identity: IdentityConfig = Field(default_factory=IdentityConfig, alias="Identity")
    addresses: AddressesConfig = Field(default_factory=AddressesConfig, alias="Addresses")
    datastore: DatastoreConfig = Field(default_factory=DatastoreConfig, alias="Datastore")
    migrations: MigrationsConfig = Field(default_factory=MigrationsConfig, alias="Migrations")
