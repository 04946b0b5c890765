from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class MenuDeclarationRead(BaseModel):
    type: Literal["main", "submenu"]
    page_title: str
    menu_title: str
    parent: str | None = None


class PluginInfo(BaseModel):
    name: str | None = None
    version: str | None = None
    description: str | None = None
    author: str | None = None
    main_file: str


class PluginRead(BaseModel):
    slug: str
    path: str
    info: PluginInfo
    menus: list[MenuDeclarationRead] = Field(default_factory=list)
    schemas: list[str] = Field(default_factory=list)
    imported_at: datetime


class PluginImportResponse(BaseModel):
    plugin: PluginRead
    schema_statements: int
    schema_errors: list[str] = Field(default_factory=list)
