from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PaginationPolicy(BaseModel):
    """Bounds applied when normalizing pagination query parameters."""

    model_config = ConfigDict(frozen=True)

    default_limit: int = Field(default=20, ge=1)
    max_limit: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def _default_within_max(self) -> "PaginationPolicy":
        if self.default_limit > self.max_limit:
            raise ValueError("default_limit must not exceed max_limit")
        return self


class PaginationDirective(BaseModel):
    """Validated page window handed to the persistence layer."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    skip: int = Field(ge=0)

    @model_validator(mode="after")
    def _skip_matches_page(self) -> "PaginationDirective":
        if self.skip != (self.page - 1) * self.limit:
            raise ValueError("skip must equal (page - 1) * limit")
        return self


class ResultMeta(BaseModel):
    """Metadata describing a paginated response."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total: int
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages", ge=1)


DEFAULT_POLICY = PaginationPolicy()
