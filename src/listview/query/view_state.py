"""User-controlled list query state."""

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


class SortEntry(BaseModel):
    """One column of the sort specification."""

    model_config = ConfigDict(frozen=True)

    column_id: str
    descending: bool = False


class Pagination(BaseModel):
    """Page window sent to the endpoint."""

    model_config = ConfigDict(frozen=True)

    page_index: int = Field(default=0, ge=0)
    page_size: int = Field(default=10, gt=0)


class ViewState(BaseModel):
    """
    Paging, search, filter and sort input for a list query.

    Instances are immutable; every change produces a new ViewState so that a
    request can keep the snapshot it was built from.
    """

    model_config = ConfigDict(frozen=True)

    page_index: int = Field(default=0, ge=0)
    page_size: int = Field(default=10, gt=0)
    search_text: str = ""
    filter_text: str = ""
    sort_spec: Tuple[SortEntry, ...] = ()

    @property
    def pagination(self) -> Pagination:
        return Pagination(page_index=self.page_index, page_size=self.page_size)


class ColumnDef(BaseModel):
    """Column the view renders and may sort on."""

    model_config = ConfigDict(frozen=True)

    id: str
    header: str
    sortable: bool = True
    sort_desc_first: bool = False


DEFAULT_COLUMNS: Tuple[ColumnDef, ...] = (
    ColumnDef(id="id", header="ID"),
    ColumnDef(id="title", header="Title"),
)
