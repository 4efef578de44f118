"""Geographic reference data — countries, states, and addresses.

Countries and states are immutable catalog records with stable
identifiers. Each carries a ``kind`` literal so the two can travel in a
single discriminated union (see :data:`Zoneable`).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, model_validator


class Country(BaseModel):
    """A country in the geographic catalog."""

    model_config = {"frozen": True}

    kind: Literal["country"] = "country"
    id: int
    iso: str
    name: str = ""


class State(BaseModel):
    """A state (province, region) belonging to exactly one country."""

    model_config = {"frozen": True}

    kind: Literal["state"] = "state"
    id: int
    code: str
    name: str = ""
    country: Country


Zoneable = Annotated[Country | State, Field(discriminator="kind")]


class Address(BaseModel):
    """The geographic part of a customer address.

    Only the country and optional state take part in zone matching.
    A state implies its country; passing a state that belongs to a
    different country is rejected.
    """

    model_config = {"frozen": True}

    country: Country | None = None
    state: State | None = None

    @model_validator(mode="before")
    @classmethod
    def _country_from_state(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("country") is None:
            state = data.get("state")
            if isinstance(state, State):
                return {**data, "country": state.country}
        return data

    @model_validator(mode="after")
    def _state_in_country(self) -> Address:
        if self.state is not None and self.country is not None:
            if self.state.country.id != self.country.id:
                msg = (
                    f"State {self.state.code!r} belongs to {self.state.country.iso!r}, "
                    f"not {self.country.iso!r}"
                )
                raise ValueError(msg)
        return self
