from pydantic import BaseModel, ConfigDict, Field, field_validator


class Quote(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    price: float | None = None
    change: float | None = None
    change_percent: str | None = Field(default=None, alias="changePercent")

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, value: str) -> str:
        return value.strip().upper()

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
