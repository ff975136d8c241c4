"""DNS-over-HTTPS JSON response schema (``application/dns-json``)."""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, Field

TXT_RECORD_TYPE: Final[int] = 16


class DohBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DohQuestion(DohBaseModel):
    name: str
    type: int


class DohAnswer(DohBaseModel):
    name: str
    type: int
    ttl: int | None = Field(default=None, alias="TTL")
    data: str

    @property
    def is_txt(self) -> bool:
        return self.type == TXT_RECORD_TYPE


class DohResponse(DohBaseModel):
    status: int = Field(alias="Status")
    truncated: bool = Field(default=False, alias="TC")
    question: list[DohQuestion] = Field(default_factory=list, alias="Question")
    answer: list[DohAnswer] = Field(default_factory=list, alias="Answer")

    @property
    def txt_answers(self) -> list[DohAnswer]:
        return [answer for answer in self.answer if answer.is_txt]
